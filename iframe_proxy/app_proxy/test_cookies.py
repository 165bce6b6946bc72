from iframe_proxy.app_proxy.cookies import rewrite_set_cookie, rewrite_set_cookies


def test_strips_domain_secure_and_samesite_none():
    cookie = "sid=1; Domain=example.com; Secure; SameSite=None; Path=/"
    assert rewrite_set_cookie(cookie) == "sid=1; Path=/"


def test_attribute_names_are_case_insensitive():
    cookie = "sid=1; domain=.example.com; path=/; secure; samesite=none"
    assert rewrite_set_cookie(cookie) == "sid=1; path=/"


def test_other_attributes_preserved_in_order():
    cookie = (
        "theme=dark; Expires=Wed, 21 Oct 2026 07:28:00 GMT; Max-Age=3600; "
        "Path=/app; HttpOnly; SameSite=Lax"
    )
    assert rewrite_set_cookie(cookie) == cookie


def test_only_whole_tokens_are_removed():
    cookie = "Secure=yes; SecureFlag=1; Path=/; SameSite=NoneOfThem"
    assert rewrite_set_cookie(cookie) == cookie


def test_secure_at_end_of_directive():
    assert rewrite_set_cookie("a=1; Path=/; Secure") == "a=1; Path=/"


def test_insecure_rewrite_disabled_only_drops_domain():
    cookie = "sid=1; Domain=example.com; Secure; SameSite=None"
    assert rewrite_set_cookie(cookie, insecure=False) == "sid=1; Secure; SameSite=None"


def test_list_keeps_one_entry_per_directive():
    cookies = ["a=1; Secure", "b=2,3; Domain=x.com"]
    assert rewrite_set_cookies(cookies) == ["a=1", "b=2,3"]


def test_empty_list():
    assert rewrite_set_cookies([]) == []
