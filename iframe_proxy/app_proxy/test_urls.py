import pytest

from iframe_proxy.app_proxy.errors import UrlResolutionError
from iframe_proxy.app_proxy.urls import (
    percent_encode,
    proxied_url,
    resolve_url,
    rewrite_location,
)

PROXY_BASE = "http://localhost:3000"


def test_percent_encode_matches_uri_component_encoding():
    assert percent_encode("http://a.com/b?c=d&e=f g") == (
        "http%3A%2F%2Fa.com%2Fb%3Fc%3Dd%26e%3Df%20g"
    )
    assert percent_encode("-_.!~*'()") == "-_.!~*'()"


def test_proxied_url():
    assert proxied_url("https://other.com/y", PROXY_BASE) == (
        "http://localhost:3000/proxy?url=https%3A%2F%2Fother.com%2Fy"
    )


def test_proxied_url_is_idempotent():
    once = proxied_url("https://other.com/y", PROXY_BASE)
    assert proxied_url(once, PROXY_BASE) == once


def test_proxied_url_under_other_base_is_wrapped():
    foreign = "http://elsewhere:3000/proxy?url=x"
    assert proxied_url(foreign, PROXY_BASE).startswith(PROXY_BASE + "/proxy?url=http%3A")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("/a/b", "http://example.com/a/b"),
        ("c", "http://example.com/x/c"),
        ("../up", "http://example.com/up"),
        ("//cdn.example.net/lib.js", "http://cdn.example.net/lib.js"),
        ("https://other.com/y", "https://other.com/y"),
        ("  /padded  ", "http://example.com/padded"),
    ],
)
def test_resolve_url(value, expected):
    assert resolve_url(value, "http://example.com/x/") == expected


def test_resolve_url_rejects_relative_base():
    with pytest.raises(UrlResolutionError):
        resolve_url("c", "not-a-url")


def test_resolve_url_rejects_malformed_value():
    with pytest.raises(UrlResolutionError):
        resolve_url("//[::1", "http://example.com/")


def test_rewrite_location():
    assert rewrite_location("/next", "https://example.com/login", PROXY_BASE) == (
        "http://localhost:3000/proxy?url=https%3A%2F%2Fexample.com%2Fnext"
    )
