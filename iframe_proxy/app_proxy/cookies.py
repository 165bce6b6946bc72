import re
from typing import List

# Attributes are matched as whole tokens: "; Secure" but not "; SecureToken=1".
DOMAIN_ATTRIBUTE = re.compile(r";\s*Domain=[^;]*", re.IGNORECASE)
SECURE_ATTRIBUTE = re.compile(r";\s*Secure(?=\s*(?:;|$))", re.IGNORECASE)
SAMESITE_NONE_ATTRIBUTE = re.compile(r";\s*SameSite=None(?=\s*(?:;|$))", re.IGNORECASE)


def rewrite_set_cookie(set_cookie: str, insecure: bool = True) -> str:
    """
    Rewrite one Set-Cookie directive so the browser binds it to the proxy origin.

    Domain is always removed. With ``insecure`` the Secure flag and
    SameSite=None are removed as well, which lets the cookie work over a
    plaintext local connection. Everything else is kept verbatim.
    """
    rewritten = DOMAIN_ATTRIBUTE.sub("", set_cookie)
    if insecure:
        rewritten = SECURE_ATTRIBUTE.sub("", rewritten)
        rewritten = SAMESITE_NONE_ATTRIBUTE.sub("", rewritten)
    return rewritten


def rewrite_set_cookies(set_cookies: List[str], insecure: bool = True) -> List[str]:
    return [rewrite_set_cookie(c, insecure=insecure) for c in set_cookies]
