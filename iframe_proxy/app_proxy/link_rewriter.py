"""
Link rewriting for proxied HTML.

The default strategy is pattern based, not a DOM parse: links inside scripts,
inline styles or malformed markup may be missed or rewritten imperfectly.
"""

import logging
import re
from typing import Protocol

from iframe_proxy.app_proxy.errors import UrlResolutionError
from iframe_proxy.app_proxy.urls import is_proxied, proxied_url, resolve_url

logger = logging.getLogger("uvicorn.error")

LINK_ATTRIBUTE = re.compile(r"""(href|src|action)=("|')([^"']+)("|')""", re.IGNORECASE)
NON_NAVIGABLE = re.compile(r"^(data:|mailto:|javascript:|#)", re.IGNORECASE)
BARE_URL = re.compile(
    r"https?://[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+", re.IGNORECASE
)


class LinkRewriter(Protocol):
    def rewrite(self, html: str, base_url: str, proxy_base: str) -> str: ...


class RegexLinkRewriter:
    """Rewrites href/src/action attributes first, then any bare absolute URL."""

    def rewrite(self, html: str, base_url: str, proxy_base: str) -> str:
        html = self.rewrite_attributes(html, base_url, proxy_base)
        return self.rewrite_bare_urls(html, proxy_base)

    def rewrite_attributes(self, html: str, base_url: str, proxy_base: str) -> str:
        def _replace(match: re.Match) -> str:
            attr, open_quote, url, close_quote = match.groups()
            if NON_NAVIGABLE.match(url):
                return match.group(0)
            if is_proxied(url, proxy_base):
                return match.group(0)
            try:
                absolute = resolve_url(url, base_url)
            except UrlResolutionError as e:
                logger.debug(f"Leaving {attr} untouched: {e}")
                return match.group(0)
            return f"{attr}={open_quote}{proxied_url(absolute, proxy_base)}{close_quote}"

        return LINK_ATTRIBUTE.sub(_replace, html)

    def rewrite_bare_urls(self, html: str, proxy_base: str) -> str:
        # Attribute pass output starts with the proxy prefix and is skipped here.
        return BARE_URL.sub(lambda m: proxied_url(m.group(0), proxy_base), html)
