from urllib.parse import quote, urljoin, urlsplit

from iframe_proxy.app_proxy.errors import UrlResolutionError

PROXY_PATH = "/proxy"

# Characters encodeURIComponent leaves alone on top of quote()'s own safe set.
_COMPONENT_SAFE = "!~*'()"


def percent_encode(value: str) -> str:
    return quote(value, safe=_COMPONENT_SAFE)


def proxy_prefix(proxy_base: str) -> str:
    return f"{proxy_base}{PROXY_PATH}?url="


def is_proxied(url: str, proxy_base: str) -> bool:
    return url.startswith(proxy_prefix(proxy_base))


def proxied_url(absolute_url: str, proxy_base: str) -> str:
    """Wrap an absolute URL so that following it goes back through the proxy."""
    if is_proxied(absolute_url, proxy_base):
        return absolute_url
    return proxy_prefix(proxy_base) + percent_encode(absolute_url)


def resolve_url(value: str, base_url: str) -> str:
    """
    Resolve a possibly relative link against the page it came from.

    Raises UrlResolutionError when the result is not an absolute URL.
    """
    try:
        resolved = urljoin(base_url, value.strip())
        if not urlsplit(resolved).scheme:
            raise UrlResolutionError(value, base_url)
    except ValueError as e:
        raise UrlResolutionError(value, base_url) from e
    return resolved


def rewrite_location(location: str, target_url: str, proxy_base: str) -> str:
    """Rewrite a redirect target so the browser follows it through the proxy."""
    return proxied_url(resolve_url(location, target_url), proxy_base)
