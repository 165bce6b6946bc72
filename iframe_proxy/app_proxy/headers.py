"""
Header handling for upstream responses.

Upstream headers are kept in a case-insensitive, ordered multi-map so that
repeated headers (most importantly Set-Cookie) survive intact and "first value
wins" is well defined for everything else.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

# Headers whose only purpose is to stop the page from being framed.
BLOCKING_HEADERS = {
    "x-frame-options",
    "content-security-policy",
}

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# httpx hands us a decoded body, so the upstream framing no longer applies.
BODY_FRAMING_HEADERS = {
    "content-length",
    "content-encoding",
}

SET_COOKIE = "set-cookie"


class HeaderMultiMap:
    """Ordered multi-map from header name to values, keyed case-insensitively."""

    def __init__(self, items: Optional[Iterable[Tuple[str, str]]] = None):
        self._names: Dict[str, str] = {}
        self._values: Dict[str, List[str]] = {}
        for name, value in items or ():
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        key = name.lower()
        if key not in self._values:
            self._names[key] = name
            self._values[key] = []
        self._values[key].append(value)

    def get_first(self, name: str, default: Optional[str] = None) -> Optional[str]:
        values = self._values.get(name.lower())
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        return list(self._values.get(name.lower(), []))

    def names(self) -> List[str]:
        """Header names in first-seen order, with their original casing."""
        return list(self._names.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderMultiMap({self._values!r})"


def is_html_content(content_type: Optional[str]) -> bool:
    return bool(content_type) and "text/html" in content_type.lower()


def sanitize_headers(headers: HeaderMultiMap) -> List[Tuple[str, str]]:
    """
    Build the outbound header list from upstream headers.

    Drops framing-blocking headers, hop-by-hop and body framing headers, and
    Set-Cookie (rewritten separately). Repeated headers contribute only their
    first value.
    """
    outbound = []
    for name in headers.names():
        name_lower = name.lower()
        if name_lower in BLOCKING_HEADERS:
            continue
        if name_lower == SET_COOKIE:
            continue
        if name_lower in HOP_BY_HOP_HEADERS or name_lower in BODY_FRAMING_HEADERS:
            continue
        value = headers.get_first(name)
        if value:
            outbound.append((name, value))
    return outbound
