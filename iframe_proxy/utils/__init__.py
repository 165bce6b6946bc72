from urllib.parse import urlsplit, urlunsplit


def mask_credentials(url: str) -> str:
    """Hide user:password@ in a URL before it is logged or traced."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.password and not parts.username:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"****@{host}"))
