class ProxyError(Exception):
    """Base class for failures raised inside the proxy pipeline."""


class UpstreamFetchError(ProxyError):
    """The upstream could not be reached or did not answer with valid HTTP."""

    def __init__(self, target_url: str, cause: Exception):
        super().__init__(f"Failed to fetch {target_url}: {type(cause).__name__}: {cause}")
        self.target_url = target_url
        self.cause = cause


class UrlResolutionError(ProxyError):
    """A link value could not be turned into an absolute URL."""

    def __init__(self, value: str, base_url: str):
        super().__init__(f"Cannot resolve {value!r} against {base_url!r}")
        self.value = value
        self.base_url = base_url
