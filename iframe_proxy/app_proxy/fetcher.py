import logging
from dataclasses import dataclass, field

import httpx

from iframe_proxy.app_proxy.errors import UpstreamFetchError
from iframe_proxy.app_proxy.headers import HeaderMultiMap, is_html_content
from iframe_proxy.utils import mask_credentials

logger = logging.getLogger("uvicorn.error")


@dataclass
class UpstreamResponse:
    status_code: int
    headers: HeaderMultiMap = field(default_factory=HeaderMultiMap)
    content: bytes = b""
    encoding: str = "utf-8"

    @property
    def content_type(self) -> str:
        return self.headers.get_first("content-type", "") or ""

    @property
    def location(self) -> str | None:
        """Location as text, for resolving. Header values are held as latin-1."""
        value = self.headers.get_first("location")
        if value is None:
            return None
        try:
            return value.encode("latin-1").decode("utf-8")
        except (UnicodeEncodeError, UnicodeDecodeError):
            return value

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_html(self) -> bool:
        return is_html_content(self.content_type)

    def text(self) -> str:
        try:
            return self.content.decode(self.encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    def encode_text(self, text: str) -> bytes:
        """Encode rewritten HTML back into the charset the upstream declared."""
        try:
            return text.encode(self.encoding, errors="replace")
        except LookupError:
            return text.encode("utf-8", errors="replace")

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "UpstreamResponse":
        return cls(
            status_code=response.status_code,
            # latin-1 maps every byte to one character, so header bytes reach
            # the outbound response exactly as the upstream sent them.
            headers=HeaderMultiMap(
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response.headers.raw
            ),
            content=response.content,
            encoding=response.encoding or "utf-8",
        )


class UpstreamFetcher:
    """
    Issues the single outbound GET for a proxy request.

    Redirects are never followed: the raw 3xx is returned so its Location can be
    rewritten. Every transport level failure surfaces as UpstreamFetchError.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        default_user_agent: str = "iframe-proxy",
        verify: bool = True,
    ):
        self.timeout = timeout
        self.default_user_agent = default_user_agent
        self.verify = verify

    async def fetch(self, target_url: str, user_agent: str | None = None) -> UpstreamResponse:
        headers = {"user-agent": user_agent or self.default_user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=False,
                verify=self.verify,
            ) as client:
                response = await client.get(target_url, headers=headers)
                logger.debug(
                    f"[Proxy] Upstream answered {response.status_code} for "
                    f"{mask_credentials(target_url)}"
                )
                return UpstreamResponse.from_httpx(response)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(target_url, e) from e
