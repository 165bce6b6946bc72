import asyncio
import logging
from typing import Awaitable, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, Response
from opentelemetry import trace

from iframe_proxy.app_proxy.cookies import rewrite_set_cookies
from iframe_proxy.app_proxy.errors import UrlResolutionError
from iframe_proxy.app_proxy.fetcher import UpstreamResponse
from iframe_proxy.app_proxy.headers import SET_COOKIE, sanitize_headers
from iframe_proxy.app_proxy.link_rewriter import LinkRewriter
from iframe_proxy.app_proxy.urls import rewrite_location
from iframe_proxy.utils import mask_credentials
from iframe_proxy.utils.exception_logging import log_exception_with_details
from iframe_proxy.utils.traced_requests import traced_request
from iframe_proxy.vars import ProxySettings

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# How often a pending upstream fetch checks whether the caller went away.
DISCONNECT_POLL_INTERVAL = 0.5
# nginx's "client closed request"; nobody reads it, it only shows up in access logs.
CLIENT_CLOSED_REQUEST = 499


class ClientDisconnected(Exception):
    pass


def get_proxy_base(request: Request, settings: ProxySettings) -> str:
    """Scheme and host this request reached us on, unless PUBLIC_URL overrides it."""
    if settings.public_url:
        return settings.public_url
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"


async def fetch_unless_disconnected(request: Request, fetch: Awaitable[UpstreamResponse]):
    """
    Await the upstream fetch, abandoning it if the inbound client disconnects.
    """
    fetch_task = asyncio.ensure_future(fetch)
    try:
        while True:
            done, _pending = await asyncio.wait(
                {fetch_task}, timeout=DISCONNECT_POLL_INTERVAL
            )
            if fetch_task in done:
                return fetch_task.result()
            if await request.is_disconnected():
                raise ClientDisconnected()
    finally:
        if not fetch_task.done():
            fetch_task.cancel()
            try:
                await fetch_task
            except asyncio.CancelledError:
                pass


def build_redirect_response(
    upstream: UpstreamResponse, target_url: str, proxy_base: str
) -> Response:
    try:
        location = rewrite_location(upstream.location, target_url, proxy_base)
    except UrlResolutionError as e:
        logger.warning(f"[Proxy] Forwarding unresolvable Location unchanged: {e}")
        location = upstream.headers.get_first("location")
    return Response(status_code=upstream.status_code, headers={"location": location})


def build_proxy_response(
    upstream: UpstreamResponse,
    target_url: str,
    proxy_base: str,
    link_rewriter: LinkRewriter,
    insecure_cookies: bool = True,
) -> Response:
    """
    Turn an upstream response into the response sent back to the caller.

    Redirects short-circuit with a rewritten Location. Everything else gets
    sanitized headers and rewritten cookies; HTML bodies have their links
    routed through the proxy, other bodies pass through byte for byte.
    """
    if upstream.is_redirect and upstream.location:
        return build_redirect_response(upstream, target_url, proxy_base)

    if upstream.is_html:
        text = link_rewriter.rewrite(upstream.text(), target_url, proxy_base)
        body = upstream.encode_text(text)
    else:
        body = upstream.content

    response = Response(
        content=body,
        status_code=upstream.status_code,
        headers=dict(sanitize_headers(upstream.headers)),
    )
    # One header line per cookie, never comma-joined.
    for cookie in rewrite_set_cookies(
        upstream.headers.get_all(SET_COOKIE), insecure=insecure_cookies
    ):
        response.headers.append(SET_COOKIE, cookie)
    return response


@router.get("/proxy")
async def proxy(request: Request, url: Optional[str] = Query(None)):
    """Fetch ``url`` and return it in a form that can be framed from any origin."""
    if not url:
        return PlainTextResponse("missing url", status_code=400)

    settings: ProxySettings = request.app.state.settings
    fetcher = request.app.state.fetcher
    link_rewriter: LinkRewriter = request.app.state.link_rewriter
    proxy_base = get_proxy_base(request, settings)

    with traced_request(
        tracer,
        "proxy_request",
        url,
        f"[Proxy] GET {mask_credentials(url)}",
        extra_attrs={"proxy.base": proxy_base},
    ) as span:
        try:
            upstream = await fetch_unless_disconnected(
                request, fetcher.fetch(url, request.headers.get("user-agent"))
            )
            span.set_attribute("proxy.status_code", upstream.status_code)
            response = build_proxy_response(
                upstream,
                url,
                proxy_base,
                link_rewriter,
                insecure_cookies=settings.insecure_cookie_rewrite,
            )
            if upstream.is_redirect and upstream.location:
                span.set_attribute(
                    "proxy.rewritten_location", response.headers["location"]
                )
                span.set_attribute("proxy.content_kind", "redirect")
            else:
                span.set_attribute(
                    "proxy.content_kind", "html" if upstream.is_html else "binary"
                )
            return response
        except ClientDisconnected:
            logger.info(f"[Proxy] Client went away, abandoned fetch of {mask_credentials(url)}")
            span.set_attribute("proxy.error", "client_disconnected")
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except Exception as e:
            log_exception_with_details(logger, "[Proxy]", e)
            span.set_attribute("proxy.error", type(e).__name__)
            return PlainTextResponse("proxy error", status_code=502)
