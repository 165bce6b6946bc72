import logging
from typing import Optional, Sequence

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from iframe_proxy.app_proxy.fetcher import UpstreamFetcher
from iframe_proxy.app_proxy.link_rewriter import LinkRewriter, RegexLinkRewriter
from iframe_proxy.routes import router
from iframe_proxy.vars import ProxySettings, load_settings

logger = logging.getLogger("uvicorn.error")

app_info = Info("fastapi_app_info", "Application Info")
_tracer_provider: Optional[TracerProvider] = None


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that drops the per-message ASGI body spans, which add
    nothing to a buffered proxy response.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


def configure_tracing(settings: ProxySettings) -> TracerProvider:
    """Install the global tracer provider once per process."""
    global _tracer_provider
    if _tracer_provider is not None:
        return _tracer_provider

    _tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": settings.service_name})
    )
    if settings.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otlp_endpoint,
            headers=(settings.otlp_headers.split(",") if settings.otlp_headers else None),
        )
        _tracer_provider.add_span_processor(
            BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
        )
        logger.info(f"Exporting traces to {settings.otlp_endpoint}")
    trace.set_tracer_provider(_tracer_provider)
    return _tracer_provider


def create_app(
    settings: Optional[ProxySettings] = None,
    fetcher: Optional[UpstreamFetcher] = None,
    link_rewriter: Optional[LinkRewriter] = None,
) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title=settings.service_name)

    app.state.settings = settings
    app.state.fetcher = fetcher or UpstreamFetcher(
        timeout=settings.proxy_timeout,
        default_user_agent=settings.default_user_agent,
        verify=settings.upstream_verify_tls,
    )
    app.state.link_rewriter = link_rewriter or RegexLinkRewriter()

    if settings.insecure_cookie_rewrite:
        logger.warning(
            "INSECURE_COOKIE_REWRITE is on: Secure and SameSite=None are stripped "
            "from upstream cookies. Do not run this in production."
        )

    Instrumentator().instrument(app).expose(app)
    app_info.info({"app_name": settings.service_name})

    configure_tracing(settings)
    FastAPIInstrumentor.instrument_app(app)

    app.include_router(router)
    return app


app = create_app()
