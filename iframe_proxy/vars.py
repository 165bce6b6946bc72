import os
from dataclasses import dataclass

SERVICE_NAME = os.getenv("SERVICE_NAME", "iframe-proxy")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

PROXY_TIMEOUT = float(os.environ.get("PROXY_TIMEOUT", "30"))
DEFAULT_USER_AGENT = os.environ.get("DEFAULT_USER_AGENT", "iframe-proxy")
PUBLIC_URL = os.environ.get("PUBLIC_URL", "").rstrip("/")

# Strips Secure and SameSite=None from upstream cookies so they survive a
# plaintext localhost origin. Development only.
INSECURE_COOKIE_REWRITE = (
    os.environ.get("INSECURE_COOKIE_REWRITE", "true").lower() == "true"
)
UPSTREAM_VERIFY_TLS = os.getenv("UPSTREAM_VERIFY_TLS", "true").lower() == "true"

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")


@dataclass(frozen=True)
class ProxySettings:
    """Process-wide configuration, resolved once and handed to create_app."""

    service_name: str = "iframe-proxy"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"
    proxy_timeout: float = 30.0
    default_user_agent: str = "iframe-proxy"
    public_url: str = ""
    insecure_cookie_rewrite: bool = True
    upstream_verify_tls: bool = True
    otlp_endpoint: str | None = None
    otlp_headers: str = ""


def load_settings() -> ProxySettings:
    return ProxySettings(
        service_name=SERVICE_NAME,
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL,
        proxy_timeout=PROXY_TIMEOUT,
        default_user_agent=DEFAULT_USER_AGENT,
        public_url=PUBLIC_URL,
        insecure_cookie_rewrite=INSECURE_COOKIE_REWRITE,
        upstream_verify_tls=UPSTREAM_VERIFY_TLS,
        otlp_endpoint=OTLP_ENDPOINT,
        otlp_headers=OTLP_HEADERS,
    )
