import httpx
import pytest
from fastapi.testclient import TestClient

from iframe_proxy.server import create_app
from iframe_proxy.vars import ProxySettings


@pytest.fixture
def settings():
    return ProxySettings(proxy_timeout=5.0)


@pytest.fixture
def client(settings):
    """TestClient around a freshly built app; requests arrive as http://testserver."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def upstream_response():
    """Build the httpx.Response the patched AsyncClient.get hands back."""

    def _create_response(status_code=200, headers=None, content=b"test content"):
        return httpx.Response(
            status_code,
            headers=headers or [("content-type", "text/plain")],
            content=content,
            request=httpx.Request("GET", "http://example.com/"),
        )

    return _create_response
