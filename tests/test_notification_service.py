import httpx
import pytest

from barbershop.services import notification_service


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(notification_service, "MAGICBELL_API_KEY", "key")
    monkeypatch.setattr(notification_service, "MAGICBELL_API_SECRET", "secret")


def use_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(notification_service.httpx, "AsyncClient", _client)


async def test_skips_without_credentials():
    assert await notification_service.notify("a@example.com", "Oi") is False


async def test_skips_without_recipient(configured):
    assert await notification_service.notify(None, "Oi") is False


async def test_posts_broadcast(configured, monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers["X-MAGICBELL-API-KEY"]
        seen["body"] = request.content
        return httpx.Response(201, json={"id": "b1"})

    use_transport(monkeypatch, handler)

    assert await notification_service.notify("a@example.com", "Oi", "corpo", "http://x") is True
    assert seen["url"].endswith("/broadcasts")
    assert seen["key"] == "key"
    assert b'"a@example.com"' in seen["body"]


async def test_provider_error_returns_false(configured, monkeypatch):
    use_transport(monkeypatch, lambda request: httpx.Response(500, text="boom"))

    assert await notification_service.notify("a@example.com", "Oi") is False


async def test_network_error_returns_false(configured, monkeypatch):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    use_transport(monkeypatch, handler)

    assert await notification_service.notify("a@example.com", "Oi") is False
