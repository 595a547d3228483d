import asyncio
import json

import httpx
import pytest

from config import settings
from core.email import EmailMessage, send_email
from core.errors import ExternalServiceError

MESSAGE = EmailMessage(to=["billing@acme.test"], subject="Invoice INV-1", html="<p>hi</p>")


@pytest.fixture
def resend_key(monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", "re_test")
    monkeypatch.setattr(settings, "resend_api_url", "https://resend.test")


async def _send(handler, message=MESSAGE):
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await send_email(message, client=client)


def run(coro):
    return asyncio.run(coro)


def test_send_posts_to_provider(resend_key):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_123"})

    assert run(_send(handler)) == "msg_123"
    assert seen["url"] == "https://resend.test/emails"
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"]["to"] == ["billing@acme.test"]
    assert seen["body"]["from"] == settings.email_from
    assert "reply_to" not in seen["body"]


def test_provider_rejection_raises(resend_key):
    def handler(request):
        return httpx.Response(422, json={"message": "invalid from"})

    with pytest.raises(ExternalServiceError) as exc:
        run(_send(handler))
    assert exc.value.details["reason"] == "HTTP 422"


def test_transport_failure_raises(resend_key):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ExternalServiceError):
        run(_send(handler))


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", "")
    with pytest.raises(ExternalServiceError):
        run(send_email(MESSAGE))
