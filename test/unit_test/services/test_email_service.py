import json
from urllib.parse import parse_qs

import httpx
import pytest

from projectbrain.core.errors import AppException
from projectbrain.core.models.io.notifications import EmailMessage
from projectbrain.server.core.config import FeatureFlagConfig, MailgunConfig
from projectbrain.services.email import MailgunEmailService

CONFIG = MailgunConfig(
    api_key="key-test",
    domain="mg.example.com",
    base_url="https://api.mailgun.test/v3/",
    from_email="hello@example.com",
    from_name="ProjectBrain",
)


def _service(handler, flags=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MailgunEmailService(CONFIG, flags or FeatureFlagConfig(), client=client)


def test_requires_sender_address():
    with pytest.raises(AppException) as exc_info:
        MailgunEmailService(MailgunConfig(), FeatureFlagConfig())

    assert exc_info.value.code == "EMAIL_NOT_CONFIGURED"


def test_build_form_with_template():
    service = _service(lambda request: httpx.Response(200))
    message = EmailMessage(
        to=["a@example.com", "b@example.com"],
        template="welcome",
        subject="Welcome!",
        html="<p>ignored</p>",
        variables={"name": "Alice"},
        bcc=["audit@example.com"],
    )

    form = service.build_form(message)

    assert form["from"] == "ProjectBrain <hello@example.com>"
    assert form["to"] == ["a@example.com", "b@example.com"]
    assert form["bcc"] == ["audit@example.com"]
    assert form["template"] == "welcome"
    assert json.loads(form["h:X-Mailgun-Variables"]) == {"name": "Alice"}
    assert "html" not in form
    assert "cc" not in form


def test_build_form_with_bodies():
    service = _service(lambda request: httpx.Response(200))

    form = service.build_form(EmailMessage(to=["a@example.com"], subject="Hi", text="Plain"))

    assert form["subject"] == "Hi"
    assert form["text"] == "Plain"
    assert "template" not in form


@pytest.mark.asyncio
async def test_send_posts_form_to_domain():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"id": "<msg@mg>", "message": "Queued."})

    service = _service(handler)

    assert await service.send_email(EmailMessage(to=["a@example.com", "b@example.com"], subject="Hi", text="x"))
    assert seen["url"] == "https://api.mailgun.test/v3/mg.example.com/messages"
    assert seen["auth"].startswith("Basic ")
    assert seen["form"]["to"] == ["a@example.com", "b@example.com"]
    await service.aclose()


@pytest.mark.asyncio
async def test_send_failure_raises():
    service = _service(lambda request: httpx.Response(401, text="Forbidden"))

    with pytest.raises(AppException) as exc_info:
        await service.send_email(EmailMessage(to=["a@example.com"], subject="Hi", text="x"))

    assert exc_info.value.code == "EMAIL_SEND_FAILED"
    assert exc_info.value.status_code == 502
    assert exc_info.value.details == {"status_code": 401}


@pytest.mark.asyncio
async def test_disabled_emails_are_not_sent():
    calls = []
    flags = FeatureFlagConfig(emails_enabled=False)
    service = _service(lambda request: calls.append(request) or httpx.Response(200), flags)

    assert await service.send_email(EmailMessage(to=["a@example.com"], subject="Hi")) is False
    assert calls == []


@pytest.mark.asyncio
async def test_welcome_email_uses_template():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"message": "Queued."})

    service = _service(handler)

    assert await service.send_welcome_email("new@example.com", "New Person")
    assert seen["form"]["template"] == ["welcome email"]
    assert json.loads(seen["form"]["h:X-Mailgun-Variables"][0]) == {"name": "New Person"}
