import json

import httpx
import pytest
import respx

from core.exceptions import NotificationError
from settings.config import Settings
from utils.email import (
    ConsoleEmailSender,
    EmailMessage,
    HttpEmailSender,
    SmtpEmailSender,
    build_email_sender,
)

BASE_URL = "http://notify.test"
MESSAGE = EmailMessage(to="mario@example.com", subject="Hello", body="Temporary Password: abc")


@pytest.mark.asyncio
@respx.mock
async def test_http_sender_posts_message():
    route = respx.post(f"{BASE_URL}/notifications/email").mock(return_value=httpx.Response(200, json={}))

    await HttpEmailSender(BASE_URL + "/").send(MESSAGE)

    assert route.called
    request = route.calls.last.request
    assert json.loads(request.content) == {
        "to": "mario@example.com", "subject": "Hello", "body": "Temporary Password: abc",
    }


@pytest.mark.asyncio
@respx.mock
async def test_http_sender_error_status_raises():
    respx.post(f"{BASE_URL}/notifications/email").mock(return_value=httpx.Response(503))

    with pytest.raises(NotificationError) as exc:
        await HttpEmailSender(BASE_URL).send(MESSAGE)
    assert "503" in exc.value.detail


@pytest.mark.asyncio
@respx.mock
async def test_http_sender_connection_error_raises():
    respx.post(f"{BASE_URL}/notifications/email").mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(NotificationError):
        await HttpEmailSender(BASE_URL).send(MESSAGE)


@pytest.mark.asyncio
@respx.mock
async def test_http_sender_invalid_url_raises():
    respx.post(f"{BASE_URL}/notifications/email").mock(side_effect=httpx.InvalidURL("bad host"))

    with pytest.raises(NotificationError):
        await HttpEmailSender(BASE_URL).send(MESSAGE)


@pytest.mark.asyncio
@respx.mock
async def test_http_sender_uses_shared_client():
    route = respx.post(f"{BASE_URL}/notifications/email").mock(return_value=httpx.Response(202))

    async with httpx.AsyncClient() as client:
        await HttpEmailSender(BASE_URL, http_client=client).send(MESSAGE)

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_smtp_failure_raises_notification_error():
    # nothing listens on port 1
    sender = SmtpEmailSender("127.0.0.1", 1, None, None, "no-reply@frontdash.com")
    with pytest.raises(NotificationError):
        await sender.send(MESSAGE)


@pytest.mark.asyncio
async def test_console_sender_records():
    sender = ConsoleEmailSender()
    await sender.send(MESSAGE)
    assert sender.sent == [MESSAGE]


def test_build_email_sender_backends():
    assert isinstance(build_email_sender(Settings(NOTIFIER_BACKEND="console")), ConsoleEmailSender)
    assert isinstance(build_email_sender(Settings(NOTIFIER_BACKEND="smtp", SMTP_HOST="smtp.test")), SmtpEmailSender)
    assert isinstance(build_email_sender(Settings(NOTIFIER_BACKEND="http", NOTIFICATION_API_URL=BASE_URL)),
                      HttpEmailSender)


@pytest.mark.parametrize("overrides", [
    {"NOTIFIER_BACKEND": "smtp", "SMTP_HOST": None},
    {"NOTIFIER_BACKEND": "http", "NOTIFICATION_API_URL": None},
    {"NOTIFIER_BACKEND": "pigeon"},
])
def test_build_email_sender_rejects_bad_config(overrides):
    with pytest.raises(ValueError):
        build_email_sender(Settings(**overrides))
