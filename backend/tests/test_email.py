import httpx
import pytest

from cliqstr.config.settings import settings
from cliqstr.shared.adapters.email_adapter import EmailAdapter, EmailMessage
from cliqstr.shared.core.exceptions import ExternalServiceError
from cliqstr.shared.services.notification_service import build_url


def _message(to="jordan@family.io"):
    return EmailMessage(to=to, subject="Hello", text="Hi there")


async def _send(reply: httpx.Response, message=None):
    adapter = EmailAdapter(
        api_key="test-key",
        api_url="https://mail.example.test/emails",
        transport=httpx.MockTransport(lambda request: reply),
    )
    try:
        return await adapter.send(message or _message())
    finally:
        await adapter.close()


async def test_json_reply_gives_message_id():
    result = await _send(httpx.Response(200, json={"id": "msg-42"}))

    assert result.delivered is True
    assert result.message_id == "msg-42"


@pytest.mark.parametrize(
    "reply",
    [
        httpx.Response(200, text="Queued"),
        httpx.Response(202),
        httpx.Response(200, json=["msg-42"]),
    ],
)
async def test_accepted_reply_without_json_object(reply):
    result = await _send(reply)

    assert result.delivered is True
    assert result.message_id is None


async def test_rejected_reply_raises():
    with pytest.raises(ExternalServiceError) as exc_info:
        await _send(httpx.Response(422, json={"message": "bad address"}))

    assert exc_info.value.details["status_code"] == 422


async def test_unreachable_provider_raises():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    adapter = EmailAdapter(api_key="test-key", transport=httpx.MockTransport(refuse))

    with pytest.raises(ExternalServiceError):
        await adapter.send(_message())
    await adapter.close()


async def test_log_only_outbox_keeps_newest_messages():
    adapter = EmailAdapter(api_key="")

    for n in range(settings.EMAIL_OUTBOX_SIZE + 25):
        await adapter.send(_message(to=f"parent{n}@family.io"))

    assert len(adapter.outbox) == settings.EMAIL_OUTBOX_SIZE
    assert adapter.outbox[-1].to == f"parent{settings.EMAIL_OUTBOX_SIZE + 24}@family.io"
    assert adapter.sent_to("parent0@family.io") == []


def test_link_parameters_are_encoded():
    url = build_url("/invite/accept", code="cliq ab&c=1")

    assert url == f"{settings.BASE_URL.rstrip('/')}/invite/accept?code=cliq+ab%26c%3D1"
