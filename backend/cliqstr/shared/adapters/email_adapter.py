"""
Email adapter - transactional email HTTP API client.

Provides:
- send(): deliver one message through the provider's JSON API
- Log-only mode when no API key is configured; the newest messages are kept
  in a bounded in-memory outbox so development and tests can inspect them
"""

from collections import deque
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

import httpx

from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import ExternalServiceError
from cliqstr.shared.core.logging import get_logger, mask_email

logger = get_logger("cliqstr.email")


@dataclass
class EmailMessage:
    """Outgoing email."""

    to: str
    subject: str
    text: str
    html: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class EmailResult:
    """Result of a delivery attempt."""

    message_id: Optional[str]
    delivered: bool
    provider: str


class EmailAdapter:
    """
    Adapter for the transactional email provider.

    Handles:
    - JSON POST to EMAIL_API_URL with bearer authentication
    - Mapping transport and HTTP errors to ExternalServiceError
    - Outbox capture in log-only mode
    """

    PROVIDER_NAME = "email"

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize email adapter.

        Args:
            api_key: Provider API key. Empty means log-only delivery.
            api_url: Provider endpoint. Defaults to settings.
            sender: From address. Defaults to settings.
            transport: Custom httpx transport (httpx.MockTransport in tests)
        """
        self.api_key = settings.EMAIL_API_KEY if api_key is None else api_key
        self.api_url = api_url or settings.EMAIL_API_URL
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.outbox: deque[EmailMessage] = deque(maxlen=settings.EMAIL_OUTBOX_SIZE)

    @property
    def log_only(self) -> bool:
        return not self.api_key

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-loaded HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_key}"},
                transport=self.transport,
            )
        return self._client

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Deliver one message.

        A 2xx reply counts as delivered whatever its body; the message id is
        read only from a JSON object body.

        Returns:
            EmailResult with the provider's message id (None when not given)

        Raises:
            ExternalServiceError: If the provider rejects the message or is unreachable
        """
        if self.log_only:
            self.outbox.append(message)
            logger.info(
                "email_logged",
                to=mask_email(message.to),
                subject=message.subject,
            )
            return EmailResult(message_id=None, delivered=True, provider="log")

        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
        }
        if message.html:
            payload["html"] = message.html
        if message.tags:
            payload["tags"] = [{"name": k, "value": v} for k, v in message.tags.items()]

        try:
            response = await self.client.post(self.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "email_provider_rejected",
                to=mask_email(message.to),
                status_code=e.response.status_code,
            )
            raise ExternalServiceError(
                self.PROVIDER_NAME,
                message="Email provider rejected the message",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error("email_provider_unreachable", to=mask_email(message.to), error=str(e))
            raise ExternalServiceError(self.PROVIDER_NAME, message="Email provider unreachable") from e

        return EmailResult(
            message_id=self._message_id(response),
            delivered=True,
            provider=self.PROVIDER_NAME,
        )

    @staticmethod
    def _message_id(response: httpx.Response) -> Optional[str]:
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            logger.warning(
                "email_provider_unparsed_reply",
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            return None
        return body.get("id") if isinstance(body, dict) else None

    def sent_to(self, address: str) -> list[EmailMessage]:
        """Outbox messages addressed to one recipient (log-only mode)."""
        return [m for m in self.outbox if m.to == address]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@lru_cache
def get_email_adapter() -> EmailAdapter:
    """Process-wide adapter instance."""
    return EmailAdapter()
