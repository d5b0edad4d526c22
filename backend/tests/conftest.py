"""
Shared test fixtures.

The suite runs the real application against an in-memory SQLite database.
Settings and the engine are created at import time, so the environment is
set before anything from cliqstr is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EMAIL_API_KEY"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"

from typing import AsyncGenerator, Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from cliqstr.api.main import app
from cliqstr.shared.adapters.email_adapter import EmailAdapter, get_email_adapter
from cliqstr.shared.db.session import engine
from cliqstr.shared.models import Base
from cliqstr.shared.services import notification_service


@pytest.fixture(autouse=True)
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Each test runs on its own event loop; never reuse its connection
    await engine.dispose()


@pytest.fixture(autouse=True)
def outbox() -> EmailAdapter:
    """The log-only email adapter, emptied before each test."""
    adapter = get_email_adapter()
    adapter.outbox.clear()
    return adapter


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac



@pytest.fixture
async def email_provider(monkeypatch) -> AsyncGenerator[Callable, None]:
    """
    Send notification emails through a stubbed HTTP provider.

    Call the fixture with an httpx handler; services built afterwards deliver
    through it instead of the log-only outbox.
    """
    adapters: list[EmailAdapter] = []

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> EmailAdapter:
        adapter = EmailAdapter(
            api_key="test-key",
            api_url="https://mail.example.test/emails",
            transport=httpx.MockTransport(handler),
        )
        monkeypatch.setattr(notification_service, "get_email_adapter", lambda: adapter)
        adapters.append(adapter)
        return adapter

    yield install
    for adapter in adapters:
        await adapter.close()
