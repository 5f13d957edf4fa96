"""
Daily Tracker Backend — Test Configuration (conftest.py)
==========================================================

Fixture Hierarchy (all function-scoped):
    clock            controllable UTC clock shared by stores and sessions
    memory_backend   MemoryBackend on that clock
    store            FallbackStore with no durable backend
    session_store    SessionStore writing to tmp_path
    email_outbox     RecordingEmailService (captures OTP codes)
    broadcaster      Broadcaster
    test_settings    Settings pointing at tmp_path, memory-only
    app              create_app() wired with the components above
    test_client      httpx AsyncClient over ASGITransport
    make_client      factory for extra clients (one cookie jar per user)
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Settings are read at import time by daily_tracker.config / daily_tracker.main.
os.environ["DATABASE_URL"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["SESSION_FILE"] = os.path.join(
    tempfile.mkdtemp(prefix="daily_tracker_test_"), "sessions.json"
)
os.environ["LOG_LEVEL"] = "WARNING"

from daily_tracker.config import Settings  # noqa: E402
from daily_tracker.main import create_app  # noqa: E402
from daily_tracker.services.broadcaster import Broadcaster  # noqa: E402
from daily_tracker.services.email_service import EmailService, OtpPurpose  # noqa: E402
from daily_tracker.services.session_store import SessionStore  # noqa: E402
from daily_tracker.storage import FallbackStore, MemoryBackend  # noqa: E402


class FakeClock:
    """Callable clock; `advance()` moves it forward."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FailingBackend:
    """Durable stand-in whose every operation raises."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        async def fail(*args):
            self.calls.append(name)
            raise ConnectionError("database unreachable")

        return fail


class RecordingEmailService(EmailService):
    """EmailService that keeps OTP messages instead of sending them."""

    def __init__(self):
        super().__init__(api_key="")
        self.sent: List[dict] = []

    async def send_otp(self, to, code, purpose, phone=None) -> bool:
        self.sent.append({"to": to, "code": code, "purpose": OtpPurpose(purpose), "phone": phone})
        return True

    def last_code(self) -> str:
        return self.sent[-1]["code"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend(clock):
    return MemoryBackend(clock=clock)


@pytest.fixture
def store(memory_backend):
    return FallbackStore(durable=None, memory=memory_backend)


@pytest.fixture
def session_store(tmp_path, clock):
    return SessionStore(tmp_path / "sessions.json", ttl=timedelta(days=7), clock=clock)


@pytest.fixture
def email_outbox():
    return RecordingEmailService()


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url="",
        session_file=str(tmp_path / "sessions.json"),
        resend_api_key="",
        log_level="WARNING",
    )


@pytest.fixture
def app(test_settings, store, session_store, email_outbox, broadcaster):
    return create_app(
        settings=test_settings,
        store=store,
        sessions=session_store,
        email=email_outbox,
        broadcaster=broadcaster,
    )


@pytest_asyncio.fixture
async def make_client(app):
    clients = []

    def _make() -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def test_client(make_client):
    return make_client()


async def register_user(
    client: AsyncClient,
    username: str = "alice",
    email: str = "alice@example.com",
    password: str = "secret123",
    phone: Optional[str] = None,
):
    payload = {"username": username, "email": email, "password": password}
    if phone is not None:
        payload["phone"] = phone
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 200, response.text
    return response.json()
