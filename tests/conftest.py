from datetime import UTC, datetime, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.config.settings import Settings
from app.main import create_app
from app.services.relay_service import RelayError, RelayResult
from app.services.session_service import SessionStore


class FakeClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC), step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


class FakeRelay:
    """Records every conversation it is given and answers from a script."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[RelayError] = None, configured: bool = True):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []
        self.is_configured = configured
        self.model = "fake-model"

    async def complete(self, messages, max_tokens=None) -> RelayResult:
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            return RelayResult(error=self.error)
        reply = self.replies.pop(0) if self.replies else f"reply {len(self.calls)}"
        return RelayResult(reply=reply)


@pytest.fixture
def collection():
    return AsyncMongoMockClient(tz_aware=True)["chatbot"]["chats"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(collection, clock):
    return SessionStore(collection, clock=clock)


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def settings():
    return Settings(groq_api_key="test-key", max_body_bytes=1024)


@pytest.fixture
def client(settings, store, relay):
    app = create_app(settings=settings, session_store=store, relay=relay)
    with TestClient(app) as test_client:
        yield test_client
