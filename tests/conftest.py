"""
Test configuration and fixtures for the chat room tests.

Provides:
- A controllable clock
- Fresh in-memory stores and services per test
- A FastAPI TestClient bound to a fresh application state
"""

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from batepapo.core import state
from batepapo.main import app
from batepapo.services.chat_room import ChatRoom
from batepapo.services.message_store import MessageStore
from batepapo.services.presence_manager import PresenceManager
from batepapo.services.storage import InMemoryDocumentStore


@dataclass
class FakeClock:
    """Epoch-seconds clock that only moves when told to."""
    now: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def presence(store, clock) -> PresenceManager:
    return PresenceManager(store, clock=clock)


@pytest.fixture
def messages(store, clock) -> MessageStore:
    return MessageStore(store, clock=clock)


@pytest.fixture
def room(presence, messages) -> ChatRoom:
    return ChatRoom(presence, messages, stale_after=10)


@pytest.fixture
def client():
    """TestClient running startup/shutdown against a fresh memory store."""
    state.init_state(InMemoryDocumentStore())
    with TestClient(app) as test_client:
        yield test_client
