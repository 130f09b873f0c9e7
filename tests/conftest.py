"""Pytest fixtures for graph-voice tests."""

from datetime import datetime, timedelta
from typing import Any

import pytest

from graph_voice.actions.engine import ConfirmationEngine
from graph_voice.actions.store import InMemoryActionStore


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 10, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock starting at a fixed time."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryActionStore:
    """Create an empty in-memory store on the fake clock."""
    return InMemoryActionStore(clock)


@pytest.fixture
def engine(store: InMemoryActionStore, clock: FakeClock) -> ConfirmationEngine:
    """Create a confirmation engine over the in-memory store."""
    return ConfirmationEngine(store, clock=clock)


@pytest.fixture
def email_data() -> dict[str, Any]:
    """Raw send_email data as produced by the tool layer."""
    return {
        "recipient_name": "Jane Doe",
        "subject": "Hi",
        "body": "Test",
        "cc_recipients": ["Bob"],
    }


@pytest.fixture
def chat_data() -> dict[str, Any]:
    """Raw send_chat_message data as produced by the tool layer."""
    return {
        "recipient_name": "Vansh Jain",
        "message": "Running five minutes late",
    }
