"""Shared fixtures for relay tests."""

from __future__ import annotations

import time

import pytest

from services.protocol import STRICT_MAX_SESSION_CAPACITY, SessionProtocol
from services.store import SessionStore


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: float | None = None) -> None:
        self.now = time.time() if now is None else now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1_700_000_000.0)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def session_id(clock: FakeClock) -> int:
    """A session whose registration window is open for another hour."""
    return int(clock.now) + 3600


@pytest.fixture
def protocol(store: SessionStore, clock: FakeClock) -> SessionProtocol:
    return SessionProtocol(store, max_session_capacity=STRICT_MAX_SESSION_CAPACITY, clock=clock)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
