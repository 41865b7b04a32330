"""
Global pytest fixtures for the LinkTrack test suite.

Responsibilities:
    - Provide isolated in-memory LinkRegistry and EventLog fixtures
    - Provide a TrackingManager wired to them with a controllable clock
    - Provide a fresh FastAPI TestClient via the app factory for integration tests

Why an app factory?
    Using `create_app(manager)` gives each test fresh in-memory state,
    eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from linktrack.manager.tracking_manager import TrackingManager
from linktrack.storage.event_log import EventLog
from linktrack.storage.registry import LinkRegistry

FIXED_NOW = datetime(2024, 5, 17, 14, 30, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests can move forward or back."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> LinkRegistry:
    """Fresh in-memory link registry."""
    return LinkRegistry()


@pytest.fixture
def event_log() -> EventLog:
    """Fresh in-memory event log."""
    return EventLog()


@pytest.fixture
def manager(registry: LinkRegistry, event_log: EventLog, clock: FakeClock) -> TrackingManager:
    """
    TrackingManager over the in-memory stores with a pinned clock.

    Notes:
        - Recent-event windows use the defaults (10 per link, 20 global).
    """
    return TrackingManager(
        registry=registry,
        event_log=event_log,
        clock=clock,
        recent_events_link=10,
        recent_events_global=20,
        top_referrers=5,
    )


@pytest.fixture
def client(manager: TrackingManager) -> TestClient:
    """Fresh TestClient around the manager fixture; redirects are not followed."""
    return TestClient(create_app(manager), follow_redirects=False)
