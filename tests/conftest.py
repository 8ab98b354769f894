"""Global test fixtures and utilities for FarmFocus engine tests"""
import pytest
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from farmfocus import config
from farmfocus.db.memory_store import MemoryStore
from farmfocus.services.container import ServiceContainer


UTC = ZoneInfo("UTC")


class FakeClock:
    """Callable clock pinned to a moment; advance() moves it forward"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return self.now


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def utc_app_timezone(monkeypatch):
    """All calendar-day decisions in tests are made in UTC"""
    monkeypatch.setattr(config, "APP_TIMEZONE", "UTC")
    monkeypatch.setattr(config, "STARTING_GOLD", 10)
    monkeypatch.setattr(config, "INITIAL_BED_COUNT", 9)


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def frozen_now():
    """Wednesday 2025-03-12 09:30 UTC"""
    return datetime(2025, 3, 12, 9, 30, 0, tzinfo=UTC)


@pytest.fixture
def clock(frozen_now):
    """Injectable clock starting at frozen_now"""
    return FakeClock(frozen_now)


# ============================================================================
# Store & Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory store with the default seed catalog"""
    return MemoryStore()


@pytest.fixture
def container(store, clock):
    """Service container wired to the memory store and the fake clock"""
    return ServiceContainer(store=store, clock=clock)


@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return 42


@pytest.fixture
async def onboarded_user(container, test_user_id):
    """A freshly onboarded player: 10 gold, 9 beds (cell 1 open), 10 wheat seeds"""
    await container.user_service.onboard(test_user_id, "farmer")
    return test_user_id
