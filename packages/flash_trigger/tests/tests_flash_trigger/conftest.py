from datetime import datetime, timedelta, timezone

import pytest
from flash_trigger.schemas import SimpleTriggerConfig
from flash_trigger.triggers.simple import SimpleTrigger


class FrozenClock:
    """Injectable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def utc():
    return timezone.utc


@pytest.fixture
def now_utc(utc):
    """Fixed 'current time' for deterministic testing: Jan 1st, 2026 at 12:00:00 UTC."""
    return datetime(2026, 1, 1, 12, 0, 0, tzinfo=utc)


@pytest.fixture
def clock(now_utc):
    return FrozenClock(now_utc)


@pytest.fixture
def make_trigger(clock, now_utc):
    """Builds a SimpleTrigger on the frozen clock, starting at now_utc by default."""

    def _make(**overrides) -> SimpleTrigger:
        overrides.setdefault("start_time", now_utc)
        return SimpleTrigger(SimpleTriggerConfig(**overrides), clock=clock)

    return _make
