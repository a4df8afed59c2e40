from datetime import date, datetime, timezone

import pytest

from marketing_pulse.dashboard.cache import CacheManager, MemoryStore
from marketing_pulse.dashboard.dates import DateRange


class FakeClock:
    """Settable clock for cache freshness tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def january():
    return DateRange(date(2024, 1, 1), date(2024, 1, 31))


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store, clock):
    return CacheManager(store=store, clock=clock)
