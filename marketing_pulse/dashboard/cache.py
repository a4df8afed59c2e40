"""
View cache for dashboard pages.

Each page stores its last successful fetch under a fixed key together with
the date range it was fetched for. An entry is served only while it is
younger than the freshness window and was fetched for exactly the requested
range. Nothing is evicted in the background; staleness is checked on read.
"""

import json
import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from marketing_pulse.dashboard.dates import DateRange

logger = logging.getLogger(__name__)

CACHE_DURATION = timedelta(hours=24)

CONSOLIDATED_VIEW_CACHE = "consolidated_view_cache"
MARKETING_DASHBOARD_CACHE = "marketing_dashboard_cache"
META_PERFORMANCE_CACHE = "meta_performance_cache"
GOOGLE_ADS_PERFORMANCE_CACHE = "google_ads_performance_cache"
EMAIL_PERFORMANCE_CACHE = "email_performance_cache"
SHOPIFY_PERFORMANCE_CACHE = "shopify_performance_cache"
TRAFFIC_ANALYSIS_CACHE = "traffic_analysis_cache"

CACHE_KEYS = [
    CONSOLIDATED_VIEW_CACHE,
    MARKETING_DASHBOARD_CACHE,
    META_PERFORMANCE_CACHE,
    GOOGLE_ADS_PERFORMANCE_CACHE,
    EMAIL_PERFORMANCE_CACHE,
    SHOPIFY_PERFORMANCE_CACHE,
    TRAFFIC_ANALYSIS_CACHE,
]

DEFAULT_CACHE_DIR = Path.home() / ".marketing_pulse" / "cache"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def from_millis(millis: float) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


# =============================================================================
# Storage backends
# =============================================================================

class CacheStore(Protocol):
    """String key-value storage the cache manager writes through."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by tests and as a fallback."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class FileStore:
    """
    One JSON file per key in a directory.

    Shared by every dashboard session on the machine; concurrent writers
    race and the last write wins.
    """

    def __init__(self, directory: Optional[Path] = None):
        if directory is None:
            directory = Path(os.getenv("MARKETING_PULSE_CACHE_DIR", DEFAULT_CACHE_DIR))
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# =============================================================================
# Cache entries
# =============================================================================

@dataclass
class CacheEntry:
    timestamp: int  # epoch milliseconds
    start_date: str
    end_date: str
    data: Any

    def to_json(self) -> str:
        return json.dumps({
            "timestamp": self.timestamp,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "data": self.data,
        })

    @classmethod
    def from_json(cls, raw: str) -> "CacheEntry":
        """
        Parse a stored entry.

        Raises:
            ValueError: the value is not JSON, lacks required fields or has
                a timestamp outside the datetime range
        """
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("cache entry is not an object")

        missing = [f for f in ("timestamp", "startDate", "endDate", "data") if f not in parsed]
        if missing:
            raise ValueError(f"cache entry missing fields: {', '.join(missing)}")

        timestamp = parsed["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ValueError("cache entry timestamp is not a number")
        if not math.isfinite(timestamp):
            raise ValueError("cache entry timestamp is not finite")
        try:
            from_millis(timestamp)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"cache entry timestamp out of range: {timestamp}") from e

        return cls(
            timestamp=int(timestamp),
            start_date=str(parsed["startDate"]),
            end_date=str(parsed["endDate"]),
            data=parsed["data"],
        )

    @property
    def refreshed_at(self) -> datetime:
        return from_millis(self.timestamp)

    def matches(self, date_range: DateRange) -> bool:
        return self.start_date == date_range.start_str and self.end_date == date_range.end_str


class CacheManager:
    """
    Date-range aware cache over a CacheStore.

    Args:
        store: backing storage (FileStore in the app, MemoryStore in tests)
        freshness: maximum age of a usable entry
        clock: returns the current aware datetime
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        freshness: timedelta = CACHE_DURATION,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store if store is not None else FileStore()
        self.freshness = freshness
        self.clock = clock

    def read_entry(self, key: str) -> Optional[CacheEntry]:
        """Stored entry for `key` regardless of age, or None if absent or unreadable."""
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            return CacheEntry.from_json(raw)
        except (ValueError, OverflowError, OSError) as e:
            logger.warning("Cache read error for %s: %s", key, e)
            return None

    def read(self, key: str, date_range: DateRange) -> Optional[Any]:
        """Cached payload for `key` if fresh and fetched for `date_range`."""
        entry = self.read_entry(key)
        if entry is None:
            return None

        age_ms = to_millis(self.clock()) - entry.timestamp
        if age_ms >= self.freshness.total_seconds() * 1000:
            logger.debug("Cache entry %s expired (%d ms old)", key, age_ms)
            return None

        if not entry.matches(date_range):
            logger.debug("Cache entry %s is for %s..%s", key, entry.start_date, entry.end_date)
            return None

        return entry.data

    def write(self, key: str, date_range: DateRange, payload: Any) -> None:
        """Store `payload` for `date_range`, replacing any previous entry."""
        entry = CacheEntry(
            timestamp=to_millis(self.clock()),
            start_date=date_range.start_str,
            end_date=date_range.end_str,
            data=payload,
        )
        try:
            self.store.set(key, entry.to_json())
        except OSError as e:
            logger.warning("Cache write error for %s: %s", key, e)

    def purge(self, *keys: str) -> None:
        """Remove entries on demand, fresh or not."""
        for key in keys:
            self.store.delete(key)
        logger.info("Cleared cache keys: %s", ", ".join(keys))

    def last_refreshed(self, key: str) -> Optional[datetime]:
        entry = self.read_entry(key)
        return entry.refreshed_at if entry else None
