"""In-memory station cache with an injected clock and sweep-based expiry."""

import threading
from typing import Any, Dict, List, Optional

from hydrowatch.station_cache.base import CacheEntry, Clock, StationCache, summarize_entries, utc_now
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="station_cache/memory")


class InMemoryStationCache(StationCache):
    """Thread-safe dict-backed cache; unbounded between sweeps."""

    def __init__(self, clock: Clock = utc_now) -> None:
        logger.debug("Initializing InMemoryStationCache")
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, last_updated_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        logger.debug("Cached %s", key)
        return entry

    def sweep(self, max_age_seconds: float) -> int:
        """Drop every entry whose age exceeds `max_age_seconds`."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.age_seconds(now) > max_age_seconds]
            for key in stale:
                del self._entries[key]
            remaining = len(self._entries)
        logger.info("Cleaned cache. removed=%d remaining=%d", len(stale), remaining)
        return len(stale)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            entries = list(self._entries.values())
        return summarize_entries(entries)
