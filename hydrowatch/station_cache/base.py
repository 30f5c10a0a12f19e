"""Shared protocol and types for station cache backends."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from hydrowatch.upstream.routes import STATES_CACHE_KEY

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware UTC now."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    """A cached upstream payload stamped with when it was stored."""
    key: str
    payload: Any
    last_updated_at: datetime

    def age_seconds(self, now: datetime) -> float:
        """Seconds elapsed between the write and `now`."""
        return (now - self.last_updated_at).total_seconds()


class StationCache(Protocol):
    """Keyed store for state lists and per-station readings.

    Reads never check freshness; stale entries disappear only when `sweep`
    runs.
    """

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for `key`, or None when absent."""

    def put(self, key: str, payload: Any) -> CacheEntry:
        """Store `payload`, overwriting any existing entry and stamping the clock."""

    def sweep(self, max_age_seconds: float) -> int:
        """Remove entries older than `max_age_seconds`; return how many were removed."""

    def delete(self, key: str) -> None:
        """Remove `key` without raising if it is absent."""

    def keys(self) -> List[str]:
        """Return all cached keys."""

    def clear(self) -> None:
        """Drop every entry."""

    def stats(self) -> Dict[str, Any]:
        """Summarize cache contents for the health endpoint."""


def summarize_entries(entries: List[CacheEntry]) -> Dict[str, Any]:
    """Build the health-endpoint view of a set of cache entries."""
    states = next((e for e in entries if e.key == STATES_CACHE_KEY), None)
    station_entries = [e for e in entries if e.key != STATES_CACHE_KEY and ":" not in e.key]
    latest = max((e.last_updated_at for e in entries), default=None)
    states_payload = states.payload if states else None
    return {
        "states": len(states_payload) if isinstance(states_payload, list) else 0,
        "cachedStations": len(station_entries),
        "entries": len(entries),
        "lastUpdated": latest.isoformat() if latest else None,
    }
