"""Redis-backed station cache; entries are JSON with their write timestamp."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from hydrowatch.station_cache.base import CacheEntry, Clock, StationCache, summarize_entries, utc_now
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="station_cache/redis")


class RedisStationCache(StationCache):
    """Shares cached payloads across proxy workers. Expiry is still sweep-driven."""

    def __init__(self, client, *, prefix: str = "hydrowatch:cache:", clock: Clock = utc_now) -> None:
        logger.debug("Initializing RedisStationCache")
        self.client = client
        self.prefix = prefix
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _strip(self, redis_key) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        return redis_key[len(self.prefix):]

    @staticmethod
    def _dump(entry: CacheEntry) -> bytes:
        return json.dumps(
            {
                "key": entry.key,
                "payload": entry.payload,
                "last_updated_at": entry.last_updated_at.isoformat(),
            }
        ).encode("utf-8")

    @staticmethod
    def _load(raw) -> Optional[CacheEntry]:
        """Decode a stored entry; corrupt values are logged and treated as absent."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            data = json.loads(raw)
            return CacheEntry(
                key=data["key"],
                payload=data.get("payload"),
                last_updated_at=datetime.fromisoformat(data["last_updated_at"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to decode cache entry: %s", exc)
            return None

    def get(self, key: str) -> Optional[CacheEntry]:
        raw = self.client.get(self._key(key))
        if not raw:
            return None
        return self._load(raw)

    def put(self, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, last_updated_at=self._clock())
        self.client.set(self._key(key), self._dump(entry))
        logger.debug("Cached %s", key)
        return entry

    def _entries(self) -> List[tuple]:
        out = []
        for redis_key in self.client.scan_iter(f"{self.prefix}*"):
            raw = self.client.get(redis_key)
            if raw:
                out.append((redis_key, self._load(raw)))
        return out

    def sweep(self, max_age_seconds: float) -> int:
        """Delete entries older than `max_age_seconds`, plus any that fail to decode."""
        now = self._clock()
        removed = 0
        remaining = 0
        for redis_key, entry in self._entries():
            if entry is None or entry.age_seconds(now) > max_age_seconds:
                self.client.delete(redis_key)
                removed += 1
            else:
                remaining += 1
        logger.info("Cleaned cache. removed=%d remaining=%d", removed, remaining)
        return removed

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def keys(self) -> List[str]:
        return [self._strip(k) for k in self.client.scan_iter(f"{self.prefix}*")]

    def clear(self) -> None:
        for redis_key in self.client.scan_iter(f"{self.prefix}*"):
            self.client.delete(redis_key)

    def stats(self) -> Dict[str, Any]:
        return summarize_entries([entry for _key, entry in self._entries() if entry is not None])
