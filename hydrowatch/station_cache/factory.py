"""Choose the station cache backend at startup."""

from __future__ import annotations

import redis

from hydrowatch.config import Settings
from hydrowatch.station_cache.base import Clock, StationCache, utc_now
from hydrowatch.station_cache.memory import InMemoryStationCache
from hydrowatch.station_cache.redis import RedisStationCache
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="station_cache/factory")


def build_station_cache(settings: Settings, *, clock: Clock = utc_now) -> StationCache:
    """Use Redis when configured and reachable, otherwise the in-memory cache."""
    if settings.cache_redis_url:
        masked = mask_url(settings.cache_redis_url)
        try:
            client = redis.Redis.from_url(settings.cache_redis_url)
            client.ping()
            logger.info("Using RedisStationCache", extra={"redis_url": masked})
            return RedisStationCache(client, prefix=settings.cache_redis_prefix, clock=clock)
        except (redis.exceptions.RedisError, ValueError) as exc:
            logger.warning("Falling back to InMemoryStationCache (Redis unavailable at %s): %s", masked, exc)
    return InMemoryStationCache(clock=clock)
