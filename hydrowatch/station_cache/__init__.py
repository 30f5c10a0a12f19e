"""Station cache backends."""

from .base import CacheEntry, Clock, StationCache, utc_now
from .factory import build_station_cache
from .memory import InMemoryStationCache
from .redis import RedisStationCache

__all__ = [
    "CacheEntry",
    "Clock",
    "StationCache",
    "utc_now",
    "build_station_cache",
    "InMemoryStationCache",
    "RedisStationCache",
]
