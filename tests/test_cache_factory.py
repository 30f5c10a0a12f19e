import unittest
from unittest.mock import MagicMock, patch

import redis

import hydrowatch.station_cache.factory as factory
from hydrowatch.config import Settings
from hydrowatch.station_cache.memory import InMemoryStationCache
from hydrowatch.station_cache.redis import RedisStationCache


class TestStationCacheFactory(unittest.TestCase):
    def test_memory_when_no_redis_url(self):
        cache = factory.build_station_cache(Settings(cache_redis_url=None))
        self.assertIsInstance(cache, InMemoryStationCache)

    def test_redis_when_reachable(self):
        client = MagicMock()
        with patch.object(factory.redis.Redis, "from_url", return_value=client) as from_url:
            cache = factory.build_station_cache(
                Settings(cache_redis_url="redis://:secret@cache:6379/0", cache_redis_prefix="hw:")
            )
        from_url.assert_called_once_with("redis://:secret@cache:6379/0")
        client.ping.assert_called_once()
        self.assertIsInstance(cache, RedisStationCache)
        self.assertEqual(cache.prefix, "hw:")

    def test_falls_back_to_memory_when_ping_fails(self):
        client = MagicMock()
        client.ping.side_effect = redis.exceptions.ConnectionError("refused")
        with patch.object(factory.redis.Redis, "from_url", return_value=client):
            cache = factory.build_station_cache(Settings(cache_redis_url="redis://cache:6379/0"))
        self.assertIsInstance(cache, InMemoryStationCache)

    def test_falls_back_to_memory_on_bad_url(self):
        with patch.object(factory.redis.Redis, "from_url", side_effect=ValueError("bad scheme")):
            cache = factory.build_station_cache(Settings(cache_redis_url="nope://"))
        self.assertIsInstance(cache, InMemoryStationCache)


if __name__ == "__main__":
    unittest.main()
