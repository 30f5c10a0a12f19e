import unittest
from datetime import datetime, timedelta, timezone

from hydrowatch.station_cache.memory import InMemoryStationCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TestInMemoryStationCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = InMemoryStationCache(clock=self.clock)

    def test_put_and_get(self):
        self.cache.put("W123", {"data": [1, 2]})
        entry = self.cache.get("W123")
        self.assertEqual(entry.payload, {"data": [1, 2]})
        self.assertEqual(entry.last_updated_at, self.clock.now)
        self.assertIsNone(self.cache.get("missing"))

    def test_put_overwrites_and_restamps(self):
        self.cache.put("W123", "old")
        self.clock.advance(hours=1)
        self.cache.put("W123", "new")
        entry = self.cache.get("W123")
        self.assertEqual(entry.payload, "new")
        self.assertEqual(entry.last_updated_at, self.clock.now)

    def test_reads_do_not_expire_entries(self):
        self.cache.put("W123", "value")
        self.clock.advance(days=30)
        self.assertIsNotNone(self.cache.get("W123"))

    def test_sweep_removes_only_old_entries(self):
        self.cache.put("old", 1)
        self.clock.advance(hours=5)
        self.cache.put("fresh", 2)
        self.clock.advance(hours=2)
        removed = self.cache.sweep(6 * 60 * 60)
        self.assertEqual(removed, 1)
        self.assertEqual(self.cache.keys(), ["fresh"])

    def test_sweep_keeps_entry_exactly_at_max_age(self):
        self.cache.put("edge", 1)
        self.clock.advance(hours=6)
        self.assertEqual(self.cache.sweep(6 * 60 * 60), 0)

    def test_delete_and_clear(self):
        self.cache.put("a", 1)
        self.cache.put("b", 2)
        self.cache.delete("a")
        self.cache.delete("not-there")
        self.assertEqual(self.cache.keys(), ["b"])
        self.cache.clear()
        self.assertEqual(self.cache.keys(), [])

    def test_stats(self):
        self.assertEqual(
            self.cache.stats(),
            {"states": 0, "cachedStations": 0, "entries": 0, "lastUpdated": None},
        )
        self.cache.put("states", [{"stateCode": "KA"}, {"stateCode": "MH"}])
        self.cache.put("stations:12", [{"stationCode": "W1"}])
        self.clock.advance(minutes=1)
        self.cache.put("W1", {"data": []})
        stats = self.cache.stats()
        self.assertEqual(stats["states"], 2)
        self.assertEqual(stats["cachedStations"], 1)
        self.assertEqual(stats["entries"], 3)
        self.assertEqual(stats["lastUpdated"], self.clock.now.isoformat())


if __name__ == "__main__":
    unittest.main()
