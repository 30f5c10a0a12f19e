import asyncio
import unittest

from hydrowatch.scheduler import (
    PeriodicTask,
    refresh_state_list,
    run_periodically,
    start_background_tasks,
    stop_background_tasks,
    sweep_cache,
)
from hydrowatch.station_cache.memory import InMemoryStationCache
from hydrowatch.upstream.client import UpstreamResponse
from hydrowatch.upstream.errors import UpstreamUnavailable


class FakeClient:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def request(self, endpoint, payload=None, **kwargs):
        self.calls.append((endpoint, payload))
        if isinstance(self.result, Exception):
            raise self.result
        return UpstreamResponse(payload=self.result, attempts=1, status_code=200)


class TestRefreshStateList(unittest.TestCase):
    def test_caches_states_on_success(self):
        client = FakeClient({"statusCode": 200, "data": [{"stateCode": "29"}, {"stateCode": "27"}]})
        cache = InMemoryStationCache()
        self.assertEqual(refresh_state_list(client, cache), 2)
        self.assertEqual(client.calls, [("masterState/StateList", {"datasetcode": "GWATERLVL"})])
        self.assertEqual(len(cache.get("states").payload), 2)

    def test_non_200_status_leaves_cache_untouched(self):
        client = FakeClient({"statusCode": 500, "data": [{"stateCode": "29"}]})
        cache = InMemoryStationCache()
        cache.put("states", ["previous"])
        self.assertIsNone(refresh_state_list(client, cache))
        self.assertEqual(cache.get("states").payload, ["previous"])

    def test_upstream_failure_is_logged_not_raised(self):
        client = FakeClient(UpstreamUnavailable("down", attempts=3, last_error="down"))
        cache = InMemoryStationCache()
        self.assertIsNone(refresh_state_list(client, cache))
        self.assertIsNone(cache.get("states"))


class TestSweepCache(unittest.TestCase):
    def test_delegates_to_cache(self):
        cache = InMemoryStationCache()
        cache.put("W1", {})
        self.assertEqual(sweep_cache(cache, 3600), 0)
        self.assertEqual(sweep_cache(cache, -1), 1)


class TestPeriodicTasks(unittest.TestCase):
    def test_run_periodically_sleeps_then_runs(self):
        runs = []
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        task = PeriodicTask(name="job", interval_seconds=7200, job=lambda: runs.append(1), run_at_start=True)
        asyncio.run(run_periodically(task, sleep=fake_sleep, iterations=2))

        self.assertEqual(len(runs), 3)
        self.assertEqual(sleeps, [7200, 7200])

    def test_failing_job_does_not_stop_schedule(self):
        calls = []

        def job():
            calls.append(1)
            raise RuntimeError("boom")

        async def fake_sleep(seconds):
            return None

        task = PeriodicTask(name="flaky", interval_seconds=1, job=job)
        asyncio.run(run_periodically(task, sleep=fake_sleep, iterations=3))
        self.assertEqual(len(calls), 3)

    def test_start_and_stop_background_tasks(self):
        async def scenario():
            tasks = start_background_tasks([PeriodicTask(name="idle", interval_seconds=3600, job=lambda: None)])
            self.assertEqual(len(tasks), 1)
            self.assertFalse(tasks[0].done())
            await stop_background_tasks(tasks)
            return tasks

        tasks = asyncio.run(scenario())
        self.assertTrue(all(t.cancelled() for t in tasks))


if __name__ == "__main__":
    unittest.main()
