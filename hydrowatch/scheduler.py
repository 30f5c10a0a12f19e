"""Background jobs: periodic state-list refresh and cache sweep."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from hydrowatch.station_cache.base import StationCache
from hydrowatch.upstream.client import UpstreamClient
from hydrowatch.upstream.errors import UpstreamError
from hydrowatch.upstream.routes import STATE_LIST_PATH, STATES_CACHE_KEY
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="scheduler")


def refresh_state_list(client: UpstreamClient, cache: StationCache, dataset_code: str = "GWATERLVL") -> Optional[int]:
    """Fetch the state list and cache it; returns the number of states or None on failure."""
    logger.info("Refreshing state list cache")
    try:
        response = client.request(STATE_LIST_PATH, {"datasetcode": dataset_code})
    except UpstreamError as exc:
        logger.error(f"Failed to refresh state list: {exc}")
        return None

    payload = response.payload if isinstance(response.payload, dict) else {}
    states = payload.get("data")
    if payload.get("statusCode") != 200 or not isinstance(states, list):
        logger.warning(f"State list refresh returned statusCode={payload.get('statusCode')}; cache untouched")
        return None
    cache.put(STATES_CACHE_KEY, states)
    logger.info(f"Loaded {len(states)} states into cache")
    return len(states)


def sweep_cache(cache: StationCache, max_age_seconds: float) -> int:
    """Evict cache entries older than `max_age_seconds`."""
    logger.info("Cleaning old cached data...")
    return cache.sweep(max_age_seconds)


@dataclass
class PeriodicTask:
    """A blocking job run on a fixed interval in a worker thread."""
    name: str
    interval_seconds: float
    job: Callable[[], object]
    run_at_start: bool = False


async def _run_job(task: PeriodicTask) -> None:
    """Run one iteration; failures are logged so the schedule keeps going."""
    try:
        await asyncio.to_thread(task.job)
    except Exception:
        logger.exception(f"Scheduled task {task.name} failed")


async def run_periodically(
    task: PeriodicTask,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    iterations: Optional[int] = None,
) -> None:
    """Run `task` every `interval_seconds`; `iterations` bounds the loop (tests)."""
    if task.run_at_start:
        await _run_job(task)
    completed = 0
    while iterations is None or completed < iterations:
        await sleep(task.interval_seconds)
        logger.info(f"Scheduled {task.name} started...")
        await _run_job(task)
        completed += 1


def start_background_tasks(tasks: List[PeriodicTask]) -> List[asyncio.Task]:
    """Detach each periodic task onto the running event loop."""
    started = []
    for task in tasks:
        logger.info(f"Scheduling {task.name} every {task.interval_seconds:.0f}s")
        started.append(asyncio.create_task(run_periodically(task), name=f"hydrowatch:{task.name}"))
    return started


async def stop_background_tasks(tasks: List[asyncio.Task]) -> None:
    """Cancel detached tasks and wait for them to unwind."""
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
