"""Fetch station water levels from India-WRIS and attach derived analytics."""
from __future__ import annotations

import datetime as dt
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from hydrowatch.classifier import DEFAULT_CONFIG, build_station_analytics, parse_readings
from hydrowatch.domain import (
    BulkStationResult,
    BulkWaterLevelResponse,
    ClassifierConfig,
    StationWaterLevelResponse,
)
from hydrowatch.station_cache.base import Clock, StationCache, utc_now
from hydrowatch.upstream.client import UpstreamClient
from hydrowatch.upstream.errors import UpstreamError
from hydrowatch.upstream.routes import STATION_DATASET_PATH
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="water_levels")


def _dataset_rows(payload: Any) -> Optional[List[Mapping[str, Any]]]:
    """Return the `data` rows of a dataset response, or None when `data` is missing.

    An empty list is a valid answer (a station with no readings in the window).
    """
    if not isinstance(payload, Mapping):
        return None
    rows = payload.get("data")
    if not isinstance(rows, list):
        return None
    return rows


def _request_dataset(client: UpstreamClient, station_code: str, days: int) -> Any:
    return client.request(STATION_DATASET_PATH, {"stationcode": station_code, "days": days}).payload


def fetch_station_water_levels(
    client: UpstreamClient,
    cache: StationCache,
    station_code: str,
    days: int,
    *,
    config: ClassifierConfig = DEFAULT_CONFIG,
    tz: dt.tzinfo | str = "Asia/Kolkata",
    clock: Clock = utc_now,
) -> StationWaterLevelResponse:
    """
    Fetch one station's readings, compute analytics and cache the result.

    A response without a `data` list is answered with statusCode 404 rather
    than an error; an empty list yields empty analytics. Upstream failures
    propagate as UpstreamError.
    """
    logger.info(f"Fetching water level data for station: {station_code}")
    rows = _dataset_rows(_request_dataset(client, station_code, days))
    if rows is None:
        logger.info(f"No data found for station {station_code}")
        return StationWaterLevelResponse(
            status_code=404,
            message="No data found for this station",
            station_code=station_code,
        )

    now = clock()
    readings = parse_readings(rows, now=now, tz=tz, match_description=True)
    analytics = build_station_analytics(readings, days, config, now=now)
    response = StationWaterLevelResponse(
        status_code=200,
        message="Water level data fetched successfully",
        station_code=station_code,
        data=readings,
        analytics=analytics,
        last_updated=now,
    )
    cache.put(
        station_code,
        response.model_dump(mode="json", by_alias=True, include={"data", "analytics", "last_updated"}),
    )
    return response


def chunked(items: Sequence[str], size: int) -> Iterator[Sequence[str]]:
    """Yield consecutive slices of at most `size` items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _fetch_preview(
    client: UpstreamClient,
    station_code: str,
    days: int,
    *,
    preview_size: int,
    tz: dt.tzinfo | str,
    now: dt.datetime,
) -> Tuple[str, Optional[BulkStationResult], Optional[str]]:
    """Fetch one station for a bulk request; failures are returned, not raised."""
    try:
        rows = _dataset_rows(_request_dataset(client, station_code, days))
    except UpstreamError as exc:
        logger.warning(f"Bulk fetch failed for {station_code}: {exc}")
        return station_code, None, str(exc)
    except Exception as exc:
        logger.exception(f"Unexpected error fetching {station_code}")
        return station_code, None, str(exc)

    if not rows:
        return station_code, BulkStationResult(), None
    try:
        readings = parse_readings(rows, now=now, tz=tz, match_description=False)
    except Exception as exc:
        logger.exception(f"Failed to parse readings for {station_code}")
        return station_code, None, str(exc)
    return station_code, BulkStationResult(
        data=readings[:preview_size],
        latest=readings[0] if readings else None,
        count=len(readings),
    ), None


def fetch_bulk_water_levels(
    client: UpstreamClient,
    station_codes: Sequence[str],
    days: int,
    *,
    chunk_size: int = 5,
    chunk_delay_seconds: float = 1.0,
    preview_size: int = 5,
    tz: dt.tzinfo | str = "Asia/Kolkata",
    clock: Clock = utc_now,
    sleep: Callable[[float], None] = time.sleep,
) -> BulkWaterLevelResponse:
    """
    Fetch many stations in fixed-size chunks with a pause between chunks.

    Stations within a chunk are fetched concurrently; the pause bounds the
    request rate seen by the upstream. A failing station lands in `errors`
    without affecting the others.
    """
    logger.info(f"Bulk fetching water level data for {len(station_codes)} stations")
    now = clock()
    results: dict[str, BulkStationResult] = {}
    errors: dict[str, str] = {}

    chunks = list(chunked(list(station_codes), chunk_size))
    for index, chunk in enumerate(chunks):
        logger.debug(f"Processing chunk {index + 1}/{len(chunks)}: {list(chunk)}")
        with ThreadPoolExecutor(max_workers=len(chunk)) as pool:
            outcomes = list(
                pool.map(
                    lambda code: _fetch_preview(
                        client, code, days, preview_size=preview_size, tz=tz, now=now
                    ),
                    chunk,
                )
            )
        for code, result, error in outcomes:
            if error is not None:
                errors[code] = error
            else:
                results[code] = result
        if index < len(chunks) - 1:
            sleep(chunk_delay_seconds)

    return BulkWaterLevelResponse(
        status_code=200,
        message=f"Bulk water level data processed for {len(results)} stations",
        results=results,
        errors=errors,
        processed_at=clock(),
    )
