"""Deterministic analytics over station water-level readings.

Raw upstream dataset rows are turned into `Reading` objects, and three pure
functions derive the trend, the data-quality score and the depth-based
critical status. All thresholds come from a `ClassifierConfig` so regional
calibration does not need code changes.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from hydrowatch.domain import (
    CRITICAL_MESSAGES,
    ClassifierConfig,
    CriticalLevel,
    CriticalStatus,
    DataQuality,
    QualityStatus,
    Reading,
    StationAnalytics,
    Trend,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="classifier")

WATER_LEVEL_CODES = frozenset({"GGZ", "MS4"})
DEPTH_CODE = "GGZ"
RECENT_WINDOW = dt.timedelta(hours=24)
NO_READING_HOURS = 999.0

DEFAULT_CONFIG = ClassifierConfig()


def _round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores."""
    return int(math.floor(value + 0.5))


def _parse_timestamp(raw: Any, tz: dt.tzinfo) -> Optional[dt.datetime]:
    """Interpret an upstream `dataTime`; naive values are local to `tz`."""
    if isinstance(raw, dt.datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip().replace(" ", "T", 1)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _is_water_level(item: Mapping[str, Any], match_description: bool) -> bool:
    """Keep GGZ/MS4 rows, and optionally anything described as a water level."""
    code = item.get("datatypeCode")
    if isinstance(code, str) and code in WATER_LEVEL_CODES:
        return True
    if not match_description:
        return False
    description = item.get("datatypeDescription") or ""
    return "water level" in str(description).lower()


def sort_recent_first(readings: Iterable[Reading]) -> List[Reading]:
    """Return readings ordered most-recent-first."""
    return sorted(readings, key=lambda r: r.timestamp, reverse=True)


def parse_readings(
    items: Sequence[Mapping[str, Any]] | None,
    *,
    now: dt.datetime,
    tz: dt.tzinfo | str = "Asia/Kolkata",
    match_description: bool = True,
) -> List[Reading]:
    """Convert raw dataset rows into readings sorted most-recent-first.

    Rows with an unparseable timestamp, a non-numeric value or fields of the
    wrong type are dropped.
    """
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    out: List[Reading] = []
    dropped = 0
    for item in items or []:
        if not isinstance(item, Mapping) or not _is_water_level(item, match_description):
            continue
        timestamp = _parse_timestamp(item.get("dataTime"), tz)
        try:
            value = float(item.get("dataValue"))
        except (TypeError, ValueError):
            value = math.nan
        if timestamp is None or math.isnan(value):
            dropped += 1
            continue
        type_code = item.get("datatypeCode")
        try:
            reading = Reading(
                timestamp=timestamp,
                value=value,
                unit=item.get("unitCode"),
                type=item.get("datatypeDescription"),
                type_code=type_code,
                is_recent=timestamp > now - RECENT_WINDOW,
                depth_from_surface=abs(value) if type_code == DEPTH_CODE else None,
            )
        except ValidationError:
            dropped += 1
            continue
        out.append(reading)
    if dropped:
        logger.warning("Dropped %d malformed water-level rows", dropped)
    return sort_recent_first(out)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def compute_trend(readings: Sequence[Reading], config: ClassifierConfig = DEFAULT_CONFIG) -> Trend:
    """Compare the mean of the newest window against the mean of the oldest window."""
    if len(readings) < 2:
        return Trend.INSUFFICIENT_DATA

    ordered = sort_recent_first(readings)
    window = min(config.trend_window, len(ordered))
    recent = [r.value for r in ordered[:window]]
    older = [r.value for r in ordered[-window:]]

    difference = _mean(recent) - _mean(older)
    if abs(difference) < config.trend_threshold:
        return Trend.STABLE
    return Trend.RISING if difference > 0 else Trend.FALLING


def _recency_score(hours_ago: float, config: ClassifierConfig) -> float:
    for max_hours, score in config.recency_steps:
        if hours_ago < max_hours:
            return score
    return config.stale_recency


def _quality_status(quality: float, config: ClassifierConfig) -> QualityStatus:
    for floor, status in config.quality_bands:
        if quality >= floor:
            return status
    return QualityStatus.POOR


def compute_data_quality(
    readings: Sequence[Reading],
    expected_days: int,
    config: ClassifierConfig = DEFAULT_CONFIG,
    *,
    now: dt.datetime,
) -> DataQuality:
    """Score completeness against the expected reading cadence and recency of the latest reading."""
    expected = expected_days * config.readings_per_day
    actual = len(readings)
    if expected > 0:
        completeness = min(actual / expected, 1.0) * 100
    else:
        completeness = 100.0 if actual else 0.0

    if readings:
        latest = max(readings, key=lambda r: r.timestamp)
        hours_ago = (now - latest.timestamp).total_seconds() / 3600
    else:
        hours_ago = NO_READING_HOURS
    recency = _recency_score(hours_ago, config)

    quality = completeness * config.completeness_weight + recency * config.recency_weight
    return DataQuality(
        score=_round_half_up(quality),
        completeness=_round_half_up(completeness),
        recency=_round_half_up(recency),
        status=_quality_status(quality, config),
    )


def compute_critical_status(
    readings: Sequence[Reading], config: ClassifierConfig = DEFAULT_CONFIG
) -> CriticalStatus:
    """Classify the absolute depth of the latest reading (strict greater-than bands)."""
    if not readings:
        level = CriticalLevel.UNKNOWN
        return CriticalStatus(status=level, message=CRITICAL_MESSAGES[level])

    depth = abs(max(readings, key=lambda r: r.timestamp).value)
    if depth > config.critical_depth:
        level = CriticalLevel.CRITICAL
    elif depth > config.warning_depth:
        level = CriticalLevel.WARNING
    elif depth > config.caution_depth:
        level = CriticalLevel.CAUTION
    else:
        level = CriticalLevel.NORMAL
    return CriticalStatus(status=level, message=CRITICAL_MESSAGES[level])


def build_station_analytics(
    readings: Sequence[Reading],
    days: int,
    config: ClassifierConfig = DEFAULT_CONFIG,
    *,
    now: dt.datetime,
) -> StationAnalytics:
    """Assemble the analytics block returned with a station's readings."""
    ordered = sort_recent_first(readings)
    return StationAnalytics(
        total_readings=len(ordered),
        latest_reading=ordered[0] if ordered else None,
        average_level=_mean([r.value for r in ordered]) if ordered else None,
        trend=compute_trend(ordered, config),
        data_quality=compute_data_quality(ordered, days, config, now=now),
        critical_status=compute_critical_status(ordered, config),
    )
