"""Domain vocabulary and schemas for station water-level analytics.

This module defines the stable contract between the classifier, the cache and
the HTTP layer: enums for derived labels, the threshold configuration the
classifier runs on, and Pydantic models for readings and analytics. Field
names are snake_case in Python and camelCase on the wire, matching what the
mobile client already consumes. No interpretation logic lives here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Trend(str, Enum):
    """Direction of the water level over the requested window."""
    RISING = "rising"
    FALLING = "falling"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class QualityStatus(str, Enum):
    """Qualitative band for the composite data-quality score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class CriticalLevel(str, Enum):
    """Depth-based severity of the latest reading."""
    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"
    NORMAL = "normal"
    UNKNOWN = "unknown"


CRITICAL_MESSAGES: Dict[CriticalLevel, str] = {
    CriticalLevel.CRITICAL: "Very deep water level detected",
    CriticalLevel.WARNING: "Deep water level - monitor closely",
    CriticalLevel.CAUTION: "Moderate depth - within acceptable range",
    CriticalLevel.NORMAL: "Water level is in good range",
    CriticalLevel.UNKNOWN: "No data available",
}


class ClassifierConfig(BaseModel):
    """Thresholds used by the classifier.

    Depth bands default to national values and should be calibrated per
    region or aquifer; recency steps are (max_hours_exclusive, score) pairs
    checked in order, falling back to `stale_recency`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    trend_window: int = Field(default=10, ge=1)
    trend_threshold: float = Field(default=0.1, ge=0.0)
    readings_per_day: int = Field(default=4, ge=1)
    completeness_weight: float = 0.7
    recency_weight: float = 0.3
    recency_steps: Tuple[Tuple[float, float], ...] = ((12.0, 100.0), (24.0, 75.0), (48.0, 50.0))
    stale_recency: float = 25.0
    quality_bands: Tuple[Tuple[float, QualityStatus], ...] = (
        (90.0, QualityStatus.EXCELLENT),
        (70.0, QualityStatus.GOOD),
        (50.0, QualityStatus.FAIR),
    )
    caution_depth: float = 15.0
    warning_depth: float = 30.0
    critical_depth: float = 50.0

    @model_validator(mode="after")
    def _depth_bands_ordered(self) -> "ClassifierConfig":
        """Reject depth bands that would make a severity unreachable."""
        if not (self.caution_depth <= self.warning_depth <= self.critical_depth):
            raise ValueError("depth thresholds must satisfy caution <= warning <= critical")
        return self


class Reading(CamelModel):
    """A single water-level observation from the upstream dataset."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: datetime
    value: float
    unit: str | None = None
    type: str | None = None
    type_code: str | None = None
    is_recent: bool = False
    depth_from_surface: float | None = None


class DataQuality(CamelModel):
    """Completeness x recency score, rounded for display."""
    score: int
    completeness: int
    recency: int
    status: QualityStatus


class CriticalStatus(CamelModel):
    """Depth classification of the latest reading."""
    status: CriticalLevel
    message: str


class StationAnalytics(CamelModel):
    """Derived analytics recomputed on every water-level request."""
    total_readings: int
    latest_reading: Reading | None = None
    average_level: float | None = None
    trend: Trend
    data_quality: DataQuality
    critical_status: CriticalStatus


class StationWaterLevelResponse(CamelModel):
    """Body returned by the single-station water-level endpoint."""
    status_code: int
    message: str
    station_code: str
    data: List[Reading] = Field(default_factory=list)
    analytics: StationAnalytics | None = None
    last_updated: datetime | None = None


class BulkStationResult(CamelModel):
    """Preview of one station's readings in a bulk request."""
    data: List[Reading] = Field(default_factory=list)
    latest: Reading | None = None
    count: int = 0


class BulkWaterLevelResponse(CamelModel):
    """Body returned by the bulk water-level endpoint."""
    status_code: int = 200
    message: str
    results: Dict[str, BulkStationResult] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict)
    processed_at: datetime


class ErrorEnvelope(CamelModel):
    """Uniform failure body; `data` is always an empty list."""
    error: str
    message: str
    status_code: int
    data: List[Any] = Field(default_factory=list)
