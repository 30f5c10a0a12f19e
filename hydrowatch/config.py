"""Proxy configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hydrowatch.domain import ClassifierConfig
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the HydroWatch proxy."""
    model_config = SettingsConfigDict(env_prefix="HYDROWATCH_", extra="ignore")

    version: str = "2.0.0"
    log_level: str = "INFO"
    cors_origins: str = "*"  # comma separated

    # upstream services
    india_wris_base_url: str = "https://indiawris.gov.in"
    india_wris_referer: str = "https://indiawris.gov.in/"
    cgwb_base_url: str = "https://gwdata.cgwb.gov.in"
    user_agent: str = "HydroWatchIndia/1.0.0"
    upstream_timeout_seconds: float = 45.0
    cgwb_timeout_seconds: float = 30.0
    upstream_max_attempts: int = Field(default=3, ge=1)
    upstream_backoff_base_seconds: float = 1.0
    cgwb_cache_backend: str = "memory"  # any requests_cache backend name
    cgwb_cache_ttl_seconds: int = 900

    # station cache
    cache_redis_url: str | None = None
    cache_redis_prefix: str = "hydrowatch:cache:"
    cache_max_age_seconds: int = 6 * 60 * 60
    cache_sweep_interval_seconds: int = 6 * 60 * 60
    cache_refresh_interval_seconds: int = 2 * 60 * 60
    scheduler_enabled: bool = True
    state_list_dataset_code: str = "GWATERLVL"

    # water-level endpoints
    default_days: int = 30
    bulk_default_days: int = 7
    bulk_chunk_size: int = Field(default=5, ge=1)
    bulk_chunk_delay_seconds: float = 1.0
    bulk_preview_size: int = 5
    station_timezone: str = "Asia/Kolkata"

    # classifier thresholds; depth bands need per-region calibration
    trend_window: int = 10
    trend_threshold_m: float = 0.1
    readings_per_day: int = 4
    caution_depth_m: float = 15.0
    warning_depth_m: float = 30.0
    critical_depth_m: float = 50.0

    @field_validator("india_wris_base_url", "cgwb_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    def cors_origin_list(self) -> list[str]:
        """Split the comma separated CORS origins."""
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]

    def classifier_config(self) -> ClassifierConfig:
        """Collect the classifier thresholds into the structure the classifier takes."""
        return ClassifierConfig(
            trend_window=self.trend_window,
            trend_threshold=self.trend_threshold_m,
            readings_per_day=self.readings_per_day,
            caution_depth=self.caution_depth_m,
            warning_depth=self.warning_depth_m,
            critical_depth=self.critical_depth_m,
        )


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
