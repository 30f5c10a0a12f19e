"""Shared dataclasses wiring the proxy's collaborators together."""

import time
from dataclasses import dataclass, field
from typing import Callable

from hydrowatch.config import Settings
from hydrowatch.domain import ClassifierConfig
from hydrowatch.station_cache.base import Clock, StationCache, utc_now
from hydrowatch.upstream.client import UpstreamClient


@dataclass
class ProxyServices:
    """Everything a request handler needs, built once per process."""
    settings: Settings
    india_wris: UpstreamClient
    cgwb: UpstreamClient
    cache: StationCache
    classifier_config: ClassifierConfig
    clock: Clock = utc_now
    sleep: Callable[[float], None] = field(default=time.sleep)
