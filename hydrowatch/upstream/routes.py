"""Static table of the India-WRIS endpoints the proxy forwards to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional


def _district_key(prefix: str) -> Callable[[Mapping[str, Any]], Optional[str]]:
    """Cache key builder for station lists scoped to a district."""
    def _key(body: Mapping[str, Any]) -> Optional[str]:
        district = body.get("district_id") if isinstance(body, Mapping) else None
        if district in (None, ""):
            return None
        return f"{prefix}:{district}"
    return _key


@dataclass(frozen=True)
class ProxyRoute:
    """A logical endpoint name mapped to its upstream path."""
    name: str
    path: str
    cache_key: Optional[Callable[[Mapping[str, Any]], Optional[str]]] = None

    def cache_key_for(self, body: Mapping[str, Any]) -> Optional[str]:
        """Return where a successful response should be cached, if anywhere."""
        return self.cache_key(body) if self.cache_key else None


STATES_CACHE_KEY = "states"
STATION_DATASET_PATH = "CommonDataSetMasterAPI/getCommonDataSetByStationCode"
STATE_LIST_PATH = "masterState/StateList"

PROXY_ROUTES = (
    ProxyRoute("state_list", STATE_LIST_PATH, cache_key=lambda _body: STATES_CACHE_KEY),
    ProxyRoute("district_by_state", "masterDistrict/getDistrictbyState"),
    ProxyRoute("master_station", "masterStation/getMasterStation", cache_key=_district_key("stations")),
    ProxyRoute("station_ds_list", "masterStationDS/stationDSList", cache_key=_district_key("telemetric")),
    ProxyRoute("tehsil_list", "tehsil/getMasterTehsilList"),
    ProxyRoute("block_list", "block/getMasterBlockList"),
    ProxyRoute("agency_list", "masterAgency/AgencyListInAnyCase"),
    ProxyRoute("station_dataset", STATION_DATASET_PATH),
)

_BY_NAME: Dict[str, ProxyRoute] = {route.name: route for route in PROXY_ROUTES}
_BY_PATH: Dict[str, ProxyRoute] = {route.path.lower(): route for route in PROXY_ROUTES}


def resolve_route(endpoint: str) -> Optional[ProxyRoute]:
    """Look up a route by upstream path (`masterState/StateList`) or logical name (`state_list`)."""
    key = endpoint.strip("/")
    return _BY_NAME.get(key) or _BY_PATH.get(key.lower())
