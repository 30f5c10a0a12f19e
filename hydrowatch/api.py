"""HTTP surface of the HydroWatch proxy."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import Field, field_validator

from .app_types import ProxyServices
from .domain import BulkWaterLevelResponse, CamelModel, ErrorEnvelope, StationWaterLevelResponse
from .upstream.errors import InvalidRequest, UpstreamError
from .upstream.routes import resolve_route
from .water_levels import fetch_bulk_water_levels, fetch_station_water_levels
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

router = APIRouter(prefix="/api")

ENDPOINT_DESCRIPTIONS = {
    "POST /api/indiawris/[endpoint]": "Proxy to India-WRIS API",
    "POST /api/station/water-level": "Get water level data for a station",
    "POST /api/stations/bulk-water-level": "Get water level data for multiple stations",
    "GET /api/cgwb/[path]": "Proxy to CGWB API",
    "GET /api/health": "Health check",
}


def get_services(request: Request) -> ProxyServices:
    """Resolve the services built by the app factory."""
    return request.app.state.services


def _code_as_text(value: Any) -> Any:
    """Station codes sometimes arrive as JSON numbers; forward them as text."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class WaterLevelRequest(CamelModel):
    """Body of the single-station water-level request."""
    station_code: Optional[str] = None
    days: Optional[int] = Field(default=None, ge=1)

    @field_validator("station_code", mode="before")
    @classmethod
    def coerce_station_code(cls, v: Any) -> Any:
        return _code_as_text(v)


class BulkWaterLevelRequest(CamelModel):
    """Body of the bulk water-level request."""
    station_codes: Optional[list[str]] = None
    days: Optional[int] = Field(default=None, ge=1)

    @field_validator("station_codes", mode="before")
    @classmethod
    def coerce_station_codes(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_code_as_text(item) for item in v]
        return v


def error_response(error: str, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    """Build the uniform `{error, message, statusCode, data: []}` envelope."""
    envelope = ErrorEnvelope(error=error, message=message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=envelope.model_dump(by_alias=True))


@router.post("/indiawris/{endpoint:path}")
def proxy_india_wris(
    endpoint: str,
    body: Optional[dict[str, Any]] = Body(default=None),
    services: ProxyServices = Depends(get_services),
):
    """Forward a client body unchanged to a known India-WRIS endpoint."""
    route = resolve_route(endpoint)
    if route is None:
        logger.warning(f"Rejected unknown India-WRIS endpoint: {endpoint}")
        return error_response(
            "Unknown India-WRIS endpoint",
            f"No proxy route for '{endpoint}'",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    logger.info(f"Proxying request to: {route.path}")
    try:
        response = services.india_wris.request(route.path, body)
    except UpstreamError as exc:
        logger.error(f"Proxy error: {exc}")
        return error_response("Failed to fetch data from India-WRIS", str(exc))

    cache_key = route.cache_key_for(body or {})
    payload = response.payload
    if cache_key and isinstance(payload, dict) and isinstance(payload.get("data"), list):
        services.cache.put(cache_key, payload["data"])

    return JSONResponse(content=payload)


@router.post("/station/water-level", response_model=StationWaterLevelResponse)
def station_water_level(req: WaterLevelRequest, services: ProxyServices = Depends(get_services)):
    """Return a station's readings together with trend, quality and critical status."""
    if not req.station_code:
        raise InvalidRequest("Station code is required")

    days = req.days or services.settings.default_days
    try:
        response = fetch_station_water_levels(
            services.india_wris,
            services.cache,
            req.station_code,
            days,
            config=services.classifier_config,
            tz=services.settings.station_timezone,
            clock=services.clock,
        )
    except UpstreamError as exc:
        logger.error(f"Water level data error: {exc}")
        return error_response("Failed to fetch water level data", str(exc))

    if response.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            content=response.model_dump(
                mode="json", by_alias=True, include={"status_code", "message", "data", "station_code"}
            )
        )
    return response


@router.post("/stations/bulk-water-level", response_model=BulkWaterLevelResponse)
def bulk_water_level(req: BulkWaterLevelRequest, services: ProxyServices = Depends(get_services)):
    """Return a short preview of readings for many stations."""
    if req.station_codes is None:
        raise InvalidRequest("Station codes array is required")

    settings = services.settings
    return fetch_bulk_water_levels(
        services.india_wris,
        req.station_codes,
        req.days or settings.bulk_default_days,
        chunk_size=settings.bulk_chunk_size,
        chunk_delay_seconds=settings.bulk_chunk_delay_seconds,
        preview_size=settings.bulk_preview_size,
        tz=settings.station_timezone,
        clock=services.clock,
        sleep=services.sleep,
    )


@router.get("/health")
def health(services: ProxyServices = Depends(get_services)):
    """Report liveness and what the cache currently holds."""
    return {
        "status": "OK",
        "message": "HydroWatch India proxy is running",
        "version": services.settings.version,
        "timestamp": services.clock().isoformat(),
        "cacheStatus": services.cache.stats(),
        "endpoints": ENDPOINT_DESCRIPTIONS,
    }


@router.get("/cgwb/{path:path}")
def proxy_cgwb(path: str, request: Request, services: ProxyServices = Depends(get_services)):
    """Forward a GET (with its query string) to CGWB and pass the JSON through."""
    params = dict(request.query_params)
    logger.info(f"Proxying to CGWB: {services.cgwb.url_for(path)}")
    try:
        response = services.cgwb.request(path, method="GET", params=params or None)
    except UpstreamError as exc:
        logger.error(f"CGWB Proxy error: {exc}")
        return error_response("Failed to fetch data from CGWB", str(exc))
    return JSONResponse(content=response.payload)
