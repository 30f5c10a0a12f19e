"""FastAPI application setup for the HydroWatch India proxy."""

import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import error_response, router as api_router
from .app_types import ProxyServices
from .config import Settings, settings as default_settings
from .scheduler import (
    PeriodicTask,
    refresh_state_list,
    start_background_tasks,
    stop_background_tasks,
    sweep_cache,
)
from .station_cache import Clock, StationCache, build_station_cache, utc_now
from .upstream import InvalidRequest, UpstreamClient, build_cgwb_client, build_india_wris_client
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="main")


def scheduled_tasks(services: ProxyServices) -> list[PeriodicTask]:
    """The state-list refresh (also run once at startup) and the cache sweep."""
    cfg = services.settings
    return [
        PeriodicTask(
            name="state-list-refresh",
            interval_seconds=cfg.cache_refresh_interval_seconds,
            job=lambda: refresh_state_list(services.india_wris, services.cache, cfg.state_list_dataset_code),
            run_at_start=True,
        ),
        PeriodicTask(
            name="cache-sweep",
            interval_seconds=cfg.cache_sweep_interval_seconds,
            job=lambda: sweep_cache(services.cache, cfg.cache_max_age_seconds),
        ),
    ]


def create_app(
    settings: Optional[Settings] = None,
    *,
    india_wris: Optional[UpstreamClient] = None,
    cgwb: Optional[UpstreamClient] = None,
    cache: Optional[StationCache] = None,
    clock: Clock = utc_now,
    sleep: Callable[[float], None] = time.sleep,
) -> FastAPI:
    """Build the app; collaborators not passed in are constructed from settings."""
    cfg = settings or default_settings
    services = ProxyServices(
        settings=cfg,
        india_wris=india_wris or build_india_wris_client(cfg, sleep=sleep),
        cgwb=cgwb or build_cgwb_client(cfg, sleep=sleep),
        cache=cache or build_station_cache(cfg, clock=clock),
        classifier_config=cfg.classifier_config(),
        clock=clock,
        sleep=sleep,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tasks = []
        if cfg.scheduler_enabled:
            tasks = start_background_tasks(scheduled_tasks(services))
        logger.info(f"HydroWatch proxy {cfg.version} ready")
        try:
            yield
        finally:
            await stop_background_tasks(tasks)

    app = FastAPI(title="HydroWatch India Proxy", version=cfg.version, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origin_list(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidRequest)
    async def invalid_request_handler(request: Request, exc: InvalidRequest):
        return error_response("Invalid request", str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        return error_response("Invalid request", message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return error_response("Internal server error", str(exc))

    app.include_router(api_router)
    return app


app = create_app()
