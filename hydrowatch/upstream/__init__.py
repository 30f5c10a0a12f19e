"""Upstream clients, retry policy and route table for India-WRIS and CGWB."""

from .client import (
    UpstreamClient,
    UpstreamResponse,
    build_cgwb_client,
    build_india_wris_client,
    has_usable_data,
)
from .errors import (
    InvalidRequest,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamInvalidResponse,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from .retry import RetryOutcome, RetryPolicy, call_with_policy, exponential_backoff
from .routes import PROXY_ROUTES, ProxyRoute, resolve_route

__all__ = [
    "UpstreamClient",
    "UpstreamResponse",
    "build_cgwb_client",
    "build_india_wris_client",
    "has_usable_data",
    "InvalidRequest",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamHttpError",
    "UpstreamInvalidResponse",
    "UpstreamTimeout",
    "UpstreamUnavailable",
    "RetryOutcome",
    "RetryPolicy",
    "call_with_policy",
    "exponential_backoff",
    "PROXY_ROUTES",
    "ProxyRoute",
    "resolve_route",
]
