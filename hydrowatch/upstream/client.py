"""HTTP client for the India-WRIS and CGWB upstream APIs."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import requests
import requests_cache

from hydrowatch.upstream.errors import (
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamInvalidResponse,
    UpstreamTimeout,
)
from hydrowatch.upstream.retry import RetryPolicy, call_with_policy, exponential_backoff
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="upstream/client")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass
class UpstreamResponse:
    """Decoded upstream body plus how it was obtained."""
    payload: Any
    attempts: int
    status_code: int


def has_usable_data(payload: Any) -> bool:
    """True when the body carries a non-empty `data` list.

    India-WRIS reports 500 on some station-list calls while still returning
    rows; such bodies are served rather than treated as failures.
    """
    return isinstance(payload, Mapping) and isinstance(payload.get("data"), list) and len(payload["data"]) > 0


class UpstreamClient:
    """Issue JSON requests against one upstream base URL with timeout and retries."""

    def __init__(
        self,
        base_url: str,
        *,
        name: str = "upstream",
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 45.0,
        policy: Optional[RetryPolicy] = None,
        headers: Optional[Mapping[str, str]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.policy = policy or RetryPolicy()
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._sleep = sleep

    def url_for(self, endpoint: str) -> str:
        """Join an endpoint path onto the base URL."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def request(
        self,
        endpoint: str,
        payload: Any = None,
        *,
        method: str = "POST",
        params: Optional[Mapping[str, Any]] = None,
    ) -> UpstreamResponse:
        """
        Send `payload` to `endpoint`, retrying transient failures per the policy.

        Raises UpstreamUnavailable once the retry budget is spent, or
        UpstreamInvalidResponse immediately for a non-JSON 2xx body.
        """
        url = self.url_for(endpoint)
        method = method.upper()
        outcome = call_with_policy(
            lambda: self._attempt(method, url, payload, params),
            self.policy,
            sleep=self._sleep,
            label=f"{self.name} {method} {url}",
        )
        status_code, body = outcome.value
        logger.info("Success: %s %s - Status: %s (attempts=%d)", method, url, status_code, outcome.attempts)
        return UpstreamResponse(payload=body, attempts=outcome.attempts, status_code=status_code)

    def _attempt(self, method: str, url: str, payload: Any, params: Optional[Mapping[str, Any]]):
        """Perform one HTTP exchange and classify its failure modes."""
        logger.debug("Request to %s %s with body: %s", method, url, payload)
        try:
            resp = self.session.request(
                method,
                url,
                json=payload if method != "GET" else None,
                params=params,
                headers=self.headers,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.Timeout as exc:
            raise UpstreamTimeout(f"timeout after {self.timeout_seconds}s: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise UpstreamConnectionError(str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            body = _json_or_none(resp)
            if has_usable_data(body):
                logger.warning(
                    "Upstream returned %s but carried %d rows; serving payload",
                    resp.status_code,
                    len(body["data"]),
                )
                return resp.status_code, body
            raise UpstreamHttpError(resp.status_code, (resp.text or "")[:200])

        try:
            return resp.status_code, resp.json()
        except ValueError as exc:
            raise UpstreamInvalidResponse(
                f"{self.name} returned non-JSON response: {(resp.text or '')[:200]}"
            ) from exc


def _json_or_none(resp) -> Any:
    """Decode a response body, returning None when it is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return None


def build_india_wris_client(settings, *, sleep: Callable[[float], None] = time.sleep) -> UpstreamClient:
    """Construct the India-WRIS client from settings."""
    return UpstreamClient(
        settings.india_wris_base_url,
        name="india-wris",
        timeout_seconds=settings.upstream_timeout_seconds,
        policy=RetryPolicy(
            max_attempts=settings.upstream_max_attempts,
            backoff=exponential_backoff(settings.upstream_backoff_base_seconds),
        ),
        headers={"User-Agent": settings.user_agent, "Referer": settings.india_wris_referer},
        sleep=sleep,
    )


def build_cgwb_client(settings, *, sleep: Callable[[float], None] = time.sleep) -> UpstreamClient:
    """Construct the CGWB client; GET responses are cached by requests_cache."""
    session = requests_cache.CachedSession(
        "hydrowatch_cgwb",
        backend=settings.cgwb_cache_backend,
        expire_after=settings.cgwb_cache_ttl_seconds,
        allowable_methods=("GET",),
    )
    logger.info(
        "CGWB responses cached",
        extra={"backend": settings.cgwb_cache_backend, "ttl_seconds": settings.cgwb_cache_ttl_seconds},
    )
    return UpstreamClient(
        settings.cgwb_base_url,
        name="cgwb",
        session=session,
        timeout_seconds=settings.cgwb_timeout_seconds,
        policy=RetryPolicy(
            max_attempts=settings.upstream_max_attempts,
            backoff=exponential_backoff(settings.upstream_backoff_base_seconds),
        ),
        headers={"User-Agent": settings.user_agent},
        sleep=sleep,
    )
