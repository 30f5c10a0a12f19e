"""Retry policy and the generic call-with-policy wrapper used for upstream calls."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from hydrowatch.upstream.errors import (
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="upstream/retry")

T = TypeVar("T")


def exponential_backoff(base_delay_seconds: float) -> Callable[[int], float]:
    """Return a backoff function giving base * 2^(attempt-1) seconds."""
    def _delay(attempt: int) -> float:
        return base_delay_seconds * (2 ** (attempt - 1))
    return _delay


def is_transient_upstream_error(exc: BaseException) -> bool:
    """Timeouts, connection failures and non-2xx answers are worth another attempt."""
    return isinstance(exc, (UpstreamTimeout, UpstreamConnectionError, UpstreamHttpError))


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, how long to wait, and which failures to retry."""
    max_attempts: int = 3
    backoff: Callable[[int], float] = exponential_backoff(1.0)
    retryable: Callable[[BaseException], bool] = is_transient_upstream_error

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a successful call together with the attempts it took."""
    value: T
    attempts: int


def call_with_policy(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "call",
) -> RetryOutcome[T]:
    """
    Invoke `fn` until it succeeds or the policy gives up.

    Non-retryable exceptions propagate unchanged on the attempt they occur.
    When every attempt fails with a retryable error, UpstreamUnavailable is
    raised with the last error message.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            logger.debug("[Attempt %d/%d] %s", attempt, policy.max_attempts, label)
            value = fn()
        except Exception as exc:
            if not policy.retryable(exc):
                raise
            logger.warning(
                "Attempt %d/%d failed for %s: %s", attempt, policy.max_attempts, label, exc
            )
            if attempt == policy.max_attempts:
                raise UpstreamUnavailable(
                    f"Failed after {policy.max_attempts} attempts: {exc}",
                    attempts=attempt,
                    last_error=str(exc),
                ) from exc
            delay = policy.backoff(attempt)
            logger.debug("Retrying %s in %.2fs", label, delay)
            sleep(delay)
            continue
        return RetryOutcome(value=value, attempts=attempt)

    # unreachable: the loop either returns or raises
    raise AssertionError("retry loop exited without a result")
