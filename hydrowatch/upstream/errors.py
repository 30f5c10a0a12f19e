"""Error taxonomy for calls to India-WRIS and CGWB."""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for failures talking to an upstream service."""


class UpstreamTimeout(UpstreamError):
    """A single attempt exceeded its timeout."""


class UpstreamConnectionError(UpstreamError):
    """The upstream host could not be reached."""


class UpstreamHttpError(UpstreamError):
    """The upstream answered with a non-2xx status and no usable payload."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code


class UpstreamInvalidResponse(UpstreamError):
    """The upstream answered 2xx but the body was not JSON."""


class UpstreamUnavailable(UpstreamError):
    """All attempts allowed by the retry policy failed."""

    def __init__(self, message: str, *, attempts: int, last_error: str) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class InvalidRequest(Exception):
    """The client request is missing a required field or is malformed."""
