"""Exception types for API and authentication failures."""

from typing import Any, Optional

from orchestration.errors import FatalRecordError


class ApiError(Exception):
    """Base exception for remote API failures.

    Attributes:
        url: Request URL
        status: HTTP status, or None when no response was received
        body: Decoded response body when one was received
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


class UnauthorizedError(ApiError, FatalRecordError):
    """The API rejected the bearer token (HTTP 401); the job's remaining records are skipped."""


class RequestFailedError(ApiError):
    """The API answered with a non-success status other than 401."""


class TransportError(ApiError):
    """No response was received (connection failure or timeout)."""


class LookupFailedError(ApiError):
    """A lookup call returned no usable identifier for the record."""


class AuthenticationError(ApiError):
    """The token endpoint did not issue an access token."""
