"""Rate-limited HTTP client for the target API."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from orchestration import JobLogger, RateLimiter

from .auth import TokenProvider
from .errors import (
    LookupFailedError,
    RequestFailedError,
    TransportError,
    UnauthorizedError,
)


def _decode_body(text: str) -> Any:
    """Parse response text as JSON, falling back to the text itself."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class ApiClient:
    """Async API client with shared rate limiting and bearer authentication.

    Every request takes one token from the shared limiter and reads the
    current bearer token from the provider at call time.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        token_provider: TokenProvider,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        job_logger: Optional[JobLogger] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize API client.

        Args:
            rate_limiter: Rate limiter shared by all jobs
            token_provider: Source of the current bearer token
            timeout: Client timeout configuration
            job_logger: Sink for request events
            logger: Optional logger instance
        """
        self.rate_limiter = rate_limiter
        self.token_provider = token_provider
        self.timeout = timeout or aiohttp.ClientTimeout(total=30)
        self.job_logger = job_logger or JobLogger()
        self.logger = logger or logging.getLogger(__name__)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "ApiClient":
        """Async context manager entry."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit with proper cleanup."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying session."""
        if self._session is not None and not self._session.closed:
            try:
                await self._session.close()
            except Exception as e:
                self.logger.warning(f"Error closing session: {e}")
        self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get the current session, raising an error if not initialized."""
        if self._session is None or self._session.closed:
            raise RuntimeError("ApiClient must be used as an async context manager")
        return self._session

    async def request(self, method: str, url: str, payload: Any = None, operation: str = "request") -> Any:
        """Send one JSON request.

        Args:
            method: HTTP method
            url: Absolute request URL
            payload: JSON-serializable request body
            operation: Name used in log lines

        Returns:
            Decoded response body

        Raises:
            UnauthorizedError: If the API answers 401
            RequestFailedError: If the API answers any other non-2xx status
            TransportError: If no response was received, or a 2xx body could not be read

        The status decides the outcome; an unreadable or undecodable body
        never hides a 401.
        """
        await self.rate_limiter.acquire()
        self.job_logger.info(operation, "action triggered", url)

        headers = {"Content-Type": "application/json"}
        headers.update(self.token_provider.authorization_header())

        body_error: Optional[str] = None
        try:
            async with self.session.request(method, url, json=payload, headers=headers) as response:
                status = response.status
                try:
                    raw = await response.read()
                except (aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
                    body_error = str(e) or type(e).__name__
                    raw = b""
                body = _decode_body(raw.decode("utf-8", errors="replace"))
        except aiohttp.ClientError as e:
            self.job_logger.error(operation, "action failed, no response received", url, str(e))
            raise TransportError(f"{method.upper()} {url} failed: {e}", url=url)
        except asyncio.TimeoutError:
            self.job_logger.error(operation, "action failed, request timed out", url)
            raise TransportError(f"{method.upper()} {url} timed out", url=url)

        if body_error is not None:
            self.job_logger.warn(operation, "response body unreadable", url, body_error)
            if 200 <= status < 300:
                raise TransportError(
                    f"{method.upper()} {url} returned {status} but the body could not be read: {body_error}",
                    url=url,
                    status=status,
                )

        if 200 <= status < 300:
            self.job_logger.info(operation, "action completed", url, status)
            return body

        self.job_logger.error(operation, "action failed", url, {"status": status, "body": body})
        if status == 401:
            self.job_logger.error(operation, "skip remaining data due to unauthorized", url)
            raise UnauthorizedError(
                "skip remaining data due to unauthorized", url=url, status=status, body=body
            )
        raise RequestFailedError(
            f"{method.upper()} {url} returned {status}", url=url, status=status, body=body
        )

    async def post(self, url: str, payload: Any) -> Any:
        """POST a JSON payload."""
        return await self.request("post", url, payload, operation="post")

    async def lookup(self, url: str, filters: List[Dict[str, Any]]) -> Any:
        """POST a query filter list and return the raw response body."""
        return await self.request("post", url, filters, operation="lookup")

    async def lookup_field(self, url: str, key: str, value: Any, field: str) -> Any:
        """Find one record by ``key == value`` and return its ``field``.

        Args:
            url: Query endpoint URL
            key: Field to filter on
            value: Value the field must equal
            field: Field to read from the first match

        Returns:
            The field value of the first match

        Raises:
            LookupFailedError: If no match carries ``field``
        """
        body = await self.lookup(url, [{"key": key, "value": value, "operation": "eq"}])
        try:
            found = body["response"][0][field]
        except (KeyError, IndexError, TypeError):
            raise LookupFailedError(
                f"No {field} found for {key}={value!r}", url=url, body=body
            )
        if found is None:
            raise LookupFailedError(f"Empty {field} for {key}={value!r}", url=url, body=body)
        return found
