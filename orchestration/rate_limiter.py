"""Shared request throttle for every outbound call across all jobs."""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, Optional


class RateLimiter:
    """Asynchronous token bucket bounding calls per interval.

    Each token taken by ``acquire()`` is handed back to the bucket ``interval``
    seconds later by an event-loop timer, so no more than ``tokens`` calls can
    complete inside any window of ``interval`` seconds. Callers are never
    rejected; they wait until a token comes back.
    """

    def __init__(self, tokens: int = 1, interval: float = 1.0) -> None:
        """Initialize rate limiter.

        Args:
            tokens: Calls allowed per interval
            interval: Interval length in seconds
        """
        if tokens < 1:
            raise ValueError("tokens must be at least 1")
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.tokens = tokens
        self.interval = interval
        self._semaphore = asyncio.BoundedSemaphore(tokens)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._refills: Deque[asyncio.TimerHandle] = deque()
        self._closed = False

        # Statistics
        self.total_acquired = 0

        self.logger = logging.getLogger(__name__)

    async def acquire(self) -> None:
        """Wait for a token and consume it."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        await self._semaphore.acquire()
        self.total_acquired += 1

        if self._closed:
            # Nothing will run after close(); hand the token straight back
            self._semaphore.release()
            return

        self._refills.append(self._loop.call_later(self.interval, self._refill))

    def _refill(self) -> None:
        """Return one token to the bucket."""
        if self._refills:
            self._refills.popleft()
        self._semaphore.release()

    @property
    def available_tokens(self) -> int:
        """Tokens that can be taken right now without waiting."""
        return self.tokens - len(self._refills)

    def statistics(self) -> Dict[str, Any]:
        """Get rate limiter statistics.

        Returns:
            Statistics dictionary
        """
        return {
            "total_acquired": self.total_acquired,
            "available_tokens": self.available_tokens,
            "tokens_per_interval": self.tokens,
            "interval_seconds": self.interval,
        }

    def close(self) -> None:
        """Cancel pending refill timers and return their tokens immediately."""
        self._closed = True
        while self._refills:
            handle = self._refills.popleft()
            handle.cancel()
            self._semaphore.release()
        self.logger.debug(f"Rate limiter closed after {self.total_acquired} acquisitions")
