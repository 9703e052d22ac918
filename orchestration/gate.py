"""Single-fire signal used to order dependent jobs."""

import asyncio
import logging
from typing import Optional

from .errors import GateTimeoutError

logger = logging.getLogger(__name__)


class DependencyGate:
    """A gate that moves from pending to opened exactly once.

    Any number of jobs may wait on the gate; all of them are released when it
    opens, and later waiters return immediately.
    """

    def __init__(self, name: str):
        self.name = name
        self._event = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self._event.is_set()

    def open(self) -> None:
        """Open the gate. Calling again has no effect."""
        if self._event.is_set():
            return
        self._event.set()
        logger.debug(f"Gate '{self.name}' opened")

    async def wait(self, timeout: Optional[float] = None) -> None:
        """Wait for the gate to open.

        Args:
            timeout: Seconds to wait before giving up (None = wait forever)

        Raises:
            GateTimeoutError: If the gate is still pending after ``timeout``
        """
        if self._event.is_set():
            return
        if timeout is None:
            await self._event.wait()
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            raise GateTimeoutError(self.name, timeout)

    def __repr__(self) -> str:
        state = "opened" if self.is_open else "pending"
        return f"DependencyGate({self.name!r}, {state})"
