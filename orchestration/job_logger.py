"""Job-scoped log sink with an on/off switch."""

import logging
from typing import Any, Optional

_LEVELS = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JobLogger:
    """Writes ``[job] [key] message data`` lines through standard logging.

    When disabled every call is a no-op. Logging never raises into the
    caller; handler failures are dealt with by the logging module itself.
    """

    def __init__(self, enabled: bool = True, logger: Optional[logging.Logger] = None):
        self.enabled = enabled
        self.logger = logger or logging.getLogger(__name__)

    def log(
        self,
        job: str,
        level: str,
        message: str,
        key: Optional[str] = None,
        data: Any = None,
    ) -> None:
        """Emit one job event.

        Args:
            job: Job (or component) name
            level: One of ``info``, ``warn``, ``error``
            message: Event description
            key: Optional correlation key, such as a job description
            data: Optional payload appended to the line
        """
        if not self.enabled:
            return
        levelno = _LEVELS.get(level, logging.INFO)
        if data is None:
            self.logger.log(levelno, "[%s] [%s] %s", job, key or "", message)
        else:
            self.logger.log(levelno, "[%s] [%s] %s %s", job, key or "", message, data)

    def info(self, job: str, message: str, key: Optional[str] = None, data: Any = None) -> None:
        self.log(job, "info", message, key, data)

    def warn(self, job: str, message: str, key: Optional[str] = None, data: Any = None) -> None:
        self.log(job, "warn", message, key, data)

    def error(self, job: str, message: str, key: Optional[str] = None, data: Any = None) -> None:
        self.log(job, "error", message, key, data)
