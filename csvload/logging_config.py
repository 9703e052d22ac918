import logging
import os
from typing import Optional

from orchestration import JobLogger


def setup_logging(level_name: Optional[str] = None) -> None:
    """Configure basic logging for all modules."""
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def build_job_logger(console_debug: bool) -> JobLogger:
    """Job event sink, silent unless console debugging is switched on."""
    return JobLogger(enabled=console_debug, logger=logging.getLogger("csvload.jobs"))
