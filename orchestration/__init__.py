"""In-process job orchestration for batch CSV-to-API loads.

Core Components:
    - Orchestrator: Launches every job concurrently and settles the batch
    - JobRunner: Runs one job, isolating record and job failures
    - DependencyGate: Single-fire signal ordering dependent jobs
    - RateLimiter: Shared ceiling on outbound calls per interval
    - JobLogger: Job-scoped log sink with an on/off switch
"""

from .errors import FatalRecordError, GateTimeoutError
from .gate import DependencyGate
from .job import BatchResult, JobDefinition, JobResult, JobStatus, Record
from .job_logger import JobLogger
from .orchestrator import Orchestrator
from .rate_limiter import RateLimiter
from .runner import JobRunner

__all__ = [
    # Core orchestration
    "Orchestrator",
    "JobRunner",
    "JobDefinition",
    "JobResult",
    "JobStatus",
    "BatchResult",
    "Record",
    # Synchronization and throttling
    "DependencyGate",
    "RateLimiter",
    # Logging
    "JobLogger",
    # Exception types
    "FatalRecordError",
    "GateTimeoutError",
]
