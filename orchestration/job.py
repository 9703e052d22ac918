"""Job definitions and per-run results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, Optional

from .gate import DependencyGate

Record = Dict[str, Any]

DataSource = Callable[[], AsyncIterable[Any]]
Action = Callable[[Any], Awaitable[Any]]
Transform = Callable[[Any], Any]


class JobStatus(Enum):
    """Terminal job status."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class JobDefinition:
    """Static description of one job.

    ``data_source`` produces the records; ``transform`` (identity when unset)
    turns each record into the payload handed to ``action``. ``depends_on`` is
    waited on before the data source is touched and ``signals`` is opened once
    the job reaches a terminal state, whatever that state is.
    """

    name: str
    data_source: DataSource
    action: Action
    enabled: bool = True
    transform: Optional[Transform] = None
    depends_on: Optional[DependencyGate] = None
    signals: Optional[DependencyGate] = None
    dependency_timeout: Optional[float] = None  # seconds, None = no limit
    description: str = ""

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Job name cannot be empty")
        if self.dependency_timeout is not None and self.dependency_timeout <= 0:
            raise ValueError("dependency_timeout must be positive")

    def build_payload(self, record: Any) -> Any:
        """Apply the job's transform to one record."""
        if self.transform is None:
            return record
        return self.transform(record)


@dataclass
class JobResult:
    """Outcome of one job run."""

    job_name: str
    status: Optional[JobStatus] = None
    records_seen: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    records_abandoned: int = 0
    unauthorized: bool = False
    error: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    @property
    def success(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def failed(self) -> bool:
        return self.status == JobStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_name": self.job_name,
            "status": self.status.value if self.status else None,
            "records_seen": self.records_seen,
            "records_succeeded": self.records_succeeded,
            "records_failed": self.records_failed,
            "records_abandoned": self.records_abandoned,
            "unauthorized": self.unauthorized,
            "error": self.error,
            "duration": self.duration,
        }


@dataclass
class BatchResult:
    """Settled results of every job in one batch."""

    results: Dict[str, JobResult] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def count(self, status: JobStatus) -> int:
        return sum(1 for result in self.results.values() if result.status == status)

    @property
    def completed(self) -> int:
        return self.count(JobStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return self.count(JobStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(JobStatus.SKIPPED)

    @property
    def duration(self) -> Optional[float]:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def __getitem__(self, job_name: str) -> JobResult:
        return self.results[job_name]
