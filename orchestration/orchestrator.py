"""Batch coordinator that runs every configured job concurrently."""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence

from .job import BatchResult, JobDefinition, JobResult, JobStatus
from .job_logger import JobLogger
from .runner import JobRunner


class Orchestrator:
    """Runs a static list of jobs as one batch.

    All jobs are launched together and the batch waits for every one of them
    to settle. Individual failures are reported through the job logger and the
    returned ``BatchResult``; nothing is re-raised. Gates signalled by disabled
    jobs are opened up front so their dependents never wait on work that will
    not happen.
    """

    def __init__(
        self,
        jobs: Sequence[JobDefinition] = (),
        runner: Optional[JobRunner] = None,
        job_logger: Optional[JobLogger] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize orchestrator.

        Args:
            jobs: Default job definitions for ``run()``
            runner: Job runner (one is built from ``job_logger`` when omitted)
            job_logger: Sink for controller and job events
            logger: Optional logger instance
        """
        self.jobs = list(jobs)
        self.job_logger = job_logger or JobLogger()
        self.runner = runner or JobRunner(self.job_logger)
        self.logger = logger or logging.getLogger(__name__)

    async def run(self, jobs: Optional[Sequence[JobDefinition]] = None) -> BatchResult:
        """Run all jobs and wait for every one of them to settle.

        Args:
            jobs: Job definitions to run (defaults to the constructor's list)

        Returns:
            Batch result keyed by job name
        """
        jobs = list(self.jobs if jobs is None else jobs)
        self._check_unique_names(jobs)

        batch = BatchResult(start_time=datetime.now())
        self.job_logger.info("controller", "workflow jobs are initializing", data=len(jobs))

        for job in jobs:
            if not job.enabled and job.signals is not None:
                job.signals.open()
                self.job_logger.info(
                    "controller", "disabled job complete, releasing dependent jobs", job.name
                )

        outcomes = await asyncio.gather(
            *(self.runner.run(job) for job in jobs), return_exceptions=True
        )

        for job, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                # The runner never raises; this is a defect, report it as a failure.
                self.logger.error(f"Job {job.name} raised unexpectedly: {outcome!r}")
                outcome = JobResult(
                    job_name=job.name, status=JobStatus.FAILED, error=str(outcome)
                )
                if job.signals is not None:
                    job.signals.open()
            batch.results[job.name] = outcome

        batch.end_time = datetime.now()
        self.logger.info(
            f"Batch finished: {batch.completed} completed, {batch.failed} failed, "
            f"{batch.skipped} skipped in {batch.duration:.2f}s"
        )
        return batch

    @staticmethod
    def _check_unique_names(jobs: Sequence[JobDefinition]) -> None:
        seen = set()
        for job in jobs:
            if job.name in seen:
                raise ValueError(f"Duplicate job name: {job.name}")
            seen.add(job.name)
