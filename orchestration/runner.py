"""Execution of a single job definition."""

import asyncio
import inspect
from datetime import datetime
from typing import Any, AsyncIterator, List, Optional

from .errors import FatalRecordError, GateTimeoutError
from .job import JobDefinition, JobResult, JobStatus
from .job_logger import JobLogger


async def _iterate_records(source: Any) -> AsyncIterator[Any]:
    """Iterate whatever a data source produced.

    Data sources may return an async iterable, an awaitable resolving to an
    iterable, or a plain iterable.
    """
    if inspect.isawaitable(source):
        source = await source

    if hasattr(source, "__aiter__"):
        try:
            async for record in source:
                yield record
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
    else:
        for record in source:
            yield record


class _RecordBatch:
    """Record tasks of one job run and the flag that stops new ones."""

    def __init__(self) -> None:
        self.tasks: List[asyncio.Task] = []
        self.aborted = asyncio.Event()

    def abort(self) -> None:
        """Stop taking records and cancel record tasks still in flight."""
        if self.aborted.is_set():
            return
        self.aborted.set()
        current = asyncio.current_task()
        for task in self.tasks:
            if task is not current and not task.done():
                task.cancel()


class JobRunner:
    """Runs one job to a terminal state without ever raising.

    The runner waits on the job's dependency gate, pulls records from the data
    source and starts one task per record. Record failures are logged and
    counted; a ``FatalRecordError`` abandons the rest of the job. The job's
    ``signals`` gate is opened on every path.
    """

    def __init__(self, job_logger: Optional[JobLogger] = None):
        """Initialize job runner.

        Args:
            job_logger: Sink for job events
        """
        self.job_logger = job_logger or JobLogger()

    async def run(self, job: JobDefinition) -> JobResult:
        """Run ``job`` and return its settled result.

        Args:
            job: Job definition to execute

        Returns:
            Job result with terminal status
        """
        result = JobResult(job_name=job.name, start_time=datetime.now())
        log = self.job_logger

        try:
            if not job.enabled:
                result.status = JobStatus.SKIPPED
                log.info(job.name, "job disabled, skipping", job.description)
                return result

            log.info(job.name, "running job", job.description)
            try:
                if job.depends_on is not None:
                    log.info(
                        job.name,
                        f"job has dependency, waiting on '{job.depends_on.name}'",
                        job.description,
                    )
                    await job.depends_on.wait(job.dependency_timeout)

                await self._process_records(job, result)

            except GateTimeoutError as e:
                result.status = JobStatus.FAILED
                result.error = str(e)
                log.error(job.name, "job dependency timed out", job.description, str(e))
            except Exception as e:
                result.status = JobStatus.FAILED
                result.error = str(e)
                log.error(job.name, "job failed", job.description, f"{type(e).__name__}: {e}")

        finally:
            result.end_time = datetime.now()
            if job.signals is not None:
                job.signals.open()
                log.info(job.name, "job complete, releasing dependent jobs", job.description)

        if result.status == JobStatus.COMPLETED:
            log.info(
                job.name,
                f"job completed: {result.records_succeeded}/{result.records_seen} records succeeded",
                job.description,
            )
        return result

    async def _process_records(self, job: JobDefinition, result: JobResult) -> None:
        """Start one task per record and wait for all of them to settle."""
        batch = _RecordBatch()
        records = _iterate_records(job.data_source())

        try:
            async for record in records:
                if batch.aborted.is_set():
                    break
                result.records_seen += 1
                batch.tasks.append(
                    asyncio.create_task(self._process_record(job, record, result, batch))
                )
        finally:
            try:
                await records.aclose()
            finally:
                if batch.tasks:
                    outcomes = await asyncio.gather(*batch.tasks, return_exceptions=True)
                    result.records_abandoned += sum(
                        1 for outcome in outcomes if isinstance(outcome, asyncio.CancelledError)
                    )

        if batch.aborted.is_set():
            result.status = JobStatus.FAILED
            result.unauthorized = True
            result.error = result.error or "remaining records abandoned after fatal record failure"
        else:
            result.status = JobStatus.COMPLETED

    async def _process_record(
        self, job: JobDefinition, record: Any, result: JobResult, batch: _RecordBatch
    ) -> None:
        log = self.job_logger
        log.info(job.name, "job record found", job.description, record)

        try:
            payload = job.build_payload(record)
            await job.action(payload)
        except FatalRecordError as e:
            result.records_failed += 1
            result.error = str(e)
            log.error(job.name, "skip remaining data due to fatal record failure", job.description, str(e))
            batch.abort()
        except Exception as e:
            result.records_failed += 1
            log.error(job.name, "job record failed", job.description, f"{type(e).__name__}: {e}")
        else:
            result.records_succeeded += 1
            log.info(job.name, "job record processed", job.description)
