"""Batch application wiring configuration, credentials and jobs together."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

import aiohttp

from orchestration import BatchResult, JobDefinition, JobLogger, Orchestrator, RateLimiter

from .auth import Authenticator, TokenProvider
from .client import ApiClient
from .config import LoaderConfig
from .jobs import build_jobs
from .logging_config import build_job_logger

logger = logging.getLogger(__name__)

JobsFactory = Callable[[LoaderConfig, ApiClient], List[JobDefinition]]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def heartbeat(interval: float) -> None:
    """Log a mark line every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        logger.info(f"> MARK --- {_timestamp()} ---")


async def run_batch(
    config: LoaderConfig,
    job_logger: Optional[JobLogger] = None,
    jobs_factory: JobsFactory = build_jobs,
) -> BatchResult:
    """Authenticate, run every job once and release all resources.

    Args:
        config: Validated loader configuration
        job_logger: Sink for job events (built from config when omitted)
        jobs_factory: Builds the job list from config and client

    Returns:
        Settled batch result

    Raises:
        ConfigurationError: If the job selection is invalid
        AuthenticationError: If the initial token request fails
    """
    job_logger = job_logger or build_job_logger(config.console_debug)
    token_provider = TokenProvider()
    rate_limiter = RateLimiter(tokens=config.rate_limit_tokens, interval=config.rate_limit_interval)
    timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    try:
        async with ApiClient(rate_limiter, token_provider, timeout=timeout, job_logger=job_logger) as client:
            jobs = jobs_factory(config, client)

            authenticator = Authenticator(config, token_provider, session=client.session)
            job_logger.info("global", "starting authentication", "auth")
            await authenticator.authenticate()
            job_logger.info("global", "authentication complete", "auth")

            background = [
                asyncio.create_task(authenticator.refresh_forever(config.token_refresh_interval)),
                asyncio.create_task(heartbeat(config.heartbeat_interval)),
            ]
            logger.info(f"> Ready, --- {_timestamp()} ---")

            try:
                orchestrator = Orchestrator(jobs, job_logger=job_logger)
                return await orchestrator.run()
            finally:
                for task in background:
                    task.cancel()
                await asyncio.gather(*background, return_exceptions=True)
    finally:
        rate_limiter.close()
