"""Static catalog of CSV-to-API load jobs."""

import logging
from typing import Any, Callable, Dict, List, Optional

from orchestration import DependencyGate, JobDefinition

from .client import ApiClient
from .config import ConfigurationError, LoaderConfig
from .sources import chunked, csv_records
from .transforms import DetailRecord, as_is, to_detail_record, wrap_chunk, wrap_record

logger = logging.getLogger(__name__)

BASE_TRANSACTIONS_BULK = "base-transactions-bulk"
BASE_TRANSACTIONS = "base-transactions"
TAX_RATE_HEADERS = "tax-rate-headers"
TAX_RATE_DETAILS = "tax-rate-details"
EXCHANGE_RATE_HEADERS = "exchange-rate-headers"
EXCHANGE_RATE_DETAILS = "exchange-rate-details"
CLIENTS = "clients"

# Jobs that run when ENABLED_JOBS is not set
DEFAULT_ENABLED = frozenset({BASE_TRANSACTIONS_BULK})

JOB_NAMES = (
    BASE_TRANSACTIONS_BULK,
    BASE_TRANSACTIONS,
    TAX_RATE_HEADERS,
    TAX_RATE_DETAILS,
    EXCHANGE_RATE_HEADERS,
    EXCHANGE_RATE_DETAILS,
    CLIENTS,
)


def _csv_source(path: str) -> Callable[[], Any]:
    return lambda: csv_records(path)


def _poster(client: ApiClient, url: str) -> Callable[[Any], Any]:
    async def post(payload: Any) -> Any:
        return await client.post(url, payload)

    return post


def _detail_poster(
    client: ApiClient, header_query_url: str, lookup_key: str, id_field: str, detail_url: str
) -> Callable[[DetailRecord], Any]:
    """Resolve a detail row's header key, then post the detail row."""

    async def post_detail(detail: DetailRecord) -> Any:
        header_key = await client.lookup_field(header_query_url, lookup_key, detail.header_ref, id_field)
        return await client.post(detail_url, wrap_record(detail.with_header_key(header_key)))

    return post_detail


def resolve_enabled(config: LoaderConfig) -> Dict[str, bool]:
    """Decide which catalog jobs run this invocation.

    Raises:
        ConfigurationError: If ENABLED_JOBS names an unknown job
    """
    if config.enabled_jobs is None:
        return {name: name in DEFAULT_ENABLED for name in JOB_NAMES}

    unknown = sorted(set(config.enabled_jobs) - set(JOB_NAMES))
    if unknown:
        raise ConfigurationError(
            f"Unknown job name(s) in ENABLED_JOBS: {', '.join(unknown)}. "
            f"Known jobs: {', '.join(JOB_NAMES)}"
        )
    wanted = set(config.enabled_jobs)
    return {name: name in wanted for name in JOB_NAMES}


def build_jobs(
    config: LoaderConfig,
    client: ApiClient,
    dependency_timeout: Optional[float] = None,
) -> List[JobDefinition]:
    """Build the job list for one batch.

    Args:
        config: Loader configuration
        client: API client shared by every job
        dependency_timeout: Override for the configured gate timeout

    Returns:
        Job definitions in catalog order
    """
    enabled = resolve_enabled(config)
    timeout = dependency_timeout if dependency_timeout is not None else config.dependency_timeout

    tax_headers_loaded = DependencyGate("taxrateheader")
    exchange_headers_loaded = DependencyGate("exchangeheader")

    tax_header_url = config.url(config.tax_rate_header_path)
    exchange_header_url = config.url(config.exchange_rate_header_path)

    jobs = [
        JobDefinition(
            name=BASE_TRANSACTIONS_BULK,
            description="bulk load base transactions from csv to lb",
            enabled=enabled[BASE_TRANSACTIONS_BULK],
            data_source=lambda: chunked(csv_records(config.base_trans_csv), config.bulk_chunk_size),
            transform=wrap_chunk,
            action=_poster(client, config.url(config.base_trans_bulk_path)),
        ),
        JobDefinition(
            name=BASE_TRANSACTIONS,
            description="load base transactions from csv to lb",
            enabled=enabled[BASE_TRANSACTIONS],
            data_source=_csv_source(config.base_trans_csv),
            transform=as_is,
            action=_poster(client, config.url(config.base_trans_path)),
        ),
        JobDefinition(
            name=TAX_RATE_HEADERS,
            description="load tax rate headers from csv to lb",
            enabled=enabled[TAX_RATE_HEADERS],
            data_source=_csv_source(config.tax_header_csv),
            transform=wrap_record,
            action=_poster(client, tax_header_url),
            signals=tax_headers_loaded,
        ),
        JobDefinition(
            name=TAX_RATE_DETAILS,
            description="load tax rate details from csv to lb",
            enabled=enabled[TAX_RATE_DETAILS],
            data_source=_csv_source(config.tax_detail_csv),
            transform=to_detail_record,
            action=_detail_poster(
                client,
                f"{tax_header_url}/query?size=1&page=0",
                lookup_key="taxRateId",
                id_field="rateKey",
                detail_url=config.url(config.tax_rate_detail_path),
            ),
            depends_on=tax_headers_loaded,
            dependency_timeout=timeout,
        ),
        JobDefinition(
            name=EXCHANGE_RATE_HEADERS,
            description="load exchange rate headers from csv to lb",
            enabled=enabled[EXCHANGE_RATE_HEADERS],
            data_source=_csv_source(config.exchange_rate_header_csv),
            transform=wrap_record,
            action=_poster(client, exchange_header_url),
            signals=exchange_headers_loaded,
        ),
        JobDefinition(
            name=EXCHANGE_RATE_DETAILS,
            description="load exchange rate details from csv to lb",
            enabled=enabled[EXCHANGE_RATE_DETAILS],
            data_source=_csv_source(config.exchange_rate_detail_csv),
            transform=to_detail_record,
            action=_detail_poster(
                client,
                f"{exchange_header_url}/query?size=1&page=0",
                lookup_key="exchangeRateId",
                id_field="headerKey",
                detail_url=config.url(config.exchange_rate_detail_path),
            ),
            depends_on=exchange_headers_loaded,
            dependency_timeout=timeout,
        ),
        JobDefinition(
            name=CLIENTS,
            description="load clients from csv to lb",
            enabled=enabled[CLIENTS],
            data_source=_csv_source(config.client_csv),
            transform=wrap_record,
            action=_poster(client, config.url(config.client_path)),
        ),
    ]

    logger.info(
        f"Built {len(jobs)} jobs, enabled: {', '.join(job.name for job in jobs if job.enabled) or 'none'}"
    )
    return jobs
