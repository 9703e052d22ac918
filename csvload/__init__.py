"""CSV-to-API batch loader.

Reads rows from CSV files and posts them to the target API through the
``orchestration`` core:
    - LoaderConfig / ConfigManager: Environment and .env configuration
    - ApiClient: Rate-limited, bearer-authenticated aiohttp client
    - Authenticator / TokenProvider: Client-credentials token handling
    - build_jobs: The static job catalog
    - run_batch: Runs one complete batch
"""

from .app import run_batch
from .auth import Authenticator, TokenProvider
from .client import ApiClient
from .config import ConfigManager, ConfigurationError, LoaderConfig
from .errors import (
    ApiError,
    AuthenticationError,
    LookupFailedError,
    RequestFailedError,
    TransportError,
    UnauthorizedError,
)
from .jobs import JOB_NAMES, build_jobs
from .sources import MalformedCsvError, chunked, csv_records

__version__ = "0.1.0"

__all__ = [
    "run_batch",
    "build_jobs",
    "JOB_NAMES",
    "ApiClient",
    "Authenticator",
    "TokenProvider",
    "ConfigManager",
    "LoaderConfig",
    "csv_records",
    "chunked",
    # Exception types
    "ConfigurationError",
    "ApiError",
    "AuthenticationError",
    "LookupFailedError",
    "RequestFailedError",
    "TransportError",
    "UnauthorizedError",
    "MalformedCsvError",
]
