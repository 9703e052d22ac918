"""Configuration management with validation and .env support."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from dotenv import dotenv_values


class ConfigurationError(ValueError):
    """Raised when required settings are missing or invalid."""

    pass


# Required before any job runs; AUTH_SCOPE may be blank but must be present.
_REQUIRED_NON_EMPTY = ("api_base_url", "auth_url", "auth_client_id", "auth_client_secret")
_REQUIRED_PRESENT = ("auth_scope",)


@dataclass
class LoaderConfig:
    """Configuration class with validation and type safety."""

    # Remote API
    api_base_url: str = ""
    request_timeout: float = 30.0

    # Authentication (OAuth2 client credentials)
    auth_url: str = ""
    auth_client_id: str = ""
    auth_client_secret: str = ""
    auth_scope: Optional[str] = None
    token_refresh_interval: float = 45 * 60.0

    # Rate limiting, shared by every job
    rate_limit_tokens: int = 1
    rate_limit_interval: float = 0.001  # seconds

    # Orchestration
    dependency_timeout: Optional[float] = None
    enabled_jobs: Optional[List[str]] = None
    bulk_chunk_size: int = 500

    # Logging
    console_debug: bool = False
    log_level: str = "INFO"
    heartbeat_interval: float = 15.0

    # CSV sources
    base_trans_csv: str = "./basetrans.csv"
    tax_header_csv: str = "./taxheaders.csv"
    tax_detail_csv: str = "./taxdetails.csv"
    exchange_rate_header_csv: str = "./exchangeheaders.csv"
    exchange_rate_detail_csv: str = "./exchangedetails.csv"
    client_csv: str = "./client.csv"

    # Endpoint paths, appended to api_base_url
    base_trans_bulk_path: str = "/basetrans/v1/basetransaction"
    base_trans_path: str = "/transdata/v1/transaction/base"
    tax_rate_header_path: str = "/contract/v1/mqs/taxrateheader"
    tax_rate_detail_path: str = "/contract/v1/mqs/taxratedetails"
    exchange_rate_header_path: str = "/contract/v1/mqs/exchangeRateHeader"
    exchange_rate_detail_path: str = "/contract/v1/mqs/exchangeRateDetails"
    client_path: str = "/contract/v1/mqs/client"

    def __post_init__(self):
        """Check value ranges after initialization."""
        self._validate_ranges()

    def _validate_ranges(self) -> None:
        if self.rate_limit_tokens < 1:
            raise ConfigurationError("rate_limit_tokens must be at least 1")
        if self.rate_limit_interval <= 0:
            raise ConfigurationError("rate_limit_interval must be positive")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.token_refresh_interval <= 0:
            raise ConfigurationError("token_refresh_interval must be positive")
        if self.heartbeat_interval <= 0:
            raise ConfigurationError("heartbeat_interval must be positive")
        if self.bulk_chunk_size < 1:
            raise ConfigurationError("bulk_chunk_size must be at least 1")
        if self.dependency_timeout is not None and self.dependency_timeout <= 0:
            raise ConfigurationError("dependency_timeout must be positive")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")

    def validate(self) -> None:
        """Ensure endpoint and credential settings are present.

        Raises:
            ConfigurationError: Naming every missing setting
        """
        missing = [name for name in _REQUIRED_NON_EMPTY if not (getattr(self, name) or "").strip()]
        missing += [name for name in _REQUIRED_PRESENT if getattr(self, name) is None]
        if missing:
            env_names = ", ".join(_ENV_NAMES[name] for name in missing)
            raise ConfigurationError(
                f"Not set up! Missing required settings: {env_names}. "
                "Create a .env file (see .env.sample) or export the variables."
            )

    def url(self, path: str) -> str:
        """Join an endpoint path onto the API base URL."""
        return f"{self.api_base_url.rstrip('/')}{path}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LoaderConfig":
        """Create configuration from dictionary with type conversion.

        Args:
            data: Configuration dictionary

        Returns:
            LoaderConfig instance
        """
        known = {f.name for f in fields(cls)}
        converted: Dict[str, Any] = {}

        for key, value in data.items():
            if key not in known:
                continue
            try:
                if key in ("rate_limit_tokens", "bulk_chunk_size"):
                    converted[key] = int(value)
                elif key in (
                    "rate_limit_interval",
                    "request_timeout",
                    "token_refresh_interval",
                    "heartbeat_interval",
                ):
                    converted[key] = float(value)
                elif key == "dependency_timeout":
                    converted[key] = float(value) if value not in (None, "") else None
                elif key == "console_debug":
                    converted[key] = _parse_bool(value)
                elif key == "enabled_jobs":
                    converted[key] = _parse_list(value)
                else:
                    converted[key] = value
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {key}: {value!r} ({e})")

        return cls(**converted)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ValueError("enabled_jobs must be list or comma-separated string")


# Environment variable -> config field
ENV_MAPPINGS: Dict[str, str] = {
    "LB_URL": "api_base_url",
    "REQUEST_TIMEOUT": "request_timeout",
    "AUTH_URL": "auth_url",
    "AUTH_CLIENT_ID": "auth_client_id",
    "AUTH_CLIENT_SECRET": "auth_client_secret",
    "AUTH_SCOPE": "auth_scope",
    "TOKEN_REFRESH_INTERVAL": "token_refresh_interval",
    "RATE_LIMIT_TOKENS": "rate_limit_tokens",
    "RATE_LIMIT_INTERVAL": "rate_limit_interval",
    "DEPENDENCY_TIMEOUT": "dependency_timeout",
    "ENABLED_JOBS": "enabled_jobs",
    "BULK_CHUNK_SIZE": "bulk_chunk_size",
    "CONSOLE_DEBUG": "console_debug",
    "LOG_LEVEL": "log_level",
    "HEARTBEAT_INTERVAL": "heartbeat_interval",
    "BASE_TRANS_CSV": "base_trans_csv",
    "TAX_HEADER_CSV": "tax_header_csv",
    "TAX_DTL_CSV": "tax_detail_csv",
    "EXCHANGE_RATE_HEADER_CSV": "exchange_rate_header_csv",
    "EXCHANGE_RATE_DTL_CSV": "exchange_rate_detail_csv",
    "CLIENT_CSV": "client_csv",
    "BASE_TRANS_BULK_URL": "base_trans_bulk_path",
    "BASE_TRANS_URL": "base_trans_path",
    "TAX_RATE_HEADER_URL": "tax_rate_header_path",
    "TAX_RATE_DETAIL_URL": "tax_rate_detail_path",
    "EXCHANGE_RATE_HEADER_URL": "exchange_rate_header_path",
    "EXCHANGE_RATE_DETAIL_URL": "exchange_rate_detail_path",
    "CLIENT_URL": "client_path",
}

_ENV_NAMES: Dict[str, str] = {field_name: env for env, field_name in ENV_MAPPINGS.items()}


class ConfigManager:
    """Loads configuration from a .env file and the process environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.logger = logging.getLogger(__name__)

    def load_config(
        self,
        env_file: Optional[Union[str, Path]] = ".env",
        validate: bool = True,
    ) -> LoaderConfig:
        """Load configuration; real environment variables win over the .env file.

        Args:
            env_file: Path to a dotenv file (skipped when missing or None)
            validate: Whether to require endpoint and credential settings

        Returns:
            LoaderConfig instance

        Raises:
            ConfigurationError: If settings are missing or invalid
        """
        values: Dict[str, str] = {}
        if env_file:
            values.update(self._load_from_file(env_file))
        for env_var in ENV_MAPPINGS:
            if env_var in self._environ:
                values[env_var] = self._environ[env_var]

        config_data = {
            field_name: values[env_var]
            for env_var, field_name in ENV_MAPPINGS.items()
            if env_var in values
        }

        config = LoaderConfig.from_dict(config_data)
        if validate:
            config.validate()

        return config

    def _load_from_file(self, env_file: Union[str, Path]) -> Dict[str, str]:
        path = Path(env_file)
        if not path.exists():
            self.logger.debug(f"No dotenv file at {path}")
            return {}

        values = {key: value for key, value in dotenv_values(path).items() if key and value is not None}
        self.logger.info(f"Loaded configuration from {path}")
        return values
