"""Pytest configuration and shared fixtures for loader tests."""

import csv
import logging
import os

# Add parent directory to path for imports
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from csvload.config import LoaderConfig
from orchestration import JobLogger

# Configure test logging
logging.basicConfig(level=logging.DEBUG)


@pytest.fixture
def job_logger():
    """Provide an enabled JobLogger."""
    return JobLogger(enabled=True, logger=logging.getLogger("tests.jobs"))


@pytest.fixture
def loader_config(tmp_path):
    """Provide a complete LoaderConfig pointing at temporary CSV paths."""
    return LoaderConfig(
        api_base_url="https://api.example.test",
        auth_url="https://login.example.test/token",
        auth_client_id="client-id",
        auth_client_secret="client-secret",
        auth_scope="api://default",
        rate_limit_tokens=100,
        rate_limit_interval=0.01,
        base_trans_csv=str(tmp_path / "basetrans.csv"),
        tax_header_csv=str(tmp_path / "taxheaders.csv"),
        tax_detail_csv=str(tmp_path / "taxdetails.csv"),
        exchange_rate_header_csv=str(tmp_path / "exchangeheaders.csv"),
        exchange_rate_detail_csv=str(tmp_path / "exchangedetails.csv"),
        client_csv=str(tmp_path / "client.csv"),
    )


@pytest.fixture
def write_csv():
    """Provide a helper that writes rows to a CSV file."""

    def _write(path: Any, rows: List[Dict[str, str]]) -> Path:
        path = Path(path)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)
        return path

    return _write
