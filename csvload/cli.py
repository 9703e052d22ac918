"""Command-line entry point for running the load batch."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .app import run_batch
from .config import ConfigManager, ConfigurationError
from .errors import AuthenticationError
from .logging_config import setup_logging


def main(argv: Optional[List[str]] = None) -> int:
    """Load configuration and run every enabled job once.

    Returns:
        Process exit code
    """
    parser = argparse.ArgumentParser(description="Load CSV files into the API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file; real environment variables take precedence (default: .env)",
    )
    args = parser.parse_args(argv)

    logger = logging.getLogger("csvload")

    try:
        config = ConfigManager().load_config(env_file=args.env_file)
    except ConfigurationError as e:
        setup_logging()
        logger.error(str(e))
        return 1

    setup_logging(config.log_level)

    try:
        result = asyncio.run(run_batch(config))
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    for job_result in result.results.values():
        logger.info(f"{job_result.job_name}: {job_result.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
