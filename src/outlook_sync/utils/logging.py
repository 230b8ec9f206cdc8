"""Logging configuration."""

import logging
import sys

from outlook_sync.config import get_settings


def setup_logging() -> None:
    """Configure logging for the service."""
    settings = get_settings()

    # Create logger
    logger = logging.getLogger("outlook_sync")
    logger.setLevel(settings.log_level)

    # worker_process_init may fire more than once per process
    if logger.handlers:
        return

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(settings.log_level)

    # Create formatter
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)
