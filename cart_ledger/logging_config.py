"""
Centralized logging configuration for the cart ledger.

Usage:
    from cart_ledger.logging_config import logger

    logger.info("Row %s inserted", row_id)
"""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "cart_ledger"


def _get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Attach a stdout handler to the package logger (once) and set its level."""
    package_logger = logging.getLogger(LOGGER_NAME)

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    package_logger.setLevel(level if level is not None else _get_log_level())

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    return package_logger


logger = setup_logging()

__all__ = ["LOG_FORMAT", "LOGGER_NAME", "logger", "setup_logging"]
