"""Logging setup."""

import logging
from typing import Optional

from backup_storage.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level name, defaults to settings.log_level

    Returns:
        The ``backup_storage`` logger
    """
    logger = logging.getLogger("backup_storage")
    logger.setLevel((level or settings.log_level).upper())

    if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
