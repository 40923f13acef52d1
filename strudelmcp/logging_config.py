"""Logging setup for processes embedding the resilience layer."""

import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> int:
    """Configure root logging.

    Args:
        level: Level name; defaults to settings.log_level, or DEBUG when
            settings.debug is enabled

    Returns:
        The numeric level applied
    """
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
    return numeric_level
