"""
Logging setup.

Configures loguru sinks for the collector process.
"""

import sys

from loguru import logger

from collector.config.settings import settings


def setup_logging() -> None:
    """Configure stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level.upper(),
            encoding="utf-8",
        )

    logger.info("Starting factory token collector...")
