"""
Logging configuration.

Configures loguru logger with stderr output and file rotation.
"""

import sys

from loguru import logger

from binary_mlm.config.settings import settings


def setup_logging(
    level: str | None = None, log_file: str | None = "logs/binary_mlm.log"
) -> None:
    """
    Configure logger sinks.

    Args:
        level: Log level (defaults to LOG_LEVEL setting)
        log_file: Rotating log file path, None to disable file output
    """
    level = (level or settings.log_level).upper()

    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.debug(f"Logging configured at level {level}")
