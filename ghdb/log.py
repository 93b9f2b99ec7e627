"""
Logging setup for ghdb.

Library modules log through the standard logging module; the CLI routes
those records into loguru sinks.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger


LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward Loguru sinks."""
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "warning",
    log_file: Path | None = None,
    console: bool = True,
) -> None:
    """Configure loguru sinks and intercept standard logging."""
    level = level.upper()

    # Remove default loguru handler
    logger.remove()

    # The finder owns the terminal, so it logs to file only
    if console:
        logger.add(
            sys.stderr,
            level=level,
            colorize=True,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
        )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            rotation="10 MB",
            retention="1 week",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(logging.getLevelName(level), logging.INFO))
