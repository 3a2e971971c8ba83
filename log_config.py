"""Loguru sinks shared by the service and the command line tools."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default handler with stderr (and optionally file) sinks."""
    level = (level or os.getenv("LINE_TIMES_LOG_LEVEL", "INFO")).upper()
    logger.remove()
    logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)

    log_file = os.getenv("LINE_TIMES_LOG_FILE")
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            rotation="10 MB",
            retention="10 files",
            enqueue=True,
            backtrace=True,
            diagnose=True,
            level=level,
        )
