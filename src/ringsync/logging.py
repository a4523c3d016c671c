"""Logging configuration for ringsync.

Everything logs under the "ringsync" namespace through module-level
loggers; this only attaches handlers to that namespace.
"""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

LOGGER_NAME = "ringsync"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_for(verbose: int) -> int:
    # File-only logging (verbose == 0) records INFO
    return logging.DEBUG if verbose >= 2 else logging.INFO


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Attach stderr and/or file handlers to the ringsync logger.

    Args:
        verbose: 0 for no console output, 1 for INFO, 2+ for DEBUG
        log_file: Also write log records to this file
    """
    handlers: list[logging.Handler] = []
    if verbose > 0:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    if not handlers:
        return

    level = _level_for(verbose)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    started = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("ringsync starting | %s | level=%s", started, logging.getLevelName(level))
