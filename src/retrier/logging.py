"""Logging setup for the retrier package and its CLI."""

from __future__ import annotations

import logging as py_logging
import logging.handlers as py_handlers
import os
import sys
from pathlib import Path
from typing import TextIO

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
LOG_LEVEL_ENV = "RETRIER_LOG_LEVEL"
LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3
_STREAM_FORMAT = "retrier %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def resolve_level(level: str | None = None) -> int:
    """Map a level name to a logging level; ``None`` reads ``RETRIER_LOG_LEVEL``."""
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "").strip() or "INFO"
    return LOG_LEVELS.get(level.upper(), py_logging.INFO)


def _file_handler(log_file: str | Path) -> py_logging.Handler | None:
    log_path = Path(log_file).expanduser().resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return py_handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError:
        return None


def configure_logging(
    level: str | None = None,
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Route the ``retrier`` logger to ``stream`` and, optionally, a rotating file.

    The file is capped at ``LOG_FILE_MAX_BYTES`` with ``LOG_FILE_BACKUPS``
    rotated copies and records DEBUG attempts whatever the console level.
    """
    resolved = resolve_level(level)

    logger = py_logging.getLogger("retrier")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(py_logging.Formatter(_STREAM_FORMAT))
    logger.addHandler(console)

    file_handler = _file_handler(log_file) if log_file else None
    if file_handler is not None:
        file_handler.setLevel(py_logging.DEBUG)
        file_handler.setFormatter(py_logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(py_logging.DEBUG if file_handler is not None else resolved)
    logger.propagate = False
    return logger
