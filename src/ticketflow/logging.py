"""Structured JSON logging for ticketflow.

One JSON object per line in ticketflow.log beside the supplement, rotated at
5MB with 3 backups. The level comes from ``$TICKETFLOW_LOG_LEVEL`` (default
INFO). Modules log through ``logging.getLogger(__name__)`` and pass
structured fields via ``extra=``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILENAME = "ticketflow.log"
LOG_LEVEL_ENV_VAR = "TICKETFLOW_LOG_LEVEL"
LOGGER_NAME = "ticketflow"

_MAX_BYTES = 5 * 1024 * 1024  # 5MB
_BACKUP_COUNT = 3
_setup_lock = threading.Lock()

# LogRecord attribute (set via extra=) -> JSON field
_EXTRA_FIELDS: dict[str, str] = {
    "tool": "tool",
    "args_data": "args",
    "duration_ms": "duration_ms",
    "path": "path",
    "error": "error",
}


class JsonLineFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for attr, field in _EXTRA_FIELDS.items():
            if hasattr(record, attr):
                entry[field] = getattr(record, attr)
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = f"{type(exc).__name__}: {exc}"
        return json.dumps(entry, default=str)


def log_level() -> int:
    """Level named by $TICKETFLOW_LOG_LEVEL; unknown or unset names give INFO."""
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def setup_logging(log_dir: Path) -> logging.Logger:
    """Send the ``ticketflow`` logger to <log_dir>/ticketflow.log.

    Idempotent per target file (compared by absolute path, symlinks kept).
    Pointing at another directory swaps the handler, so one process never
    writes two logs.
    """
    logger = logging.getLogger(LOGGER_NAME)
    target = os.path.abspath(str(log_dir / LOG_FILENAME))

    with _setup_lock:
        current = _file_handlers(logger)
        if any(h.baseFilename == target for h in current):
            return logger

        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            target,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
            delay=True,
        )
        handler.setFormatter(JsonLineFormatter())
        for old in current:
            logger.removeHandler(old)
            old.close()
        logger.addHandler(handler)
        logger.setLevel(log_level())
    return logger


def shutdown_logging() -> None:
    """Detach and close the ticketflow file handler, if any."""
    logger = logging.getLogger(LOGGER_NAME)
    with _setup_lock:
        for h in _file_handlers(logger):
            logger.removeHandler(h)
            h.close()
