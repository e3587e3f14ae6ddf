"""Structured JSON logging for the data layer."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "relativeCreated", "exc_info",
    "exc_text", "stack_info", "lineno", "funcName", "pathname",
    "filename", "module", "levelno", "levelname", "message",
    "msecs", "processName", "process", "threadName", "thread",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Context passed through ``extra=`` (resource, source, cache key, ...)
    is emitted as top-level fields next to the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the ``facsched`` logger with JSON output on stderr.

    Args:
        level: Log level name ("DEBUG", "INFO", ...). Unknown names fall
            back to INFO.
        log_file: Optional file that receives the same records.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("facsched")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Repeated calls (one per CLI command in tests) must not stack handlers
    logger.handlers.clear()

    formatter = JSONFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
