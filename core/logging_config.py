from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

CONTEXT_PREFIX = "ctx_"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``ctx_*`` extras are grouped under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            log_entry["source"] = f"{record.module}:{record.lineno}"
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        context = {
            key[len(CONTEXT_PREFIX):]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", formatter: Optional[logging.Formatter] = None, replace: bool = False) -> None:
    """Configure structured JSON logging to stdout.

    Leaves an already configured root logger alone unless ``replace`` is set.
    """
    root = logging.getLogger()
    if root.handlers and not replace:
        return

    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter or JSONFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger for a module."""
    return logging.getLogger(name)


def log_context(**fields: object) -> dict[str, object]:
    """Build an ``extra`` mapping that the formatter groups under ``context``.

    >>> log_context(block=1, routine="lifting")
    {'ctx_block': 1, 'ctx_routine': 'lifting'}
    """
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items()}
