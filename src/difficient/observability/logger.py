"""Structured JSON logger for difficient.

Every log record is emitted as a single-line JSON object so it can be
consumed by log aggregation pipelines without additional parsing.

Typical structured output::

    {"ts": "2026-10-16T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "difficient.engine", "message": "apply rejected",
     "op": "apply", "code": "SHAPE_MISMATCH", "path": ["items", 3]}

Usage::

    from difficient.observability import get_logger

    log = get_logger()
    log.info("delta computed", extra={"extra_fields": {"shape": "fields"}})

    # Or create a child logger for a sub-module
    log = get_logger("difficient.sequence")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    The formatter produces a JSON object with the following guaranteed keys:

    * ``ts`` -- ISO-8601 UTC timestamp
    * ``level`` -- Python log level name (``DEBUG``, ``INFO``, ...)
    * ``logger`` -- Logger name
    * ``message`` -- Formatted log message

    Extra structured fields passed via ``extra={"extra_fields": {...}}``
    are merged into the top-level JSON object.  ``exc_info`` and
    ``stack_info`` are serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# ---------------------------------------------------------------------------
# Internal registry -- one handler per logger name so that ``get_logger``
# is idempotent even when called from multiple threads/modules.
# ---------------------------------------------------------------------------
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "difficient",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"difficient"``.
    level:
        Minimum log level.  Accepts an ``int`` (e.g. ``logging.INFO``) or a
        case-insensitive string (``"INFO"``).  Defaults to ``WARNING``:
        diffing is a hot path and per-call debug records are opt-in.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger instance with a :class:`StructuredFormatter` handler
        attached.  Repeated calls with the same *name* return the same
        logger and do **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        # Prevent duplicate messages when a parent logger (e.g. root) also
        # has handlers configured.
        logger.propagate = False

        _configured_loggers.add(name)

    return logger
