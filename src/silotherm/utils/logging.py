"""Structured JSON logging for silotherm.

Every record is emitted as one JSON object per line on stderr, so the
scenario CLI can keep stdout for its own JSON summary while diagnostics
stay machine-readable.

The default level comes from the ``SILOTHERM_LOG_LEVEL`` environment
variable (``INFO`` when unset).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


# LogRecord attributes that are always present and therefore not "extra" fields.
_STANDARD_RECORD_ATTRS: frozenset[str] = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "id", "levelname", "levelno", "lineno", "module",
    "msecs", "message", "msg", "name", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "thread",
    "threadName", "taskName",
})


def _default_level() -> int:
    name = os.environ.get("SILOTHERM_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class _JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
                log_obj[key] = value

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        # inf margins are legal values here; json.dumps writes them as Infinity
        return json.dumps(log_obj, default=str)


class StructuredLogger:
    """Thin wrapper around a stdlib Logger that emits JSON-formatted records.

    Usage::

        logger = get_logger("silotherm.simulation")
        logger.info("Run complete", steps=5760, controller="PID")

    Keyword arguments are merged into the JSON object next to the
    timestamp / level / name / message fields.
    """

    def __init__(self, name: str, level: int | None = None) -> None:
        self._logger = logging.getLogger(name)
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(_JSONFormatter())
            self._logger.addHandler(handler)
            self._logger.propagate = False
        self._logger.setLevel(_default_level() if level is None else level)

    def debug(self, msg: str, **extra: Any) -> None:
        self._logger.debug(msg, extra=extra or None)

    def info(self, msg: str, **extra: Any) -> None:
        self._logger.info(msg, extra=extra or None)

    def warning(self, msg: str, **extra: Any) -> None:
        self._logger.warning(msg, extra=extra or None)

    def error(self, msg: str, **extra: Any) -> None:
        self._logger.error(msg, extra=extra or None)

    def exception(self, msg: str, **extra: Any) -> None:
        self._logger.exception(msg, extra=extra or None)

    def set_level(self, level: int) -> None:
        self._logger.setLevel(level)

    @property
    def name(self) -> str:
        return self._logger.name


_loggers: dict[str, StructuredLogger] = {}


def get_logger(name: str, level: int | None = None) -> StructuredLogger:
    """Return the named StructuredLogger, creating it on first use.

    Args:
        name: Logger name, usually the module's ``__name__``.
        level: Explicit level; when omitted the ``SILOTHERM_LOG_LEVEL``
               environment variable decides.
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, level=level)
    elif level is not None:
        _loggers[name].set_level(level)
    return _loggers[name]
