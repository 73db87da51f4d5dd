"""Logging configuration for badge-issuer.

Output mode is picked by LOG_JSON:

  text  one readable line per record, for local dev and `docker logs`.
        WARNING and above get a [file:line] suffix.
  json  one JSON object per line for log aggregation.  The request id and
        the badge fields passed via ``extra=`` (badge_id, key_id, algorithm)
        become top-level keys.

The request id lives in a ContextVar set by RequestContextMiddleware.  It
is copied onto records by a filter on the stdout handler: filters on the
root *logger* never see records propagated from child loggers.

Private keys and signed JWTs are never passed to a logger
(tests/api/test_log_secrets.py).
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_TEXT_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%dT%H:%M:%S%z"

_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


class _ContainerFormatter(logging.Formatter):
    """Single-line text formatter for container stdout."""

    def __init__(self) -> None:
        super().__init__(fmt=_TEXT_FMT, datefmt=_DATE_FMT)
        # Separate style objects: swapping _style._fmt per record would race
        # between threads sharing the handler.
        self._located = logging.PercentStyle(_TEXT_FMT + "  [%(filename)s:%(lineno)d]")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = super().formatTime(record, datefmt)
        # 2025-06-15T09:00:00+0000 -> 2025-06-15T09:00:00.123+0000
        return f"{stamp[:-5]}.{int(record.msecs):03d}{stamp[-5:]}"

    def formatMessage(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return self._located.format(record)
        return super().formatMessage(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter."""

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "badge_id",
        "badge_type",
        "key_id",
        "algorithm",
        "error_type",
    )

    def __init__(self) -> None:
        super().__init__(datefmt=_DATE_FMT)

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in self._CONTEXT_FIELDS
            if getattr(record, name, None) not in (None, "-")
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Send all logging to stdout at ``level_name`` (debug/info/warning/error).

    Unknown level names fall back to INFO.  Calling it again replaces the
    previous handler.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Server and client chatter only when it matters.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
