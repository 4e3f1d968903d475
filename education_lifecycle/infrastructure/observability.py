"""Structured Logging — JSON formatter and setup for sweep observability.

Invariants:
    - Every line has timestamp, level, logger and message
    - Sweep context (operation_id, trigger, program, record_id, categories,
      batch_number, stats) is surfaced as top-level keys when present
    - Development format prefixes the operation id, so interleaved runs stay
      readable in a terminal
    - setup_logging is idempotent: calling it twice never duplicates lines

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - apscheduler/httpx/sqlalchemy are held at WARNING unless the service
      itself runs at DEBUG; their per-request chatter drowns the sweep lines
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "operation_id", "trigger", "reason", "program", "record_id",
    "old_category", "new_category", "batch_number", "error_code",
    "attempt", "stats", "path",
)

_CHATTY_LOGGERS = ("apscheduler", "httpx", "httpcore", "sqlalchemy.engine")

_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """One JSON object per line, sweep context lifted from `extra`."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class OperationTextFormatter(logging.Formatter):
    """Human-readable lines tagged with the sweep operation id when there is one."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s %(op_tag)s%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        op = record.__dict__.get("operation_id")
        record.op_tag = f"[{op}] " if op else ""
        return super().format(record)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure root logging for the service."""
    global _handler
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setFormatter(JSONFormatter() if fmt == "json" else OperationTextFormatter())
    root.addHandler(_handler)

    service_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(service_level)
    library_level = logging.DEBUG if service_level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
