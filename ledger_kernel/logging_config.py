"""
Structured JSON logging for the ledger kernel.

Every record is rendered as one JSON object per line.  Commands bind the
acting user and the entry or declaration they work on through
``LogContext.bind``; the bound fields are stamped on every record emitted
inside the block, including ``entry_rejected`` warnings raised deep in the
validation pipeline.

Usage:
    configure_logging()
    with LogContext.bind(actor_id=actor_id, entry_id=entry.id):
        logger.info("entry_validated", extra={"seq": entry.seq})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from typing import Any

_ROOT_LOGGER = "ledger_kernel"

_bound_fields: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default={})


class LogContext:
    """Command-scoped log fields, safe across threads and tasks."""

    FIELDS = ("actor_id", "entry_id", "declaration_id")

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_bound_fields.get())

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Bind fields for the duration of the block; the previous values come
        back on exit.  None values and names outside FIELDS are ignored.
        """
        updates = {
            name: str(value)
            for name, value in fields.items()
            if name in cls.FIELDS and value is not None
        }
        token = _bound_fields.set({**_bound_fields.get(), **updates})
        try:
            yield cls
        finally:
            _bound_fields.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # UUID, Decimal and enum members read best as their string form
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if name != "code" and not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """
    Render a record as a JSON line.

    Key precedence: record header, then bound context, then ``extra``.  An
    ``extra`` key that clashes with a bound field is dropped.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        }
        payload.update(extras)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``ledger_kernel`` namespace."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Attach a JSON handler to the ``ledger_kernel`` logger.

    Idempotent: later calls leave the first handler in place and return it.
    Records do not propagate to the root logger.
    """
    global _installed_handler
    with _lock:
        if _installed_handler is not None:
            return _installed_handler
        installed = handler or logging.StreamHandler(stream or sys.stderr)
        installed.setFormatter(StructuredFormatter())

        root = logging.getLogger(_ROOT_LOGGER)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(installed)
        _installed_handler = installed
        return installed


def reset_logging() -> None:
    """Detach the handler installed by configure_logging.  For tests."""
    global _installed_handler
    with _lock:
        root = logging.getLogger(_ROOT_LOGGER)
        if _installed_handler is not None:
            root.removeHandler(_installed_handler)
            _installed_handler = None
        root.setLevel(logging.WARNING)
