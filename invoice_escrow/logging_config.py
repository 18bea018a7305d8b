"""Structured JSON logging for the invoice escrow ledger."""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterator

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_VARS: dict[str, ContextVar[Any]] = {
    "actor": ContextVar("log_actor", default=None),
    "invoice_id": ContextVar("log_invoice_id", default=None),
}


class LogContext:
    """
    Operation-scoped fields stamped on every record: who acted, on which
    invoice.  Backed by contextvars, so concurrent threads and tasks do not
    see each other's values.
    """

    @staticmethod
    def _given(actor: str | None, invoice_id: int | None) -> dict[str, Any]:
        fields = {"actor": actor, "invoice_id": invoice_id}
        return {name: val for name, val in fields.items() if val is not None}

    @classmethod
    def set(cls, *, actor: str | None = None, invoice_id: int | None = None) -> None:
        """Set context fields. Only non-None values are updated."""
        for name, val in cls._given(actor, invoice_id).items():
            _CONTEXT_VARS[name].set(val)

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        """Return all non-None context fields as a dict."""
        ctx = {name: var.get() for name, var in _CONTEXT_VARS.items()}
        return {name: val for name, val in ctx.items() if val is not None}

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(
        cls, *, actor: str | None = None, invoice_id: int | None = None
    ) -> Iterator[None]:
        """Set fields for the duration of a block; None leaves a field as is."""
        tokens = [
            (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(val))
            for name, val in cls._given(actor, invoice_id).items()
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}

# Set by the formatter itself; an extra with one of these names is dropped.
_RESERVED_KEYS = _STDLIB_KEYS | {"ts", "level", "logger"}


class _JSONEncoder(json.JSONEncoder):
    """datetimes as ISO-8601, enums by value, anything else via str()."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return str(obj)


class StructuredFormatter(logging.Formatter):
    """
    Formats each log record as a single JSON line.

    Field precedence, lowest first: LogContext, then the record's ``extra``.
    A call site that passes ``invoice_id`` explicitly wins over the bound one.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, val) for key, val in vars(record).items() if key not in _RESERVED_KEYS
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            # reason, invoice_id, caller, ... from EscrowError subclasses
            for k, v in vars(exc).items():
                if not k.startswith("_"):
                    payload[f"exc_{k}"] = v
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "invoice_escrow"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the invoice_escrow namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler (stderr unless given) to the invoice_escrow
    logger.  Only the first call after import or reset_logging() has effect.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.setLevel(level)
    package_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler()
    h.setFormatter(StructuredFormatter())
    package_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.WARNING)
