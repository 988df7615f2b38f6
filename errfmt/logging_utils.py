# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Adapters from logging frameworks onto errfmt emitters.

Provides :class:`ErrfmtFormatter`, a :class:`logging.Formatter` subclass,
and :class:`StructlogRenderer`, a structlog processor.  Both convert the
framework's record into a :class:`~errfmt.record.LogRecord` and hand it to an
emitter, so stdlib and structlog output match the HTTP problem bodies and
syslog lines produced for the same error.

All ``extra`` fields attached to a stdlib record (via ``LoggerAdapter`` or
per-call ``extra``) become record fields, no allowlist to maintain::

    import logging
    from errfmt.emitters import JSONEmitter
    from errfmt.logging_utils import ErrfmtFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(ErrfmtFormatter(JSONEmitter()))
    logging.getLogger().addHandler(handler)

With structlog::

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            StructlogRenderer(TextEmitter()),
        ],
    )
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from errfmt.emitters import TextEmitter
from errfmt.pipeline import Emitter
from errfmt.record import Caller, Level, LogRecord

__all__ = [
    "ErrfmtFormatter",
    "StructlogRenderer",
    "configure_structlog",
    "from_event_dict",
    "from_logging_record",
]

# Build the set of attribute names that every LogRecord has by default.
# Anything *not* in this set was injected via ``extra``.
_DEFAULT_RECORD_ATTRS: frozenset[str] = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()) | {
    "message",
    "asctime",
}

_STRUCTLOG_LEVEL_ALIASES = {
    "critical": Level.FATAL,
    "exception": Level.ERROR,
}


def _strip_newline(data: bytes) -> str:
    text = data.decode("utf-8")
    return text[:-1] if text.endswith("\n") else text


def from_logging_record(record: logging.LogRecord) -> LogRecord:
    """Convert a stdlib :class:`logging.LogRecord` into a :class:`LogRecord`.

    The caller function is reported as ``module.funcName``.  The error is the
    exception of ``exc_info``, if any.
    """
    error = record.exc_info[1] if record.exc_info else None
    return LogRecord(
        level=Level.from_logging(record.levelno),
        timestamp=datetime.fromtimestamp(record.created).astimezone(),
        message=record.getMessage(),
        caller=Caller(f"{record.module}.{record.funcName}", record.pathname, record.lineno),
        error=error,
        fields={k: v for k, v in record.__dict__.items() if k not in _DEFAULT_RECORD_ATTRS},
    )


class ErrfmtFormatter(logging.Formatter):
    """Formatter that renders records with an errfmt emitter.

    The emitter's trailing newline is removed because the handler writes its
    own terminator.  Console call-stack lines (``CALLSTACK_ON_CONSOLE``) are
    kept.
    """

    def __init__(self, emitter: Emitter | None = None) -> None:
        """Create a formatter; the emitter defaults to a :class:`TextEmitter`."""
        super().__init__()
        self.emitter = emitter or TextEmitter()

    def format(self, record: logging.LogRecord) -> str:
        """Format *record* with the configured emitter."""
        return _strip_newline(self.emitter.format(from_logging_record(record)))


def _event_level(name: object) -> Level:
    text = str(name).lower()
    if text in _STRUCTLOG_LEVEL_ALIASES:
        return _STRUCTLOG_LEVEL_ALIASES[text]
    return Level.parse(text)


def _event_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    return datetime.now(timezone.utc)


def _event_error(exc_info: object) -> BaseException | None:
    if isinstance(exc_info, BaseException):
        return exc_info
    if isinstance(exc_info, tuple):
        return exc_info[1]
    if exc_info:
        return sys.exc_info()[1]
    return None


def from_event_dict(event_dict: EventDict, method_name: str = "info") -> LogRecord:
    """Convert a structlog event dict into a :class:`LogRecord`.

    Consumes ``event``, ``level``, ``timestamp``, ``exc_info`` and the
    ``CallsiteParameterAdder`` keys; every remaining key is a field.  Without
    a ``level`` key the level comes from *method_name*.
    """
    data = dict(event_dict)
    level = _event_level(data.pop("level", method_name))
    timestamp = _event_timestamp(data.pop("timestamp", None))
    message = data.pop("event", "")
    error = _event_error(data.pop("exc_info", None))

    caller = None
    if "func_name" in data:
        module = data.pop("module", "")
        func = data.pop("func_name")
        caller = Caller(
            f"{module}.{func}" if module else func,
            data.pop("pathname", data.pop("filename", "")),
            int(data.pop("lineno", 0)),
        )

    return LogRecord(
        level=level,
        timestamp=timestamp,
        message="" if message is None else str(message),
        caller=caller,
        error=error,
        fields=data,
    )


class StructlogRenderer:
    """structlog processor rendering the event with an errfmt emitter.

    Must be the last processor in the chain: it returns a string, which
    structlog passes to the logger as the message.
    """

    def __init__(self, emitter: Emitter | None = None) -> None:
        """Create a renderer; the emitter defaults to a :class:`TextEmitter`."""
        self.emitter = emitter or TextEmitter()

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        """Render *event_dict*."""
        return _strip_newline(self.emitter.format(from_event_dict(event_dict, method_name)))


def configure_structlog(
    emitter: Emitter | None = None,
    level: int = logging.INFO,
    file: IO[str] | None = None,
) -> None:
    """Configure structlog to render every event with *emitter*.

    Args:
        emitter: Emitter for the events; defaults to a :class:`TextEmitter`.
        level: Minimum stdlib level number that is rendered.
        file: Output stream, defaults to ``sys.stderr``.

    """
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.PATHNAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            ),
            StructlogRenderer(emitter),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=file or sys.stderr),
        cache_logger_on_first_use=False,
    )
