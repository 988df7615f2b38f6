# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Record model shared by every formatting stage and emitter.

KEY CLASSES
-----------
Level : Ordered severity, most severe first
Caller : Function, file and line of the log call
LogRecord : One formatting unit (level, time, message, caller, error, fields)

"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum

__all__ = [
    "TRACE_LOGGING_LEVEL",
    "Caller",
    "Level",
    "LogRecord",
]

# stdlib logging has no TRACE; this is the conventional value below DEBUG.
TRACE_LOGGING_LEVEL = 5


class Level(IntEnum):
    """Severity levels, ordered from most to least severe.

    Attributes:
        PANIC: The process cannot continue at all.
        FATAL: Unrecoverable error, the process is about to exit.
        ERROR: An operation failed.
        WARNING: Something unexpected that did not stop the operation.
        INFO: General operational messages.
        DEBUG: Detailed diagnostics.
        TRACE: Fine-grained tracing.

    """

    PANIC = 0
    FATAL = 1
    ERROR = 2
    WARNING = 3
    INFO = 4
    DEBUG = 5
    TRACE = 6

    @property
    def label(self) -> str:
        """Lower-case name used in rendered output (``"error"``)."""
        return self.name.lower()

    @property
    def logging_level(self) -> int:
        """The matching stdlib ``logging`` level number."""
        return _TO_LOGGING[self]

    @classmethod
    def from_logging(cls, levelno: int) -> Level:
        """Map a stdlib ``logging`` level number onto a :class:`Level`."""
        if levelno > logging.CRITICAL:
            return cls.PANIC
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE

    @classmethod
    def parse(cls, text: str) -> Level:
        """Parse a level label such as ``"error"`` or ``"WARN"``."""
        name = text.strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown level {text!r}") from None


_TO_LOGGING: Mapping[Level, int] = {
    Level.PANIC: logging.CRITICAL + 10,
    Level.FATAL: logging.CRITICAL,
    Level.ERROR: logging.ERROR,
    Level.WARNING: logging.WARNING,
    Level.INFO: logging.INFO,
    Level.DEBUG: logging.DEBUG,
    Level.TRACE: TRACE_LOGGING_LEVEL,
}


@dataclass(frozen=True)
class Caller:
    """Location of the log call, as supplied by the logging facility."""

    function: str
    file: str
    line: int


@dataclass(frozen=True)
class LogRecord:
    """One formatting unit.

    Records are values: every pipeline stage returns a new record built with
    :func:`dataclasses.replace` instead of mutating its input.

    Attributes:
        level: Severity of the event.
        timestamp: When the event happened. Naive values are read as local time.
        message: The log message.
        caller: Where the log call was made, if known.
        error: Outermost layer of an attached error chain, if any.
        fields: Ad hoc field values; insertion order carries no meaning.
        call_stack: Rendered call-stack lines, filled by the call-stack stage.

    """

    level: Level
    timestamp: datetime
    message: str = ""
    caller: Caller | None = None
    error: BaseException | None = None
    fields: Mapping[str, object] = field(default_factory=dict)
    call_stack: tuple[str, ...] = ()

    def with_fields(self, **fields: object) -> LogRecord:
        """Return a copy with *fields* added (overriding existing names)."""
        return replace(self, fields={**self.fields, **fields})
