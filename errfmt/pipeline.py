# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""The formatting pipeline shared by every emitter.

A record flows through an ordered tuple of pure stages, each taking and
returning a :class:`~errfmt.record.LogRecord`::

    extract_error_details -> attach_call_stack -> resolve_field_clashes -> render_field_values

after which an emitter adds its own entries (``level``, ``time``, ``msg``
...), orders them with its field order and serializes the result.  Because
stages are plain functions they can be run and tested one at a time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Protocol

from errfmt.callstack import attach_call_stack, caller_prettyfier
from errfmt.config import FormatterConfig
from errfmt.errors import error_message
from errfmt.extract import extract_error_details
from errfmt.fields import (
    KEY_ERROR,
    KEY_FILE,
    KEY_FUNC,
    KEY_LEVEL,
    KEY_MSG,
    KEY_TIME,
    resolve_field_clashes,
    sort_field_names,
)
from errfmt.record import LogRecord
from errfmt.render import render_field_values

__all__ = [
    "STAGES",
    "Emitter",
    "Stage",
    "append_call_stack",
    "format_timestamp",
    "ordered_entries",
    "prepare",
    "record_entries",
]

Stage = Callable[[LogRecord, FormatterConfig], LogRecord]

STAGES: tuple[Stage, ...] = (
    extract_error_details,
    attach_call_stack,
    resolve_field_clashes,
    render_field_values,
)


class Emitter(Protocol):
    """Serializes one record into one output format."""

    def format(self, record: LogRecord) -> bytes:
        """Return the formatted bytes for *record*."""
        ...


def prepare(record: LogRecord, config: FormatterConfig, stages: tuple[Stage, ...] = STAGES) -> LogRecord:
    """Run *record* through every stage in order."""
    for stage in stages:
        record = stage(record, config)
    return record


def format_timestamp(ts: datetime, timespec: str = "seconds") -> str:
    """Format *ts* as RFC3339; naive datetimes are taken as local time."""
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts.isoformat(timespec=timespec)


def record_entries(record: LogRecord, config: FormatterConfig, timespec: str = "seconds") -> dict[str, object]:
    """Return the record's own entries plus its (prepared) fields.

    The record's own entries are ``level``, ``time``, ``msg`` and, when
    present, ``error``, ``func`` and ``file``.  Run :func:`prepare` first so
    that no field can shadow one of them.
    """
    entries: dict[str, object] = dict(record.fields)
    entries[KEY_LEVEL] = record.level.label
    entries[KEY_TIME] = format_timestamp(record.timestamp, timespec)
    entries[KEY_MSG] = record.message
    if record.error is not None:
        entries[KEY_ERROR] = error_message(record.error)
    if record.caller is not None:
        entries[KEY_FUNC], entries[KEY_FILE] = caller_prettyfier(record.caller, config.module_prefixes)
    return entries


def ordered_entries(entries: Mapping[str, object], order: Mapping[str, int]) -> list[tuple[str, object]]:
    """Return ``(name, value)`` pairs of *entries* in field-policy order."""
    return [(name, entries[name]) for name in sort_field_names(entries, order)]


def append_call_stack(text: str, lines: list[str] | tuple[str, ...]) -> str:
    """Append call-stack lines for console display.

    Each frame goes on its own line indented with a tab, after making sure
    *text* ends with a newline.
    """
    if not lines:
        return text
    if text and not text.endswith("\n"):
        text += "\n"
    return text + "".join(f"\t{line}\n" for line in lines)
