# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Field-name clash resolution and deterministic field ordering.

Every emitter writes a handful of fields of its own (``level``, ``time``,
``msg`` ...).  A detail field with one of those names is renamed with the
``fields.`` prefix instead of being overwritten or dropped.

Field order is weight based: a higher weight sorts earlier, unknown names
weigh 0, equal weights sort alphabetically, and names weighing
``DISABLED_FIELD_WEIGHT`` or less are left out.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType

from errfmt.config import FormatterConfig
from errfmt.record import LogRecord

__all__ = [
    "DEFAULT_FIELD_ORDER",
    "DISABLED_FIELD_WEIGHT",
    "FIELD_CLASH_PREFIX",
    "KEY_CALLSTACK",
    "KEY_ERROR",
    "KEY_FILE",
    "KEY_FUNC",
    "KEY_LEVEL",
    "KEY_MSG",
    "KEY_TIME",
    "RESERVED_FIELDS",
    "SYSLOG_FIELD_ORDER",
    "field_order",
    "prefix_field_clashes",
    "resolve_field_clashes",
    "sort_field_names",
]

KEY_LEVEL = "level"
KEY_TIME = "time"
KEY_FUNC = "func"
KEY_MSG = "msg"
KEY_FILE = "file"
KEY_ERROR = "error"
KEY_CALLSTACK = "callstack"

RESERVED_FIELDS: tuple[str, ...] = (KEY_LEVEL, KEY_TIME, KEY_FUNC, KEY_MSG, KEY_FILE, KEY_ERROR, KEY_CALLSTACK)
FIELD_CLASH_PREFIX = "fields."
DISABLED_FIELD_WEIGHT = -100


def field_order(weights: Mapping[str, int] | None = None, **overrides: int) -> Mapping[str, int]:
    """Build a read-only field order from *weights* and keyword *overrides*."""
    merged = dict(weights) if weights else {}
    merged.update(overrides)
    return MappingProxyType(merged)


# Similar to syslog: header-like fields first, call stack after everything.
DEFAULT_FIELD_ORDER: Mapping[str, int] = field_order(
    {
        KEY_LEVEL: 100,
        KEY_TIME: 90,
        KEY_FUNC: 80,
        KEY_ERROR: 70,
        KEY_MSG: 60,
        KEY_FILE: 40,
        KEY_CALLSTACK: -10,
    }
)

# level, time and msg live in the syslog header; file goes after the details.
SYSLOG_FIELD_ORDER: Mapping[str, int] = field_order(
    {
        KEY_FUNC: 80,
        KEY_ERROR: 70,
        KEY_FILE: -5,
        KEY_CALLSTACK: -10,
    }
)


def prefix_field_clashes(fields: Mapping[str, object], reserved: Iterable[str]) -> dict[str, object]:
    """Rename fields whose name is reserved.

    ``msg`` becomes ``fields.msg``.  If that name is taken too the prefix is
    repeated, so no value is ever overwritten.

    Args:
        fields: Field mapping to check; not modified.
        reserved: Names the emitter writes itself.

    Returns:
        A new dict with the same values, clashing names renamed.

    """
    reserved_names = frozenset(reserved)
    result: dict[str, object] = {}
    clashes: list[tuple[str, object]] = []
    for name, value in fields.items():
        if name in reserved_names:
            clashes.append((name, value))
        else:
            result[name] = value
    for name, value in clashes:
        renamed = FIELD_CLASH_PREFIX + name
        while renamed in result or renamed in reserved_names:
            renamed = FIELD_CLASH_PREFIX + renamed
        result[renamed] = value
    return result


def sort_field_names(names: Iterable[str], order: Mapping[str, int]) -> list[str]:
    """Order field names by descending weight, then alphabetically.

    Names whose weight is ``DISABLED_FIELD_WEIGHT`` or less are dropped.
    """
    kept = [name for name in names if order.get(name, 0) > DISABLED_FIELD_WEIGHT]
    return sorted(kept, key=lambda name: (-order.get(name, 0), name))


def resolve_field_clashes(record: LogRecord, config: FormatterConfig) -> LogRecord:
    """Rename the record's fields that clash with :data:`RESERVED_FIELDS`."""
    if not any(name in RESERVED_FIELDS for name in record.fields):
        return record
    return replace(record, fields=prefix_field_clashes(record.fields, RESERVED_FIELDS))
