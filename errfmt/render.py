# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Per-value rendering rules.

Field values are arbitrary Python objects.  Instead of dispatching on
concrete types at every output site, each value is classified once into a
closed set of kinds (:class:`ValueKind`) and rendered from that:

- errors are replaced by their chain message (never a traceback)
- structured values are optionally rendered with their field names
- strings, numbers, booleans and ``None`` pass through unchanged

JSON conversion (:func:`json_marshal`) is shared by the JSON, syslog and
problem emitters so a value looks the same in every format.
"""

from __future__ import annotations

import dataclasses
import json
import numbers
from collections.abc import Mapping, Set
from dataclasses import replace
from datetime import date, datetime, time
from enum import Enum, auto

from errfmt.config import FormatFlag, FormatterConfig
from errfmt.errors import error_message
from errfmt.record import LogRecord

__all__ = [
    "ValueKind",
    "classify",
    "compact_repr",
    "json_default",
    "json_marshal",
    "json_safe",
    "render_field_values",
    "render_value",
    "verbose_repr",
]


class ValueKind(Enum):
    """Rendering category of a field value."""

    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    NULL = auto()
    ERROR = auto()
    STRUCTURED = auto()


def classify(value: object) -> ValueKind:
    """Return the :class:`ValueKind` of *value*."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, numbers.Number):
        return ValueKind.NUMBER
    if isinstance(value, BaseException):
        return ValueKind.ERROR
    return ValueKind.STRUCTURED


def _public_attrs(obj: object) -> dict[str, object]:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj) if not f.name.startswith("_")}
    return {k: v for k, v in vars(obj).items() if not k.startswith("_")}


def verbose_repr(value: object) -> str:
    """Render a structured value with its field names.

    Dataclasses and plain objects render as ``Name(field=value, ...)`` with
    private attributes left out; mappings, sequences and objects without
    attributes fall back to ``repr``.
    """
    if isinstance(value, Mapping | list | tuple | Set) or not (
        dataclasses.is_dataclass(value) or hasattr(value, "__dict__")
    ):
        return repr(value)
    attrs = ", ".join(f"{name}={attr!r}" for name, attr in _public_attrs(value).items())
    return f"{type(value).__name__}({attrs})"


def _compact_item(value: object) -> str:
    kind = classify(value)
    if kind is ValueKind.STRING:
        return str(value)
    if kind is ValueKind.BOOLEAN or kind is ValueKind.NULL:
        return json.dumps(value)
    if kind is ValueKind.ERROR:
        return error_message(value)  # type: ignore[arg-type]
    if kind is ValueKind.STRUCTURED:
        return compact_repr(value)
    return str(value)


def compact_repr(value: object) -> str:
    """Render a structured value positionally, without field names.

    Dataclasses and plain objects render as ``{v1 v2 ...}`` from their public
    attributes, lists and tuples as ``[a b ...]``.  Dates, enums, mappings and
    sets keep their ``str``/``repr`` form.
    """
    if isinstance(value, Enum | datetime | date | time):
        return str(value)
    if isinstance(value, list | tuple):
        return "[" + " ".join(_compact_item(item) for item in value) + "]"
    if (
        isinstance(value, Mapping | Set | type)
        or not (dataclasses.is_dataclass(value) or hasattr(value, "__dict__"))
    ):
        return repr(value)
    return "{" + " ".join(_compact_item(attr) for attr in _public_attrs(value).values()) + "}"


def render_value(value: object, verbose: bool = False) -> object:
    """Render one field value.

    Args:
        value: The raw value.
        verbose: Render structured values with field names.

    Returns:
        The chain message for errors, :func:`verbose_repr` text for structured
        values when *verbose* is set, otherwise *value* unchanged.

    """
    if isinstance(value, BaseException):
        return error_message(value)
    if verbose and classify(value) is ValueKind.STRUCTURED:
        return verbose_repr(value)
    return value


def render_field_values(record: LogRecord, config: FormatterConfig) -> LogRecord:
    """Render every field value of *record* (see :func:`render_value`)."""
    verbose = FormatFlag.PRINT_STRUCT_FIELD_NAMES in config.flags
    rendered = {name: render_value(value, verbose) for name, value in record.fields.items()}
    return replace(record, fields=rendered)


def json_default(obj: object) -> object:
    """``default`` hook for :func:`json.dumps` covering common structured values.

    Raises:
        TypeError: For objects with no JSON representation.

    """
    if isinstance(obj, datetime | date | time):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Set | tuple):
        return list(obj)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, BaseException):
        return error_message(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _public_attrs(obj)
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return _public_attrs(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_marshal(value: object) -> str:
    """Return the compact JSON text of *value*.

    A value that cannot be marshalled is replaced by the text of the
    marshalling error, so one bad field never breaks a whole record.
    """
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False, default=json_default)
    except (TypeError, ValueError, RecursionError) as exc:
        return str(exc)


def json_safe(value: object) -> object:
    """Return *value* if it marshals to JSON, else the marshalling error text."""
    try:
        json.dumps(value, allow_nan=False, default=json_default)
    except (TypeError, ValueError, RecursionError) as exc:
        return str(exc)
    return value
