# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Human-readable ``key=value`` line emitter."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping

from errfmt.config import FormatFlag, FormatterConfig
from errfmt.fields import DEFAULT_FIELD_ORDER, KEY_CALLSTACK
from errfmt.pipeline import append_call_stack, ordered_entries, prepare, record_entries
from errfmt.record import LogRecord
from errfmt.render import ValueKind, classify, compact_repr

_BARE_VALUE = re.compile(r"[A-Za-z0-9\-._/@^+]+")


def text_value(value: object) -> str:
    """Return the unquoted text of a field value.

    Booleans and ``None`` use their JSON spelling so the line reads the same
    as the JSON and syslog output.  Structured values are written
    positionally (see :func:`~errfmt.render.compact_repr`).
    """
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if classify(value) is ValueKind.STRUCTURED:
        return compact_repr(value)
    return str(value)


def quote_value(text: str) -> str:
    """Quote *text* unless it is a non-empty bare word."""
    if _BARE_VALUE.fullmatch(text):
        return text
    return json.dumps(text, ensure_ascii=False)


class TextEmitter:
    """Formats records as one line of ``key=value`` pairs.

    Example output::

        level=error time="2024-05-01T12:00:00+00:00" func=service.load error="load failed: boom" msg=failed

    With ``FormatFlag.CALLSTACK_ON_CONSOLE`` the call stack follows on
    tab-indented lines.
    """

    __slots__ = ("_config", "_order")

    def __init__(self, config: FormatterConfig | None = None, order: Mapping[str, int] = DEFAULT_FIELD_ORDER) -> None:
        """Create a text emitter.

        Args:
            config: Shared formatter configuration (defaults to no features).
            order: Field order used for every line.

        """
        self._config = config or FormatterConfig()
        self._order = order

    def format(self, record: LogRecord) -> bytes:
        """Return the formatted line (and console call stack) for *record*."""
        prepared = prepare(record, self._config)
        entries = record_entries(prepared, self._config)
        if FormatFlag.CALLSTACK_IN_FIELDS in self._config.flags and prepared.call_stack:
            entries[KEY_CALLSTACK] = list(prepared.call_stack)

        pairs = (f"{name}={quote_value(text_value(value))}" for name, value in ordered_entries(entries, self._order))
        text = " ".join(pairs) + "\n"
        if FormatFlag.CALLSTACK_ON_CONSOLE in self._config.flags:
            text = append_call_stack(text, prepared.call_stack)
        return text.encode("utf-8", "backslashreplace")
