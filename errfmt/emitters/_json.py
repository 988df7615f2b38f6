# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""JSON document emitter."""

from __future__ import annotations

import json
from collections.abc import Mapping

from errfmt.config import FormatFlag, FormatterConfig
from errfmt.fields import DEFAULT_FIELD_ORDER, KEY_CALLSTACK
from errfmt.pipeline import append_call_stack, ordered_entries, prepare, record_entries
from errfmt.record import LogRecord
from errfmt.render import json_default, json_safe


class JSONEmitter:
    """Formats records as a single JSON object per line.

    Members appear in field-policy order.  Angle brackets and ampersands are
    written as-is and non-ASCII text is not escaped.  A value that cannot be
    marshalled is replaced by the marshalling error's message.
    """

    __slots__ = ("_config", "_indent", "_order")

    def __init__(
        self,
        config: FormatterConfig | None = None,
        order: Mapping[str, int] = DEFAULT_FIELD_ORDER,
        indent: int | None = None,
    ) -> None:
        """Create a JSON emitter.

        Args:
            config: Shared formatter configuration (defaults to no features).
            order: Member order.
            indent: Pretty-print indent; ``None`` writes one compact line.

        """
        self._config = config or FormatterConfig()
        self._order = order
        self._indent = indent

    def format(self, record: LogRecord) -> bytes:
        """Return the JSON document (and console call stack) for *record*."""
        prepared = prepare(record, self._config)
        entries = record_entries(prepared, self._config)
        if FormatFlag.CALLSTACK_IN_FIELDS in self._config.flags and prepared.call_stack:
            entries[KEY_CALLSTACK] = list(prepared.call_stack)

        obj = {name: json_safe(value) for name, value in ordered_entries(entries, self._order)}
        text = json.dumps(obj, ensure_ascii=False, indent=self._indent, allow_nan=False, default=json_default) + "\n"
        if FormatFlag.CALLSTACK_ON_CONSOLE in self._config.flags:
            text = append_call_stack(text, prepared.call_stack)
        return text.encode("utf-8", "backslashreplace")
