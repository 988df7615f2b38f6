# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""RFC5424 syslog emitter.

Produces one line per record::

    <PRI>1 TIMESTAMP HOSTNAME APP-NAME PROCID MSGID [details ...][calls ...] MSG

Every detail becomes a structured-data param whose value is the JSON text of
the field value, so types survive the trip (``12`` vs ``"12"``).  With
``FormatFlag.TRIM_JSON_DQUOTE`` the quotes around JSON strings are dropped
for readability; that output can no longer be parsed back into typed values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType

from errfmt.callstack import caller_prettyfier
from errfmt.config import FormatFlag, FormatterConfig
from errfmt.errors import error_message
from errfmt.fields import KEY_CALLSTACK, KEY_ERROR, KEY_FILE, KEY_FUNC, SYSLOG_FIELD_ORDER
from errfmt.pipeline import append_call_stack, format_timestamp, ordered_entries, prepare
from errfmt.record import Level, LogRecord
from errfmt.render import json_marshal

SD_ID_DETAILS = "details"
SD_ID_CALLS = "calls"
MSGID_DETAILS = "DETAILS_MSG"
MSGID_DETAILS_CALLS = "DETAILS_CALLS_MSG"
SYSLOG_VERSION = 1
NIL_VALUE = "-"


class Facility(IntEnum):
    """RFC5424 facility codes."""

    KERN = 0
    USER = 1
    MAIL = 2
    DAEMON = 3
    AUTH = 4
    SYSLOG = 5
    LPR = 6
    NEWS = 7
    UUCP = 8
    CRON = 9
    AUTHPRIV = 10
    FTP = 11
    NTP = 12
    SECURITY = 13
    CONSOLE = 14
    SOLARIS_CRON = 15
    LOCAL0 = 16
    LOCAL1 = 17
    LOCAL2 = 18
    LOCAL3 = 19
    LOCAL4 = 20
    LOCAL5 = 21
    LOCAL6 = 22
    LOCAL7 = 23


class Severity(IntEnum):
    """RFC5424 severity codes."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFORMATIONAL = 6
    DEBUG = 7


DEFAULT_LEVEL_TO_SEVERITY: Mapping[Level, Severity] = MappingProxyType(
    {
        Level.PANIC: Severity.ALERT,
        Level.FATAL: Severity.CRITICAL,
        Level.ERROR: Severity.ERROR,
        Level.WARNING: Severity.WARNING,
        Level.INFO: Severity.NOTICE,
        Level.DEBUG: Severity.INFORMATIONAL,
        Level.TRACE: Severity.DEBUG,
    }
)


def fix_structured_data_name(name: str) -> str:
    """Sanitize *name* to the RFC5424 SD-NAME character class.

    Every UTF-8 byte outside printable US-ASCII, and ``=``, space, ``]`` and
    ``"``, is replaced with ``_``.  The result is stable under reapplication.
    """
    return "".join(
        "_" if b < 0x21 or b > 0x7E or b in b'= ]"' else chr(b) for b in name.encode("utf-8", "surrogatepass")
    )


def escape_param_value(value: str) -> str:
    r"""Escape ``\``, ``"`` and ``]`` in an SD-PARAM value."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("]", "\\]")


@dataclass
class StructuredDataElement:
    """An RFC5424 SD-ELEMENT with JSON-encoded param values."""

    id: str
    params: list[tuple[str, str]] = field(default_factory=list)

    def append(self, name: str, value: object, trim_json_dquote: bool = False) -> None:
        """Add a param; *value* is JSON-marshalled and *name* sanitized."""
        json_value = json_marshal(value)
        if trim_json_dquote and len(json_value) >= 2 and json_value.startswith('"') and json_value.endswith('"'):
            json_value = json_value[1:-1]
        self.params.append((fix_structured_data_name(name), json_value))

    def __str__(self) -> str:
        """Render as ``[id name="value" ...]``."""
        if not self.params:
            return f"[{self.id}]"
        params = " ".join(f'{name}="{escape_param_value(value)}"' for name, value in self.params)
        return f"[{self.id} {params}]"


@dataclass(frozen=True)
class SyslogConfig:
    """Header settings for :class:`SyslogEmitter`.

    Attributes:
        facility: Facility combined with the level severity into PRI.
        hostname: HOSTNAME header field (``-`` when empty).
        app_name: APP-NAME header field (``-`` when empty).
        proc_id: PROCID header field (``-`` when empty).
        msg_id: Fixed MSGID; when empty it is ``DETAILS_MSG``, or
            ``DETAILS_CALLS_MSG`` for records carrying a ``calls`` element.
        level_to_severity: Level to RFC5424 severity table.

    """

    facility: Facility = Facility.USER
    hostname: str = ""
    app_name: str = ""
    proc_id: str = ""
    msg_id: str = ""
    level_to_severity: Mapping[Level, Severity] = field(default_factory=lambda: DEFAULT_LEVEL_TO_SEVERITY)


class SyslogEmitter:
    """Formats records as RFC5424 syslog messages.

    The ``details`` element holds ``func``, ``error``, the detail fields in
    field-policy order and finally ``file``.  A call stack (with
    ``FormatFlag.CALLSTACK_IN_FIELDS``) goes into a separate ``calls``
    element and switches the default MSGID.
    """

    __slots__ = ("_config", "_order", "_syslog")

    def __init__(
        self,
        config: FormatterConfig | None = None,
        syslog: SyslogConfig | None = None,
        order: Mapping[str, int] = SYSLOG_FIELD_ORDER,
    ) -> None:
        """Create a syslog emitter.

        Args:
            config: Shared formatter configuration (defaults to no features).
            syslog: Header settings.
            order: Order of params inside the ``details`` element.

        """
        self._config = config or FormatterConfig()
        self._syslog = syslog or SyslogConfig()
        self._order = order

    def priority(self, level: Level) -> int:
        """Return the PRI value for *level*."""
        return int(self._syslog.facility) * 8 + int(self._syslog.level_to_severity[level])

    def format(self, record: LogRecord) -> bytes:
        """Return the syslog line (and console call stack) for *record*."""
        prepared = prepare(record, self._config)
        flags = self._config.flags
        trim = FormatFlag.TRIM_JSON_DQUOTE in flags

        entries: dict[str, object] = dict(prepared.fields)
        if prepared.error is not None:
            entries[KEY_ERROR] = error_message(prepared.error)
        if prepared.caller is not None:
            entries[KEY_FUNC], entries[KEY_FILE] = caller_prettyfier(prepared.caller, self._config.module_prefixes)

        details = StructuredDataElement(SD_ID_DETAILS)
        for name, value in ordered_entries(entries, self._order):
            details.append(name, value, trim)
        elements = [details]

        default_msg_id = MSGID_DETAILS
        if FormatFlag.CALLSTACK_IN_FIELDS in flags and prepared.call_stack:
            calls = StructuredDataElement(SD_ID_CALLS)
            calls.append(KEY_CALLSTACK, list(prepared.call_stack), trim)
            elements.append(calls)
            default_msg_id = MSGID_DETAILS_CALLS

        header = " ".join(
            [
                f"<{self.priority(prepared.level)}>{SYSLOG_VERSION}",
                format_timestamp(prepared.timestamp, "microseconds"),
                self._syslog.hostname or NIL_VALUE,
                self._syslog.app_name or NIL_VALUE,
                self._syslog.proc_id or NIL_VALUE,
                self._syslog.msg_id or default_msg_id,
            ]
        )
        text = f"{header} {''.join(str(element) for element in elements)}"
        if prepared.message:
            text += f" {prepared.message}"
        text += "\n"
        if FormatFlag.CALLSTACK_ON_CONSOLE in flags:
            text = append_call_stack(text, prepared.call_stack)
        return text.encode("utf-8", "backslashreplace")
