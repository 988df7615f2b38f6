# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Output formats for log records.

Each emitter is constructed with a :class:`~errfmt.config.FormatterConfig`
and a field order, and turns one :class:`~errfmt.record.LogRecord` into
bytes with ``format(record)``.

KEY CLASSES
-----------
TextEmitter    : ``key=value`` lines for humans.
JSONEmitter    : One JSON object per record.
SyslogEmitter  : RFC5424 lines with a ``details`` structured-data element.
"""

from errfmt.emitters._json import JSONEmitter
from errfmt.emitters._syslog import (
    DEFAULT_LEVEL_TO_SEVERITY,
    MSGID_DETAILS,
    MSGID_DETAILS_CALLS,
    SD_ID_CALLS,
    SD_ID_DETAILS,
    Facility,
    Severity,
    StructuredDataElement,
    SyslogConfig,
    SyslogEmitter,
    escape_param_value,
    fix_structured_data_name,
)
from errfmt.emitters._text import TextEmitter, quote_value, text_value

__all__ = [
    "DEFAULT_LEVEL_TO_SEVERITY",
    "MSGID_DETAILS",
    "MSGID_DETAILS_CALLS",
    "SD_ID_CALLS",
    "SD_ID_DETAILS",
    "Facility",
    "JSONEmitter",
    "Severity",
    "StructuredDataElement",
    "SyslogConfig",
    "SyslogEmitter",
    "TextEmitter",
    "escape_param_value",
    "fix_structured_data_name",
    "quote_value",
    "text_value",
]
