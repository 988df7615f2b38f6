# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Structured formatting of errors and log records as text, JSON, RFC5424 syslog and RFC7807 problems."""

import logging

from errfmt.callstack import (
    attach_call_stack,
    build_call_stack,
    caller_prettyfier,
    find_stack_tracer,
    format_frame,
    function_name,
    function_name_short,
)
from errfmt.config import CALLSTACK_FLAGS, CallStackPolicy, FormatFlag, FormatterConfig, ModulePrefixes
from errfmt.emitters import (
    Facility,
    JSONEmitter,
    Severity,
    StructuredDataElement,
    SyslogConfig,
    SyslogEmitter,
    TextEmitter,
    fix_structured_data_name,
)
from errfmt.errors import (
    CallStackFrame,
    StackTracer,
    WrappedError,
    error_message,
    iter_chain,
    new_error,
    with_details,
    with_message,
    with_stack,
    wrap,
)
from errfmt.extract import error_details, extract_error_details
from errfmt.fields import (
    DEFAULT_FIELD_ORDER,
    DISABLED_FIELD_WEIGHT,
    RESERVED_FIELDS,
    SYSLOG_FIELD_ORDER,
    field_order,
    resolve_field_clashes,
    sort_field_names,
)
from errfmt.http import (
    HTTPProblem,
    build_http_problem,
    level_for_status,
    problem_responder,
    render_http_problem,
    request_info,
    write_http_problem,
)
from errfmt.logging_utils import ErrfmtFormatter, StructlogRenderer, configure_structlog, from_logging_record
from errfmt.pipeline import STAGES, Emitter, prepare
from errfmt.record import Caller, Level, LogRecord
from errfmt.render import ValueKind, classify, compact_repr, json_marshal, render_field_values, render_value

__all__ = [
    # Records
    "Caller",
    "Level",
    "LogRecord",
    # Errors
    "CallStackFrame",
    "StackTracer",
    "WrappedError",
    "error_message",
    "iter_chain",
    "new_error",
    "with_details",
    "with_message",
    "with_stack",
    "wrap",
    # Configuration
    "CALLSTACK_FLAGS",
    "CallStackPolicy",
    "FormatFlag",
    "FormatterConfig",
    "ModulePrefixes",
    # Pipeline stages
    "STAGES",
    "Emitter",
    "attach_call_stack",
    "build_call_stack",
    "caller_prettyfier",
    "error_details",
    "extract_error_details",
    "find_stack_tracer",
    "format_frame",
    "function_name",
    "function_name_short",
    "prepare",
    "render_field_values",
    "resolve_field_clashes",
    # Fields and values
    "DEFAULT_FIELD_ORDER",
    "DISABLED_FIELD_WEIGHT",
    "RESERVED_FIELDS",
    "SYSLOG_FIELD_ORDER",
    "ValueKind",
    "classify",
    "compact_repr",
    "field_order",
    "json_marshal",
    "render_value",
    "sort_field_names",
    # Emitters
    "Facility",
    "JSONEmitter",
    "Severity",
    "StructuredDataElement",
    "SyslogConfig",
    "SyslogEmitter",
    "TextEmitter",
    "fix_structured_data_name",
    # HTTP
    "HTTPProblem",
    "build_http_problem",
    "level_for_status",
    "problem_responder",
    "render_http_problem",
    "request_info",
    "write_http_problem",
    # Logging
    "ErrfmtFormatter",
    "StructlogRenderer",
    "configure_structlog",
    "from_logging_record",
]

# Attach NullHandler to the package logger so library users don't get
# "No handler found" warnings.
logging.getLogger("errfmt").addHandler(logging.NullHandler())
