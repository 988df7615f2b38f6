# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for errfmt.

Formats a log record given as JSON on stdin in any of the supported output
formats, and sanitizes RFC5424 SD-NAMEs.

Usage::

    echo '{"level": "error", "msg": "failed", "error": "boom"}' | errfmt format -f syslog
    echo '{"error": {"message": "load", "details": {"id": 7}, "cause": "boom"}}' \\
        | errfmt format -f problem --status 404 --callstack
    errfmt sd-name 'K2 with space'

The record object accepts ``level``, ``time`` (RFC3339), ``msg``,
``fields`` (object), ``caller`` (``function``/``file``/``line``) and
``error``.  ``error`` is either a string or an object with ``message``,
``details`` and an optional nested ``cause``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any

import typer

from errfmt.config import CallStackPolicy, FormatFlag, FormatterConfig
from errfmt.emitters import Facility, JSONEmitter, SyslogConfig, SyslogEmitter, TextEmitter, fix_structured_data_name
from errfmt.errors import WrappedError, new_error
from errfmt.http import render_http_problem
from errfmt.logging_utils import ErrfmtFormatter
from errfmt.pipeline import Emitter
from errfmt.record import Caller, Level, LogRecord

_logger = logging.getLogger("errfmt.cli")

# ---------------------------------------------------------------------------
# Output format enum
# ---------------------------------------------------------------------------


class OutputFormat(StrEnum):
    """Output format of the ``format`` command."""

    text = "text"
    json = "json"
    syslog = "syslog"
    problem = "problem"


app = typer.Typer(
    name="errfmt",
    help="Format structured log records and errors as text, JSON, syslog or HTTP problems.",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def _main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log diagnostics to stderr")] = False,
) -> None:
    """Configure diagnostic logging."""
    if verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ErrfmtFormatter(TextEmitter()))
        logging.getLogger("errfmt").addHandler(handler)
        logging.getLogger("errfmt").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Record parsing
# ---------------------------------------------------------------------------


def _build_error(spec: Any) -> BaseException:
    """Build an error chain from its JSON description, innermost first."""
    if isinstance(spec, str):
        return new_error(spec)
    if not isinstance(spec, Mapping):
        raise ValueError(f"error must be a string or an object, got {type(spec).__name__}")
    message = spec.get("message")
    details = spec.get("details") or {}
    if not isinstance(details, Mapping):
        raise ValueError("error details must be an object")
    if spec.get("cause") is None:
        return new_error(message or "", details)
    return WrappedError(message, details=details, cause=_build_error(spec["cause"]))


def _parse_time(value: Any) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_record(data: Mapping[str, Any]) -> LogRecord:
    """Build a :class:`LogRecord` from its JSON object form.

    Raises:
        ValueError: If a member has the wrong type or an invalid value.

    """
    fields = data.get("fields") or {}
    if not isinstance(fields, Mapping):
        raise ValueError("fields must be an object")

    caller = None
    if data.get("caller") is not None:
        c = data["caller"]
        caller = Caller(str(c.get("function", "")), str(c.get("file", "")), int(c.get("line", 0)))

    error = _build_error(data["error"]) if data.get("error") is not None else None
    return LogRecord(
        level=Level.parse(str(data.get("level", "info"))),
        timestamp=_parse_time(data.get("time")),
        message=str(data.get("msg", "")),
        caller=caller,
        error=error,
        fields=dict(fields),
    )


def _emitter(fmt: OutputFormat, config: FormatterConfig, syslog: SyslogConfig) -> Emitter:
    if fmt == OutputFormat.json:
        return JSONEmitter(config)
    if fmt == OutputFormat.syslog:
        return SyslogEmitter(config, syslog)
    return TextEmitter(config)


# ---------------------------------------------------------------------------
# format command
# ---------------------------------------------------------------------------


@app.command("format")
def format_record(
    fmt: Annotated[OutputFormat, typer.Option("--format", "-f", help="Output format")] = OutputFormat.text,
    status: Annotated[int, typer.Option("--status", help="HTTP status of a problem body")] = 500,
    callstack: Annotated[bool, typer.Option("--callstack", help="Include the error call stack")] = False,
    skip_last: Annotated[int, typer.Option("--skip-last", min=0, help="Drop this many outermost frames")] = 0,
    trim_quotes: Annotated[
        bool, typer.Option("--trim-quotes", help="Drop JSON quotes around syslog string values")
    ] = False,
    extract: Annotated[bool, typer.Option("--extract/--no-extract", help="Lift error details into fields")] = True,
    struct_names: Annotated[
        bool, typer.Option("--struct-names", help="Render structured values with field names")
    ] = False,
    hostname: Annotated[str, typer.Option("--hostname", help="Syslog HOSTNAME")] = "",
    app_name: Annotated[str, typer.Option("--app-name", help="Syslog APP-NAME")] = "",
    facility: Annotated[int, typer.Option("--facility", min=0, max=23, help="Syslog facility code")] = 1,
) -> None:
    """Read one JSON record from stdin and write it in the chosen format."""
    flags = FormatFlag.NONE
    if extract:
        flags |= FormatFlag.EXTRACT_DETAILS
    if callstack:
        flags |= FormatFlag.CALLSTACK_IN_FIELDS | FormatFlag.CALLSTACK_IN_HTTP_PROBLEM
    if trim_quotes:
        flags |= FormatFlag.TRIM_JSON_DQUOTE
    if struct_names:
        flags |= FormatFlag.PRINT_STRUCT_FIELD_NAMES
    config = FormatterConfig(flags=flags, call_stack=CallStackPolicy(skip_last=skip_last))

    try:
        data = json.loads(sys.stdin.read())
        if not isinstance(data, Mapping):
            raise ValueError("record must be a JSON object")
        record = parse_record(data)
    except (ValueError, TypeError, AttributeError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _logger.debug("Formatting record as %s", fmt.value, extra={"flags": str(flags)})
    if fmt == OutputFormat.problem:
        body, render_error = render_http_problem(status, record, config)
        if render_error is not None:
            _logger.warning("Problem body fell back to a generic problem", exc_info=render_error)
        typer.echo(body.decode("utf-8"))
        return

    syslog = SyslogConfig(facility=Facility(facility), hostname=hostname, app_name=app_name)
    typer.echo(_emitter(fmt, config, syslog).format(record).decode("utf-8"), nl=False)


# ---------------------------------------------------------------------------
# sd-name command
# ---------------------------------------------------------------------------


@app.command("sd-name")
def sd_name(name: Annotated[str, typer.Argument(help="Name to sanitize")]) -> None:
    """Print NAME sanitized to the RFC5424 SD-NAME character class."""
    typer.echo(fix_structured_data_name(name))
