# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""RFC7807 problem responses built from log records."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

import falcon

from errfmt.config import FormatFlag, FormatterConfig
from errfmt.errors import error_message
from errfmt.fields import DEFAULT_FIELD_ORDER
from errfmt.pipeline import ordered_entries, prepare, record_entries
from errfmt.record import LogRecord
from errfmt.render import json_marshal

__all__ = [
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_PROBLEM",
    "KEY_HTTP_PROBLEM_ERROR",
    "KEY_HTTP_WRITE_ERROR",
    "PROBLEM_TYPE_DEFAULT",
    "HTTPProblem",
    "build_http_problem",
    "render_http_problem",
    "status_title",
    "write_http_problem",
]

CONTENT_TYPE_PROBLEM = "application/problem+json"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"
PROBLEM_TYPE_DEFAULT = "about:blank"

KEY_HTTP_PROBLEM_ERROR = "httpproblem_error"
KEY_HTTP_WRITE_ERROR = "httpwrite_error"

_logger = logging.getLogger("errfmt.http")


def status_title(status: int) -> str:
    """Return the standard reason phrase for *status*, or ``""`` if unknown."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


@dataclass
class HTTPProblem:
    """An RFC7807 problem body with log details attached.

    Attributes:
        status: HTTP status code.
        title: Reason phrase of ``status``.
        detail: The error chain message, or the log message without an error.
        details: Every log entry, each value as its JSON text.
        callstack: Rendered call stack; left out of the body when empty.
        type: Problem type URI.

    """

    status: int
    title: str
    detail: str = ""
    details: dict[str, str] = field(default_factory=dict)
    callstack: list[str] = field(default_factory=list)
    type: str = PROBLEM_TYPE_DEFAULT

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body; empty ``details``/``callstack`` are omitted."""
        body: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
        }
        if self.details:
            body["details"] = self.details
        if self.callstack:
            body["callstack"] = self.callstack
        return body


def build_http_problem(
    status: int,
    record: LogRecord,
    config: FormatterConfig | None = None,
    order: Mapping[str, int] = DEFAULT_FIELD_ORDER,
) -> HTTPProblem:
    """Build the problem body for *record* answered with *status*.

    Args:
        status: HTTP status code of the response.
        record: The log record describing the failure.
        config: Formatter configuration; ``CALLSTACK_IN_HTTP_PROBLEM`` adds
            the call stack to the body.
        order: Order of the ``details`` members.

    Returns:
        The problem, not yet serialized.

    """
    config = config or FormatterConfig()
    prepared = prepare(record, config)
    entries = record_entries(prepared, config)
    details = {name: json_marshal(value) for name, value in ordered_entries(entries, order)}

    if prepared.error is not None:
        detail = error_message(prepared.error)
    else:
        detail = prepared.message

    callstack: list[str] = []
    if FormatFlag.CALLSTACK_IN_HTTP_PROBLEM in config.flags:
        callstack = list(prepared.call_stack)

    return HTTPProblem(status=status, title=status_title(status), detail=detail, details=details, callstack=callstack)


def _dump(problem: HTTPProblem) -> bytes:
    return json.dumps(problem.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")


def render_http_problem(
    status: int,
    record: LogRecord,
    config: FormatterConfig | None = None,
) -> tuple[bytes, Exception | None]:
    """Serialize the problem for *record*.

    Returns:
        ``(body, None)`` on success.  If the problem cannot be serialized the
        body is a generic 500 problem whose ``detail`` is the failure text,
        returned together with that failure.

    """
    problem = build_http_problem(status, record, config)
    try:
        return _dump(problem), None
    except (TypeError, ValueError) as exc:
        _logger.debug("Problem body for status %d could not be serialized", status, exc_info=True)
        fallback = HTTPProblem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR.value,
            title=HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
            detail=str(exc),
        )
        return _dump(fallback), exc


def write_http_problem(
    resp: falcon.Response,
    status: int,
    record: LogRecord,
    config: FormatterConfig | None = None,
) -> LogRecord:
    """Answer *resp* with the problem for *record*.

    Sets the ``application/problem+json`` content type, the status and the
    body.

    Returns:
        *record*, with ``httpproblem_error`` set when the body had to fall
        back to a generic problem and ``httpwrite_error`` set when the body
        could not be written.

    """
    resp.content_type = CONTENT_TYPE_PROBLEM
    resp.status = str(status)

    body, render_error = render_http_problem(status, record, config)
    if render_error is not None:
        record = record.with_fields(**{KEY_HTTP_PROBLEM_ERROR: str(render_error)})
    try:
        resp.data = body
    except (OSError, ValueError) as exc:
        _logger.debug("Problem body could not be written", exc_info=True)
        record = record.with_fields(**{KEY_HTTP_WRITE_ERROR: str(exc)})
    return record

