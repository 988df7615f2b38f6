# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""RFC7807 problem responses and request logging for Falcon applications.

``write_http_problem`` answers a Falcon response with an
``application/problem+json`` body built from a log record: the error chain
message becomes ``detail`` and every log entry is listed under ``details``.
``problem_responder`` wraps a resource responder so that exceptions become
problem responses and every request is logged exactly once, at a level
chosen by the response status.

Requires ``falcon``.
"""

from errfmt.http._handlers import (
    DEFAULT_LEVEL_BY_STATUS,
    DEFAULT_REQUEST_INFO,
    KEY_HANDLER_FUNC,
    KEY_PREFIX_REQUEST,
    Responder,
    level_for_status,
    problem_responder,
    request_info,
)
from errfmt.http._problem import (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_PROBLEM,
    KEY_HTTP_PROBLEM_ERROR,
    KEY_HTTP_WRITE_ERROR,
    PROBLEM_TYPE_DEFAULT,
    HTTPProblem,
    build_http_problem,
    render_http_problem,
    status_title,
    write_http_problem,
)

__all__ = [
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_PROBLEM",
    "DEFAULT_LEVEL_BY_STATUS",
    "DEFAULT_REQUEST_INFO",
    "KEY_HANDLER_FUNC",
    "KEY_HTTP_PROBLEM_ERROR",
    "KEY_HTTP_WRITE_ERROR",
    "KEY_PREFIX_REQUEST",
    "PROBLEM_TYPE_DEFAULT",
    "HTTPProblem",
    "Responder",
    "build_http_problem",
    "level_for_status",
    "problem_responder",
    "render_http_problem",
    "request_info",
    "status_title",
    "write_http_problem",
]
