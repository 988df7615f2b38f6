# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Falcon responder decorator that answers errors with problem bodies and logs once."""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from http import HTTPStatus
from types import MappingProxyType
from typing import Any

import falcon

from errfmt.config import FormatterConfig
from errfmt.emitters import fix_structured_data_name
from errfmt.http._problem import CONTENT_TYPE_JSON, KEY_HTTP_WRITE_ERROR, write_http_problem
from errfmt.record import Level, LogRecord
from errfmt.render import json_default

__all__ = [
    "DEFAULT_LEVEL_BY_STATUS",
    "DEFAULT_REQUEST_INFO",
    "KEY_HANDLER_FUNC",
    "KEY_PREFIX_REQUEST",
    "Responder",
    "level_for_status",
    "problem_responder",
    "request_info",
]

KEY_HANDLER_FUNC = "handler_func"
KEY_PREFIX_REQUEST = "req_"

DEFAULT_LEVEL_BY_STATUS: Mapping[int, Level] = MappingProxyType(
    {
        2: Level.DEBUG,
        4: Level.WARNING,
        5: Level.ERROR,
    }
)

DEFAULT_REQUEST_INFO: tuple[str, ...] = (
    "method",
    "host",
    "remoteaddr",
    "requesturi",
    "From",
    "Forwarded",
    "Content-Length",
    "X-Forwarded-For",
    "X-Forwarded-Host",
    "X-Http-Method-Override",
)

_logger = logging.getLogger("errfmt.http")

Responder = Callable[..., tuple[Any, int]]


def level_for_status(status: int, level_by_status: Mapping[int, Level] = DEFAULT_LEVEL_BY_STATUS) -> Level:
    """Return the log level for an HTTP status, keyed by its first digit.

    Statuses whose class is not in *level_by_status* log at ``TRACE``.
    """
    return level_by_status.get(status // 100, Level.TRACE)


def request_info(req: falcon.Request, names: Sequence[str] = DEFAULT_REQUEST_INFO) -> dict[str, str]:
    """Collect request attributes as ``req_``-prefixed log fields.

    ``method``, ``host``, ``remoteaddr`` and ``requesturi`` come from the
    request itself; every other name is looked up as a header and included
    only when present, under an SD-NAME safe key.
    """
    info: dict[str, str] = {}
    for name in names:
        if name == "method":
            info[KEY_PREFIX_REQUEST + name] = req.method
        elif name == "host":
            info[KEY_PREFIX_REQUEST + name] = req.host
        elif name == "remoteaddr":
            info[KEY_PREFIX_REQUEST + name] = req.remote_addr or ""
        elif name == "requesturi":
            info[KEY_PREFIX_REQUEST + name] = req.relative_uri
        else:
            value = req.get_header(name)
            if value:
                info[fix_structured_data_name(KEY_PREFIX_REQUEST + name)] = value
    return info


def _exception_status(exc: Exception) -> int:
    if isinstance(exc, falcon.HTTPError):
        return falcon.http_status_to_code(exc.status)
    status = getattr(exc, "http_status", HTTPStatus.INTERNAL_SERVER_ERROR)
    return int(status)


def problem_responder(
    logger: logging.Logger,
    config: FormatterConfig | None = None,
    level_by_status: Mapping[int, Level] = DEFAULT_LEVEL_BY_STATUS,
    request_fields: Sequence[str] = DEFAULT_REQUEST_INFO,
) -> Callable[[Responder], Callable[..., None]]:
    """Decorate a Falcon responder method returning ``(body, status)``.

    On success the body is written as indented JSON with the given status;
    the content type defaults to ``application/json; charset=utf-8``.  When
    the responder raises, the status comes from the exception
    (``falcon.HTTPError.status`` or an ``http_status`` attribute, else 500)
    and the response is an RFC7807 problem built from the exception.

    Either way exactly one record is logged through *logger*, at the level
    *level_by_status* assigns to the status, carrying the handler name, the
    request info and the exception.

    Args:
        logger: Logger that receives the per-request record.
        config: Formatter configuration used for problem bodies.
        level_by_status: Status class to level table.
        request_fields: Request attributes added to the record.

    Returns:
        The decorator.

    Example::

        class Things:
            @problem_responder(logging.getLogger("app"))
            def on_get(self, req, resp, thing_id):
                return load_thing(thing_id), 200

    """
    config = config or FormatterConfig()

    def decorator(responder: Responder) -> Callable[..., None]:
        handler_name = f"{responder.__module__}.{responder.__qualname__}"

        @functools.wraps(responder)
        def wrapper(resource: object, req: falcon.Request, resp: falcon.Response, *args: Any, **kwargs: Any) -> None:
            fields: dict[str, object] = {KEY_HANDLER_FUNC: handler_name}
            fields.update(request_info(req, request_fields))
            error: Exception | None = None
            data = b""

            try:
                body, returned_status = responder(resource, req, resp, *args, **kwargs)
                status = int(returned_status)
            except Exception as exc:
                error = exc
                status = _exception_status(exc)
            else:
                try:
                    text = json.dumps(body, ensure_ascii=False, indent=2, allow_nan=False, default=json_default)
                    data = text.encode("utf-8")
                except (TypeError, ValueError, RecursionError) as exc:
                    error = exc

            level = level_for_status(status, level_by_status)
            if error is not None:
                record = LogRecord(
                    level=level,
                    timestamp=datetime.now(timezone.utc),
                    message=f"{req.method} {req.path}",
                    error=error,
                    fields=fields,
                )
                fields = dict(write_http_problem(resp, status, record, config).fields)
            else:
                if not resp.content_type:
                    resp.content_type = CONTENT_TYPE_JSON
                resp.status = str(status)
                try:
                    resp.data = data
                except (OSError, ValueError) as exc:
                    _logger.debug("Response body could not be written", exc_info=True)
                    fields[KEY_HTTP_WRITE_ERROR] = str(exc)

            if KEY_HTTP_WRITE_ERROR in fields:
                level = min(level, Level.ERROR)

            logger.log(
                level.logging_level,
                "%s %s %d",
                req.method,
                req.path,
                status,
                exc_info=error,
                extra=fields,
            )

        return wrapper

    return decorator
