# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for RFC7807 problem bodies and the Falcon responder decorator."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import datetime
from typing import Any

import falcon
import falcon.testing
import pytest

from errfmt.config import CallStackPolicy, FormatFlag, FormatterConfig, ModulePrefixes
from errfmt.errors import WrappedError, with_details
from errfmt.http import (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_PROBLEM,
    KEY_HTTP_PROBLEM_ERROR,
    KEY_HTTP_WRITE_ERROR,
    build_http_problem,
    level_for_status,
    problem_responder,
    render_http_problem,
    request_info,
    write_http_problem,
)
from errfmt.record import Level, LogRecord

_LOGGER_NAME = "tests.http"


class _FailingResponse(falcon.Response):
    """Response whose body cannot be written."""

    @property  # type: ignore[override]
    def data(self) -> bytes | None:
        return None

    @data.setter
    def data(self, value: bytes | None) -> None:
        if value is not None:
            raise OSError("connection reset by peer")


class ThingNotFound(WrappedError):
    """Lookup failure answered with 404."""

    http_status = 404


# ---------------------------------------------------------------------------
# Problem builder
# ---------------------------------------------------------------------------


class TestBuildHTTPProblem:
    """Problem bodies built from records."""

    def test_message_only(self, fixed_time: datetime) -> None:
        """Without an error the message becomes the detail."""
        record = LogRecord(level=Level.WARNING, timestamp=fixed_time, message="not found")
        problem = build_http_problem(404, record)
        assert problem.title == "Not Found"
        assert problem.detail == "not found"
        assert problem.status == 404
        assert problem.type == "about:blank"

    def test_error_detail_and_details(self, deep_record: LogRecord, deep_message: str) -> None:
        """The chain message is the detail and every entry is JSON text in order."""
        config = FormatterConfig(flags=FormatFlag.EXTRACT_DETAILS, module_prefixes=ModulePrefixes("myapp"))
        problem = build_http_problem(500, deep_record, config)
        assert problem.title == "Internal Server Error"
        assert problem.detail == deep_message
        assert list(problem.details)[:6] == ["level", "time", "func", "error", "msg", "file"]
        assert problem.details["level"] == '"error"'
        assert problem.details["func"] == '"api.handler"'
        assert problem.details["K5_int"] == "12"
        assert problem.details["K3 2"] == '"V3 space"'
        assert problem.callstack == []

    def test_callstack_flag(self, deep_record: LogRecord) -> None:
        """``CALLSTACK_IN_HTTP_PROBLEM`` adds the truncated stack."""
        config = FormatterConfig(
            flags=FormatFlag.CALLSTACK_IN_HTTP_PROBLEM,
            call_stack=CallStackPolicy(skip_last=3),
            module_prefixes=ModulePrefixes("myapp"),
        )
        problem = build_http_problem(500, deep_record, config)
        assert problem.callstack == ["store.new_with_details() store.py:10", "store.make_deep_errors() store.py:20"]
        assert "callstack" not in problem.details

    def test_unknown_status_has_empty_title(self, fixed_time: datetime) -> None:
        """Codes without a reason phrase get an empty title."""
        record = LogRecord(level=Level.ERROR, timestamp=fixed_time, message="odd")
        assert build_http_problem(599, record).title == ""


class TestRenderHTTPProblem:
    """Serialized problem bodies."""

    def test_pretty_printed(self, fixed_time: datetime) -> None:
        """Bodies use a two-space indent and keep the member order."""
        record = LogRecord(level=Level.WARNING, timestamp=fixed_time, message="not found")
        body, err = render_http_problem(404, record)
        assert err is None
        text = body.decode()
        assert text.startswith('{\n  "type": "about:blank",\n  "title": "Not Found",\n  "status": 404,\n')
        doc = json.loads(text)
        assert doc["detail"] == "not found"
        assert doc["details"]["msg"] == '"not found"'
        assert "callstack" not in doc

    def test_fallback_on_failure(self, fixed_time: datetime) -> None:
        """A body that cannot be encoded falls back to a generic 500 problem."""
        record = LogRecord(level=Level.ERROR, timestamp=fixed_time, message="bad \ud800 surrogate")
        body, err = render_http_problem(400, record)
        assert err is not None
        doc = json.loads(body)
        assert doc["status"] == 500
        assert doc["title"] == "Internal Server Error"
        assert doc["detail"] == str(err)
        assert "details" not in doc


class TestWriteHTTPProblem:
    """Writing problems to Falcon responses."""

    def test_sets_headers_status_and_body(self, fixed_time: datetime) -> None:
        """Content type, status and body are set and the record is unchanged."""
        resp = falcon.Response()
        record = LogRecord(level=Level.WARNING, timestamp=fixed_time, message="not found")
        returned = write_http_problem(resp, 404, record)
        assert resp.content_type == CONTENT_TYPE_PROBLEM
        assert resp.status in ("404", 404, falcon.HTTP_404)
        assert json.loads(resp.data)["title"] == "Not Found"
        assert returned is record

    def test_write_error_annotates_record(self, fixed_time: datetime) -> None:
        """A failed write is reported as a field on the returned record."""
        record = LogRecord(level=Level.WARNING, timestamp=fixed_time, message="not found")
        returned = write_http_problem(_FailingResponse(), 404, record)
        assert returned.fields[KEY_HTTP_WRITE_ERROR] == "connection reset by peer"

    def test_render_error_annotates_record(self, fixed_time: datetime) -> None:
        """A fallback body is reported as a field on the returned record."""
        resp = falcon.Response()
        record = LogRecord(level=Level.ERROR, timestamp=fixed_time, message="\ud800")
        returned = write_http_problem(resp, 400, record)
        assert KEY_HTTP_PROBLEM_ERROR in returned.fields
        assert json.loads(resp.data)["status"] == 500


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestLevelForStatus:
    """Status class to level mapping."""

    @pytest.mark.parametrize(
        ("status", "level"),
        [(200, Level.DEBUG), (204, Level.DEBUG), (302, Level.TRACE), (404, Level.WARNING), (503, Level.ERROR)],
        ids=["200", "204", "302", "404", "503"],
    )
    def test_default_table(self, status: int, level: Level) -> None:
        """Keyed by the first digit, unknown classes log at TRACE."""
        assert level_for_status(status) is level

    def test_custom_table(self) -> None:
        """A custom table replaces the defaults."""
        assert level_for_status(404, {4: Level.INFO}) is Level.INFO
        assert level_for_status(500, {4: Level.INFO}) is Level.TRACE


class TestRequestInfo:
    """Request attributes as log fields."""

    def test_default_selection(self) -> None:
        """Connection attributes are always present, headers only when sent."""
        req = falcon.testing.create_req(
            method="POST",
            host="example.com",
            path="/things",
            query_string="limit=1",
            headers={"X-Forwarded-For": "10.0.0.1", "From": "ops@example.com"},
            remote_addr="10.1.1.1",
        )
        assert request_info(req) == {
            "req_method": "POST",
            "req_host": "example.com",
            "req_remoteaddr": "10.1.1.1",
            "req_requesturi": "/things?limit=1",
            "req_From": "ops@example.com",
            "req_X-Forwarded-For": "10.0.0.1",
        }

    def test_header_name_sanitized(self) -> None:
        """Header keys are SD-NAME safe."""
        req = falcon.testing.create_req(headers={"X Odd": "1"})
        assert request_info(req, ["X Odd"]) == {"req_X_Odd": "1"}


# ---------------------------------------------------------------------------
# Responder decorator
# ---------------------------------------------------------------------------


class ThingsResource:
    """Resource answering from a fixed table."""

    _THINGS: dict[str, dict[str, Any]] = {"42": {"id": 42, "name": "answer"}}

    @problem_responder(logging.getLogger(_LOGGER_NAME), FormatterConfig(flags=FormatFlag.EXTRACT_DETAILS))
    def on_get(self, req: falcon.Request, resp: falcon.Response, thing_id: str) -> tuple[Any, int]:
        """Return a thing or raise :class:`ThingNotFound`."""
        if thing_id == "forbidden":
            raise falcon.HTTPForbidden()
        if thing_id == "broken":
            raise with_details(RuntimeError("database gone"), table="things")
        if thing_id not in self._THINGS:
            raise ThingNotFound("thing not found", details={"thing_id": thing_id})
        return self._THINGS[thing_id], 200

    @problem_responder(logging.getLogger(_LOGGER_NAME))
    def on_post(self, req: falcon.Request, resp: falcon.Response, thing_id: str) -> tuple[Any, int]:
        """Return a body that cannot be serialized."""
        return {"value": object.__new__(type("Opaque", (), {"__slots__": ()}))}, 201


def _client(response_type: type[falcon.Response] = falcon.Response) -> falcon.testing.TestClient:
    app = falcon.App(response_type=response_type)
    app.add_route("/things/{thing_id}", ThingsResource())
    return falcon.testing.TestClient(app)


@pytest.fixture
def client() -> Iterator[falcon.testing.TestClient]:
    """Test client for :class:`ThingsResource`."""
    yield _client()


class TestProblemResponder:
    """End-to-end behaviour through ``falcon.testing``."""

    def test_success(self, client: falcon.testing.TestClient, caplog: pytest.LogCaptureFixture) -> None:
        """Bodies are indented JSON and the request is logged at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger=_LOGGER_NAME):
            result = client.simulate_get("/things/42")
        assert result.status_code == 200
        assert result.headers["content-type"] == CONTENT_TYPE_JSON
        assert result.text == '{\n  "id": 42,\n  "name": "answer"\n}'
        records = [r for r in caplog.records if r.name == _LOGGER_NAME]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert records[0].__dict__["handler_func"].endswith("ThingsResource.on_get")
        assert records[0].__dict__["req_method"] == "GET"
        assert records[0].exc_info is None

    def test_error_status_from_exception(
        self, client: falcon.testing.TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An ``http_status`` attribute picks the status and level."""
        with caplog.at_level(logging.DEBUG, logger=_LOGGER_NAME):
            result = client.simulate_get("/things/7")
        assert result.status_code == 404
        assert result.headers["content-type"] == CONTENT_TYPE_PROBLEM
        doc = result.json
        assert doc["title"] == "Not Found"
        assert doc["detail"] == "thing not found"
        assert doc["details"]["thing_id"] == '"7"'
        assert doc["details"]["req_requesturi"] == '"/things/7"'
        records = [r for r in caplog.records if r.name == _LOGGER_NAME]
        assert [r.levelno for r in records] == [logging.WARNING]
        assert records[0].exc_info is not None
        assert isinstance(records[0].exc_info[1], ThingNotFound)

    def test_unexpected_exception_is_500(
        self, client: falcon.testing.TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Exceptions without a status answer 500 and log at ERROR."""
        with caplog.at_level(logging.DEBUG, logger=_LOGGER_NAME):
            result = client.simulate_get("/things/broken")
        assert result.status_code == 500
        assert result.json["detail"] == "database gone"
        assert result.json["details"]["table"] == '"things"'
        assert [r.levelno for r in caplog.records if r.name == _LOGGER_NAME] == [logging.ERROR]

    def test_falcon_http_error(self, client: falcon.testing.TestClient) -> None:
        """Falcon HTTP errors keep their status."""
        result = client.simulate_get("/things/forbidden")
        assert result.status_code == 403
        assert result.json["title"] == "Forbidden"

    def test_unserializable_body(self, client: falcon.testing.TestClient) -> None:
        """A body that cannot be serialized becomes a problem with the returned status."""
        result = client.simulate_post("/things/1")
        assert result.status_code == 201
        assert result.headers["content-type"] == CONTENT_TYPE_PROBLEM
        assert "not JSON serializable" in result.json["detail"]

    def test_write_error_escalates_level(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failed write is logged at ERROR even for a successful status."""
        client = _client(_FailingResponse)
        with caplog.at_level(logging.DEBUG, logger=_LOGGER_NAME):
            client.simulate_get("/things/42")
        records = [r for r in caplog.records if r.name == _LOGGER_NAME]
        assert [r.levelno for r in records] == [logging.ERROR]
        assert records[0].__dict__[KEY_HTTP_WRITE_ERROR] == "connection reset by peer"
