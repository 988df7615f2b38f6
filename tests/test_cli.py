# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for the errfmt CLI tool."""

from __future__ import annotations

import json
from typing import Any

import pytest
from typer.testing import CliRunner

from errfmt.cli import app, parse_record
from errfmt.errors import WrappedError, error_message
from errfmt.record import Caller, Level

runner = CliRunner()

_RECORD = {"level": "error", "time": "2024-05-01T12:00:00Z", "msg": "failed", "fields": {"user": "bob"}}


def _invoke(args: list[str], record: Any) -> Any:
    """Run the CLI with *record* serialized on stdin.

    Returns ``Any`` because typer has no type stubs.
    """
    stdin = record if isinstance(record, str) else json.dumps(record)
    return runner.invoke(app, args, input=stdin)


# ---------------------------------------------------------------------------
# Record parsing
# ---------------------------------------------------------------------------


class TestParseRecord:
    """JSON object to record conversion."""

    def test_all_members(self) -> None:
        """Every member is mapped onto the record."""
        record = parse_record(
            {
                "level": "warn",
                "time": "2024-05-01T12:00:00Z",
                "msg": "slow",
                "fields": {"ms": 1500},
                "caller": {"function": "app.jobs.run", "file": "/src/app/jobs.py", "line": 9},
            }
        )
        assert record.level is Level.WARNING
        assert record.timestamp.isoformat() == "2024-05-01T12:00:00+00:00"
        assert record.message == "slow"
        assert record.fields == {"ms": 1500}
        assert record.caller == Caller("app.jobs.run", "/src/app/jobs.py", 9)
        assert record.error is None

    def test_nested_error(self) -> None:
        """Error objects nest through ``cause``; the innermost layer carries the stack."""
        record = parse_record({"error": {"message": "load", "details": {"id": 7}, "cause": "boom"}})
        assert isinstance(record.error, WrappedError)
        assert record.error.details == {"id": 7}
        assert error_message(record.error) == "load: boom"
        assert not record.error.has_stack
        assert isinstance(record.error.__cause__, WrappedError)
        assert record.error.__cause__.has_stack

    @pytest.mark.parametrize(
        "data",
        [{"fields": [1]}, {"error": 3}, {"error": {"details": "x"}}, {"level": "loud"}],
        ids=["fields-list", "error-number", "details-string", "bad-level"],
    )
    def test_invalid(self, data: dict[str, Any]) -> None:
        """Members of the wrong shape are rejected."""
        with pytest.raises(ValueError):
            parse_record(data)


# ---------------------------------------------------------------------------
# format command
# ---------------------------------------------------------------------------


class TestFormatCommand:
    """``errfmt format`` in each output format."""

    def test_text(self) -> None:
        """Text is the default format."""
        result = _invoke(["format"], _RECORD)
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert result.output == 'level=error time="2024-05-01T12:00:00+00:00" msg=failed user=bob\n'

    def test_json_with_error_details(self) -> None:
        """Error details are lifted into fields by default."""
        record = dict(_RECORD, error={"message": "load", "details": {"id": 7}, "cause": "boom"})
        result = _invoke(["format", "-f", "json"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        doc = json.loads(result.output)
        assert doc["error"] == "load: boom"
        assert doc["id"] == 7
        assert doc["user"] == "bob"

    def test_no_extract(self) -> None:
        """``--no-extract`` leaves error details out."""
        record = dict(_RECORD, error={"message": "load", "details": {"id": 7}})
        result = _invoke(["format", "-f", "json", "--no-extract"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert "id" not in json.loads(result.output)

    def test_syslog(self) -> None:
        """Syslog lines carry the configured header values."""
        record = dict(_RECORD, fields={}, error="boom")
        result = _invoke(["format", "-f", "syslog", "--hostname", "web1", "--app-name", "api"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert result.output == (
            '<11>1 2024-05-01T12:00:00.000000+00:00 web1 api - DETAILS_MSG [details error="\\"boom\\""] failed\n'
        )

    def test_syslog_trim_quotes_and_facility(self) -> None:
        """``--trim-quotes`` and ``--facility`` reach the syslog emitter."""
        record = dict(_RECORD, fields={}, error="boom")
        result = _invoke(["format", "-f", "syslog", "--trim-quotes", "--facility", "16"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert result.output.startswith("<131>1 ")
        assert '[details error="boom"]' in result.output

    def test_syslog_callstack(self) -> None:
        """``--callstack`` adds the calls element."""
        record = dict(_RECORD, fields={}, error="boom")
        result = _invoke(["format", "-f", "syslog", "--callstack"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        assert " DETAILS_CALLS_MSG " in result.output
        assert "[calls callstack=" in result.output

    def test_problem(self) -> None:
        """Problem bodies use the given status."""
        record = {"level": "warning", "time": "2024-05-01T12:00:00Z", "msg": "not found"}
        result = _invoke(["format", "-f", "problem", "--status", "404"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        doc = json.loads(result.output)
        assert doc["status"] == 404
        assert doc["title"] == "Not Found"
        assert doc["detail"] == "not found"
        assert "callstack" not in doc

    def test_problem_callstack(self) -> None:
        """``--callstack`` adds the error's stack to the problem body."""
        record = dict(_RECORD, error="boom")
        result = _invoke(["format", "-f", "problem", "--callstack"], record)
        assert result.exit_code == 0, f"Failed: {result.output}"
        doc = json.loads(result.output)
        assert doc["status"] == 500
        assert doc["detail"] == "boom"
        assert doc["callstack"]

    @pytest.mark.parametrize(
        "stdin",
        ["not json", "[1, 2]", json.dumps({"level": "loud"})],
        ids=["invalid-json", "not-object", "bad-level"],
    )
    def test_bad_input(self, stdin: str) -> None:
        """Unreadable records exit with status 1."""
        result = _invoke(["format"], stdin)
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_facility_out_of_range(self) -> None:
        """Facility codes above 23 are a usage error."""
        result = _invoke(["format", "-f", "syslog", "--facility", "24"], _RECORD)
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# sd-name command
# ---------------------------------------------------------------------------


class TestSdNameCommand:
    """``errfmt sd-name``."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("K2 with space", "K2_with_space"), ('K3"5', "K3_5"), ("ok.name", "ok.name")],
        ids=["space", "dquote", "unchanged"],
    )
    def test_sanitizes(self, name: str, expected: str) -> None:
        """Invalid SD-NAME characters are replaced."""
        result = runner.invoke(app, ["sd-name", name])
        assert result.exit_code == 0
        assert result.output == f"{expected}\n"
