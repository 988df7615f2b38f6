"""Shared test fixtures for errfmt tests."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
import structlog

from errfmt.errors import CallStackFrame, WrappedError, with_details, with_message
from errfmt.record import Caller, Level, LogRecord

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

# Innermost (the function that created the error) first.
DEEP_FRAMES: tuple[CallStackFrame, ...] = (
    CallStackFrame("myapp.store.new_with_details", "/src/myapp/store.py", 10),
    CallStackFrame("myapp.store.make_deep_errors", "/src/myapp/store.py", 20),
    CallStackFrame("myapp.api.handler", "/src/myapp/api.py", 30),
    CallStackFrame("myapp.main", "/src/myapp/__init__.py", 40),
    CallStackFrame("runpy._run_code", "/usr/lib/python3.12/runpy.py", 50),
)

DEEP_MESSAGE = "MESSAGE 4: MESSAGE:2: MESSAGE%0: invalid literal for int() with base 10: 'NO_NUMBER'"


@dataclass
class ComplexStruct:
    """Structured detail value with one private attribute."""

    text: str
    integer: int
    flag: bool
    _hidden: str = field(default="hidden", repr=False)


def make_deep_error() -> WrappedError:
    """Build a five-layer chain mixing message-only, detail-only and full layers."""
    root = ValueError("invalid literal for int() with base 10: 'NO_NUMBER'")
    err: BaseException = WrappedError(
        "MESSAGE%0",
        details={"K0_1": "V0_1", "K0_2": "V0_2"},
        cause=root,
        stack=DEEP_FRAMES,
    )
    err = with_details(err, K1_1="V1_1", K1_2="V1_2")
    err = with_message(err, "MESSAGE:2")
    err = with_details(
        err,
        {
            "K3 2": "V3 space",
            "K3:3": "V3:column",
            "K3;3": "V3;semicolumn",
            "K3%6": "V3%percent",
            "K3=1": "V3=equal",
            'K3"5': 'V3"doublequote',
        },
    )
    return WrappedError(
        "MESSAGE 4",
        details={
            "K5_int": 12,
            "K5_bool": True,
            "K5_struct": ComplexStruct("text", 42, True),
            "K5_map": {1: "ONE", 2: "TWO"},
        },
        cause=err,
    )


@pytest.fixture
def fixed_time() -> datetime:
    """Timestamp shared by golden outputs."""
    return FIXED_TIME


@pytest.fixture
def deep_frames() -> tuple[CallStackFrame, ...]:
    """The five frames captured by the deep error chain."""
    return DEEP_FRAMES


@pytest.fixture
def deep_message() -> str:
    """Rendered chain message of the deep error."""
    return DEEP_MESSAGE


@pytest.fixture
def deep_error() -> WrappedError:
    """Five-layer error chain with details on four layers and a five-frame stack."""
    return make_deep_error()


@pytest.fixture
def deep_record(deep_error: WrappedError) -> LogRecord:
    """Error-level record carrying the deep error chain."""
    return LogRecord(
        level=Level.ERROR,
        timestamp=FIXED_TIME,
        message="request failed",
        caller=Caller("myapp.api.handler", "/src/myapp/api.py", 31),
        error=deep_error,
    )


@pytest.fixture
def plain_record() -> LogRecord:
    """Info-level record with scalar fields and no error."""
    return LogRecord(
        level=Level.INFO,
        timestamp=FIXED_TIME,
        message="hello world",
        fields={"user": "alice", "count": 3, "ok": True, "none": None, "empty": ""},
    )


@pytest.fixture
def reset_structlog() -> Iterator[None]:
    """Restore structlog's default configuration after the test."""
    yield
    structlog.reset_defaults()
