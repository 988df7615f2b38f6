# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Error wrapping with message segments, key-value details and call stacks.

Python exceptions already chain through ``__cause__`` (``raise ... from ...``).
This module adds the pieces a structured formatter needs on top of that:

- a message segment per wrap layer, so the chain renders as
  ``"outer: middle: root cause"``
- key-value *details* attached to any layer
- a call stack captured once, at the point the error was created or first
  wrapped

USAGE
-----
::

    from errfmt.errors import new_error, with_details, wrap

    try:
        port = int(raw)
    except ValueError as exc:
        raise wrap(exc, "invalid port", port=raw) from exc

    err = with_details(new_error("quota exceeded"), user="alice", limit=10)

KEY CLASSES
-----------
WrappedError : One wrap layer (message, details, optional stack)
StackTracer : Capability protocol for layers that carry a call stack
CallStackFrame : One captured frame (function, file, line)

"""

from __future__ import annotations

import sys
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import FrameType
from typing import Protocol, runtime_checkable

__all__ = [
    "MAXIMUM_CALLER_DEPTH",
    "CallStackFrame",
    "StackTracer",
    "WrappedError",
    "capture_stack",
    "error_message",
    "iter_chain",
    "new_error",
    "with_details",
    "with_message",
    "with_stack",
    "wrap",
]

MAXIMUM_CALLER_DEPTH = 50


@dataclass(frozen=True)
class CallStackFrame:
    """One frame of a captured call stack.

    Attributes:
        function: Module-qualified function name (``package.module.func``).
        file: Source file path as reported by the code object.
        line: Line number being executed in that frame.

    """

    function: str
    file: str
    line: int


@runtime_checkable
class StackTracer(Protocol):
    """An error layer that exposes a captured call stack."""

    def stack_trace(self) -> Sequence[CallStackFrame]:
        """Return captured frames, innermost (the raising function) first."""
        ...


def _function_name(frame: FrameType) -> str:
    code = frame.f_code
    qualname = getattr(code, "co_qualname", code.co_name)
    module = frame.f_globals.get("__name__", "")
    return f"{module}.{qualname}" if module else qualname


def capture_stack(skip: int = 0, limit: int = MAXIMUM_CALLER_DEPTH) -> tuple[CallStackFrame, ...]:
    """Capture the current call stack, innermost frame first.

    Args:
        skip: Number of frames above the caller of ``capture_stack`` to omit.
        limit: Maximum number of frames to capture.

    Returns:
        A tuple of frames starting at the caller (plus *skip*).

    """
    frames: list[CallStackFrame] = []
    frame: FrameType | None = sys._getframe(skip + 1)
    while frame is not None and len(frames) < limit:
        frames.append(CallStackFrame(_function_name(frame), frame.f_code.co_filename, frame.f_lineno))
        frame = frame.f_back
    return tuple(frames)


class WrappedError(Exception):
    """A wrap layer around an optional cause.

    The rendered message of a ``WrappedError`` is the message of its whole
    chain (see :func:`error_message`), so ``str(err)`` is what a user expects
    to read in a log line.

    Attributes:
        message: This layer's message segment, or ``None`` for layers that only
            add details or a stack.
        details: Key-value annotations attached at this layer.

    """

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Mapping[str, object] | None = None,
        cause: BaseException | None = None,
        stack: Sequence[CallStackFrame] | None = None,
    ) -> None:
        """Create a wrap layer; *cause* becomes ``__cause__``."""
        super().__init__(message or "")
        self.message = message
        self.details: dict[str, object] = dict(details) if details else {}
        self._stack = tuple(stack) if stack is not None else None
        self.__cause__ = cause

    def __str__(self) -> str:
        """Return the chain message."""
        return error_message(self)

    def __repr__(self) -> str:
        """Return a debugging representation of this layer only."""
        return f"WrappedError({self.message!r}, details={self.details!r})"

    def stack_trace(self) -> Sequence[CallStackFrame]:
        """Return the captured stack, or an empty tuple if this layer has none."""
        return self._stack or ()

    @property
    def has_stack(self) -> bool:
        """Whether this layer captured a call stack."""
        return self._stack is not None


def iter_chain(err: BaseException | None) -> Iterator[BaseException]:
    """Yield the layers of an error chain, outermost first.

    Only explicit wrapping (``__cause__``) is followed; a cycle ends the walk.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__


def _own_text(err: BaseException) -> str | None:
    if isinstance(err, WrappedError):
        return err.message or None
    return str(err) or None


def error_message(err: BaseException | None) -> str:
    """Render the message of an error chain.

    Non-empty segments are joined with ``": "`` outermost-first; the root
    cause contributes its own text. ``None`` renders as an empty string.
    """
    return ": ".join(text for text in (_own_text(layer) for layer in iter_chain(err)) if text)


def _has_stack(err: BaseException) -> bool:
    return any(isinstance(layer, WrappedError) and layer.has_stack for layer in iter_chain(err))


def _merge(details: Mapping[str, object] | None, extra: Mapping[str, object]) -> dict[str, object]:
    merged = dict(details) if details else {}
    merged.update(extra)
    return merged


def new_error(message: str, details: Mapping[str, object] | None = None, **kwargs: object) -> WrappedError:
    """Create a root error with a message, details and a captured stack."""
    return WrappedError(message, details=_merge(details, kwargs), stack=capture_stack(1))


def wrap(
    err: BaseException, message: str, details: Mapping[str, object] | None = None, **kwargs: object
) -> WrappedError:
    """Wrap *err* with a message segment and details.

    A call stack is captured here only if no layer of the chain carries one
    yet, so the stack always points at the deepest wrap site.
    """
    stack = None if _has_stack(err) else capture_stack(1)
    return WrappedError(message, details=_merge(details, kwargs), cause=err, stack=stack)


def with_message(err: BaseException, message: str) -> WrappedError:
    """Annotate *err* with a message segment only."""
    return WrappedError(message, cause=err)


def with_details(err: BaseException, details: Mapping[str, object] | None = None, **kwargs: object) -> WrappedError:
    """Annotate *err* with key-value details only.

    Keys that are not valid Python identifiers (``"K2 with space"``) go in
    the positional *details* mapping.
    """
    return WrappedError(details=_merge(details, kwargs), cause=err)


def with_stack(err: BaseException) -> WrappedError:
    """Annotate *err* with a call stack captured at the caller."""
    return WrappedError(cause=err, stack=capture_stack(1))
