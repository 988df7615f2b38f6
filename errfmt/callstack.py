# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Call-stack rendering for error chains and log callers.

A rendered frame is a single line ``function() file:line`` where
``function`` has its module prefix trimmed (see
:class:`~errfmt.config.ModulePrefixes`) and ``file`` is the base name of the
source file.  Stacks are listed innermost first: the function that created
the error comes first, the process entry point last.
"""

from __future__ import annotations

import os
import sys
from dataclasses import replace

from errfmt.config import CALLSTACK_FLAGS, CallStackPolicy, FormatterConfig, ModulePrefixes
from errfmt.errors import CallStackFrame, StackTracer, iter_chain
from errfmt.record import Caller, LogRecord

__all__ = [
    "attach_call_stack",
    "build_call_stack",
    "caller_prettyfier",
    "find_stack_tracer",
    "format_frame",
    "function_name",
    "function_name_short",
]


def find_stack_tracer(err: BaseException | None) -> StackTracer | None:
    """Return the outermost layer of *err* that carries a call stack."""
    for layer in iter_chain(err):
        if isinstance(layer, StackTracer) and layer.stack_trace():
            return layer
    return None


def format_frame(frame: CallStackFrame, prefixes: ModulePrefixes) -> str:
    """Render one frame as ``function() file:line``."""
    return f"{prefixes.trim(frame.function)}() {os.path.basename(frame.file)}:{frame.line}"


def build_call_stack(
    err: BaseException | None,
    policy: CallStackPolicy,
    prefixes: ModulePrefixes,
) -> list[str]:
    """Build the compact call stack of an error chain.

    Args:
        err: Outermost layer of the chain, or ``None``.
        policy: Trailing-frame policy.
        prefixes: Module prefixes trimmed from function names.

    Returns:
        Rendered frames, innermost first, with ``policy.skip_last`` frames
        removed from the end; empty when the chain has no stack or the stack
        is not longer than ``skip_last``.

    """
    tracer = find_stack_tracer(err)
    if tracer is None:
        return []
    lines = [format_frame(frame, prefixes) for frame in tracer.stack_trace()]
    return policy.apply(lines)


def attach_call_stack(record: LogRecord, config: FormatterConfig) -> LogRecord:
    """Fill ``record.call_stack`` when any call-stack output is enabled."""
    if not config.flags & CALLSTACK_FLAGS:
        return record
    lines = build_call_stack(record.error, config.call_stack, config.module_prefixes)
    return replace(record, call_stack=tuple(lines))


def caller_prettyfier(caller: Caller, prefixes: ModulePrefixes) -> tuple[str, str]:
    """Return the ``(func, file)`` field values for a log caller.

    ``func`` has its module prefix trimmed and ``file`` is ``basename:line``.
    """
    return prefixes.trim(caller.function), f"{os.path.basename(caller.file)}:{caller.line}"


def _frame_function(depth: int) -> tuple[str, str]:
    frame = sys._getframe(depth + 1)
    code = frame.f_code
    return frame.f_globals.get("__name__", ""), getattr(code, "co_qualname", code.co_name)


def function_name(depth: int = 1) -> str:
    """Return the module-qualified name of the calling function.

    ``depth=1`` is the caller of ``function_name``; ``depth=2`` its caller.
    """
    module, qualname = _frame_function(depth)
    return f"{module}.{qualname}" if module else qualname


def function_name_short(depth: int = 1) -> str:
    """Return the calling function's name without its package path."""
    module, qualname = _frame_function(depth)
    leaf = module.rpartition(".")[2]
    return f"{leaf}.{qualname}" if leaf else qualname
