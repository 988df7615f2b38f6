# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Formatter configuration.

All configuration objects are immutable and built once at setup time; they
can be shared by any number of emitters and threads.

Usage::

    from errfmt.config import CallStackPolicy, FormatFlag, FormatterConfig, ModulePrefixes

    config = FormatterConfig(
        flags=FormatFlag.EXTRACT_DETAILS | FormatFlag.CALLSTACK_ON_CONSOLE,
        call_stack=CallStackPolicy(skip_last=2),
        module_prefixes=ModulePrefixes("myapp"),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag, auto

__all__ = [
    "CALLSTACK_FLAGS",
    "CallStackPolicy",
    "FormatFlag",
    "FormatterConfig",
    "ModulePrefixes",
]


class FormatFlag(Flag):
    """Feature switches shared by all emitters.

    Attributes:
        EXTRACT_DETAILS: Merge error-chain details into the record fields.
        CALLSTACK_IN_FIELDS: Emit the call stack as a ``callstack`` field.
        CALLSTACK_ON_CONSOLE: Append the call stack after the formatted record,
            one tab-indented frame per line.
        CALLSTACK_IN_HTTP_PROBLEM: Include the call stack in problem bodies.
        PRINT_STRUCT_FIELD_NAMES: Render structured values with field names.
        TRIM_JSON_DQUOTE: Strip the quotes of JSON strings in syslog params.

    """

    NONE = 0
    EXTRACT_DETAILS = auto()
    CALLSTACK_IN_FIELDS = auto()
    CALLSTACK_ON_CONSOLE = auto()
    CALLSTACK_IN_HTTP_PROBLEM = auto()
    PRINT_STRUCT_FIELD_NAMES = auto()
    TRIM_JSON_DQUOTE = auto()


CALLSTACK_FLAGS = (
    FormatFlag.CALLSTACK_IN_FIELDS | FormatFlag.CALLSTACK_ON_CONSOLE | FormatFlag.CALLSTACK_IN_HTTP_PROBLEM
)


@dataclass(frozen=True)
class CallStackPolicy:
    """How many trailing frames to drop from a rendered call stack.

    The trailing frames are the ones closest to the process entry point
    (interpreter bootstrap, ``main``). A stack that is not longer than
    ``skip_last`` is dropped entirely rather than shown with the wrong skip.

    Attributes:
        skip_last: Number of frames removed from the end of the stack.

    """

    skip_last: int = 0

    def __post_init__(self) -> None:
        """Reject negative skip counts."""
        if self.skip_last < 0:
            raise ValueError(f"skip_last must be non-negative, got {self.skip_last}")

    def apply(self, lines: list[str]) -> list[str]:
        """Return *lines* without the last ``skip_last`` entries, or ``[]``."""
        if len(lines) <= self.skip_last:
            return []
        return lines[: len(lines) - self.skip_last]


@dataclass(frozen=True, init=False)
class ModulePrefixes:
    """Module prefixes trimmed from call-stack function names.

    Prefixes are checked in the order given and the first match wins.
    """

    prefixes: tuple[str, ...]

    def __init__(self, *prefixes: str) -> None:
        """Store *prefixes*, ignoring empty and trailing-dot variants."""
        object.__setattr__(self, "prefixes", tuple(p.rstrip(".") for p in prefixes if p.rstrip(".")))

    @classmethod
    def from_object(cls, obj: object) -> ModulePrefixes:
        """Build prefixes from the parent package of *obj*'s defining module.

        For a class defined in ``myapp.service.models`` this trims
        ``myapp.service.``.
        """
        target = obj if isinstance(obj, type) else type(obj)
        module = target.__module__
        parent, _, _ = module.rpartition(".")
        return cls(parent) if parent else cls()

    def trim(self, function_name: str) -> str:
        """Remove the first matching prefix from *function_name*."""
        for prefix in self.prefixes:
            dotted = prefix + "."
            if function_name.startswith(dotted):
                return function_name[len(dotted) :]
        return function_name


@dataclass(frozen=True)
class FormatterConfig:
    """Configuration shared by the pipeline stages and emitters.

    Attributes:
        flags: Enabled features.
        call_stack: Trailing-frame policy for rendered call stacks.
        module_prefixes: Prefixes trimmed from function names.

    """

    flags: FormatFlag = FormatFlag.NONE
    call_stack: CallStackPolicy = field(default_factory=CallStackPolicy)
    module_prefixes: ModulePrefixes = field(default_factory=ModulePrefixes)
