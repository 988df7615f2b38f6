# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Error-detail extraction: flatten the details of an error chain."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from errfmt.config import FormatFlag, FormatterConfig
from errfmt.errors import WrappedError, error_message, iter_chain
from errfmt.record import LogRecord

__all__ = [
    "error_details",
    "error_message",
    "extract_error_details",
]


def _layer_details(layer: BaseException) -> Mapping[str, object]:
    if isinstance(layer, WrappedError):
        return layer.details
    details = getattr(layer, "details", None)
    return details if isinstance(details, Mapping) else {}


def error_details(err: BaseException | None) -> dict[str, object]:
    """Flatten the details of every layer of *err* into one mapping.

    Layers are visited outermost first and the first value seen for a key is
    kept, so the outer (most recently attached) layer wins a collision. Keys
    appear in the order they were first seen.

    Args:
        err: Outermost layer of the chain, or ``None``.

    Returns:
        A new dict; empty when *err* is ``None`` or carries no details.

    """
    merged: dict[str, object] = {}
    for layer in iter_chain(err):
        for key, value in _layer_details(layer).items():
            merged.setdefault(key, value)
    return merged


def extract_error_details(record: LogRecord, config: FormatterConfig) -> LogRecord:
    """Merge the attached error's details into the record's fields.

    Runs only with ``FormatFlag.EXTRACT_DETAILS``. Fields given explicitly on
    the log call take precedence over error details of the same name.
    """
    if FormatFlag.EXTRACT_DETAILS not in config.flags or record.error is None:
        return record
    details = error_details(record.error)
    if not details:
        return record
    return replace(record, fields={**details, **record.fields})
