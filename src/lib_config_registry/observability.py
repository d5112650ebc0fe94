"""Structured logging helpers for registry lifecycle events.

Purpose
    Keep every log emission predictable and contextual without forcing host
    applications onto a specific logging backend. The package stays silent
    until a handler is attached to the ``lib_config_registry`` logger.

Contents
    - ``TRACE_ID``: context variable storing the active trace identifier.
    - ``get_logger``: returns the shared package logger.
    - ``bind_trace_id``: binds or clears the active trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries via a single private emitter.
    - ``make_event``: builder for structured event payloads.

System Integration
    Used by the registry, the codecs and the CLI. Low-level I/O errors are
    logged here with full detail before being converted into localized errors,
    so this module is where the underlying causes remain visible.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_config_registry_trace_id", default=None)
"""Current trace identifier attached to every structured log entry."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_config_registry")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind or clear the active trace identifier.

    Examples
    --------
    >>> bind_trace_id('abc123')
    >>> TRACE_ID.get()
    'abc123'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the trace context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the trace context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning log entry that includes the trace context."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, *, exc: BaseException | None = None, **fields: Any) -> None:
    """Emit a structured error entry; *exc* is attached as ``exc_info`` when given."""

    _emit(logging.ERROR, message, fields, exc)


def make_event(
    operation: str,
    path: str | Path | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured payload for registry lifecycle events.

    Examples
    --------
    >>> make_event('delete', None, {'name': 'alice'})
    {'operation': 'delete', 'path': None, 'name': 'alice'}
    """

    event: dict[str, Any] = {"operation": operation, "path": str(path) if path is not None else None}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any], exc: BaseException | None = None) -> None:
    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context}, exc_info=exc)
