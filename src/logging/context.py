# src/logging/context.py — v2
"""Contextual logging support — attach request_id, action, model to log records.

Context variables are per asyncio task, so concurrent gateway requests
never see each other's values.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_action: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "action", default=None
)
_model: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    request_id: str | None = None
    action: str | None = None
    model: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        request_id=_request_id.get(),
        action=_action.get(),
        model=_model.get(),
    )


def set_request_context(request_id: str, action: str | None = None) -> None:
    """Set request-level context (called once per gateway request)."""
    _request_id.set(request_id)
    _action.set(action)
    _model.set(None)


def set_model_context(model: str) -> None:
    """Record the model currently being attempted."""
    _model.set(model)


def clear_context() -> None:
    _request_id.set(None)
    _action.set(None)
    _model.set(None)
