# src/gateway/errors.py — v1
"""Map gateway failures to HTTP error bodies.

The user-facing message follows the failure's status hint so an operator
can tell an overloaded provider from a rejected credential; the raw
provider message travels separately in ``details``.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from diarygate.llm.dispatcher import DispatchError

CONFIG_ERROR_MESSAGE = "API key is not configured (Server Config Error)"
INTERNAL_ERROR_MESSAGE = "Internal Server Error (Wrapped)"
GENERIC_FAILURE_MESSAGE = "Failed to communicate with the AI service. Please try again later."

_MESSAGES_BY_HINT: dict[str, str] = {
    "overloaded": "The AI service is busy right now. Please try again in a moment.",
    "rate-limited": "Too many requests to the AI service. Please wait a little and try again.",
    "deadline-exceeded": "The AI service timed out. Please try again.",
    "invalid-key": "The server's AI credential was rejected. Please contact the administrator.",
    "bad-request": "The AI service could not process this request.",
    "empty-response": "The AI returned an empty response. Please try again.",
}


def user_message_for(error: DispatchError) -> str:
    """Short user-facing message for a terminal dispatch failure."""
    if error.status_hint is None:
        return GENERIC_FAILURE_MESSAGE
    return _MESSAGES_BY_HINT.get(error.status_hint, GENERIC_FAILURE_MESSAGE)


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    """Build a ``{"error", "details"?}`` JSON response."""
    body: dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)
