# src/llm/retry.py — v2
"""Transient/fatal error classification and the per-model retry policy.

classify_error() is the single place that decides whether a provider
failure is worth retrying. Structured status codes are consulted first;
substring matching on the message is the last resort.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from diarygate.llm.base_client import AdapterError, EmptyResponseError


class ErrorClass(str, Enum):
    TRANSIENT = "transient"
    FATAL = "fatal"


_TRANSIENT_CODES = frozenset({429, 500, 502, 503, 504})
_FATAL_CODES = frozenset({400, 401, 403, 404, 409, 422})

_TRANSIENT_MARKERS = (
    "503",
    "429",
    "overloaded",
    "busy",
    "unavailable",
    "resource_exhausted",
    "resource exhausted",
    "quota",
    "rate limit",
    "too many requests",
    "deadline",
    "timed out",
    "timeout",
)

_HINT_BY_CODE: dict[int, str] = {
    400: "bad-request",
    401: "invalid-key",
    403: "invalid-key",
    429: "rate-limited",
    500: "overloaded",
    502: "overloaded",
    503: "overloaded",
    504: "deadline-exceeded",
}

# Gemini reports a rejected key as 400 INVALID_ARGUMENT, so these win over the code.
_CREDENTIAL_MARKERS = ("api key", "api_key", "permission", "unauthenticated")

# Ordered: first match wins.
_HINT_BY_MARKER: tuple[tuple[str, str], ...] = (
    ("429", "rate-limited"),
    ("resource_exhausted", "rate-limited"),
    ("resource exhausted", "rate-limited"),
    ("quota", "rate-limited"),
    ("rate limit", "rate-limited"),
    ("too many requests", "rate-limited"),
    ("deadline", "deadline-exceeded"),
    ("timed out", "deadline-exceeded"),
    ("timeout", "deadline-exceeded"),
    ("503", "overloaded"),
    ("overloaded", "overloaded"),
    ("busy", "overloaded"),
    ("unavailable", "overloaded"),
    ("invalid argument", "bad-request"),
    ("400", "bad-request"),
)


def status_hint_for(status_code: int | None, message: str) -> str | None:
    """Coarse status hint from a status code and provider message."""
    msg = message.lower()
    if any(marker in msg for marker in _CREDENTIAL_MARKERS):
        return "invalid-key"
    if status_code is not None and status_code in _HINT_BY_CODE:
        return _HINT_BY_CODE[status_code]
    for marker, hint in _HINT_BY_MARKER:
        if marker in msg:
            return hint
    return None


def classify(status_code: int | None, message: str) -> ErrorClass:
    """Classify a failure described by ``{status_code, message}``."""
    if status_code is not None:
        if status_code in _TRANSIENT_CODES:
            return ErrorClass.TRANSIENT
        if status_code in _FATAL_CODES:
            return ErrorClass.FATAL
    msg = message.lower()
    if any(marker in msg for marker in _TRANSIENT_MARKERS):
        return ErrorClass.TRANSIENT
    return ErrorClass.FATAL


def classify_error(error: Exception) -> ErrorClass:
    """Classify an exception raised by a model client."""
    if isinstance(error, EmptyResponseError):
        return ErrorClass.TRANSIENT
    if isinstance(error, AdapterError):
        return classify(error.status_code, error.message)
    if isinstance(error, TimeoutError):
        return ErrorClass.TRANSIENT
    return classify(None, str(error))


@dataclass(frozen=True)
class RetryPolicy:
    """Per-model retry budget with linear backoff."""

    max_attempts_per_model: int = 3
    base_delay_s: float = 1.0

    def delay_for(self, attempt_number: int) -> float:
        """Wait before retrying after failed attempt ``attempt_number`` (1-based)."""
        return self.base_delay_s * attempt_number

    def can_retry(self, attempt_number: int) -> bool:
        return attempt_number < self.max_attempts_per_model
