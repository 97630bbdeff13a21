# tests/unit/llm/test_unit_retry.py — v1
"""Tests for llm/retry.py — error classification and retry policy."""

from __future__ import annotations

import pytest

from diarygate.llm.base_client import AdapterError, EmptyResponseError
from diarygate.llm.retry import (
    ErrorClass,
    RetryPolicy,
    classify,
    classify_error,
    status_hint_for,
)


class TestClassifyByStatusCode:
    @pytest.mark.parametrize("code", [429, 500, 502, 503, 504])
    def test_transient_codes(self, code):
        assert classify(code, "") is ErrorClass.TRANSIENT

    @pytest.mark.parametrize("code", [400, 401, 403, 404])
    def test_fatal_codes(self, code):
        assert classify(code, "") is ErrorClass.FATAL

    def test_code_beats_message(self):
        assert classify(400, "model is overloaded") is ErrorClass.FATAL


class TestClassifyByMessage:
    @pytest.mark.parametrize(
        "message",
        [
            "503 Service Unavailable",
            "The model is overloaded. Please try again later.",
            "Server busy",
            "429 Too Many Requests",
            "RESOURCE_EXHAUSTED: quota exceeded",
            "Deadline Exceeded",
            "request timed out",
        ],
    )
    def test_transient_messages(self, message):
        assert classify(None, message) is ErrorClass.TRANSIENT

    @pytest.mark.parametrize(
        "message",
        [
            "API key not valid. Please pass a valid API key.",
            "Invalid JSON payload received.",
            "",
        ],
    )
    def test_fatal_messages(self, message):
        assert classify(None, message) is ErrorClass.FATAL


class TestClassifyError:
    def test_empty_response_is_transient(self):
        assert classify_error(EmptyResponseError("m")) is ErrorClass.TRANSIENT

    def test_adapter_error_uses_status_code(self):
        assert classify_error(AdapterError("boom", status_code=503)) is ErrorClass.TRANSIENT
        assert classify_error(AdapterError("boom", status_code=403)) is ErrorClass.FATAL

    def test_timeout_error(self):
        assert classify_error(TimeoutError()) is ErrorClass.TRANSIENT

    def test_plain_exception_uses_message(self):
        assert classify_error(Exception("overloaded")) is ErrorClass.TRANSIENT
        assert classify_error(Exception("bad schema")) is ErrorClass.FATAL


class TestStatusHint:
    @pytest.mark.parametrize(
        "code,hint",
        [
            (503, "overloaded"),
            (429, "rate-limited"),
            (504, "deadline-exceeded"),
            (401, "invalid-key"),
            (403, "invalid-key"),
            (400, "bad-request"),
        ],
    )
    def test_from_code(self, code, hint):
        assert status_hint_for(code, "") == hint

    def test_invalid_key_message_beats_400(self):
        assert status_hint_for(400, "API key not valid") == "invalid-key"
        assert status_hint_for(None, "API key not valid") == "invalid-key"

    def test_quota_message(self):
        assert status_hint_for(None, "RESOURCE_EXHAUSTED") == "rate-limited"

    def test_unknown(self):
        assert status_hint_for(None, "something odd") is None


class TestRetryPolicy:
    def test_defaults(self):
        p = RetryPolicy()
        assert p.max_attempts_per_model == 3
        assert p.base_delay_s == 1.0

    def test_linear_delay(self):
        p = RetryPolicy(base_delay_s=2.0)
        assert [p.delay_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]

    def test_can_retry(self):
        p = RetryPolicy(max_attempts_per_model=3)
        assert p.can_retry(1)
        assert p.can_retry(2)
        assert not p.can_retry(3)
