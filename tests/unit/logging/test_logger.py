# tests/unit/logging/test_logger.py — v3
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys

from diarygate.logging.context import clear_context, set_model_context, set_request_context
from diarygate.logging.logger import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record("Hello")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_request_context("req1", "chat")
        set_model_context("gemini-3-flash-preview")
        parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"] == {
            "request_id": "req1",
            "action": "chat",
            "model": "gemini-3-flash-preview",
        }

    def test_format_with_data(self):
        record = _record("with data")
        record.data = {"attempts": 2}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"attempts": 2}

    def test_non_ascii_kept(self):
        output = JsonFormatter().format(_record("感謝"))
        assert "感謝" in output

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_includes_request_and_action(self):
        set_request_context("abc123", "speech")
        output = TextFormatter().format(_record("x"))
        assert "[abc123]" in output
        assert "(speech)" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("diarygate")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("diarygate")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("diarygate").handlers) == 1

    def test_quiets_http_libraries(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_records_not_repeated_by_root_handlers(self, capsys):
        seen: list[logging.LogRecord] = []

        class _Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                seen.append(record)

        root_handler = _Collect()
        logging.getLogger().addHandler(root_handler)
        try:
            setup_logging(level="INFO", log_format="text")
            logging.getLogger("diarygate.gateway.app").info("printed once")
        finally:
            logging.getLogger().removeHandler(root_handler)

        assert logging.getLogger("diarygate").propagate is False
        assert capsys.readouterr().out.count("printed once") == 1
        assert seen == []
