"""Tests for taskrecover.core.log — logging setup, safe_print, and observability."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from taskrecover.core.log import (
    LOGGER_NAME,
    StructuredFormatter,
    clear_request_id,
    get_request_id,
    request_context,
    safe_print,
    set_request_id,
    setup_logging,
    timed,
)


class TestSetupLogging:
    """Test the logging initialization."""

    def test_adds_file_handler(self):
        handler = setup_logging()
        logger = logging.getLogger(LOGGER_NAME)
        assert isinstance(handler, RotatingFileHandler)
        assert handler in logger.handlers

    def test_leaves_root_logger_alone(self):
        root_handlers = list(logging.getLogger().handlers)
        setup_logging()
        assert logging.getLogger().handlers == root_handlers

    def test_clears_existing_handlers(self):
        logger = logging.getLogger(LOGGER_NAME)
        logger.addHandler(logging.StreamHandler())
        setup_logging()
        assert len(logger.handlers) == 1

    def test_writes_json_lines(self, tmp_path):
        handler = setup_logging(json_format=True)
        safe_print("hello file", tier="raw")
        handler.flush()
        line = (tmp_path / "taskrecover.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        parsed = json.loads(line)
        assert parsed["message"] == "hello file"
        assert parsed["tier"] == "raw"

    def test_plain_format(self, tmp_path):
        handler = setup_logging(json_format=False)
        safe_print("plain entry")
        handler.flush()
        text = (tmp_path / "taskrecover.log").read_text(encoding="utf-8")
        assert " - taskrecover - INFO - plain entry" in text


class TestSafePrint:
    """Test the safe_print helper."""

    def test_logs_message(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            safe_print("Hello test")
        assert "Hello test" in caplog.text

    def test_custom_level(self, caplog):
        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            safe_print("Warning msg", logging.WARNING)
        assert caplog.records[-1].levelno == logging.WARNING

    def test_extra_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            safe_print("tagged", outcome="clean")
        assert caplog.records[-1].outcome == "clean"


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_produces_valid_json(self):
        fmt = StructuredFormatter()
        record = logging.LogRecord("test", logging.INFO, "test.py", 1, "Hello world", (), None)
        parsed = json.loads(fmt.format(record))
        assert parsed["message"] == "Hello world"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_includes_request_id(self):
        with request_context("abc123"):
            record = logging.LogRecord("test", logging.INFO, "test.py", 1, "msg", (), None)
            parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["request_id"] == "abc123"

    def test_includes_extras(self):
        record = logging.LogRecord("test", logging.INFO, "test.py", 1, "msg", (), None)
        record.duration_ms = 150  # type: ignore[attr-defined]
        record.passes = ["structural_cleanup"]  # type: ignore[attr-defined]
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["duration_ms"] == 150
        assert parsed["passes"] == ["structural_cleanup"]


class TestRequestContext:
    """Test request correlation ID management."""

    def test_set_and_get(self):
        rid = set_request_id("test-123")
        assert rid == "test-123"
        assert get_request_id() == "test-123"
        clear_request_id()
        assert get_request_id() == ""

    def test_auto_generated_id(self):
        rid = set_request_id()
        assert len(rid) == 12  # hex[:12]
        clear_request_id()

    def test_context_manager_restores_outer(self):
        with request_context("outer"):
            with request_context("inner") as rid:
                assert rid == "inner"
            assert get_request_id() == "outer"
        assert get_request_id() == ""

    def test_context_manager_auto_id(self):
        with request_context() as rid:
            assert len(rid) == 12
            assert get_request_id() == rid
        assert get_request_id() == ""


class TestTimed:
    """Test performance timing context manager."""

    def test_logs_duration(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME), timed("test_operation"):
            pass
        assert "[START] test_operation" in caplog.text
        assert "[DONE] test_operation" in caplog.text

    def test_logs_failure(self, caplog):
        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            with pytest.raises(ValueError):
                with timed("failing_op"):
                    raise ValueError("boom")
        assert "[FAILED] failing_op" in caplog.text

    def test_reraises_exception(self):
        with pytest.raises(RuntimeError, match="test error"), timed("error_op"):
            raise RuntimeError("test error")
