"""Unit tests for logging infrastructure."""

import json
import logging
import sys

from smoothies.utils.logger import (
    JSONFormatter,
    RichTextFormatter,
    get_logger,
    record_context,
    route_server_logs,
)


def _record(msg="Test message", level=logging.INFO, name="test_logger", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSONFormatter produces valid JSON output."""

    def test_json_formatter_outputs_valid_json(self):
        """Test that JSONFormatter produces valid JSON."""
        parsed = json.loads(JSONFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed

    def test_json_formatter_includes_exception_traceback(self):
        """Test that JSONFormatter includes exception traceback when present."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError" in parsed["exception"]

    def test_json_formatter_includes_context_fields(self):
        """Test that provider and cache_key extras reach the JSON output."""
        record = _record()
        record.provider = "pexels"
        record.cache_key = "abc123"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["provider"] == "pexels"
        assert parsed["cache_key"] == "abc123"
        assert "request_id" not in parsed

    def test_json_formatter_keeps_accents(self):
        parsed_raw = JSONFormatter().format(_record("Pêche Melba"))
        assert "Pêche Melba" in parsed_raw


class TestRichTextFormatter:
    """Test RichTextFormatter produces colored text output."""

    def test_rich_text_formatter_includes_level_logger_and_message(self):
        output = RichTextFormatter().format(_record("Custom message", name="my_logger"))

        assert "INFO" in output
        assert "my_logger" in output
        assert "Custom message" in output

    def test_rich_text_formatter_includes_emoji_icon(self):
        """Test that RichTextFormatter includes emoji icons for each level."""
        formatter = RichTextFormatter()
        for level, icon in RichTextFormatter.ICONS.items():
            output = formatter.format(_record(level=getattr(logging, level)))
            assert icon in output

    def test_rich_text_formatter_appends_context(self):
        record = _record()
        record.cache_key = "abc123"

        output = RichTextFormatter().format(record)

        assert "[cache_key=abc123]" in output

    def test_rich_text_formatter_includes_exception_traceback(self):
        """Test that RichTextFormatter includes exception traceback."""
        try:
            raise RuntimeError("Test error")
        except RuntimeError:
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        output = RichTextFormatter().format(record)

        assert "RuntimeError" in output
        assert "Test error" in output


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_attaches_handler_once(self):
        first = get_logger("smoothies_test_once")
        second = get_logger("smoothies_test_once")

        assert first is second
        assert len(second.handlers) == 1

    def test_get_logger_respects_log_level_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert get_logger("smoothies_test_debug").level == logging.DEBUG

    def test_invalid_log_level_defaults_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")
        assert get_logger("smoothies_test_invalid").level == logging.INFO

    def test_get_logger_respects_log_type_json(self, monkeypatch):
        monkeypatch.setenv("LOG_TYPE", "json")
        test_logger = get_logger("smoothies_test_json")
        assert isinstance(test_logger.handlers[0].formatter, JSONFormatter)

    def test_log_type_text_default(self, monkeypatch):
        monkeypatch.delenv("LOG_TYPE", raising=False)
        test_logger = get_logger("smoothies_test_text")
        assert isinstance(test_logger.handlers[0].formatter, RichTextFormatter)

    def test_module_logger_name(self):
        from smoothies.utils.logger import logger

        assert logger.name == "smoothies"
        assert logger.handlers


class TestRecordContext:
    """Test context field extraction shared by both formatters."""

    def test_only_present_fields_in_declared_order(self):
        record = _record()
        record.cache_key = "abc123"
        record.request_id = "req-1"

        assert list(record_context(record).items()) == [("request_id", "req-1"), ("cache_key", "abc123")]

    def test_unrelated_extras_are_ignored(self):
        record = _record()
        record.session_id = "s-1"

        assert record_context(record) == {}


class TestRouteServerLogs:
    """Test that server loggers share the service handler."""

    def test_server_loggers_use_source_handlers(self):
        source = get_logger("smoothies_test_route_source")
        names = ("smoothies_test_server", "smoothies_test_server.access")

        route_server_logs(source, names)
        route_server_logs(source, names)

        for name in names:
            server_logger = logging.getLogger(name)
            assert server_logger.handlers == source.handlers
            assert server_logger.level == source.level
            assert server_logger.propagate is False
