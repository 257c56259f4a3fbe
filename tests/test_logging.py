"""
Test Logging Module
===================

Unit tests for log formatting and per-conversation log context.
"""

import json
import logging
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.logging import (
    ColoredFormatter, ContextFilter, JSONFormatter,
    clear_log_context, get_logger, log_context, set_log_context
)


def make_record(msg="Turn processed", level=logging.INFO):
    return logging.LogRecord("eliza.test", level, __file__, 10, msg, None, None)


class TestContext:
    """Tests for thread-local log context."""

    def teardown_method(self):
        clear_log_context()

    def test_filter_attaches_context(self):
        """Test the filter copies context onto records."""
        set_log_context(session="abc", language="us")
        record = make_record()
        assert ContextFilter().filter(record) is True
        assert record.context == {"session": "abc", "language": "us"}

    def test_log_context_restores_previous(self):
        """Test nested contexts are undone on exit."""
        set_log_context(session="outer")
        with log_context(session="inner", language="fr"):
            assert ContextFilter.get_context() == {"session": "inner", "language": "fr"}
        assert ContextFilter.get_context() == {"session": "outer"}

    def test_clear(self):
        """Test clearing removes all context."""
        set_log_context(session="abc")
        clear_log_context()
        assert ContextFilter.get_context() == {}


class TestFormatters:
    """Tests for log formatters."""

    def test_json_formatter(self):
        """Test JSON output includes message and context."""
        record = make_record()
        record.context = {"session": "abc"}
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Turn processed"
        assert data["level"] == "INFO"
        assert data["context"] == {"session": "abc"}

    def test_json_formatter_keeps_unicode(self):
        """Test accented text is written as-is."""
        output = JSONFormatter().format(make_record("Mère"))
        assert "Mère" in output

    def test_colored_formatter(self):
        """Test console output includes level and context pairs."""
        record = make_record(level=logging.WARNING)
        record.context = {"session": "abc"}
        output = ColoredFormatter().format(record)
        assert "[WARNING]" in output
        assert "[session=abc]" in output


class TestGetLogger:
    """Tests for get_logger."""

    def test_prefixed_name(self):
        """Test loggers live under the application root."""
        assert get_logger("rules.engine").logger.name == "eliza.rules.engine"
        assert get_logger("eliza.web").logger.name == "eliza.web"

    def test_bound_extra(self):
        """Test bound extra becomes record context."""
        adapter = get_logger("test", component="loader")
        _, kwargs = adapter.process("msg", {})
        assert kwargs["extra"]["context"] == {"component": "loader"}
