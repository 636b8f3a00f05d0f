"""
TEST_STRUCTURED_LOGGING.PY - Tests for Structured Logging
==========================================================

Tests verify:
1. Run ID generation and context
2. JSON log format structure
3. Secret redaction in logs
4. Run correlation via run_scope

Run with: python -m pytest tests/test_structured_logging.py -v
"""

import json
import logging

import pytest

from core.structured_logging import (
    JSONFormatter,
    TextFormatter,
    configure_structured_logging,
    generate_run_id,
    get_run_id,
    log_debug,
    log_error,
    log_info,
    log_warning,
    run_scope,
)


def _record(msg="Test", lineno=1):
    record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=lineno,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.funcName = "test_func"
    return record


class TestRunIdContext:
    """Tests for run ID context management."""

    def test_generate_run_id_format(self):
        """Run IDs should have run- prefix and 12 hex chars."""
        run_id = generate_run_id()
        assert run_id.startswith("run-")
        assert len(run_id) == 16

    def test_default_run_id_is_none(self):
        """Default run ID should be None."""
        assert get_run_id() is None

    def test_run_scope_binds_and_restores(self):
        """run_scope binds a run id and restores the previous one on exit."""
        with run_scope("run-outer0000000") as outer:
            assert get_run_id() == outer
            with run_scope() as inner:
                assert inner.startswith("run-")
                assert get_run_id() == inner
            assert get_run_id() == "run-outer0000000"
        assert get_run_id() is None

    def test_run_scope_restores_on_error(self):
        """An exception inside the scope still restores the run id."""
        with pytest.raises(RuntimeError):
            with run_scope("run-boom00000000"):
                raise RuntimeError("boom")
        assert get_run_id() is None


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_json_format_structure(self):
        """JSON log entries should have required fields."""
        formatter = JSONFormatter(include_build_sha=False)
        parsed = json.loads(formatter.format(_record("Test message", lineno=42)))

        assert "timestamp" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert parsed["line"] == 42
        assert "build_sha" not in parsed

    def test_json_includes_run_id_inside_scope(self):
        """JSON should include run_id while a run scope is active."""
        formatter = JSONFormatter(include_build_sha=False)
        with run_scope("run-abc123def456"):
            parsed = json.loads(formatter.format(_record()))
        assert parsed["run_id"] == "run-abc123def456"

    def test_json_excludes_run_id_when_not_set(self):
        """JSON should not have run_id outside a run."""
        parsed = json.loads(JSONFormatter(include_build_sha=False).format(_record()))
        assert "run_id" not in parsed

    def test_json_redacts_sensitive_keys(self):
        """JSON formatter should redact sensitive field values."""
        record = _record()
        record.api_key = "secret_value_123"
        record.headers = {"Authorization": "Bearer abc", "Accept": "application/json"}

        parsed = json.loads(JSONFormatter(include_build_sha=False).format(record))

        assert parsed["api_key"] == "[REDACTED]"
        assert parsed["headers"]["Authorization"] == "[REDACTED]"
        assert parsed["headers"]["Accept"] == "application/json"

    def test_json_includes_extra_fields(self):
        """JSON should include extra fields from record."""
        record = _record("Terminal scan complete")
        record.alerts = 5
        record.fallback = False
        record.home = "KC"

        parsed = json.loads(JSONFormatter(include_build_sha=False).format(record))

        assert parsed["alerts"] == 5
        assert parsed["fallback"] is False
        assert parsed["home"] == "KC"


class TestTextFormatter:
    """Tests for text log formatter."""

    def test_text_format_structure(self):
        """Text formatter should produce readable output."""
        with run_scope("run-test123456"):
            output = TextFormatter().format(_record("Test message", lineno=42))

        assert "[INFO]" in output
        assert "[run-test123456]" in output
        assert "test_logger:test_func:42" in output
        assert "Test message" in output

    def test_text_format_without_run_id(self):
        """Text formatter should show '-' when no run ID."""
        assert "[-]" in TextFormatter().format(_record())


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_json_format(self):
        """JSON format installs the JSON formatter."""
        configure_structured_logging(level="DEBUG", format_type="json")
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_configure_text_format(self):
        """Text format installs the text formatter."""
        configure_structured_logging(level="DEBUG", format_type="text")
        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, TextFormatter)

    def test_configure_is_idempotent(self):
        """Calling configure multiple times should not add duplicate handlers."""
        configure_structured_logging(level="INFO", format_type="json")
        configure_structured_logging(level="INFO", format_type="json")
        configure_structured_logging(level="DEBUG", format_type="text")

        assert len(logging.getLogger().handlers) == 1

    def test_quiets_http_client_loggers(self):
        """httpx and httpcore are raised to WARNING."""
        configure_structured_logging(level="DEBUG", format_type="text")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestContextHelpers:
    """log_info / log_warning / log_error / log_debug attach extra fields."""

    @pytest.mark.parametrize("helper,level", [
        (log_debug, logging.DEBUG),
        (log_info, logging.INFO),
        (log_warning, logging.WARNING),
        (log_error, logging.ERROR),
    ])
    def test_level_and_extra(self, caplog, helper, level):
        """Each helper logs at its level with the extras on the record."""
        logger = logging.getLogger("test_helpers")
        with caplog.at_level(logging.DEBUG, logger="test_helpers"):
            helper(logger, "Scan step", alerts=5, fallback=False)

        record = caplog.records[-1]
        assert record.levelno == level
        assert record.getMessage() == "Scan step"
        assert record.alerts == 5
        assert record.fallback is False
