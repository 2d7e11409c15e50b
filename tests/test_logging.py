"""
Unit tests for structured logging configuration.

Tests verify:
- Logging configuration works with JSON and console output
- Context variables (trace_id, request_id) are set and retrieved
- Entries carry the service name and request correlation ids
- Upstream text is truncated before it is logged
"""
import json
import logging
from io import StringIO

from grocery_search.core.logging import (
    LOG_EXCERPT_CHARS,
    SERVICE_NAME,
    add_request_context,
    configure_logging,
    excerpt,
    generate_request_id,
    generate_trace_id,
    get_logger,
    get_request_id,
    get_trace_id,
    set_request_id,
    set_trace_id,
)


def capture_root_output():
    output = StringIO()
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler(output)
    handler.setLevel(logging.INFO)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)
    return output, handler


class TestLoggingConfiguration:
    """Test logging configuration and setup."""

    def test_configure_logging_json_output(self):
        """Test that JSON output contains the event and its fields."""
        configure_logging(log_level="INFO", json_output=True)
        output, handler = capture_root_output()

        logger = get_logger("tests.json_output")
        logger.info("test_message", test_field="test_value")
        handler.flush()
        logging.getLogger().removeHandler(handler)

        output_str = output.getvalue()
        assert "test_message" in output_str
        assert "test_value" in output_str

    def test_configure_logging_console_output(self):
        """Test that logging can be configured with console output."""
        configure_logging(log_level="INFO", json_output=False)
        logger = get_logger(__name__)

        logger.info("test_message", test_field="test_value")

    def test_service_name(self):
        assert SERVICE_NAME == "grocery_search_api"

    def test_http_client_noise_is_silenced(self):
        configure_logging(log_level="DEBUG", json_output=False)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestContextVariables:
    """Test trace ID and request ID context variables."""

    def test_set_and_get_trace_id(self):
        set_trace_id("test-trace-123")
        assert get_trace_id() == "test-trace-123"

        set_trace_id(None)
        assert get_trace_id() is None

    def test_set_and_get_request_id(self):
        set_request_id("test-request-456")
        assert get_request_id() == "test-request-456"

        set_request_id(None)
        assert get_request_id() is None

    def test_generated_ids_are_unique_uuids(self):
        trace_id = generate_trace_id()
        request_id = generate_request_id()

        assert len(trace_id) == 36
        assert trace_id.count("-") == 4
        assert len(request_id) == 36
        assert trace_id != generate_trace_id()
        assert request_id != generate_request_id()


class TestRequestContextProcessor:
    """Test the processor that stamps correlation ids onto entries."""

    def test_adds_ids_when_set(self):
        set_trace_id("trace-1")
        set_request_id("request-1")
        try:
            event = add_request_context(None, "info", {"event": "x"})
        finally:
            set_trace_id(None)
            set_request_id(None)

        assert event["trace_id"] == "trace-1"
        assert event["request_id"] == "request-1"
        assert event["service"] == SERVICE_NAME

    def test_omits_ids_when_unset(self):
        event = add_request_context(None, "info", {"event": "x"})

        assert "trace_id" not in event
        assert "request_id" not in event

    def test_json_entry_includes_trace_id(self):
        configure_logging(log_level="INFO", json_output=True)
        output, handler = capture_root_output()
        set_trace_id("trace-json")
        try:
            get_logger("tests.trace_json").info("traced_event")
        finally:
            set_trace_id(None)
            logging.getLogger().removeHandler(handler)

        lines = [line for line in output.getvalue().splitlines() if "traced_event" in line]
        assert lines
        entry = json.loads(lines[-1])
        assert entry["trace_id"] == "trace-json"
        assert entry["level"] == "info"


class TestExcerpt:
    def test_short_text_unchanged(self):
        assert excerpt("hello") == "hello"

    def test_none_passes_through(self):
        assert excerpt(None) is None

    def test_long_text_truncated(self):
        text = "a" * (LOG_EXCERPT_CHARS + 10)

        result = excerpt(text)

        assert result.startswith("a" * LOG_EXCERPT_CHARS)
        assert result.endswith("...[truncated]")
        assert len(result) == LOG_EXCERPT_CHARS + len("...[truncated]")
