"""Tests for observability/logger.py"""
import io
import json
import logging
import sys

from hongdown.config import FormatOptions


class TestStructuredFormatter:
    def _get_record(
        self,
        msg,
        level=logging.INFO,
        exc_info=None,
        stack_info=None,
        extra_fields=None,
    ):
        record = logging.LogRecord(
            name="test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        if stack_info is not None:
            record.stack_info = stack_info
        return record

    def test_basic_format(self):
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        record = self._get_record("hello world")
        result = json.loads(fmt.format(record))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        record = self._get_record("msg", extra_fields={"op": "format", "warnings": 2})
        result = json.loads(fmt.format(record))
        assert result["op"] == "format"
        assert result["warnings"] == 2

    def test_enum_values_serialised(self):
        from hongdown.errors import ErrorCode
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        record = self._get_record(
            "msg", extra_fields={"error_code": ErrorCode.FORMATTER_TIMEOUT}
        )
        result = json.loads(fmt.format(record))
        assert result["error_code"] == "FORMATTER_TIMEOUT"

    def test_non_ascii_kept(self):
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        output = fmt.format(self._get_record("한국어"))
        assert "한국어" in output

    def test_exception_info_included(self):
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        record = self._get_record("error msg", exc_info=exc_info)
        result = json.loads(fmt.format(record))
        assert "exception" in result
        assert "ValueError" in result["exception"]

    def test_stack_info_included(self):
        from hongdown.observability.logger import StructuredFormatter

        fmt = StructuredFormatter()
        record = self._get_record("msg", stack_info="Stack Trace Here")
        result = json.loads(fmt.format(record))
        assert result["stack_info"] == "Stack Trace Here"


class TestGetLogger:
    def test_returns_logger_with_handler(self):
        from hongdown.observability.logger import get_logger

        logger = get_logger("test.observability.unique1")
        assert isinstance(logger, logging.Logger)
        assert len(logger.handlers) > 0
        assert logger.propagate is False

    def test_string_level(self):
        from hongdown.observability.logger import get_logger

        logger = get_logger("test.observability.unique2", level="debug")
        assert logger.level == logging.DEBUG

    def test_idempotent_no_duplicate_handlers(self):
        from hongdown.observability.logger import get_logger

        name = "test.observability.unique3"
        logger1 = get_logger(name)
        handler_count = len(logger1.handlers)
        logger2 = get_logger(name)
        assert logger2 is logger1
        assert len(logger2.handlers) == handler_count

    def test_custom_stream(self):
        from hongdown.observability.logger import get_logger

        stream = io.StringIO()
        logger = get_logger("test.observability.stream_unique", stream=stream)
        logger.warning("test message", extra={"extra_fields": {"key": "val"}})
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "test message"
        assert entry["key"] == "val"


class TestLibraryLogging:
    def test_format_logs_debug_summary(self, caplog):
        from hongdown.api import format_markdown

        with caplog.at_level(logging.DEBUG, logger="hongdown"):
            format_markdown("* a\n")
        records = [r for r in caplog.records if r.getMessage() == "document formatted"]
        assert len(records) == 1
        fields = records[0].extra_fields
        assert fields["op"] == "format"
        assert fields["input_chars"] == 4
        assert fields["warnings"] == 0

    def test_formatter_failure_logged_as_warning(self, caplog):
        from hongdown.api import format_markdown
        from hongdown.config import FormatterCommand

        opts = FormatOptions(formatters={"python": FormatterCommand(["hongdown-test-missing-tool"])})
        with caplog.at_level(logging.WARNING, logger="hongdown"):
            format_markdown("```python\nx\n```\n", opts)
        (record,) = [r for r in caplog.records if r.name == "hongdown.serializer"]
        assert record.levelno == logging.WARNING
        assert record.extra_fields["language"] == "python"
        assert record.extra_fields["line"] == 1
        assert record.extra_fields["error_code"] == "FORMATTER_NOT_FOUND"


class TestNoopMetricsHook:
    """NoopMetricsHook discards all data points silently."""

    def test_gauge_returns_none(self):
        from hongdown.observability.metrics import NoopMetricsHook
        hook = NoopMetricsHook()
        result = hook.gauge("hongdown.queue_depth", 5.0, tags={"env": "test"})
        assert result is None

    def test_increment_returns_none(self):
        from hongdown.observability.metrics import NoopMetricsHook
        hook = NoopMetricsHook()
        assert hook.increment("hongdown.documents_formatted_total") is None

    def test_timing_returns_none(self):
        from hongdown.observability.metrics import NoopMetricsHook
        hook = NoopMetricsHook()
        assert hook.timing("hongdown.format_duration_ms", 123.4) is None
