"""Tests for structured logging"""
import json
import logging

from movie_ratings.core.logger import ConsoleFormatter, JSONFormatter, StructuredLogger
from movie_ratings.utils.correlation_id import set_correlation_id


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def make_logger():
    structured = StructuredLogger(name="movie-ratings-test")
    handler = CaptureHandler()
    structured._logger.handlers = [handler]
    structured._logger.setLevel(logging.DEBUG)
    return structured, handler


class TestStructuredLogger:

    def test_entry_carries_correlation_id_and_metadata(self):
        structured, handler = make_logger()
        set_correlation_id("corr-1")

        structured.info("Rating submitted", metadata={"event": "rating_submitted", "movieId": 1})

        record = handler.records[0]
        assert record.getMessage() == "Rating submitted"
        assert record.correlationId == "corr-1"
        assert record.metadata == {"event": "rating_submitted", "movieId": 1}

    def test_explicit_correlation_id_wins(self):
        structured, handler = make_logger()
        set_correlation_id("corr-1")

        structured.warning("Merge retry", correlation_id="corr-2")

        assert handler.records[0].correlationId == "corr-2"

    def test_error_records_exception(self):
        structured, handler = make_logger()

        structured.error("Merge aborted", error=ValueError("boom"))

        assert handler.records[0].levelno == logging.ERROR
        assert handler.records[0].metadata["error"] == {"type": "ValueError", "message": "boom"}

    def test_slow_operation_logs_warning(self):
        structured, handler = make_logger()

        structured.performance("merge_group", 900, threshold_ms=500)

        assert handler.records[0].levelno == logging.WARNING
        assert handler.records[0].metadata["durationMs"] == 900


class TestFormatters:

    def _record(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
        record.metadata = {"event": "merge_committed"}
        record.correlationId = "corr-9"
        return record

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(self._record()))

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["correlationId"] == "corr-9"
        assert data["metadata"] == {"event": "merge_committed"}

    def test_console_formatter_appends_metadata(self):
        line = ConsoleFormatter().format(self._record())

        assert "hello" in line
        assert '{"event": "merge_committed"}' in line
