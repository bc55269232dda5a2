"""
ROOFWATCH Unit Tests - Logging Configuration

Unit tests for roofwatch/logging_config.py.
Tests setup_logging, get_logger, set_service_level, and helper functions.

Run:
    pytest tests/unit/test_logging_config.py -v
"""

import json
import logging
import sys
import time
from unittest.mock import patch

import pytest

from roofwatch.logging_config import (
    LOG_LEVELS,
    JsonFormatter,
    get_logger,
    log_exception,
    log_timing,
    set_service_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_roofwatch_logger():
    """Leave the roofwatch logger with no file handlers after each test."""
    yield
    root_logger = logging.getLogger("roofwatch")
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)
    for name in ("roofwatch.enclosure", "roofwatch.enclosure.poll"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def _file_handlers(logger):
    return [h for h in logger.handlers if hasattr(h, "baseFilename")]


# =============================================================================
# Test setup_logging Function
# =============================================================================

class TestSetupLogging:
    """Unit tests for setup_logging function."""

    def test_setup_logging_default(self):
        setup_logging()
        root_logger = logging.getLogger("roofwatch")
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1

    @pytest.mark.parametrize("name", ["DEBUG", "WARNING", "error"])
    def test_setup_logging_levels(self, name):
        setup_logging(log_level=name)
        assert logging.getLogger("roofwatch").level == LOG_LEVELS[name.upper()]

    def test_setup_logging_unknown_level_is_info(self):
        setup_logging(log_level="LOUD")
        assert logging.getLogger("roofwatch").level == logging.INFO

    def test_setup_logging_with_file(self, tmp_path):
        log_path = tmp_path / "roof.log"
        setup_logging(log_file=log_path)

        file_handlers = _file_handlers(logging.getLogger("roofwatch"))
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(log_path)

    def test_setup_logging_creates_parent_directory(self, tmp_path):
        log_path = tmp_path / "var" / "log" / "roofwatch.log"
        setup_logging(log_file=log_path)
        assert log_path.parent.exists()

    def test_setup_logging_clears_existing_handlers(self, tmp_path):
        setup_logging(log_level="INFO", log_file=tmp_path / "a.log")
        setup_logging(log_level="DEBUG")

        root_logger = logging.getLogger("roofwatch")
        assert len(root_logger.handlers) == 1
        assert _file_handlers(root_logger) == []

    def test_setup_logging_writes_to_file(self, tmp_path):
        log_path = tmp_path / "roof.log"
        setup_logging(log_level="INFO", log_file=log_path)

        get_logger("enclosure").info("Roof is closed.")
        for handler in logging.getLogger("roofwatch").handlers:
            handler.flush()

        text = log_path.read_text()
        assert "roofwatch.enclosure" in text
        assert "Roof is closed." in text

    def test_setup_logging_json_format(self, tmp_path):
        log_path = tmp_path / "roof.jsonl"
        setup_logging(log_file=log_path, json_format=True)

        get_logger("enclosure").warning("Parking status is unknown.")
        for handler in logging.getLogger("roofwatch").handlers:
            handler.flush()

        record = json.loads(log_path.read_text().splitlines()[-1])
        assert record["level"] == "WARNING"
        assert record["logger"] == "roofwatch.enclosure"
        assert record["message"] == "Parking status is unknown."


class TestJsonFormatter:
    """Unit tests for JsonFormatter."""

    def test_includes_exception(self):
        formatter = JsonFormatter()
        try:
            raise ValueError("bad level")
        except ValueError:
            record = logging.LogRecord(
                "roofwatch.test", logging.ERROR, __file__, 1,
                "failed", None, sys.exc_info(),
            )

        payload = json.loads(formatter.format(record))
        assert payload["message"] == "failed"
        assert "ValueError: bad level" in payload["exception"]


# =============================================================================
# Test get_logger / set_service_level
# =============================================================================

class TestGetLogger:
    """Unit tests for get_logger function."""

    def test_get_logger_adds_prefix(self):
        assert get_logger("services.enclosure").name == "roofwatch.services.enclosure"

    def test_get_logger_preserves_existing_prefix(self):
        assert get_logger("roofwatch.main").name == "roofwatch.main"


class TestSetServiceLevel:
    """Unit tests for set_service_level function."""

    def test_set_service_level_debug(self):
        setup_logging()
        set_service_level("enclosure", "debug")
        assert logging.getLogger("roofwatch.enclosure").level == logging.DEBUG

    def test_set_service_level_invalid_defaults_to_info(self):
        setup_logging()
        set_service_level("enclosure.poll", "INVALID_LEVEL")
        assert logging.getLogger("roofwatch.enclosure.poll").level == logging.INFO

    def test_service_debug_reaches_console(self, capsys):
        setup_logging(log_level="INFO")
        set_service_level("enclosure", "DEBUG")

        get_logger("enclosure.roof").debug("raw levels open=1 closed=0")
        get_logger("main").debug("startup detail")

        out = capsys.readouterr().out
        assert "raw levels open=1 closed=0" in out
        assert "startup detail" not in out


# =============================================================================
# Test log_exception Helper
# =============================================================================

class TestLogException:
    """Unit tests for log_exception helper function."""

    def test_log_exception_default_level_and_message(self):
        logger = get_logger("test_exception")

        with patch.object(logger, "log") as mock_log:
            log_exception(logger, "Relay failed", RuntimeError("connection reset"))

        level, message = mock_log.call_args[0]
        assert level == logging.ERROR
        assert message == "Relay failed: RuntimeError: connection reset"
        assert mock_log.call_args[1]["extra"]["exception_type"] == "RuntimeError"

    def test_log_exception_custom_level(self):
        logger = get_logger("test_custom_level")

        with patch.object(logger, "log") as mock_log:
            log_exception(logger, "Test", ValueError("x"), level=logging.WARNING)

        assert mock_log.call_args[0][0] == logging.WARNING

    def test_log_exception_without_traceback(self):
        logger = get_logger("test_no_traceback")

        with patch.object(logger, "log") as mock_log:
            log_exception(logger, "Error", ValueError("no trace"), include_traceback=False)

        assert "traceback" not in mock_log.call_args[1]["extra"]

    def test_log_exception_with_traceback(self):
        logger = get_logger("test_with_traceback")

        with patch.object(logger, "log") as mock_log:
            try:
                raise ValueError("with trace")
            except ValueError as exc:
                log_exception(logger, "Error", exc)

        extra = mock_log.call_args[1]["extra"]
        assert "ValueError" in extra["traceback"]


# =============================================================================
# Test log_timing Context Manager
# =============================================================================

class TestLogTiming:
    """Unit tests for log_timing context manager."""

    def test_log_timing_logs_start_and_end(self):
        logger = get_logger("test_timing")

        with patch.object(logger, "log") as mock_log:
            with log_timing(logger, "relay stop"):
                pass

        messages = [c[0][1] for c in mock_log.call_args_list]
        assert messages[0] == "relay stop started"
        assert messages[-1].startswith("relay stop completed in")
        extra = mock_log.call_args_list[-1][1]["extra"]
        assert extra["operation"] == "relay stop"
        assert "elapsed_seconds" in extra

    def test_log_timing_warns_on_threshold_exceeded(self):
        logger = get_logger("test_threshold")

        with patch.object(logger, "warning") as mock_warning:
            with log_timing(logger, "relay drive_open", warn_threshold_sec=0.01):
                time.sleep(0.05)

        mock_warning.assert_called_once()
        message = mock_warning.call_args[0][0]
        assert "exceeded" in message
        assert "threshold" in message

    def test_log_timing_no_warning_under_threshold(self):
        logger = get_logger("test_under_threshold")

        with patch.object(logger, "warning") as mock_warning:
            with log_timing(logger, "relay stop", warn_threshold_sec=10.0):
                pass

        mock_warning.assert_not_called()

    def test_log_timing_works_with_exception(self):
        logger = get_logger("test_exception_timing")

        with patch.object(logger, "log") as mock_log:
            with pytest.raises(RuntimeError):
                with log_timing(logger, "failing_operation"):
                    raise RuntimeError("Intentional error")

        assert mock_log.call_count == 2
