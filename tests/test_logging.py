"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from habitpulse.logging_config import JSONFormatter, get_logger, log_job_status, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    """JSONFormatter renders the standard fields."""
    log_data = json.loads(JSONFormatter().format(make_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_exception():
    """JSONFormatter includes exception details."""
    try:
        raise ValueError("Test error")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    record = make_record()
    record.exc_info = exc_info

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_json_formatter_keeps_extra_fields():
    record = make_record(job_event={"job": "process-reminders", "status": "started"})

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"]["job_event"] == {"job": "process-reminders", "status": "started"}


def test_setup_logging(config, reset_habitpulse_logger):
    """Logging setup creates a JSON log file under the data directory."""
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "habitpulse"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2  # Console + File

    log_file = config.DATA_DIR / "logs" / "habitpulse.log"
    assert log_file.exists()

    logger.info("Test info message")
    logger.warning("Test warning message")
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert len(lines) >= 3
    for line in lines:
        entry = json.loads(line)
        assert "timestamp" in entry
        assert "level" in entry
        assert "message" in entry


def test_get_logger():
    """get_logger returns loggers under the package namespace."""
    logger1 = get_logger("jobs")
    logger2 = get_logger("reminders")

    assert logger1.name == "habitpulse.jobs"
    assert logger2.name == "habitpulse.reminders"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(config, reset_habitpulse_logger, dev_mode):
    """Console logging level adjusts based on dev mode."""
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = None
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.handlers.RotatingFileHandler
        ):
            console_handler = handler
            break

    assert console_handler is not None
    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level


class TestJobStatus:
    def test_payload_shape(self, caplog):
        caplog.set_level(logging.INFO, logger="habitpulse.jobs")

        payload = log_job_status("daily-goal-check", "completed", duration_ms=12.5, summary={"users": 3})

        assert payload["job"] == "daily-goal-check"
        assert payload["status"] == "completed"
        assert payload["duration_ms"] == 12.5
        assert payload["summary"] == {"users": 3}
        assert "timestamp" in payload
        [record] = caplog.records
        assert record.name == "habitpulse.jobs"
        assert record.levelno == logging.INFO
        assert record.getMessage() == "[daily-goal-check][completed]"
        assert record.job_event == payload

    @pytest.mark.parametrize(
        "status, level",
        [("started", logging.INFO), ("warning", logging.WARNING), ("failed", logging.ERROR)],
    )
    def test_level_follows_status(self, caplog, status, level):
        caplog.set_level(logging.INFO, logger="habitpulse.jobs")

        log_job_status("process-reminders", status)

        assert caplog.records[-1].levelno == level

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValueError):
            log_job_status("process-reminders", "exploded")
