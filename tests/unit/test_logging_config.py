"""Tests for logging setup."""

import json
import logging

import pytest

from membership_sync.config.logging_config import (
    ProductionFormatter,
    get_logger_level_from_env,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_includes_extras():
    record = logging.LogRecord("membership_sync.jobs", logging.ERROR, __file__, 10, "job gave up", None, None)
    record.job_id = "abc123"

    line = json.loads(ProductionFormatter().format(record))

    assert line["level"] == "ERROR"
    assert line["logger"] == "membership_sync.jobs"
    assert line["message"] == "job gave up"
    assert line["job_id"] == "abc123"


def test_per_logger_level_override(monkeypatch):
    monkeypatch.setenv("LOGLEVEL_MEMBERSHIP_SYNC_EVENT_BUS", "debug")

    assert get_logger_level_from_env("membership_sync.event_bus", logging.INFO) == logging.DEBUG
    assert get_logger_level_from_env("membership_sync.jobs", logging.INFO) == logging.INFO


def test_setup_logging_writes_plain_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "sync.log"

    setup_logging(service_name="test_sync", log_level="INFO", log_file=str(log_file), enable_json=True)
    logging.getLogger("membership_sync.event_store").info("opened log")
    for handler in restore_root_logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "Logging configured for test_sync" in content
    assert "opened log" in content
