"""Unit tests for structured JSON logging."""

import json
import logging

import pytest

from feedhub.config import get_import_id, get_logger, set_import_id
from feedhub.config.logger import JSONFormatter


def _record(message: str, **context: object) -> logging.LogRecord:
    record = logging.LogRecord("feed_test", logging.INFO, __file__, 1, message, None, None)
    record.context_data = context
    return record


def test_json_formatter_writes_context_and_import_id() -> None:
    """Log line should be JSON with context fields and import id."""
    set_import_id("abc12345")

    line = JSONFormatter().format(_record("feed_parsed", records=3, path="item"))

    entry = json.loads(line)
    assert entry["message"] == "feed_parsed"
    assert entry["level"] == "INFO"
    assert entry["import_id"] == "abc12345"
    assert entry["context"] == {"records": 3, "path": "item"}


def test_json_formatter_omits_empty_context() -> None:
    """Record without context should not have a context block."""
    entry = json.loads(JSONFormatter().format(_record("started")))

    assert "context" not in entry


def test_set_import_id_generates_short_id() -> None:
    """Generated import id should be eight hex characters."""
    import_id = set_import_id()

    assert len(import_id) == 8
    assert get_import_id() == import_id


def test_get_logger_returns_same_instance_per_name() -> None:
    """Loggers should be cached by name."""
    assert get_logger("feed_test") is get_logger("feed_test")


def test_context_logger_bind_adds_fields(caplog: pytest.LogCaptureFixture) -> None:
    """Bound fields should be attached to every record."""
    logger = get_logger("feed_bind_test").bind(project_id="shop")

    with caplog.at_level(logging.INFO, logger="feed_bind_test"):
        logger.info("import_started", feed_type="csv")

    assert caplog.records[0].context_data == {"project_id": "shop", "feed_type": "csv"}
