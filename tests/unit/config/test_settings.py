"""Unit tests for environment configuration loading."""

import pytest

from feedhub.config import ConfigValidationError, load_settings

SETTINGS_ENV_VARS = (
    "FEED_URL",
    "FEED_TYPE",
    "PROJECT_ID",
    "ID_COLUMN",
    "IMAGE_COLUMN",
    "FETCH_TIMEOUT",
    "FETCH_MAX_RETRIES",
    "FETCH_RETRY_DELAY",
    "DB_PATH",
    "IMPORT_BATCH_SIZE",
    "EXPORT_FORMAT",
    "EXPORT_PATH",
    "PROMPT_TEMPLATE",
    "LOG_LEVEL",
    "LOG_FILE_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove settings variables and skip reading the project .env file."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("feedhub.config.settings._load_env", lambda: None)


def test_load_settings_applies_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Only FEED_URL should be required."""
    monkeypatch.setenv("FEED_URL", "https://shop.test/feed.json")

    settings = load_settings()

    assert settings.feed.url == "https://shop.test/feed.json"
    assert settings.feed.feed_type == "json"
    assert settings.feed.project_id == "default"
    assert settings.fetch.timeout == 60.0
    assert settings.fetch.max_retries == 3
    assert settings.database.db_path == "data/feedhub.db"
    assert settings.database.batch_size == 100
    assert settings.export.export_format == ""
    assert settings.log.level == "INFO"


def test_load_settings_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Explicit values should be normalized and used."""
    monkeypatch.setenv("FEED_URL", "https://shop.test/feed.xml")
    monkeypatch.setenv("FEED_TYPE", "XML")
    monkeypatch.setenv("EXPORT_FORMAT", "CSV")
    monkeypatch.setenv("IMPORT_BATCH_SIZE", "25")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.feed.feed_type == "xml"
    assert settings.export.export_format == "csv"
    assert settings.database.batch_size == 25
    assert settings.log.level == "DEBUG"


def test_load_settings_collects_all_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every invalid value should be reported in one exception."""
    monkeypatch.setenv("FETCH_MAX_RETRIES", "many")
    monkeypatch.setenv("EXPORT_FORMAT", "pdf")
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    with pytest.raises(ConfigValidationError) as exc_info:
        load_settings()

    message = str(exc_info.value)
    assert "FEED_URL" in message
    assert "FETCH_MAX_RETRIES" in message
    assert "EXPORT_FORMAT" in message
    assert "LOUD" in message


def test_load_settings_rejects_non_http_feed_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """Feed URL should use HTTP or HTTPS."""
    monkeypatch.setenv("FEED_URL", "ftp://shop.test/feed.csv")

    with pytest.raises(ConfigValidationError, match="FEED_URL"):
        load_settings()
