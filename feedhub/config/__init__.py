"""Пакет конфигурации приложения.

Единая точка доступа к настройкам и логированию:
    from feedhub.config import load_settings, get_logger, setup_logging
"""

from feedhub.config.logger import (
    get_import_id,
    get_logger,
    set_import_id,
    setup_logging,
)
from feedhub.config.settings import (
    ConfigValidationError,
    DatabaseSettings,
    ExportSettings,
    FeedSettings,
    FetchSettings,
    LogSettings,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigValidationError",
    "DatabaseSettings",
    "ExportSettings",
    "FeedSettings",
    "FetchSettings",
    "LogSettings",
    "Settings",
    "get_import_id",
    "get_logger",
    "load_settings",
    "set_import_id",
    "setup_logging",
]
