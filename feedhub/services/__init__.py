"""Пакет сервисов.

    from feedhub.services import FeedImporter, ImportService, ExportService
"""

from feedhub.services.export_service import ExportService
from feedhub.services.feed_importer import FeedFetchError, FeedImporter
from feedhub.services.import_service import ImportService
from feedhub.services.prompt_renderer import (
    find_variables,
    missing_variables,
    render_prompt,
)

__all__ = [
    "ExportService",
    "FeedFetchError",
    "FeedImporter",
    "ImportService",
    "find_variables",
    "missing_variables",
    "render_prompt",
]
