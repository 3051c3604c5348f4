"""Пакет доменных моделей.

    from feedhub.models import FeedResult, FeedType, ImportedProduct
"""

from feedhub.models.feed import (
    FeedResult,
    FeedType,
    FlatRecord,
    FlatValue,
    ImportOptions,
    JsonValue,
)
from feedhub.models.product import (
    ImportedProduct,
    ImportSummary,
    build_imported_product,
    resolve_external_id,
    resolve_image_url,
)

__all__ = [
    "FeedResult",
    "FeedType",
    "FlatRecord",
    "FlatValue",
    "ImportOptions",
    "ImportSummary",
    "ImportedProduct",
    "JsonValue",
    "build_imported_product",
    "resolve_external_id",
    "resolve_image_url",
]
