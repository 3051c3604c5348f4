"""Пакет репозиториев.

    from feedhub.repositories import BaseProductRepository, SQLiteProductRepository
"""

from feedhub.repositories.base import BaseProductRepository
from feedhub.repositories.sqlite_repository import SQLiteProductRepository

__all__ = [
    "BaseProductRepository",
    "SQLiteProductRepository",
]
