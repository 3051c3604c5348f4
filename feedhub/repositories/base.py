"""Абстрактный репозиторий импортированных товаров.

Сервисы зависят от этого контракта, а не от конкретного хранилища.
"""

from abc import ABC, abstractmethod

from feedhub.models import ImportedProduct


class BaseProductRepository(ABC):
    """Хранилище товаров проектов и сопоставлений колонок."""

    @abstractmethod
    def initialize(self) -> None:
        """Создаёт структуры хранилища. Вызывается один раз при старте."""

    @abstractmethod
    def replace_products(
        self,
        project_id: str,
        products: list[ImportedProduct],
        batch_size: int = 100,
    ) -> int:
        """Заменяет все товары проекта новыми.

        Существующие товары проекта удаляются, новые вставляются
        пачками по batch_size.

        Args:
            project_id: Проект, товары которого заменяются.
            products: Новые товары.
            batch_size: Размер пачки вставки.

        Returns:
            Количество вставленных товаров.
        """

    @abstractmethod
    def get_products(self, project_id: str) -> list[ImportedProduct]:
        """Возвращает товары проекта в порядке импорта."""

    @abstractmethod
    def get_products_count(self, project_id: str) -> int:
        """Возвращает количество товаров проекта."""

    @abstractmethod
    def get_columns(self, project_id: str, sample_limit: int = 100) -> list[str]:
        """Возвращает колонки, найденные в выборке товаров проекта.

        Args:
            project_id: Проект.
            sample_limit: Сколько первых товаров просматривать.

        Returns:
            Отсортированный список имён колонок.
        """

    @abstractmethod
    def get_column_mapping(self, project_id: str) -> dict[str, str] | None:
        """Возвращает сохранённое сопоставление колонок или None."""

    @abstractmethod
    def save_column_mapping_if_missing(
        self, project_id: str, columns: list[str]
    ) -> bool:
        """Сохраняет тождественное сопоставление колонок, если его ещё нет.

        Returns:
            True, если сопоставление было сохранено.
        """

    @abstractmethod
    def close(self) -> None:
        """Закрывает соединение и освобождает ресурсы."""
