"""Модели импортированных товаров.

    - ImportedProduct: товар проекта, построенный из одной записи фида
    - ImportSummary: итог импорта для вызывающей стороны
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from feedhub.models.feed import FlatRecord

# Колонки, в которых ищется изображение, если колонка не задана
# или пуста в конкретной записи.
IMAGE_FALLBACK_COLUMNS: tuple[str, ...] = (
    "featured_image",
    "image",
    "images[0].src",
)

ID_FALLBACK_COLUMNS: tuple[str, ...] = ("id", "reference")


@dataclass(frozen=True)
class ImportedProduct:
    """Товар проекта после импорта фида.

    Attributes:
        product_id: Внутренний уникальный идентификатор.
        project_id: Проект, к которому относится товар.
        external_id: Идентификатор товара в фиде.
        raw_data: Плоская запись фида целиком.
        image_url: URL основного изображения или None.
        imported_at: Время импорта (UTC).
    """

    product_id: str
    project_id: str
    external_id: str
    raw_data: FlatRecord
    image_url: str | None = None
    imported_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


@dataclass(frozen=True)
class ImportSummary:
    """Итог одного импорта.

    Attributes:
        imported: Количество сохранённых товаров.
        columns: Колонки, найденные в фиде.
        path: Где в фиде найдены записи.
        message: Сообщение для оператора.
    """

    imported: int
    columns: list[str]
    path: str
    message: str


def resolve_external_id(
    record: FlatRecord, row_index: int, id_column: str = ""
) -> str:
    """Определяет внешний идентификатор записи.

    Берётся первое значение, отличное от None, из заданной колонки,
    затем из 'id' и 'reference'. Если ничего нет — 'row-<индекс>'.

    Args:
        record: Плоская запись фида.
        row_index: Порядковый номер записи в фиде (с нуля).
        id_column: Колонка идентификатора из настроек проекта.

    Returns:
        Строковый идентификатор.
    """
    candidates = ((id_column,) if id_column else ()) + ID_FALLBACK_COLUMNS
    for column in candidates:
        value = record.get(column)
        if value is not None:
            return str(value)
    return f"row-{row_index}"


def resolve_image_url(record: FlatRecord, image_column: str = "") -> str | None:
    """Находит URL изображения записи.

    Args:
        record: Плоская запись фида.
        image_column: Колонка изображения из настроек проекта.

    Returns:
        Первое непустое значение или None.
    """
    candidates = ((image_column,) if image_column else ()) + IMAGE_FALLBACK_COLUMNS
    for column in candidates:
        value = record.get(column)
        if value:
            return str(value)
    return None


def build_imported_product(
    record: FlatRecord,
    row_index: int,
    project_id: str,
    id_column: str = "",
    image_column: str = "",
) -> ImportedProduct:
    """Создаёт ImportedProduct из плоской записи фида."""
    return ImportedProduct(
        product_id=uuid.uuid4().hex,
        project_id=project_id,
        external_id=resolve_external_id(record, row_index, id_column),
        raw_data=record,
        image_url=resolve_image_url(record, image_column),
    )
