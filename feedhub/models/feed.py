"""Модели результата разбора фида.

    - JsonValue: произвольное значение JSON-документа или XML-записи
    - FlatRecord: запись фида, сведённая к одному уровню ключей
    - FeedResult: записи, найденные колонки и место, где найден массив
    - FeedType: поддерживаемые форматы фида
    - ImportOptions: параметры одного вызова импорта
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

JsonScalar = Union[None, bool, int, float, str]
JsonValue = Union[JsonScalar, list["JsonValue"], dict[str, "JsonValue"]]

FlatValue = Union[str, int, float, bool]
FlatRecord = dict[str, FlatValue]


class FeedType(str, Enum):
    """Формат фида, заданный в настройках проекта."""

    JSON = "json"
    CSV = "csv"
    XML = "xml"

    @classmethod
    def from_value(cls, value: "str | FeedType | None") -> "FeedType":
        """Приводит строку к FeedType; неизвестные значения — JSON.

        Регистр и пробелы по краям не учитываются: 'XML' из .env
        означает XML-фид.

        Args:
            value: Строка из настроек ('json', 'CSV', 'xml' ...) или None.

        Returns:
            Соответствующий FeedType, по умолчанию FeedType.JSON.
        """
        if isinstance(value, FeedType):
            return value
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.JSON


@dataclass(frozen=True)
class FeedResult:
    """Результат разбора одного фида.

    Attributes:
        records: Плоские записи в порядке следования в фиде.
        columns: Отсортированное объединение ключей всех записей.
        path: Где найдены записи: путь к массиву в JSON,
            имя тега в XML или "csv".
    """

    records: list[FlatRecord] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    path: str = ""

    @property
    def is_empty(self) -> bool:
        """True, если в фиде не найдено ни одной записи."""
        return not self.records

    @classmethod
    def empty(cls, path: str) -> "FeedResult":
        return cls(records=[], columns=[], path=path)


@dataclass(frozen=True)
class ImportOptions:
    """Параметры одного импорта, передаваемые явно при каждом вызове.

    Attributes:
        feed_url: Адрес фида.
        feed_type: Формат фида.
        project_id: Проект, товары которого заменяются импортом.
        id_column: Колонка идентификатора (пусто — id/reference/row-N).
        image_column: Колонка изображения (пусто — типовые имена).
        batch_size: Размер пачки при сохранении товаров.
    """

    feed_url: str
    feed_type: FeedType = FeedType.JSON
    project_id: str = "default"
    id_column: str = ""
    image_column: str = ""
    batch_size: int = 100
