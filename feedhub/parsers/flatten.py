"""Сведение вложенных записей фида к одному уровню ключей.

Один и тот же алгоритм используется для JSON, XML и CSV, поэтому
одинаковые по смыслу поля получают одинаковые имена колонок
независимо от формата источника:

    {"a": {"b": [{"c": 1}]}}   ->  {"a.b[0].c": 1}
    {"tags": ["x", "y"]}       ->  {"tags": "x, y"}
"""

import math
import unicodedata
from collections.abc import Iterable, Mapping

from feedhub.models.feed import FlatRecord, JsonValue

SCALAR_SEPARATOR = ", "

# Порядок знаков препинания в корневой сортировке Unicode (CLDR)
PUNCTUATION_ORDER = "_-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"


def scalar_to_text(value: JsonValue) -> str:
    """Текстовое представление скаляра для склейки массивов.

    None превращается в пустую строку, bool — в 'true'/'false',
    целые float — в запись без дробной части ('2.0' -> '2').
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _is_scalar(value: JsonValue) -> bool:
    return not isinstance(value, (dict, list))


def flatten_record(
    record: Mapping[str, JsonValue], prefix: str = ""
) -> FlatRecord:
    """Сводит вложенную запись к плоскому словарю.

    Правила:
        - None -> ""
        - массив только из скаляров -> одна строка через ", "
        - массив, где есть объект или массив -> ключи key[i]
        - вложенный объект -> ключи key.subkey
        - остальные скаляры сохраняются как есть

    Args:
        record: Запись фида (словарь произвольной вложенности).
        prefix: Префикс для всех ключей результата.

    Returns:
        Новый плоский словарь; исходная запись не меняется.
    """
    flat: FlatRecord = {}
    _flatten_mapping(record, prefix, flat)
    return flat


def _flatten_mapping(
    mapping: Mapping[str, JsonValue], prefix: str, out: FlatRecord
) -> None:
    for key, value in mapping.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        _flatten_value(full_key, value, out)


def _flatten_value(key: str, value: JsonValue, out: FlatRecord) -> None:
    if value is None:
        out[key] = ""
    elif isinstance(value, dict):
        _flatten_mapping(value, key, out)
    elif isinstance(value, list):
        if all(_is_scalar(item) for item in value):
            out[key] = SCALAR_SEPARATOR.join(scalar_to_text(item) for item in value)
            return
        for index, item in enumerate(value):
            _flatten_value(f"{key}[{index}]", item, out)
    else:
        out[key] = value


def column_sort_key(name: str) -> tuple[tuple[int, int, str], ...]:
    """Ключ сортировки колонок без учёта регистра и диакритики.

    Приближает испанскую сортировку на базовом уровне: 'Título'
    и 'titulo' равны, 'ñ' идёт отдельной буквой после 'n'.
    Пробелы и знаки препинания идут раньше цифр, цифры раньше букв.
    Знаки препинания упорядочены по PUNCTUATION_ORDER, остальные
    символы после них по коду.
    """
    key: list[tuple[int, int, str]] = []
    for char in unicodedata.normalize("NFD", name):
        if unicodedata.combining(char):
            # n с тильдой: отдельная буква испанского алфавита
            if char == "\u0303" and key and key[-1] == (2, 0, "n"):
                key[-1] = (2, 0, "n~")
            continue
        folded = char.casefold()
        if char.isalpha():
            key.append((2, 0, folded))
        elif char.isdigit():
            key.append((1, 0, folded))
        elif char.isspace():
            key.append((0, -1, folded))
        else:
            rank = PUNCTUATION_ORDER.find(char)
            if rank < 0:
                rank = len(PUNCTUATION_ORDER)
            key.append((0, rank, folded))
    return tuple(key)


def sort_columns(columns: Iterable[str]) -> list[str]:
    """Сортирует имена колонок; равные по ключу сохраняют порядок."""
    return sorted(columns, key=column_sort_key)


def collect_columns(records: Iterable[FlatRecord]) -> list[str]:
    """Собирает отсортированное объединение ключей всех записей."""
    seen: dict[str, None] = {}
    for record in records:
        for column in record:
            seen.setdefault(column, None)
    return sort_columns(seen)
