"""Разбор JSON-фидов.

Текст разбирается по очереди тремя стратегиями:
    1. обычный JSON;
    2. NDJSON — по объекту на строку, только если разобрались все строки;
    3. "грязный" JSON — подстрока от первой '{'/'[' до последней '}'/']'.

Затем в документе ищется основной массив записей: корневой массив,
самый длинный массив среди полей верхнего уровня или первый массив,
найденный во вложенных объектах.
"""

import json
import re
from dataclasses import dataclass

from feedhub.config import get_logger
from feedhub.models.feed import FeedResult, FlatRecord, JsonValue
from feedhub.parsers.errors import FeedParseError
from feedhub.parsers.flatten import collect_columns, flatten_record

logger = get_logger("json_feed")

ROOT_ARRAY_PATH = "(root array)"
NO_ARRAY_PATH = "(no array found)"

LINE_SPLIT_PATTERN = re.compile(r"\r?\n")


@dataclass(frozen=True)
class MainArray:
    """Найденный массив записей и путь к нему в документе."""

    records: list[JsonValue]
    path: str


def load_json_document(text: str) -> JsonValue:
    """Разбирает текст JSON-фида с восстановлением после ошибок.

    Args:
        text: Тело ответа.

    Returns:
        Разобранный документ.

    Raises:
        FeedParseError: Если не сработала ни одна из стратегий.
    """
    cleaned = text.lstrip("\ufeff").strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug("json_strict_parse_failed", error=str(e))

    ndjson = _load_ndjson(cleaned)
    if ndjson is not None:
        logger.debug("json_parsed_as_ndjson", lines=len(ndjson))
        return ndjson

    return _load_dirty_json(cleaned)


def _load_ndjson(text: str) -> list[JsonValue] | None:
    """Разбирает NDJSON по принципу всё или ничего.

    Одна битая строка отменяет весь результат, чтобы не потерять
    записи молча.
    """
    lines = [line.strip() for line in LINE_SPLIT_PATTERN.split(text)]
    records: list[JsonValue] = []
    for line in lines:
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            return None
    return records or None


def _load_dirty_json(text: str) -> JsonValue:
    """Вырезает JSON из текста с мусором до и после документа."""
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos >= 0]
    first = min(starts) if starts else -1
    last = max(text.rfind("}"), text.rfind("]"))

    if first >= 0 and last > first:
        try:
            document = json.loads(text[first:last + 1])
        except json.JSONDecodeError as e:
            raise FeedParseError(
                f"Не удалось разобрать JSON фида: {e.msg} "
                f"(строка {e.lineno}, столбец {e.colno})"
            ) from e
        logger.debug("json_recovered_from_dirty_text", start=first, end=last)
        return document

    raise FeedParseError(
        "Не удалось разобрать JSON фида: в тексте нет объекта или массива"
    )


def pick_main_array(data: JsonValue) -> MainArray:
    """Находит массив, содержащий записи фида.

    Порядок поиска:
        - корневой массив используется как есть;
        - среди полей объекта выбирается самый длинный непустой массив
          (при равной длине — первый по порядку полей);
        - иначе поиск в глубину по вложенным объектам, путь
          к массиву собирается через точку ('data.items').

    Args:
        data: Разобранный JSON-документ.

    Returns:
        MainArray; если массива нет — пустой с path '(no array found)'.
    """
    if isinstance(data, list):
        return MainArray(records=data, path=ROOT_ARRAY_PATH)

    if isinstance(data, dict):
        best_key: str | None = None
        best: list[JsonValue] = []
        for key, value in data.items():
            if isinstance(value, list) and len(value) > len(best):
                best_key, best = key, value
        if best_key is not None:
            return MainArray(records=best, path=best_key)

        for key, value in data.items():
            if isinstance(value, dict):
                child = pick_main_array(value)
                if child.records:
                    return MainArray(
                        records=child.records, path=f"{key}.{child.path}"
                    )

    return MainArray(records=[], path=NO_ARRAY_PATH)


def parse_json_feed(text: str) -> FeedResult:
    """Разбирает JSON-фид в плоские записи.

    Элементы основного массива, не являющиеся объектами, пропускаются.

    Args:
        text: Тело ответа с JSON, NDJSON или JSON с мусором.

    Returns:
        FeedResult; path указывает, где найден массив записей.

    Raises:
        FeedParseError: Если JSON не удалось разобрать.
    """
    document = load_json_document(text)
    main = pick_main_array(document)

    if not main.records:
        logger.info("json_feed_empty", path=main.path)
        return FeedResult.empty(main.path)

    records: list[FlatRecord] = [
        flatten_record(item) for item in main.records if isinstance(item, dict)
    ]
    skipped = len(main.records) - len(records)
    if skipped:
        logger.debug("json_items_skipped", path=main.path, skipped=skipped)

    columns = collect_columns(records)

    logger.info(
        "json_feed_parsed",
        path=main.path,
        records=len(records),
        columns=len(columns),
    )

    return FeedResult(records=records, columns=columns, path=main.path)
