"""Разбор XML-фидов произвольной структуры.

Поддерживает RSS, Atom, Google Shopping и табличные выгрузки вида
Document > Row. Элемент-запись определяется эвристикой по началу
документа, после чего записи вырезаются линейным поиском подстрок
и разбираются по одной, без построения дерева всего документа.
"""

import re
from collections.abc import Iterator

from feedhub.config import get_logger
from feedhub.models.feed import FeedResult, FlatRecord
from feedhub.parsers.flatten import collect_columns, flatten_record
from feedhub.parsers.xml_object import parse_xml_fragment
from feedhub.parsers.xml_scanner import TAG_BOUNDARY_CHARS

logger = get_logger("xml_feed")

SAMPLE_SIZE = 20_000
NO_ITEM_TAG_PATH = "(no repeating element found)"

XML_DECLARATION_PATTERN = re.compile(r"<\?xml[^?]*\?>", re.IGNORECASE)
OPEN_TAG_PATTERN = re.compile(r"<([\w:.-]+)[\s>/]")
CDATA_PATTERN = re.compile(r"<!\[CDATA\[.*?\]\]>", re.DOTALL)


def strip_xml_declaration(text: str) -> str:
    """Убирает BOM и XML-декларацию, обрезает пробелы."""
    cleaned = text.lstrip("\ufeff").strip()
    return XML_DECLARATION_PATTERN.sub("", cleaned).strip()


def find_open_tag(xml: str, tag: str, start: int = 0) -> int:
    """Позиция открывающего тега <tag ...> без совпадений по префиксу имени.

    '<item' не находит '<itemList>'. Возвращает -1, если тега нет.
    """
    needle = f"<{tag}"
    pos = xml.find(needle, start)
    while pos != -1:
        boundary = xml[pos + len(needle):pos + len(needle) + 1]
        if boundary and boundary in TAG_BOUNDARY_CHARS:
            return pos
        pos = xml.find(needle, pos + 1)
    return -1


def detect_item_tag(xml: str) -> str | None:
    """Определяет элемент, который обозначает одну запись фида.

    Подсчитывает открывающие теги в первых SAMPLE_SIZE символах,
    оставляет встречающиеся минимум дважды (в порядке первого
    появления) и возвращает первый, внутри которого есть дочерние
    теги. Листовые элементы вроде <title> содержат только текст,
    поэтому отсеиваются. HTML внутри CDATA не учитывается.

    Args:
        xml: Документ без XML-декларации.

    Returns:
        Имя тега записи ('item', 'entry', 'Row' ...) или None.
    """
    sample = xml[:SAMPLE_SIZE]

    counts: dict[str, int] = {}
    for match in OPEN_TAG_PATTERN.finditer(sample):
        tag = match.group(1)
        counts[tag] = counts.get(tag, 0) + 1

    candidates = [tag for tag, count in counts.items() if count >= 2]

    for tag in candidates:
        open_pos = find_open_tag(xml, tag)
        if open_pos == -1:
            continue
        content_start = xml.find(">", open_pos) + 1
        close_pos = xml.find(f"</{tag}>", content_start)
        if close_pos == -1:
            continue

        content = CDATA_PATTERN.sub("", xml[content_start:close_pos])
        if OPEN_TAG_PATTERN.search(content):
            logger.debug(
                "xml_item_tag_detected",
                tag=tag,
                occurrences_in_sample=counts[tag],
            )
            return tag

    logger.debug("xml_item_tag_not_found", candidates=candidates[:20])
    return None


def iter_item_fragments(xml: str, item_tag: str) -> Iterator[str]:
    """Вырезает содержимое каждого элемента item_tag по порядку.

    Линейный проход: найти следующий '<item_tag', убедиться, что имя
    тега совпадает целиком, найти ближайший '</item_tag>' и продолжить
    поиск после него. Самозакрывающиеся записи пропускаются.

    Yields:
        Текст между открывающим и закрывающим тегом записи.
    """
    close_str = f"</{item_tag}>"
    pos = 0

    while pos < len(xml):
        item_start = find_open_tag(xml, item_tag, pos)
        if item_start == -1:
            break

        open_end = xml.find(">", item_start)
        if open_end == -1:
            break
        if xml[open_end - 1] == "/":
            pos = open_end + 1
            continue

        close_pos = xml.find(close_str, open_end + 1)
        if close_pos == -1:
            break

        yield xml[open_end + 1:close_pos]
        pos = close_pos + len(close_str)


def parse_xml_feed(text: str, item_tag: str | None = None) -> FeedResult:
    """Разбирает XML-фид в плоские записи.

    Если элемент-запись не найден, возвращается пустой результат,
    а не ошибка. Найденный элемент, из которого не удалось извлечь
    ни одной записи, тоже даёт пустой результат: второй кандидат
    не перебирается.

    Args:
        text: Тело ответа с XML.
        item_tag: Имя элемента-записи; None — определить автоматически.

    Returns:
        FeedResult с path, равным имени элемента-записи.
    """
    xml = strip_xml_declaration(text)

    tag = item_tag or detect_item_tag(xml)
    if not tag:
        logger.info("xml_feed_empty", reason="no_repeating_element")
        return FeedResult.empty(NO_ITEM_TAG_PATH)

    records: list[FlatRecord] = []
    skipped = 0

    for fragment in iter_item_fragments(xml, tag):
        parsed = parse_xml_fragment(fragment)
        if isinstance(parsed, dict):
            records.append(flatten_record(parsed))
        else:
            skipped += 1

    if skipped:
        logger.debug("xml_items_skipped", tag=tag, skipped=skipped)

    columns = collect_columns(records)

    logger.info(
        "xml_feed_parsed",
        item_tag=tag,
        records=len(records),
        columns=len(columns),
    )

    return FeedResult(records=records, columns=columns, path=tag)
