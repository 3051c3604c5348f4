"""Пакет парсеров фидов.

Все форматы возвращают FeedResult с плоскими записями и общим
правилом именования колонок:
    from feedhub.parsers import parse_feed
    result = parse_feed(text, FeedType.XML)
"""

from feedhub.config import get_logger
from feedhub.models.feed import FeedResult, FeedType
from feedhub.parsers.csv_feed import parse_csv_feed, parse_csv_line
from feedhub.parsers.errors import FeedParseError
from feedhub.parsers.flatten import collect_columns, flatten_record, sort_columns
from feedhub.parsers.json_feed import parse_json_feed, pick_main_array
from feedhub.parsers.xml_feed import detect_item_tag, parse_xml_feed
from feedhub.parsers.xml_object import parse_attributes, parse_xml_fragment

logger = get_logger("parsers")


def parse_feed(text: str, feed_type: "FeedType | str | None") -> FeedResult:
    """Разбирает текст фида парсером, соответствующим формату.

    Неизвестный формат разбирается как JSON.

    Raises:
        FeedParseError: Если JSON-фид не удалось разобрать.
    """
    resolved = FeedType.from_value(feed_type)
    if isinstance(feed_type, str) and feed_type.strip().lower() != resolved.value:
        logger.warning(
            "unknown_feed_type", feed_type=feed_type, fallback=resolved.value
        )

    if resolved is FeedType.CSV:
        return parse_csv_feed(text)
    if resolved is FeedType.XML:
        return parse_xml_feed(text)
    return parse_json_feed(text)


__all__ = [
    "FeedParseError",
    "collect_columns",
    "detect_item_tag",
    "flatten_record",
    "parse_attributes",
    "parse_csv_feed",
    "parse_csv_line",
    "parse_feed",
    "parse_json_feed",
    "parse_xml_feed",
    "parse_xml_fragment",
    "pick_main_array",
    "sort_columns",
]
