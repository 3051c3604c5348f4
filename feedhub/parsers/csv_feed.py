"""Разбор CSV-фидов.

Разделитель — запятая или точка с запятой, кавычка — '"', экранирование
кавычки внутри поля — удвоение (""). Первая непустая строка — заголовки.
Поля с переводами строк внутри кавычек не поддерживаются: фид
разбирается построчно.
"""

import re

from feedhub.config import get_logger
from feedhub.models.feed import FeedResult, FlatRecord
from feedhub.parsers.flatten import collect_columns, flatten_record

logger = get_logger("csv_feed")

CSV_PATH = "csv"
DELIMITERS = frozenset(",;")
QUOTE = '"'

LINE_SPLIT_PATTERN = re.compile(r"\r?\n")


def parse_csv_line(line: str) -> list[str]:
    """Разбивает строку CSV на значения полей.

    Поля без кавычек обрезаются по краям. У полей в кавычках
    сохраняется содержимое кавычек как есть, пробелы вне кавычек
    отбрасываются.

    Args:
        line: Одна строка CSV без перевода строки.

    Returns:
        Список значений по порядку.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    quoted = False
    index = 0

    while index < len(line):
        char = line[index]
        if in_quotes:
            if char == QUOTE and line[index + 1:index + 2] == QUOTE:
                current.append(QUOTE)
                index += 1
            elif char == QUOTE:
                in_quotes = False
            else:
                current.append(char)
        elif char == QUOTE:
            if not quoted and not "".join(current).strip():
                current = []
            in_quotes = True
            quoted = True
        elif char in DELIMITERS:
            values.append(_finish_field(current, quoted))
            current, quoted = [], False
        elif quoted and char.isspace():
            pass
        else:
            current.append(char)
        index += 1

    values.append(_finish_field(current, quoted))
    return values


def _finish_field(chars: list[str], quoted: bool) -> str:
    value = "".join(chars)
    return value if quoted else value.strip()


def parse_csv_feed(text: str) -> FeedResult:
    """Разбирает CSV-фид в записи с ключами по заголовкам.

    Недостающие в конце строки значения становятся пустыми строками,
    лишние значения отбрасываются. Меньше двух непустых строк —
    пустой результат.

    Args:
        text: Тело ответа с CSV.

    Returns:
        FeedResult с path 'csv'.
    """
    cleaned = text.lstrip("\ufeff")
    lines = [line for line in LINE_SPLIT_PATTERN.split(cleaned) if line.strip()]

    if len(lines) < 2:
        logger.info("csv_feed_empty", lines=len(lines))
        return FeedResult.empty(CSV_PATH)

    headers = parse_csv_line(lines[0])
    records: list[FlatRecord] = []

    for line in lines[1:]:
        values = parse_csv_line(line)
        row = {
            header: values[index] if index < len(values) else ""
            for index, header in enumerate(headers)
        }
        records.append(flatten_record(row))

    columns = collect_columns(records)

    logger.info(
        "csv_feed_parsed",
        records=len(records),
        columns=len(columns),
    )

    return FeedResult(records=records, columns=columns, path=CSV_PATH)
