"""Преобразование XML-фрагмента одной записи фида в словарь.

Работает поверх потока токенов xml_scanner и не строит DOM:

    <title>A</title><g:id>1</g:id>      -> {"title": "A", "id": "1"}
    <v><s>A</s></v><v><s>B</s></v>      -> {"v": [{"s": "A"}, {"s": "B"}]}
    <image url="x.jpg"/>                -> {"image": {"@url": "x.jpg"}}

Префиксы пространств имён у тегов отбрасываются, атрибуты получают
префикс '@', повторяющиеся соседние теги собираются в список.
"""

import html
import re

from feedhub.models.feed import JsonValue
from feedhub.parsers.xml_scanner import TokenKind, XmlToken, scan_tokens

ATTRIBUTE_PATTERN = re.compile(
    r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')"""
)
ATTRIBUTE_PREFIX = "@"


def parse_attributes(attributes: str) -> dict[str, str]:
    """Разбирает строку атрибутов тега.

    Поддерживаются значения в двойных и одинарных кавычках; префиксы
    пространств имён у атрибутов сохраняются (@xml:lang).

    Args:
        attributes: Часть открывающего тега после имени.

    Returns:
        Словарь {"@имя": значение}.
    """
    result: dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(attributes):
        name, double_quoted, single_quoted = match.groups()
        value = double_quoted if double_quoted is not None else single_quoted
        result[f"{ATTRIBUTE_PREFIX}{name}"] = html.unescape(value or "")
    return result


def parse_xml_fragment(xml: str) -> JsonValue:
    """Разбирает содержимое одного элемента-записи.

    Args:
        xml: Текст между открывающим и закрывающим тегом записи.

    Returns:
        Словарь дочерних элементов, либо обрезанный исходный текст,
        если во фрагменте нет ни одного распознанного тега.
    """
    tokens = list(scan_tokens(xml))
    children = _parse_children(xml, tokens, 0, len(tokens))
    if children is None:
        return xml.strip()
    return children


def _parse_children(
    xml: str, tokens: list[XmlToken], start: int, stop: int
) -> dict[str, JsonValue] | None:
    """Собирает элементы одного уровня из tokens[start:stop].

    Returns:
        Словарь элементов или None, если элементов не найдено.
    """
    entries: list[tuple[str, JsonValue]] = []
    index = start

    while index < stop:
        token = tokens[index]

        if token.kind is TokenKind.CLOSE:
            # Закрывающий тег без пары завершает текущий уровень
            break
        if token.kind is not TokenKind.OPEN:
            index += 1
            continue

        if token.self_closing:
            value: JsonValue = (
                parse_attributes(token.attributes) if token.attributes else ""
            )
            entries.append((token.name, value))
            index += 1
            continue

        close_index = _find_matching_close(tokens, index, stop)
        if close_index is None:
            break

        entries.append(
            (token.name, _element_value(xml, tokens, index, close_index))
        )
        index = close_index + 1

    if not entries:
        return None
    return _group_entries(entries)


def _find_matching_close(
    tokens: list[XmlToken], open_index: int, stop: int
) -> int | None:
    """Ищет закрывающий тег с учётом вложенных одноимённых элементов."""
    raw_name = tokens[open_index].raw_name
    depth = 1
    for index in range(open_index + 1, stop):
        token = tokens[index]
        if token.raw_name != raw_name:
            continue
        if token.kind is TokenKind.OPEN and not token.self_closing:
            depth += 1
        elif token.kind is TokenKind.CLOSE:
            depth -= 1
            if depth == 0:
                return index
    return None


def _element_value(
    xml: str, tokens: list[XmlToken], open_index: int, close_index: int
) -> JsonValue:
    """Значение элемента между tokens[open_index] и tokens[close_index]."""
    open_token = tokens[open_index]
    inner_text = xml[open_token.end:tokens[close_index].start].strip()
    if not inner_text:
        return ""

    inner = tokens[open_index + 1:close_index]
    if not any(token.kind is TokenKind.OPEN for token in inner):
        return _leaf_text(inner)

    children = _parse_children(xml, tokens, open_index + 1, close_index)
    if children is None:
        return inner_text
    if open_token.attributes:
        children.update(parse_attributes(open_token.attributes))
    return children


def _leaf_text(tokens: list[XmlToken]) -> str:
    """Текст листового элемента: текст с раскрытыми сущностями и CDATA как есть."""
    parts: list[str] = []
    for token in tokens:
        if token.kind is TokenKind.TEXT:
            parts.append(html.unescape(token.content))
        elif token.kind is TokenKind.CDATA:
            parts.append(token.content)
    return "".join(parts).strip()


def _group_entries(entries: list[tuple[str, JsonValue]]) -> dict[str, JsonValue]:
    """Складывает элементы в словарь; повторы одного тега — в список."""
    result: dict[str, JsonValue] = {}
    repeated: set[str] = set()
    for tag, value in entries:
        if tag not in result:
            result[tag] = value
        elif tag in repeated:
            result[tag].append(value)  # type: ignore[union-attr]
        else:
            result[tag] = [result[tag], value]
            repeated.add(tag)
    return result
