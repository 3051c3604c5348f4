"""Однопроходный сканер XML-фрагментов.

Разбивает текст на поток токенов (текст, открывающий/закрывающий тег,
комментарий, CDATA, DOCTYPE, инструкция обработки) с помощью конечного
автомата. Полное дерево документа не строится: токены содержат
только позиции в исходной строке, имя тега и строку атрибутов.

Разбор намеренно нестрогий: фиды магазинов часто невалидны, поэтому
незакрытые конструкции поглощают остаток текста, а одиночный '<',
за которым не следует имя тега, считается обычным текстом.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"
CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"
PI_OPEN = "<?"
PI_CLOSE = "?>"

# Символы, которые могут завершать имя тега сразу после '<tag'
TAG_BOUNDARY_CHARS = frozenset(">/ \t\n\r")


class ScanState(Enum):
    """Состояние автомата сканера."""

    TEXT = "text"
    TAG = "tag"
    COMMENT = "comment"
    CDATA = "cdata"
    DOCTYPE = "doctype"
    PROCESSING = "processing"


class TokenKind(Enum):
    TEXT = "text"
    OPEN = "open"
    CLOSE = "close"
    COMMENT = "comment"
    CDATA = "cdata"
    DOCTYPE = "doctype"
    PROCESSING = "processing"


@dataclass(frozen=True)
class XmlToken:
    """Токен XML-фрагмента.

    Attributes:
        kind: Тип токена.
        start: Позиция первого символа токена в исходной строке.
        end: Позиция сразу за последним символом токена.
        raw_name: Имя тега как в документе (с префиксом пространства имён).
        attributes: Строка атрибутов открывающего тега без имени.
        self_closing: Тег вида <tag/>.
        content: Содержимое CDATA или текст (для TEXT/CDATA).
    """

    kind: TokenKind
    start: int
    end: int
    raw_name: str = ""
    attributes: str = ""
    self_closing: bool = False
    content: str = ""

    @property
    def name(self) -> str:
        """Имя тега без префикса пространства имён (g:id -> id)."""
        return strip_namespace(self.raw_name)


def strip_namespace(tag: str) -> str:
    """Отбрасывает префикс пространства имён у имени тега."""
    return tag.rsplit(":", 1)[-1] if ":" in tag else tag


def is_name_char(char: str) -> bool:
    """Может ли символ входить в имя тега ([\\w:.-])."""
    return char.isalnum() or char in "_:.-"


def _next_state(text: str, pos: int) -> ScanState:
    """Определяет, какая конструкция начинается с '<' в позиции pos."""
    if text.startswith(COMMENT_OPEN, pos):
        return ScanState.COMMENT
    if text.startswith(CDATA_OPEN, pos):
        return ScanState.CDATA
    if text.startswith("<!", pos):
        return ScanState.DOCTYPE
    if text.startswith(PI_OPEN, pos):
        return ScanState.PROCESSING
    following = text[pos + 1:pos + 2]
    if following == "/" or (following and is_name_char(following)):
        return ScanState.TAG
    return ScanState.TEXT


def _split_tag(body: str) -> tuple[str, str, bool]:
    """Разбирает содержимое между '<' и '>' открывающего тега.

    Returns:
        Кортеж (имя тега, строка атрибутов, признак самозакрытия).
    """
    self_closing = body.endswith("/")
    clean = (body[:-1] if self_closing else body).strip()
    for index, char in enumerate(clean):
        if char.isspace():
            return clean[:index], clean[index:].strip(), self_closing
    return clean, "", self_closing


def scan_tokens(text: str) -> Iterator[XmlToken]:
    """Выдаёт токены XML-фрагмента за один проход.

    Args:
        text: XML-фрагмент или документ целиком.

    Yields:
        XmlToken в порядке следования в тексте.
    """
    length = len(text)
    pos = 0
    state = ScanState.TEXT

    while pos < length:
        if state is ScanState.TEXT:
            lt = text.find("<", pos)
            while lt != -1 and _next_state(text, lt) is ScanState.TEXT:
                lt = text.find("<", lt + 1)
            end = length if lt == -1 else lt
            if end > pos:
                yield XmlToken(
                    TokenKind.TEXT, pos, end, content=text[pos:end]
                )
            pos = end
            if lt != -1:
                state = _next_state(text, lt)

        elif state is ScanState.COMMENT:
            close = text.find(COMMENT_CLOSE, pos + len(COMMENT_OPEN))
            end = length if close == -1 else close + len(COMMENT_CLOSE)
            yield XmlToken(TokenKind.COMMENT, pos, end)
            pos, state = end, ScanState.TEXT

        elif state is ScanState.CDATA:
            body_start = pos + len(CDATA_OPEN)
            close = text.find(CDATA_CLOSE, body_start)
            body_end = length if close == -1 else close
            end = length if close == -1 else close + len(CDATA_CLOSE)
            yield XmlToken(
                TokenKind.CDATA, pos, end, content=text[body_start:body_end]
            )
            pos, state = end, ScanState.TEXT

        elif state is ScanState.PROCESSING:
            close = text.find(PI_CLOSE, pos + len(PI_OPEN))
            end = length if close == -1 else close + len(PI_CLOSE)
            yield XmlToken(TokenKind.PROCESSING, pos, end)
            pos, state = end, ScanState.TEXT

        elif state is ScanState.DOCTYPE:
            close = text.find(">", pos)
            end = length if close == -1 else close + 1
            yield XmlToken(TokenKind.DOCTYPE, pos, end)
            pos, state = end, ScanState.TEXT

        else:
            gt = text.find(">", pos)
            if gt == -1:
                # Оборванный тег в конце текста
                yield XmlToken(
                    TokenKind.TEXT, pos, length, content=text[pos:]
                )
                break
            body = text[pos + 1:gt]
            if body.startswith("/"):
                yield XmlToken(
                    TokenKind.CLOSE, pos, gt + 1, raw_name=body[1:].strip()
                )
            else:
                raw_name, attributes, self_closing = _split_tag(body)
                yield XmlToken(
                    TokenKind.OPEN,
                    pos,
                    gt + 1,
                    raw_name=raw_name,
                    attributes=attributes,
                    self_closing=self_closing,
                )
            pos, state = gt + 1, ScanState.TEXT
