"""Подстановка колонок товара в шаблон промпта.

Переменная шаблона записывается как {{имя_колонки}}, например
{{title}} или {{images[0].src}}. Пробелы внутри скобок допускаются.
"""

import re
from collections.abc import Iterable

from feedhub.models import FlatRecord
from feedhub.parsers.flatten import scalar_to_text

VARIABLE_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def find_variables(template: str) -> list[str]:
    """Возвращает переменные шаблона в порядке первого появления."""
    seen: list[str] = []
    for match in VARIABLE_PATTERN.finditer(template):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def missing_variables(template: str, columns: Iterable[str]) -> list[str]:
    """Возвращает переменные шаблона, которых нет среди колонок фида.

    Args:
        template: Шаблон промпта.
        columns: Колонки, найденные при импорте.

    Returns:
        Имена неизвестных переменных в порядке появления.
    """
    known = set(columns)
    return [name for name in find_variables(template) if name not in known]


def render_prompt(template: str, record: FlatRecord) -> str:
    """Подставляет значения записи вместо всех вхождений переменных.

    Отсутствующая колонка или значение None дают пустую строку.
    """

    def _replace(match: re.Match[str]) -> str:
        value = record.get(match.group(1))
        if value is None:
            return ""
        return scalar_to_text(value)

    return VARIABLE_PATTERN.sub(_replace, template)
