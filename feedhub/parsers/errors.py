"""Ошибки разбора фидов."""


class FeedParseError(Exception):
    """Фид не удалось разобрать ни одной из стратегий.

    Пустой фид ошибкой не считается: в этом случае парсеры
    возвращают FeedResult без записей.
    """
