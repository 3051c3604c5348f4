"""Структурированное JSON-логирование.

Каждая запись лога — одна JSON-строка с временем, уровнем, именем
логгера, идентификатором текущего импорта и произвольными
контекстными полями, переданными как именованные аргументы.

Пример использования:
    logger = get_logger("feed_importer")
    logger.info("feed_fetched", url=url, size=len(text))
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


# Идентификатор текущего запуска импорта. Хранится в ContextVar,
# поэтому параллельные импорты в разных задачах asyncio не смешиваются.
_import_id_var: ContextVar[str] = ContextVar("import_id", default="")


def set_import_id(import_id: str | None = None) -> str:
    """Устанавливает идентификатор импорта для текущего контекста.

    Args:
        import_id: Готовый идентификатор. Если None — генерируется
            короткий случайный (8 hex-символов).

    Returns:
        Установленный идентификатор.
    """
    if import_id is None:
        import_id = uuid.uuid4().hex[:8]
    _import_id_var.set(import_id)
    return import_id


def get_import_id() -> str:
    """Возвращает идентификатор импорта текущего контекста."""
    return _import_id_var.get()


class JSONFormatter(logging.Formatter):
    """Сериализует LogRecord в одну JSON-строку.

    Поля записи: timestamp (UTC, ISO 8601), level, logger, message,
    import_id и, при наличии, context с дополнительными полями
    и сведениями об исключении.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "import_id": get_import_id(),
        }

        context: dict[str, Any] = dict(getattr(record, "context_data", {}))

        if record.exc_info and record.exc_info[1] is not None:
            context["exception_type"] = type(record.exc_info[1]).__name__
            context["exception_message"] = str(record.exc_info[1])

        if context:
            entry["context"] = context

        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextLogger:
    """Логгер, принимающий контекстные поля как именованные аргументы.

    Поля попадают в атрибут ``context_data`` записи лога и выводятся
    JSONFormatter'ом в блоке context. Метод bind() возвращает новый
    логгер с постоянными полями, которые добавляются к каждой записи.

    Attributes:
        _logger: Стандартный логгер, в который уходят записи.
        _bound: Постоянные контекстные поля.
    """

    def __init__(
        self,
        logger: logging.Logger,
        bound: dict[str, Any] | None = None,
    ) -> None:
        self._logger = logger
        self._bound = bound or {}

    def bind(self, **fields: Any) -> "ContextLogger":
        """Возвращает логгер с дополнительными постоянными полями.

        Args:
            **fields: Поля, добавляемые к каждой записи.

        Returns:
            Новый ContextLogger над тем же стандартным логгером.
        """
        return ContextLogger(self._logger, {**self._bound, **fields})

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **fields: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={"context_data": {**self._bound, **fields}},
        )

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def critical(
        self, message: str, exc_info: bool = False, **fields: Any
    ) -> None:
        self._log(logging.CRITICAL, message, exc_info=exc_info, **fields)


_loggers: dict[str, ContextLogger] = {}


def setup_logging(level: str = "INFO", log_file_path: str = "") -> None:
    """Настраивает корневой логгер приложения.

    Вызывается один раз при старте. Повторный вызов заменяет
    ранее установленные хендлеры, а не добавляет новые.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file_path: Файл для дублирования логов. Пустая строка —
            только stdout.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    formatter = JSONFormatter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file_path:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(path), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def get_logger(name: str) -> ContextLogger:
    """Возвращает именованный ContextLogger.

    Повторный вызов с тем же именем возвращает тот же экземпляр.

    Args:
        name: Имя логгера, обычно имя модуля ('json_feed', 'export_service').

    Returns:
        ContextLogger для указанного имени.
    """
    if name not in _loggers:
        _loggers[name] = ContextLogger(logging.getLogger(name))
    return _loggers[name]
