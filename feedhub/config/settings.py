"""Настройки приложения.

Читает переменные окружения (и файл .env в корне проекта),
проверяет их и собирает в иммутабельный объект Settings.
Все ошибки конфигурации собираются и выбрасываются одним
исключением, чтобы пользователь увидел их разом.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_env() -> None:
    """Подгружает .env из корня проекта, если файл существует."""
    project_root = Path(__file__).resolve().parent.parent.parent
    load_dotenv(dotenv_path=project_root / ".env")


class ConfigValidationError(Exception):
    """Некорректная или неполная конфигурация окружения."""


EXPORT_FORMATS = ("xlsx", "csv", "json")


@dataclass(frozen=True)
class FeedSettings:
    """Источник фида и правила сопоставления колонок.

    Attributes:
        url: Адрес фида (HTTP/HTTPS).
        feed_type: Формат фида: json, csv или xml.
        project_id: Идентификатор проекта, под которым хранятся товары.
        id_column: Колонка с идентификатором товара (пусто — автоподбор).
        image_column: Колонка с URL изображения (пусто — автоподбор).
    """

    url: str
    feed_type: str
    project_id: str
    id_column: str
    image_column: str


@dataclass(frozen=True)
class FetchSettings:
    """Параметры загрузки фида по сети.

    Attributes:
        timeout: Общий таймаут HTTP-запроса в секундах.
        max_retries: Число попыток загрузки при ошибке HTTP.
        retry_delay: Начальная задержка между попытками в секундах.
    """

    timeout: float
    max_retries: int
    retry_delay: float


@dataclass(frozen=True)
class DatabaseSettings:
    """Хранилище импортированных товаров.

    Attributes:
        db_path: Путь к файлу SQLite.
        batch_size: Размер пачки при вставке товаров.
    """

    db_path: str
    batch_size: int


@dataclass(frozen=True)
class ExportSettings:
    """Выгрузка импортированных товаров.

    Attributes:
        export_format: xlsx, csv, json или пустая строка (не выгружать).
        export_path: Путь к выходному файлу.
        prompt_template: Шаблон промпта с переменными {{колонка}}.
    """

    export_format: str
    export_path: str
    prompt_template: str


@dataclass(frozen=True)
class LogSettings:
    """Настройки логирования.

    Attributes:
        level: Уровень логирования.
        file_path: Файл логов (пустая строка — только консоль).
    """

    level: str
    file_path: str


@dataclass(frozen=True)
class Settings:
    """Корневой объект конфигурации."""

    feed: FeedSettings
    fetch: FetchSettings
    database: DatabaseSettings
    export: ExportSettings
    log: LogSettings


def _parse_int(value: str, param_name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть целым числом, "
            f"получено: '{value}'"
        )


def _parse_float(value: str, param_name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть числом, "
            f"получено: '{value}'"
        )


def _validate_required(value: str | None, param_name: str) -> str:
    """Проверяет, что обязательная переменная задана и не пуста.

    Raises:
        ConfigValidationError: Если переменная отсутствует или пуста.
    """
    if value is None or value.strip() == "":
        raise ConfigValidationError(
            f"Обязательная переменная окружения '{param_name}' не задана. "
            f"Проверьте файл .env (см. .env.example)."
        )
    return value.strip()


def _validate_url(value: str, param_name: str) -> str:
    if not value.lower().startswith(("http://", "https://")):
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть HTTP(S)-адресом, "
            f"получено: '{value}'"
        )
    return value


def _validate_positive(value: int | float, param_name: str) -> int | float:
    if value <= 0:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть положительным числом, "
            f"получено: {value}"
        )
    return value


def _validate_choice(
    value: str, param_name: str, choices: tuple[str, ...]
) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ConfigValidationError(
            f"Параметр '{param_name}' = '{value}' недопустим. "
            f"Допустимые значения: {', '.join(choices)}"
        )
    return normalized


def _validate_log_level(value: str) -> str:
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    normalized = value.strip().upper()
    if normalized not in valid_levels:
        raise ConfigValidationError(
            f"Уровень логирования '{value}' недопустим. "
            f"Допустимые значения: {', '.join(valid_levels)}"
        )
    return normalized


def load_settings() -> Settings:
    """Загружает и валидирует настройки из окружения.

    FEED_TYPE не ограничивается списком: неизвестный тип фида
    разбирается как JSON на уровне импортёра.

    Returns:
        Полностью валидированный объект Settings.

    Raises:
        ConfigValidationError: Со списком всех найденных проблем.
    """
    _load_env()

    errors: list[str] = []

    # --- Фид ---
    try:
        feed_url = _validate_url(
            _validate_required(os.getenv("FEED_URL"), "FEED_URL"),
            "FEED_URL",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        feed_url = ""

    feed_type = os.getenv("FEED_TYPE", "json").strip().lower() or "json"
    project_id = os.getenv("PROJECT_ID", "default").strip() or "default"
    id_column = os.getenv("ID_COLUMN", "").strip()
    image_column = os.getenv("IMAGE_COLUMN", "").strip()

    # --- Загрузка ---
    try:
        fetch_timeout = _validate_positive(
            _parse_float(os.getenv("FETCH_TIMEOUT", "60"), "FETCH_TIMEOUT"),
            "FETCH_TIMEOUT",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        fetch_timeout = 60.0

    try:
        fetch_max_retries = _validate_positive(
            _parse_int(os.getenv("FETCH_MAX_RETRIES", "3"), "FETCH_MAX_RETRIES"),
            "FETCH_MAX_RETRIES",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        fetch_max_retries = 3

    try:
        fetch_retry_delay = _parse_float(
            os.getenv("FETCH_RETRY_DELAY", "2.0"), "FETCH_RETRY_DELAY"
        )
        if fetch_retry_delay < 0:
            raise ConfigValidationError(
                "Параметр 'FETCH_RETRY_DELAY' не может быть отрицательным"
            )
    except ConfigValidationError as e:
        errors.append(str(e))
        fetch_retry_delay = 2.0

    # --- База данных ---
    db_path = os.getenv("DB_PATH", "data/feedhub.db")

    try:
        batch_size = _validate_positive(
            _parse_int(os.getenv("IMPORT_BATCH_SIZE", "100"), "IMPORT_BATCH_SIZE"),
            "IMPORT_BATCH_SIZE",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        batch_size = 100

    # --- Экспорт ---
    export_format_raw = os.getenv("EXPORT_FORMAT", "").strip()
    export_format = ""
    if export_format_raw:
        try:
            export_format = _validate_choice(
                export_format_raw, "EXPORT_FORMAT", EXPORT_FORMATS
            )
        except ConfigValidationError as e:
            errors.append(str(e))

    export_path = os.getenv("EXPORT_PATH", "data/products.xlsx")
    prompt_template = os.getenv("PROMPT_TEMPLATE", "")

    # --- Логирование ---
    try:
        log_level = _validate_log_level(os.getenv("LOG_LEVEL", "INFO"))
    except ConfigValidationError as e:
        errors.append(str(e))
        log_level = "INFO"

    log_file_path = os.getenv("LOG_FILE_PATH", "")

    if errors:
        raise ConfigValidationError(
            "Ошибки конфигурации:\n" + "\n".join(f"  - {err}" for err in errors)
        )

    return Settings(
        feed=FeedSettings(
            url=feed_url,
            feed_type=feed_type,
            project_id=project_id,
            id_column=id_column,
            image_column=image_column,
        ),
        fetch=FetchSettings(
            timeout=fetch_timeout,
            max_retries=fetch_max_retries,
            retry_delay=fetch_retry_delay,
        ),
        database=DatabaseSettings(
            db_path=db_path,
            batch_size=batch_size,
        ),
        export=ExportSettings(
            export_format=export_format,
            export_path=export_path,
            prompt_template=prompt_template,
        ),
        log=LogSettings(
            level=log_level,
            file_path=log_file_path,
        ),
    )
