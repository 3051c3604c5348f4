"""Сервис импорта фида в проект.

Оркестрирует один импорт: загрузка и разбор фида с повторами,
построение товаров из плоских записей, полная замена товаров
проекта и сохранение сопоставления колонок по умолчанию.
"""

from feedhub.config import FetchSettings, get_logger
from feedhub.models import (
    FeedResult,
    ImportedProduct,
    ImportOptions,
    ImportSummary,
    build_imported_product,
)
from feedhub.repositories.base import BaseProductRepository
from feedhub.services.feed_importer import FeedFetchError, FeedImporter
from feedhub.utils import async_retry

logger = get_logger("import_service")

EMPTY_FEED_MESSAGE = "Фид загружен, но записи не найдены"


def is_retryable_fetch_error(error: BaseException) -> bool:
    """Решает, имеет ли смысл повторять загрузку фида.

    Повторяются сетевые сбои (status=None), ответы 5xx и 429.
    Остальные ответы 4xx не изменятся от повтора.
    """
    if not isinstance(error, FeedFetchError):
        return False
    status = error.status
    return status is None or status >= 500 or status == 429


class ImportService:
    """Импорт фида в товары проекта.

    Attributes:
        _importer: Загрузчик и парсер фида.
        _repository: Хранилище товаров.
        _max_retries: Число попыток загрузки.
        _retry_delay: Начальная задержка между попытками.
    """

    def __init__(
        self,
        importer: FeedImporter,
        repository: BaseProductRepository,
        fetch_settings: FetchSettings,
    ) -> None:
        self._importer = importer
        self._repository = repository
        self._max_retries = fetch_settings.max_retries
        self._retry_delay = fetch_settings.retry_delay

    async def _load_feed(self, options: ImportOptions) -> FeedResult:
        """Загружает и разбирает фид с повторами при сбоях загрузки.

        Ошибки разбора не повторяются: тот же текст даст тот же результат.
        """

        @async_retry(
            max_retries=self._max_retries,
            delay=self._retry_delay,
            backoff_factor=2.0,
            exceptions=(FeedFetchError,),
            should_retry=is_retryable_fetch_error,
        )
        async def _do_load() -> FeedResult:
            return await self._importer.import_feed(
                options.feed_url, options.feed_type
            )

        return await _do_load()

    def _build_products(
        self, result: FeedResult, options: ImportOptions
    ) -> list[ImportedProduct]:
        return [
            build_imported_product(
                record,
                row_index=index,
                project_id=options.project_id,
                id_column=options.id_column,
                image_column=options.image_column,
            )
            for index, record in enumerate(result.records)
        ]

    async def run(self, options: ImportOptions) -> ImportSummary:
        """Выполняет импорт фида в проект.

        Пустой фид не трогает уже сохранённые товары проекта.

        Args:
            options: Параметры импорта.

        Returns:
            ImportSummary с количеством товаров, колонками и путём.

        Raises:
            FeedFetchError: Если фид не удалось загрузить.
            FeedParseError: Если JSON-фид не удалось разобрать.
        """
        log = logger.bind(project_id=options.project_id)
        log.info(
            "import_started",
            feed_url=options.feed_url,
            feed_type=options.feed_type.value,
        )

        result = await self._load_feed(options)

        if result.is_empty:
            log.warning("import_empty_feed", path=result.path)
            return ImportSummary(
                imported=0,
                columns=[],
                path=result.path,
                message=EMPTY_FEED_MESSAGE,
            )

        products = self._build_products(result, options)
        imported = self._repository.replace_products(
            options.project_id, products, batch_size=options.batch_size
        )
        self._repository.save_column_mapping_if_missing(
            options.project_id, result.columns
        )

        log.info(
            "import_completed",
            imported=imported,
            columns=len(result.columns),
            path=result.path,
        )

        return ImportSummary(
            imported=imported,
            columns=result.columns,
            path=result.path,
            message=f"Импортировано товаров: {imported}",
        )
