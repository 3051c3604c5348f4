"""Точка входа FeedHub.

Полный цикл импорта одного фида:
1. Загрузка конфигурации и инициализация логирования.
2. Загрузка, разбор и сохранение товаров фида.
3. Предпросмотр промпта для первого товара (если задан шаблон).
4. Выгрузка товаров в файл (если задан формат).

Запуск: python -m feedhub
"""

import asyncio
import sys

import aiohttp

from feedhub.config import (
    ConfigValidationError,
    Settings,
    get_logger,
    load_settings,
    set_import_id,
    setup_logging,
)
from feedhub.models import FeedType, ImportOptions, ImportSummary
from feedhub.repositories import BaseProductRepository, SQLiteProductRepository
from feedhub.services import (
    ExportService,
    FeedImporter,
    ImportService,
    missing_variables,
    render_prompt,
)

logger = get_logger("main")


def create_repository(settings: Settings) -> SQLiteProductRepository:
    """Создаёт репозиторий и таблицы в нём."""
    repository = SQLiteProductRepository(db_path=settings.database.db_path)
    try:
        repository.initialize()
    except Exception:
        repository.close()
        raise
    return repository


def create_session(settings: Settings) -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.fetch.timeout),
    )


def build_import_options(settings: Settings) -> ImportOptions:
    """Собирает параметры импорта из настроек окружения."""
    return ImportOptions(
        feed_url=settings.feed.url,
        feed_type=FeedType.from_value(settings.feed.feed_type),
        project_id=settings.feed.project_id,
        id_column=settings.feed.id_column,
        image_column=settings.feed.image_column,
        batch_size=settings.database.batch_size,
    )


def preview_prompt(
    template: str,
    repository: BaseProductRepository,
    project_id: str,
    summary: ImportSummary,
) -> None:
    """Логирует промпт, собранный для первого товара проекта."""
    unknown = missing_variables(template, summary.columns)
    if unknown:
        logger.warning(
            "prompt_unknown_variables",
            project_id=project_id,
            variables=unknown,
        )

    products = repository.get_products(project_id)
    if not products:
        return

    logger.info(
        "prompt_preview",
        project_id=project_id,
        external_id=products[0].external_id,
        prompt=render_prompt(template, products[0].raw_data),
    )


async def run_pipeline(settings: Settings) -> ImportSummary:
    """Запускает импорт, предпросмотр промпта и выгрузку.

    Созданные ресурсы закрываются в finally, даже если следующий
    ресурс создать не удалось.

    Args:
        settings: Валидированные настройки приложения.

    Returns:
        Итог импорта.
    """
    repository: SQLiteProductRepository | None = None
    session: aiohttp.ClientSession | None = None
    importer: FeedImporter | None = None

    try:
        repository = create_repository(settings)
        session = create_session(settings)
        importer = FeedImporter(session=session)
        options = build_import_options(settings)

        # === ЭТАП 1: Импорт ===
        logger.info("stage_started", stage="import", url=options.feed_url)

        import_service = ImportService(
            importer=importer,
            repository=repository,
            fetch_settings=settings.fetch,
        )
        summary = await import_service.run(options)

        logger.info(
            "stage_completed",
            stage="import",
            imported=summary.imported,
            path=summary.path,
            total_in_db=repository.get_products_count(options.project_id),
        )

        # === ЭТАП 2: Промпт ===
        if settings.export.prompt_template:
            preview_prompt(
                settings.export.prompt_template,
                repository,
                options.project_id,
                summary,
            )

        # === ЭТАП 3: Выгрузка ===
        if settings.export.export_format:
            logger.info("stage_started", stage="export")

            export_service = ExportService(
                repository=repository,
                settings=settings.export,
            )
            export_path = export_service.export(options.project_id)

            if export_path:
                logger.info("stage_completed", stage="export", file_path=export_path)
            else:
                logger.warning("export_skipped", reason="no_products")

        return summary

    finally:
        if importer is not None:
            await importer.close()
        if session is not None:
            await session.close()
        if repository is not None:
            repository.close()
        logger.info("all_resources_closed")


def main() -> None:
    """Загружает конфигурацию, настраивает логирование и запускает импорт."""
    try:
        settings = load_settings()
    except ConfigValidationError as e:
        print(f"\n[ОШИБКА КОНФИГУРАЦИИ]\n{e}")
        print("\nПроверьте файл .env (см. .env.example для справки).")
        sys.exit(1)

    setup_logging(
        level=settings.log.level,
        log_file_path=settings.log.file_path,
    )

    import_id = set_import_id()

    logger.info(
        "application_started",
        import_id=import_id,
        feed_url=settings.feed.url,
        feed_type=settings.feed.feed_type,
        project_id=settings.feed.project_id,
    )

    try:
        summary = asyncio.run(run_pipeline(settings))
    except KeyboardInterrupt:
        logger.info("application_interrupted_by_user")
        print("\nИмпорт остановлен пользователем (Ctrl+C).")
        return
    except Exception as e:
        logger.critical(
            "application_fatal_error",
            exc_info=True,
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"\nКритическая ошибка: {e}")
        sys.exit(1)

    print(summary.message)
    logger.info("application_finished", import_id=import_id)


if __name__ == "__main__":
    main()
