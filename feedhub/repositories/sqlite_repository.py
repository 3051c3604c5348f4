"""SQLite-реализация репозитория товаров.

Товары хранятся в таблице products: плоская запись фида целиком
лежит в raw_data как JSON. Импорт полностью заменяет товары проекта.
Сопоставление колонок проекта хранится в column_mappings.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from feedhub.config import get_logger
from feedhub.models import ImportedProduct
from feedhub.parsers.flatten import collect_columns
from feedhub.repositories.base import BaseProductRepository

logger = get_logger("sqlite_repository")


class SQLiteProductRepository(BaseProductRepository):
    """Репозиторий товаров на базе SQLite.

    Attributes:
        _db_path: Путь к файлу базы данных (':memory:' для тестов).
        _connection: Активное соединение.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._connection: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Возвращает соединение, открывая его при первом обращении.

        Raises:
            RuntimeError: Если не удалось подключиться к базе.
        """
        if self._connection is None:
            try:
                if self._db_path != ":memory:":
                    Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

                self._connection = sqlite3.connect(self._db_path)
                self._connection.row_factory = sqlite3.Row
                self._connection.execute("PRAGMA journal_mode=WAL")

                logger.info("database_connected", db_path=self._db_path)
            except sqlite3.Error as e:
                logger.error(
                    "database_connection_failed",
                    exc_info=True,
                    db_path=self._db_path,
                    error=str(e),
                )
                raise RuntimeError(
                    f"Не удалось подключиться к БД: {self._db_path}"
                ) from e
        return self._connection

    def initialize(self) -> None:
        """Создаёт таблицы и индексы, если их ещё нет."""
        conn = self._get_connection()

        create_products_table = """
        CREATE TABLE IF NOT EXISTS products (
            product_id   TEXT PRIMARY KEY,
            project_id   TEXT NOT NULL,
            position     INTEGER NOT NULL,
            external_id  TEXT NOT NULL,
            raw_data     TEXT NOT NULL,
            image_url    TEXT,
            imported_at  TEXT NOT NULL
        )
        """

        create_mappings_table = """
        CREATE TABLE IF NOT EXISTS column_mappings (
            project_id   TEXT PRIMARY KEY,
            mapping      TEXT NOT NULL,
            updated_at   TEXT NOT NULL
        )
        """

        create_index_project = """
        CREATE INDEX IF NOT EXISTS idx_products_project
        ON products (project_id, position)
        """

        try:
            conn.execute(create_products_table)
            conn.execute(create_mappings_table)
            conn.execute(create_index_project)
            conn.commit()

            logger.info("database_initialized", db_path=self._db_path)
        except sqlite3.Error as e:
            logger.error("database_init_failed", exc_info=True, error=str(e))
            raise RuntimeError("Не удалось инициализировать таблицы БД") from e

    def _row_to_product(self, row: sqlite3.Row) -> ImportedProduct:
        imported_at = datetime.fromisoformat(row["imported_at"])
        if imported_at.tzinfo is None:
            imported_at = imported_at.replace(tzinfo=timezone.utc)

        return ImportedProduct(
            product_id=row["product_id"],
            project_id=row["project_id"],
            external_id=row["external_id"],
            raw_data=json.loads(row["raw_data"]),
            image_url=row["image_url"],
            imported_at=imported_at,
        )

    def replace_products(
        self,
        project_id: str,
        products: list[ImportedProduct],
        batch_size: int = 100,
    ) -> int:
        """Удаляет товары проекта и вставляет новые в одной транзакции.

        Ошибка на любой пачке откатывает и удаление, и вставку.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size должен быть положительным: {batch_size}")

        conn = self._get_connection()

        sql = """
        INSERT INTO products
            (product_id, project_id, position, external_id,
             raw_data, image_url, imported_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """

        try:
            with conn:
                deleted = conn.execute(
                    "DELETE FROM products WHERE project_id = ?", (project_id,)
                ).rowcount

                for start in range(0, len(products), batch_size):
                    batch = products[start:start + batch_size]
                    conn.executemany(sql, [
                        (
                            p.product_id,
                            project_id,
                            start + offset,
                            p.external_id,
                            json.dumps(p.raw_data, ensure_ascii=False),
                            p.image_url,
                            p.imported_at.isoformat(),
                        )
                        for offset, p in enumerate(batch)
                    ])
                    logger.debug(
                        "products_batch_inserted",
                        project_id=project_id,
                        batch_start=start,
                        batch_size=len(batch),
                    )
        except sqlite3.Error as e:
            logger.error(
                "products_replace_failed",
                exc_info=True,
                project_id=project_id,
                count=len(products),
                error=str(e),
            )
            raise

        logger.info(
            "products_replaced",
            project_id=project_id,
            deleted=deleted,
            inserted=len(products),
        )
        return len(products)

    def get_products(self, project_id: str) -> list[ImportedProduct]:
        conn = self._get_connection()

        try:
            cursor = conn.execute(
                "SELECT * FROM products WHERE project_id = ? ORDER BY position",
                (project_id,),
            )
            return [self._row_to_product(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(
                "products_fetch_failed",
                exc_info=True,
                project_id=project_id,
                error=str(e),
            )
            raise

    def get_products_count(self, project_id: str) -> int:
        conn = self._get_connection()

        try:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM products WHERE project_id = ?",
                (project_id,),
            ).fetchone()
            return row["cnt"] if row else 0
        except sqlite3.Error as e:
            logger.error(
                "products_count_failed",
                exc_info=True,
                project_id=project_id,
                error=str(e),
            )
            raise

    def get_columns(self, project_id: str, sample_limit: int = 100) -> list[str]:
        """Собирает колонки по первым sample_limit товарам проекта."""
        conn = self._get_connection()

        try:
            cursor = conn.execute(
                "SELECT raw_data FROM products WHERE project_id = ? "
                "ORDER BY position LIMIT ?",
                (project_id, sample_limit),
            )
            sample = [json.loads(row["raw_data"]) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(
                "columns_fetch_failed",
                exc_info=True,
                project_id=project_id,
                error=str(e),
            )
            raise

        return collect_columns(raw for raw in sample if isinstance(raw, dict))

    def get_column_mapping(self, project_id: str) -> dict[str, str] | None:
        conn = self._get_connection()

        try:
            row = conn.execute(
                "SELECT mapping FROM column_mappings WHERE project_id = ?",
                (project_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(
                "column_mapping_fetch_failed",
                exc_info=True,
                project_id=project_id,
                error=str(e),
            )
            raise

        return json.loads(row["mapping"]) if row else None

    def save_column_mapping_if_missing(
        self, project_id: str, columns: list[str]
    ) -> bool:
        conn = self._get_connection()
        mapping = {column: column for column in columns}

        try:
            with conn:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO column_mappings "
                    "(project_id, mapping, updated_at) VALUES (?, ?, ?)",
                    (
                        project_id,
                        json.dumps(mapping, ensure_ascii=False),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            logger.error(
                "column_mapping_save_failed",
                exc_info=True,
                project_id=project_id,
                error=str(e),
            )
            raise

        saved = cursor.rowcount > 0
        if saved:
            logger.info(
                "column_mapping_saved",
                project_id=project_id,
                columns=len(columns),
            )
        return saved

    def close(self) -> None:
        """Закрывает соединение с базой данных."""
        if self._connection is not None:
            try:
                self._connection.close()
                self._connection = None
                logger.info("database_closed", db_path=self._db_path)
            except sqlite3.Error as e:
                logger.error("database_close_failed", exc_info=True, error=str(e))
