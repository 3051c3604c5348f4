"""Unit tests for the SQLite product repository."""

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from feedhub.models import ImportedProduct, build_imported_product
from feedhub.repositories import SQLiteProductRepository


@pytest.fixture
def repository(tmp_path: Path) -> Iterator[SQLiteProductRepository]:
    """Initialized repository backed by a temporary database file."""
    repo = SQLiteProductRepository(db_path=str(tmp_path / "db" / "feedhub.db"))
    repo.initialize()
    yield repo
    repo.close()


def _products(project_id: str, count: int) -> list[ImportedProduct]:
    return [
        build_imported_product(
            {"id": str(i), "title": f"Item {i}", "price": i * 1.5},
            i,
            project_id=project_id,
        )
        for i in range(count)
    ]


def test_replace_products_inserts_in_batches(repository: SQLiteProductRepository) -> None:
    """All products should be stored regardless of batch size."""
    inserted = repository.replace_products("shop", _products("shop", 7), batch_size=3)

    assert inserted == 7
    assert repository.get_products_count("shop") == 7


def test_replace_products_removes_previous_products(
    repository: SQLiteProductRepository,
) -> None:
    """Re-import should replace the project's products completely."""
    repository.replace_products("shop", _products("shop", 5))

    repository.replace_products("shop", _products("shop", 2))

    assert repository.get_products_count("shop") == 2


def test_replace_products_keeps_other_projects(
    repository: SQLiteProductRepository,
) -> None:
    """Products of other projects should not be touched."""
    repository.replace_products("a", _products("a", 3))

    repository.replace_products("b", _products("b", 1))

    assert repository.get_products_count("a") == 3
    assert repository.get_products_count("b") == 1


def test_get_products_preserves_feed_order_and_data(
    repository: SQLiteProductRepository,
) -> None:
    """Products should come back in import order with raw data intact."""
    products = _products("shop", 4)
    repository.replace_products("shop", products, batch_size=2)

    stored = repository.get_products("shop")

    assert [p.external_id for p in stored] == ["0", "1", "2", "3"]
    assert stored[3].raw_data == {"id": "3", "title": "Item 3", "price": 4.5}
    assert stored[0].imported_at == products[0].imported_at


def test_replace_products_rejects_non_positive_batch_size(
    repository: SQLiteProductRepository,
) -> None:
    """Batch size must be positive."""
    with pytest.raises(ValueError):
        repository.replace_products("shop", _products("shop", 1), batch_size=0)


def test_get_columns_returns_sorted_union_of_sample(
    repository: SQLiteProductRepository,
) -> None:
    """Columns should be collected from stored raw data."""
    repository.replace_products("shop", [
        build_imported_product({"title": "A", "id": "1"}, 0, project_id="shop"),
        build_imported_product({"Brand": "B", "id": "2"}, 1, project_id="shop"),
    ])

    assert repository.get_columns("shop") == ["Brand", "id", "title"]
    assert repository.get_columns("shop", sample_limit=1) == ["id", "title"]


def test_save_column_mapping_if_missing_saves_once(
    repository: SQLiteProductRepository,
) -> None:
    """Mapping should be stored only when the project has none."""
    assert repository.get_column_mapping("shop") is None

    first = repository.save_column_mapping_if_missing("shop", ["id", "title"])
    second = repository.save_column_mapping_if_missing("shop", ["other"])

    assert first is True
    assert second is False
    assert repository.get_column_mapping("shop") == {"id": "id", "title": "title"}


def test_get_column_mapping_logs_and_reraises_database_errors(
    repository: SQLiteProductRepository, caplog: pytest.LogCaptureFixture
) -> None:
    """Database error while reading a mapping should be logged and re-raised."""
    repository._get_connection().execute("DROP TABLE column_mappings")

    with caplog.at_level(logging.ERROR, logger="sqlite_repository"):
        with pytest.raises(sqlite3.OperationalError):
            repository.get_column_mapping("shop")

    assert [record.getMessage() for record in caplog.records] == [
        "column_mapping_fetch_failed"
    ]
