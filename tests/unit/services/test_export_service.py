"""Unit tests for exporting imported products."""

import csv
import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from openpyxl import load_workbook

from feedhub.config import ExportSettings
from feedhub.models import build_imported_product
from feedhub.repositories import SQLiteProductRepository
from feedhub.services.export_service import ExportService


@pytest.fixture
def repository(tmp_path: Path) -> Iterator[SQLiteProductRepository]:
    """Repository with two imported products in project 'shop'."""
    repo = SQLiteProductRepository(db_path=str(tmp_path / "export.db"))
    repo.initialize()
    repo.replace_products("shop", [
        build_imported_product(
            {"id": "1", "title": "Sombrero", "image": "https://cdn.test/1.jpg"},
            0,
            project_id="shop",
        ),
        build_imported_product({"id": "2", "price": 9.5}, 1, project_id="shop"),
    ])
    yield repo
    repo.close()


def _service(
    repository: SQLiteProductRepository, export_format: str, path: Path
) -> ExportService:
    settings = ExportSettings(
        export_format=export_format,
        export_path=str(path),
        prompt_template="",
    )
    return ExportService(repository=repository, settings=settings)


def test_export_writes_csv_with_bom(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """CSV should start with a BOM and contain dynamic columns."""
    target = tmp_path / "out" / "products.csv"

    result = _service(repository, "csv", target).export("shop")

    assert result == str(target.resolve())
    assert target.read_bytes().startswith(b"\xef\xbb\xbf")
    with target.open(encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["external_id", "image_url", "id", "image", "price", "title"]
    assert rows[1] == ["1", "https://cdn.test/1.jpg", "1", "https://cdn.test/1.jpg", "", "Sombrero"]
    assert rows[2] == ["2", "", "2", "", "9.5", ""]


def test_export_writes_json_objects(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """JSON export should be a list of objects keyed by column."""
    target = tmp_path / "products.json"

    _service(repository, "json", target).export("shop")

    items = json.loads(target.read_text(encoding="utf-8"))
    assert items[0]["title"] == "Sombrero"
    assert items[1] == {
        "external_id": "2",
        "image_url": None,
        "id": "2",
        "image": None,
        "price": 9.5,
        "title": None,
    }


def test_export_writes_styled_xlsx(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """Workbook should have a header row, data and a frozen header."""
    target = tmp_path / "products.xlsx"

    _service(repository, "xlsx", target).export("shop")

    ws = load_workbook(str(target)).active
    assert [c.value for c in ws[1]] == [
        "external_id", "image_url", "id", "image", "price", "title",
    ]
    assert ws.cell(row=2, column=6).value == "Sombrero"
    assert ws.cell(row=3, column=5).value == 9.5
    assert ws.freeze_panes == "A2"
    assert ws.auto_filter.ref == "A1:F3"


def test_export_uses_saved_column_mapping_for_headers(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """Saved mapping should rename feed column headers."""
    repository.save_column_mapping_if_missing("shop", ["id"])
    conn = repository._get_connection()
    with conn:
        conn.execute(
            "UPDATE column_mappings SET mapping = ? WHERE project_id = ?",
            (json.dumps({"title": "Название"}), "shop"),
        )
    target = tmp_path / "products.csv"

    _service(repository, "csv", target).export("shop")

    with target.open(encoding="utf-8-sig", newline="") as f:
        header = next(csv.reader(f))
    assert header[-1] == "Название"


def test_export_returns_empty_string_without_products(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """Project without products should not produce a file."""
    target = tmp_path / "empty.csv"

    result = _service(repository, "csv", target).export("other")

    assert result == ""
    assert not target.exists()


def test_export_returns_empty_string_when_format_not_set(
    repository: SQLiteProductRepository, tmp_path: Path
) -> None:
    """Empty export format should disable the export."""
    assert _service(repository, "", tmp_path / "x.csv").export("shop") == ""
