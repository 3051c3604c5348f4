"""Сервис выгрузки импортированных товаров.

Пишет товары проекта в CSV, JSON или Excel. Набор столбцов
динамический: external_id, image_url и все колонки фида. Заголовки
колонок фида берутся из сопоставления колонок проекта, если оно есть.
"""

import csv
import json
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from feedhub.config import ExportSettings, get_logger
from feedhub.models import FlatValue, ImportedProduct
from feedhub.parsers.flatten import collect_columns
from feedhub.repositories.base import BaseProductRepository

logger = get_logger("export_service")

BASE_COLUMNS: tuple[str, ...] = ("external_id", "image_url")

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 60

ExportRow = list[FlatValue | None]


class ExportService:
    """Выгрузка товаров проекта в файл.

    Attributes:
        _repository: Репозиторий с импортированными товарами.
        _settings: Формат и путь выгрузки.
    """

    def __init__(
        self,
        repository: BaseProductRepository,
        settings: ExportSettings,
    ) -> None:
        self._repository = repository
        self._settings = settings

    def export(self, project_id: str) -> str:
        """Выгружает товары проекта в формате из настроек.

        Args:
            project_id: Проект, товары которого выгружаются.

        Returns:
            Абсолютный путь к файлу или пустая строка, если выгружать
            нечего либо формат не задан.

        Raises:
            ValueError: Если формат выгрузки не поддерживается.
        """
        export_format = self._settings.export_format
        if not export_format:
            logger.info("export_disabled", project_id=project_id)
            return ""

        products = self._repository.get_products(project_id)
        if not products:
            logger.warning("no_products_to_export", project_id=project_id)
            return ""

        columns = collect_columns(p.raw_data for p in products)
        mapping = self._repository.get_column_mapping(project_id) or {}
        header = list(BASE_COLUMNS) + [mapping.get(c, c) for c in columns]
        rows = [self._product_to_row(p, columns) for p in products]

        logger.info(
            "export_started",
            project_id=project_id,
            export_format=export_format,
            products_count=len(products),
            columns=len(columns),
        )

        output_path = Path(self._settings.export_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if export_format == "csv":
            self._write_csv(output_path, header, rows)
        elif export_format == "json":
            self._write_json(output_path, header, rows)
        elif export_format == "xlsx":
            self._write_xlsx(output_path, header, rows)
        else:
            raise ValueError(f"Неподдерживаемый формат выгрузки: {export_format}")

        absolute_path = str(output_path.resolve())
        logger.info(
            "export_completed",
            project_id=project_id,
            products_count=len(products),
            export_path=absolute_path,
        )
        return absolute_path

    def _product_to_row(
        self, product: ImportedProduct, columns: list[str]
    ) -> ExportRow:
        return [product.external_id, product.image_url] + [
            product.raw_data.get(column) for column in columns
        ]

    def _write_csv(
        self, path: Path, header: list[str], rows: list[ExportRow]
    ) -> None:
        # utf-8-sig добавляет BOM, чтобы Excel открыл файл в UTF-8
        with path.open("w", encoding="utf-8-sig", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for row in rows:
                writer.writerow(["" if value is None else value for value in row])

    def _write_json(
        self, path: Path, header: list[str], rows: list[ExportRow]
    ) -> None:
        items = [dict(zip(header, row)) for row in rows]
        with path.open("w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, indent=2)

    def _write_xlsx(
        self, path: Path, header: list[str], rows: list[ExportRow]
    ) -> None:
        wb = Workbook()
        ws = wb.active
        if ws is None:
            ws = wb.create_sheet()
        ws.title = "Товары"

        self._write_header(ws, header)
        self._write_data(ws, rows)
        self._apply_formatting(ws, header, rows)

        wb.save(str(path))
        logger.debug("workbook_saved", path=str(path))

    def _write_header(self, ws: Worksheet, header: list[str]) -> None:
        header_font = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4",
            end_color="4472C4",
            fill_type="solid",
        )
        header_alignment = Alignment(
            horizontal="center",
            vertical="center",
            wrap_text=True,
        )
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

        for col_index, title in enumerate(header, start=1):
            cell = ws.cell(row=1, column=col_index, value=title)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment
            cell.border = thin_border

    def _write_data(self, ws: Worksheet, rows: list[ExportRow]) -> None:
        data_font = Font(name="Calibri", size=10)
        link_font = Font(name="Calibri", size=10, color="0563C1", underline="single")
        data_alignment = Alignment(vertical="top", wrap_text=False)

        for row_index, row in enumerate(rows, start=2):
            for col_index, value in enumerate(row, start=1):
                if isinstance(value, str):
                    value = ILLEGAL_CHARACTERS_RE.sub("", value)
                cell = ws.cell(row=row_index, column=col_index, value=value)
                cell.font = data_font
                cell.alignment = data_alignment

            # Столбец image_url как гиперссылка
            image_url = row[1]
            if image_url:
                link_cell = ws.cell(row=row_index, column=2)
                link_cell.hyperlink = str(image_url)
                link_cell.font = link_font

    def _apply_formatting(
        self, ws: Worksheet, header: list[str], rows: list[ExportRow]
    ) -> None:
        """Ширина столбцов по содержимому, автофильтр и закреплённая шапка."""
        for col_index, title in enumerate(header, start=1):
            longest = max(
                [len(title)]
                + [len(str(row[col_index - 1] or "")) for row in rows]
            )
            width = min(max(longest + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
            ws.column_dimensions[get_column_letter(col_index)].width = width

        last_col_letter = get_column_letter(len(header))
        ws.auto_filter.ref = f"A1:{last_col_letter}{len(rows) + 1}"
        ws.freeze_panes = "A2"
        ws.row_dimensions[1].height = 30
