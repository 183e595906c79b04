"""Excel workbook (openpyxl) adapter standing in for the host spreadsheet."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from cotizaciones.errors import SheetMissing
from cotizaciones.store.base import HIGHLIGHT_COLORS, Cell, Row, Table, TableDocument
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)


class WorksheetTable(Table):
    """:class:`Table` over a single openpyxl worksheet."""

    def __init__(self, worksheet: Worksheet) -> None:
        self.worksheet = worksheet
        self.name = worksheet.title

    def last_row(self) -> int:
        # ``max_row`` counts styled but empty rows, so walk back to real content.
        for row_number in range(self.worksheet.max_row, 0, -1):
            for cell in self.worksheet[row_number]:
                if cell.value not in (None, ""):
                    return row_number
        return 0

    def last_column(self) -> int:
        width = 0
        for row in self.worksheet.iter_rows():
            for cell in reversed(row):
                if cell.value not in (None, ""):
                    width = max(width, cell.column)
                    break
        return width

    def get_values(
        self,
        start_row: int = 1,
        start_column: int = 1,
        num_rows: int | None = None,
        num_columns: int | None = None,
    ) -> list[Row]:
        if num_rows is None:
            num_rows = max(self.last_row() - start_row + 1, 0)
        if num_columns is None:
            num_columns = max(self.last_column() - start_column + 1, 0)
        if num_rows <= 0 or num_columns <= 0:
            return [[] for _ in range(max(num_rows, 0))]
        return [
            list(values)
            for values in self.worksheet.iter_rows(
                min_row=start_row,
                max_row=start_row + num_rows - 1,
                min_col=start_column,
                max_col=start_column + num_columns - 1,
                values_only=True,
            )
        ]

    def set_values(self, start_row: int, start_column: int, rows: Sequence[Sequence[Cell]]) -> None:
        for row_offset, values in enumerate(rows):
            for col_offset, value in enumerate(values):
                self.worksheet.cell(
                    row=start_row + row_offset,
                    column=start_column + col_offset,
                    value=value,
                )

    def delete_rows(self, start_row: int, count: int = 1) -> None:
        self.worksheet.delete_rows(start_row, count)

    def highlight(self, row: int, column: int, color: str = "yellow") -> None:
        rgb = HIGHLIGHT_COLORS.get(color.lower(), color)
        self.worksheet.cell(row=row, column=column).fill = PatternFill(
            start_color=rgb, end_color=rgb, fill_type="solid"
        )

    def clear_highlight(self, row: int, column: int) -> None:
        self.worksheet.cell(row=row, column=column).fill = PatternFill(fill_type=None)


class WorkbookDocument(TableDocument):
    """Workbook file on disk; a missing file starts as an empty workbook."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        if self.path.exists():
            self.workbook = load_workbook(self.path)
        else:
            LOGGER.info("Workbook %s not found; starting an empty one", self.path)
            self.workbook = Workbook()
            # A fresh workbook carries a default sheet that is not part of the document.
            self.workbook.remove(self.workbook.active)

    def has_table(self, name: str) -> bool:
        return name in self.workbook.sheetnames

    def get_table(self, name: str) -> WorksheetTable:
        if not self.has_table(name):
            raise SheetMissing(name)
        return WorksheetTable(self.workbook[name])

    def get_or_create_table(self, name: str) -> WorksheetTable:
        if not self.has_table(name):
            self.workbook.create_sheet(title=name)
        return WorksheetTable(self.workbook[name])

    def save(self) -> None:
        if not self.workbook.sheetnames:
            LOGGER.warning("Workbook %s has no sheets; nothing to save", self.path)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(self.path)
        LOGGER.info("Saved workbook → %s", self.path)


__all__ = ["WorkbookDocument", "WorksheetTable"]
