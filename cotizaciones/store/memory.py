"""In-memory table store used by tests and dry runs."""

from __future__ import annotations

from typing import Sequence

from cotizaciones.errors import SheetMissing
from cotizaciones.store.base import Cell, Row, Table, TableDocument


class MemoryTable(Table):
    """Table kept as a list of rows; trailing empty cells are insignificant."""

    def __init__(self, name: str, rows: Sequence[Sequence[Cell]] | None = None) -> None:
        self.name = name
        self._rows: list[Row] = [list(row) for row in rows or []]
        self.highlights: dict[tuple[int, int], str] = {}

    @staticmethod
    def _is_blank(value: Cell) -> bool:
        return value is None or value == ""

    def last_row(self) -> int:
        for index in range(len(self._rows), 0, -1):
            if any(not self._is_blank(value) for value in self._rows[index - 1]):
                return index
        return 0

    def last_column(self) -> int:
        width = 0
        for row in self._rows:
            for index in range(len(row), 0, -1):
                if not self._is_blank(row[index - 1]):
                    width = max(width, index)
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
        values: list[Row] = []
        for row_number in range(start_row, start_row + num_rows):
            source = self._rows[row_number - 1] if row_number <= len(self._rows) else []
            values.append(
                [
                    source[col - 1] if col <= len(source) else None
                    for col in range(start_column, start_column + num_columns)
                ]
            )
        return values

    def set_values(self, start_row: int, start_column: int, rows: Sequence[Sequence[Cell]]) -> None:
        for offset, values in enumerate(rows):
            row_number = start_row + offset
            while len(self._rows) < row_number:
                self._rows.append([])
            target = self._rows[row_number - 1]
            needed = start_column - 1 + len(values)
            if len(target) < needed:
                target.extend([None] * (needed - len(target)))
            target[start_column - 1 : needed] = list(values)

    def delete_rows(self, start_row: int, count: int = 1) -> None:
        del self._rows[start_row - 1 : start_row - 1 + count]
        self.highlights = {
            (row if row < start_row else row - count, col): color
            for (row, col), color in self.highlights.items()
            if not start_row <= row < start_row + count
        }

    def highlight(self, row: int, column: int, color: str = "yellow") -> None:
        self.highlights[(row, column)] = color

    def clear_highlight(self, row: int, column: int) -> None:
        self.highlights.pop((row, column), None)


class MemoryDocument(TableDocument):
    """Dictionary of :class:`MemoryTable` instances keyed by name."""

    def __init__(self, tables: dict[str, Sequence[Sequence[Cell]]] | None = None) -> None:
        self.tables: dict[str, MemoryTable] = {
            name: MemoryTable(name, rows) for name, rows in (tables or {}).items()
        }
        self.saves = 0

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def get_table(self, name: str) -> MemoryTable:
        try:
            return self.tables[name]
        except KeyError:
            raise SheetMissing(name) from None

    def get_or_create_table(self, name: str) -> MemoryTable:
        return self.tables.setdefault(name, MemoryTable(name))

    def save(self) -> None:
        self.saves += 1


__all__ = ["MemoryDocument", "MemoryTable"]
