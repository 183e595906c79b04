"""Table store interfaces mirroring the operations of a spreadsheet document.

Row and column numbers are 1-based, as in the host spreadsheet; row 1 holds the
header of every table used by the package.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

Cell = Any
Row = list[Cell]
SortKey = Callable[[Cell], Any]

HIGHLIGHT_COLORS: dict[str, str] = {
    "yellow": "FFFF00",
    "red": "FF0000",
    "green": "00FF00",
}


class Table(ABC):
    """A named rectangular range of heterogeneous scalar cells."""

    name: str

    @abstractmethod
    def last_row(self) -> int:
        """Return the number of the last row holding any value (0 when empty)."""

    @abstractmethod
    def last_column(self) -> int:
        """Return the number of the last column holding any value (0 when empty)."""

    @abstractmethod
    def get_values(
        self,
        start_row: int = 1,
        start_column: int = 1,
        num_rows: int | None = None,
        num_columns: int | None = None,
    ) -> list[Row]:
        """Read a rectangle; omitted sizes extend to the last used row/column."""

    @abstractmethod
    def set_values(self, start_row: int, start_column: int, rows: Sequence[Sequence[Cell]]) -> None:
        """Write ``rows`` with their top-left cell at ``(start_row, start_column)``."""

    @abstractmethod
    def delete_rows(self, start_row: int, count: int = 1) -> None:
        """Remove ``count`` rows starting at ``start_row``, shifting the rest up."""

    @abstractmethod
    def highlight(self, row: int, column: int, color: str = "yellow") -> None:
        """Flag a single cell visually."""

    @abstractmethod
    def clear_highlight(self, row: int, column: int) -> None:
        """Remove any flag set by :meth:`highlight` on a single cell."""

    def append_rows(self, rows: Sequence[Sequence[Cell]]) -> int:
        """Write ``rows`` after the last used row and return the first new row number."""

        first_row = self.last_row() + 1
        if rows:
            self.set_values(first_row, 1, rows)
        return first_row

    def clear(self, start_row: int, start_column: int = 1, end_column: int | None = None) -> None:
        """Blank every cell from ``start_row`` down within the column window."""

        last_row = self.last_row()
        last_column = end_column or self.last_column()
        if last_row < start_row or last_column < start_column:
            return
        width = last_column - start_column + 1
        blank = [[None] * width for _ in range(last_row - start_row + 1)]
        self.set_values(start_row, start_column, blank)

    def sort(self, start_row: int = 2, column: int = 1, key: SortKey | None = None) -> None:
        """Sort rows from ``start_row`` down ascending by ``column``.

        ``key`` maps the cell value to its sort key; rows keep their relative
        order when keys tie.
        """

        last_row = self.last_row()
        if last_row - start_row < 1:
            return
        rows = self.get_values(start_row, 1, last_row - start_row + 1, self.last_column())
        index = column - 1
        sort_key = key or (lambda value: value)
        rows.sort(key=lambda row: sort_key(row[index] if index < len(row) else None))
        self.set_values(start_row, 1, rows)

    def data_rows(self, header_rows: int = 1) -> list[Row]:
        """Return every row below the header."""

        first = header_rows + 1
        if self.last_row() < first:
            return []
        return self.get_values(first, 1)


class TableDocument(ABC):
    """A collection of named tables (the spreadsheet document)."""

    @abstractmethod
    def has_table(self, name: str) -> bool:
        """Return True when a table called ``name`` exists."""

    @abstractmethod
    def get_table(self, name: str) -> Table:
        """Return the named table, raising :class:`SheetMissing` when absent."""

    @abstractmethod
    def get_or_create_table(self, name: str) -> Table:
        """Return the named table, creating an empty one when absent."""

    def save(self) -> None:  # pragma: no cover - optional persistence hook
        """Documents backed by a file override this to flush changes."""


__all__ = ["Cell", "HIGHLIGHT_COLORS", "Row", "SortKey", "Table", "TableDocument"]
