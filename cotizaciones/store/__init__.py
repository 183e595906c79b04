"""Table store interface and its adapters."""

from __future__ import annotations

from cotizaciones.store.base import Table, TableDocument
from cotizaciones.store.memory import MemoryDocument, MemoryTable

__all__ = ["MemoryDocument", "MemoryTable", "Table", "TableDocument", "WorkbookDocument"]


def __getattr__(name: str):
    """Lazily import the openpyxl adapter."""

    if name == "WorkbookDocument":
        from cotizaciones.store.workbook import WorkbookDocument as _document

        return _document
    raise AttributeError(f"module 'cotizaciones.store' has no attribute {name}")
