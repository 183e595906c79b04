"""Encode exchange-rate records into the fixed 15-column sheet layout and back."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Sequence

from cotizaciones.ingestion.models import ExchangeRateRecord
from cotizaciones.utils.dates import DateFormat, format_date

COLUMN_NAMES: tuple[str, ...] = (
    "Fecha",
    "Oficial Compra",
    "Oficial Venta",
    "Blue Compra",
    "Blue Venta",
    "MEP Compra",
    "MEP Venta",
    "Cripto Compra",
    "Cripto Venta",
    "Mayorista Compra",
    "Mayorista Venta",
    "Brecha Blue/Oficial",
    "Brecha Blue/MEP",
    "Última Actualización",
    "Fecha de Modificación",
)
COLUMN_COUNT = len(COLUMN_NAMES)
PRICE_COLUMNS = slice(1, 11)
SPREAD_COLUMNS = slice(11, 13)

# Range backfills write two decimals; live single-row updates write one.
RANGE_PERCENT_DECIMALS = 2
LIVE_PERCENT_DECIMALS = 1

_DISPLAY_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_SHEET_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def header_row() -> list[str]:
    return list(COLUMN_NAMES)


def format_number(value: float, decimals: int = 2) -> str:
    """Fixed-point with a comma decimal separator and no grouping (``1234,50``)."""

    return f"{value:.{decimals}f}".replace(".", ",")


def format_percentage(ratio: float, decimals: int = RANGE_PERCENT_DECIMALS) -> str:
    """Render a spread ratio as a percentage string (``0.5`` → ``50,00%``)."""

    return format_number(ratio * 100, decimals) + "%"


def parse_number(value: Any) -> float | None:
    """Inverse of :func:`format_number`/:func:`format_percentage` for stored cells."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    is_percentage = text.endswith("%")
    text = text.rstrip("%").strip()
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number / 100 if is_percentage else number


def encode_row(
    day: date,
    record: ExchangeRateRecord,
    *,
    modified_at: datetime,
    percent_decimals: int = RANGE_PERCENT_DECIMALS,
) -> list[str]:
    """Build the stored row for civil ``day`` from ``record``."""

    return [
        format_date(day, DateFormat.DAY_COLUMN),
        *(format_number(price) for price in record.prices()),
        format_percentage(record.blue_official_spread, percent_decimals),
        format_percentage(record.blue_mep_spread, percent_decimals),
        format_date(record.source_timestamp, DateFormat.DATE_TIME),
        format_date(modified_at, DateFormat.DATE_TIME),
    ]


def decode_date(cell: Any) -> date | None:
    """Recover the civil date stored in a row's first cell."""

    if isinstance(cell, datetime):
        return cell.date()
    if isinstance(cell, date):
        return cell
    if not isinstance(cell, str):
        return None
    match = _DISPLAY_DATE.search(cell)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = _SHEET_DATE.search(cell)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def date_key(cell: Any) -> str | None:
    """Sortable ``yyyy-mm-dd`` key for a first-column cell."""

    decoded = decode_date(cell)
    return format_date(decoded, DateFormat.SHEET) if decoded else None


def decode_date_key(row: Sequence[Any]) -> str | None:
    """Sortable ``yyyy-mm-dd`` key for a stored row, ``None`` when unreadable."""

    if not row:
        return None
    return date_key(row[0])


def sort_key(cell: Any) -> str:
    """Key used to sort the data range; unreadable dates sort first."""

    return date_key(cell) or ""


__all__ = [
    "COLUMN_COUNT",
    "COLUMN_NAMES",
    "LIVE_PERCENT_DECIMALS",
    "RANGE_PERCENT_DECIMALS",
    "date_key",
    "decode_date",
    "decode_date_key",
    "encode_row",
    "format_number",
    "format_percentage",
    "header_row",
    "parse_number",
    "sort_key",
]
