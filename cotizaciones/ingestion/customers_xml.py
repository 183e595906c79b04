"""Parse customer XML exports (31 fixed fields per ``DATO`` entry) into rows."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Hashable, Iterable, Sequence

from bs4 import BeautifulSoup, Tag

from cotizaciones.errors import FormatError
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)

XML_ENCODING = "ISO-8859-1"
ENTRY_TAG = "DATO"

TEXT, INTEGER, BOOLEAN, DATETIME = "text", "int", "bool", "datetime"

# (element name, coercion) in output column order
CUSTOMER_FIELDS: tuple[tuple[str, str], ...] = (
    ("CodCliente", INTEGER),
    ("RazonSocialdelCliente", TEXT),
    ("TipoDoc", TEXT),
    ("NroDocumento", TEXT),
    ("Direccion", TEXT),
    ("CodPostal", TEXT),
    ("Localidad", TEXT),
    ("Zona", TEXT),
    ("Provincia", TEXT),
    ("Pais", TEXT),
    ("TipodeCliente", TEXT),
    ("CategoriaCliente", TEXT),
    ("SubCategoriaCliente", TEXT),
    ("CodVendedor", INTEGER),
    ("Vendedor", TEXT),
    ("ListadePrecios", TEXT),
    ("CondiciondeVentaPredeterminada", TEXT),
    ("SF_FechadeActualizacion", TEXT),
    ("ControlaCredito", BOOLEAN),
    ("SF_CreditoMaximo", TEXT),
    ("SF_PenddeFacturar", TEXT),
    ("SF_ChequesenCartera", TEXT),
    ("SF_ChequesRechazados", TEXT),
    ("SF_CreditoaVencer", TEXT),
    ("SF_CreditoVencido", TEXT),
    ("SF_Moroso", BOOLEAN),
    ("SF_Engestionjudicial", BOOLEAN),
    ("SF_Incobrable", BOOLEAN),
    ("FechaUltimaCompra", TEXT),
    ("FechaUltModificacion", DATETIME),
    ("Habilitado", BOOLEAN),
)
FIELD_COUNT = len(CUSTOMER_FIELDS)
CUSTOMER_COLUMNS: tuple[str, ...] = tuple(name for name, _ in CUSTOMER_FIELDS)

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")
_MERIDIEM_DATETIME = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4}) (\d{1,2}):(\d{2}):(\d{2}) ([ap])\.\s?m\.$",
    re.IGNORECASE,
)


def to_int(value: str | None) -> int | None:
    """Parse the leading integer of ``value``; ``None`` when there is none."""

    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def to_bool(value: str | None, *, field_name: str = "campo") -> bool:
    """``"Verdadero"`` (any case) is ``True``; any other text is ``False``.

    A missing element is a schema error rather than an implicit ``False``.
    """

    if value is None:
        raise FormatError(f"Falta el campo booleano {field_name} en el registro")
    return value.strip().lower() == "verdadero"


def parse_meridiem_datetime(value: str | None) -> datetime | None:
    """Parse ``dd/MM/yyyy HH:mm:ss a.m.|p.m.``; any other shape yields ``None``."""

    if not value:
        return None
    match = _MERIDIEM_DATETIME.match(value.strip())
    if not match:
        return None
    day, month, year, hours, minutes, seconds = (int(part) for part in match.groups()[:6])
    period = match.group(7).lower()
    if period == "p" and hours < 12:
        hours += 12
    elif period == "a" and hours == 12:
        hours = 0
    try:
        return datetime(year, month, day, hours, minutes, seconds)
    except ValueError:
        return None


def find_duplicates(values: Iterable[Hashable]) -> list[Hashable]:
    """Return values seen more than once, each listed once in first-repeat order."""

    seen: set[Hashable] = set()
    duplicates: dict[Hashable, None] = {}
    for value in values:
        if value in seen:
            duplicates.setdefault(value, None)
        else:
            seen.add(value)
    return list(duplicates)


def _child_text(entry: Tag, name: str) -> str | None:
    child = entry.find(name, recursive=False)
    if child is None:
        return None
    return child.get_text()


def parse_customer_xml(content: bytes | str) -> list[Tag]:
    """Return the ``DATO`` entries of an export, validating the 31-field schema."""

    if isinstance(content, bytes):
        soup = BeautifulSoup(content, "xml", from_encoding=XML_ENCODING)
    else:
        soup = BeautifulSoup(content, "xml")
    root = soup.find(True)
    if root is None:
        raise FormatError("El archivo XML no tiene un elemento raíz")
    entries = root.find_all(ENTRY_TAG, recursive=False)
    for position, entry in enumerate(entries, start=1):
        field_count = len(entry.find_all(True, recursive=False))
        if field_count != FIELD_COUNT:
            raise FormatError(
                f"Formato de archivo incorrecto. El XML debe tener {FIELD_COUNT} campos por "
                f"registro (el registro {position} tiene {field_count})."
            )
    return entries


def read_customer_file(path: str | Path) -> list[Tag]:
    """Read and validate an ISO-8859-1 customer export from disk."""

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(file_path)
    return parse_customer_xml(file_path.read_bytes())


def normalize_entry(entry: Tag) -> list[Any]:
    """Map one ``DATO`` element onto the 31 output columns."""

    row: list[Any] = []
    for name, kind in CUSTOMER_FIELDS:
        text = _child_text(entry, name)
        if kind == INTEGER:
            row.append(to_int(text))
        elif kind == BOOLEAN:
            row.append(to_bool(text, field_name=name))
        elif kind == DATETIME:
            row.append(parse_meridiem_datetime(text))
        else:
            row.append(text)
    return row


def normalize(entries: Sequence[Tag]) -> tuple[list[list[Any]], list[Hashable]]:
    """Build every output row and report duplicated customer codes."""

    rows = [normalize_entry(entry) for entry in entries]
    duplicates = find_duplicates(row[0] for row in rows if row[0] is not None)
    if duplicates:
        LOGGER.info("Found %s duplicated customer codes", len(duplicates))
    return rows, duplicates


__all__ = [
    "CUSTOMER_COLUMNS",
    "CUSTOMER_FIELDS",
    "ENTRY_TAG",
    "FIELD_COUNT",
    "XML_ENCODING",
    "find_duplicates",
    "normalize",
    "normalize_entry",
    "parse_customer_xml",
    "parse_meridiem_datetime",
    "read_customer_file",
    "to_bool",
    "to_int",
]
