"""Import the customer XML export into the customers sheet."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Hashable, Sequence

from cotizaciones.actions.common import ActionContext, action
from cotizaciones.ingestion.customers_xml import CUSTOMER_COLUMNS, normalize, read_customer_file
from cotizaciones.store.base import Table
from cotizaciones.ui import Button, ButtonSet, UserInteraction
from cotizaciones.utils.dates import DateFormat, format_date

IMPORT_TITLE = "Importar Datos de Clientes"
FIRST_DATA_ROW = 2


@dataclass(slots=True)
class ImportResult:
    path: Path
    imported: int = 0
    duplicates: list[Hashable] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def duration(self) -> str:
        minutes, seconds = divmod(self.elapsed, 60)
        return f"{int(minutes)} minutos y {seconds:.2f} segundos"


def latest_xml_file(directory: Path) -> Path | None:
    """Most recently modified ``.xml`` file in ``directory``."""

    if not directory.is_dir():
        return None
    candidates = [path for path in directory.iterdir() if path.is_file() and path.suffix.lower() == ".xml"]
    if not candidates:
        return None
    return max(candidates, key=lambda path: path.stat().st_mtime)


def ask_for_file(ui: UserInteraction) -> Path | None:
    """Prompt until the user names an existing XML file or cancels."""

    while True:
        answer = ui.prompt("Buscar archivo XML", "Ingresa la ruta del archivo XML:")
        if answer is None:
            ui.alert("Importación cancelada", "El usuario canceló la selección del archivo.", ButtonSet.OK)
            return None
        candidate = Path(answer).expanduser()
        if candidate.is_file() and candidate.suffix.lower() == ".xml":
            return candidate
        ui.alert(
            "Error",
            "No se encontró el archivo XML. Verifica la ruta e inténtalo de nuevo.",
            ButtonSet.OK,
        )


def write_customers(table: Table, rows: Sequence[Sequence[Any]], duplicates: Sequence[Hashable]) -> None:
    """Replace the data rows of ``table`` with ``rows`` and flag duplicated codes."""

    previous_last = table.last_row()
    if previous_last == 0:
        table.set_values(1, 1, [list(CUSTOMER_COLUMNS)])
    elif previous_last >= FIRST_DATA_ROW:
        table.clear(FIRST_DATA_ROW)
        for row_number in range(FIRST_DATA_ROW, previous_last + 1):
            table.clear_highlight(row_number, 1)

    table.set_values(FIRST_DATA_ROW, 1, rows)
    new_last = FIRST_DATA_ROW + len(rows) - 1
    if previous_last > new_last:
        table.delete_rows(new_last + 1, previous_last - new_last)

    flagged = set(duplicates)
    for row_number, row in enumerate(rows, start=FIRST_DATA_ROW):
        if row and row[0] in flagged:
            table.highlight(row_number, 1, "yellow")


@action("importCustomers", error_title="Error en la Importación")
def import_customers(context: ActionContext, path: str | Path | None = None) -> ImportResult | None:
    """Pick an export (latest in ``customers_dir`` unless given), confirm and import it."""

    ui = context.ui
    if path is None:
        latest = latest_xml_file(context.settings.customers_dir)
        if latest is None:
            ui.alert("Error", "No se encontraron archivos XML en la carpeta especificada.", ButtonSet.OK)
            return None
        modified = datetime.fromtimestamp(latest.stat().st_mtime, tz=timezone.utc)
        answer = ui.alert(
            IMPORT_TITLE,
            f'El último archivo encontrado es:\n\n"{latest.name}" '
            f"(modificado el {format_date(modified, DateFormat.DATE_TIME)}).\n\n¿Deseas importar este archivo?",
            ButtonSet.YES_NO,
        )
        if answer is Button.YES:
            path = latest
        else:
            path = ask_for_file(ui)
            if path is None:
                return None
    return import_customer_file(context, Path(path))


def import_customer_file(context: ActionContext, path: Path) -> ImportResult | None:
    ui = context.ui
    entries = read_customer_file(path)
    if not entries:
        ui.alert(IMPORT_TITLE, "No hay datos para importar.", ButtonSet.OK)
        return ImportResult(path=path)
    if not ui.confirm(
        "Confirmar importación",
        f'Se encontraron {len(entries)} registros en "{path.name}".\n\n¿Deseas continuar?',
    ):
        return None

    started = time.perf_counter()
    rows, duplicates = normalize(entries)
    table = context.document.get_or_create_table(context.settings.customers_sheet)
    write_customers(table, rows, duplicates)
    result = ImportResult(
        path=path,
        imported=len(rows),
        duplicates=list(duplicates),
        elapsed=time.perf_counter() - started,
    )
    context.logger.info("Imported %s customers from %s (%s duplicated codes)", result.imported, path, len(duplicates))
    ui.alert(
        "Importación Completada",
        f"Se importaron {result.imported} registros, con {len(result.duplicates)} registros duplicados.\n\n"
        f"Duración: {result.duration}.",
        ButtonSet.OK,
    )
    return result


__all__ = ["ImportResult", "ask_for_file", "import_customer_file", "import_customers", "latest_xml_file", "write_customers"]
