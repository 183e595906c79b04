"""Command line menu for the dollar sheet and the customer import."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from cotizaciones import Cotizaciones, build_rate_client
from cotizaciones.config import Settings
from cotizaciones.ingestion.cache import SQLCache
from cotizaciones.ui import ConsoleInteraction
from cotizaciones.utils.dates import utc_now
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["MENU", "build_parser", "default_cache_path", "main", "parse_args", "render_menu"]

MENU: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Actualizar Cotizaciones",
        (
            ("update", "Actualizar desde Última Fila Hasta Hoy"),
            ("update-range", "Actualizar un Rango de Fechas Histórico"),
            ("dedupe", "Eliminar Fechas Duplicadas"),
        ),
    ),
    (
        "Consultar Cotizaciones",
        (
            ("latest", "Últimas Cotizaciones"),
            ("by-date", "Cotización Histórica por Fecha"),
            ("summary", "Resumen Mensual"),
        ),
    ),
    (
        "Importación de Datos",
        (("import-customers", "Importar Clientes con Situación Financiera"),),
    ),
)


def render_menu() -> str:
    lines = ["Cotizaciones Dolar"]
    for group, items in MENU:
        lines.append(f"  {group}")
        lines.extend(f"    {command:<18}{label}" for command, label in items)
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cotizaciones", description=__doc__)
    parser.add_argument("--workbook", dest="workbook", help="Workbook (.xlsx) holding the sheets")
    parser.add_argument(
        "--cache",
        dest="cache",
        help="SQLite file caching API responses (defaults to a file next to the workbook)",
    )
    parser.add_argument(
        "--yes",
        dest="assume_yes",
        action="store_true",
        default=False,
        help="Answer YES to every confirmation",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create the dollar, customers and error-log sheets when missing")
    subparsers.add_parser("update", help="Update the sheet from its last row until today")
    range_parser = subparsers.add_parser("update-range", help="Reconcile an inclusive date range")
    range_parser.add_argument("--from", dest="start", help="Start date (dd/mm, dd/mm/yy or dd/mm/yyyy)")
    range_parser.add_argument("--to", dest="end", help="End date (dd/mm, dd/mm/yy or dd/mm/yyyy)")
    subparsers.add_parser("latest", help="Show the latest quotes")
    date_parser = subparsers.add_parser("by-date", help="Show the quotes for a date")
    date_parser.add_argument("date", nargs="?", help="Date (dd/mm, dd/mm/yy or dd/mm/yyyy)")
    subparsers.add_parser("summary", help="Show the monthly summary of the sheet")
    subparsers.add_parser("dedupe", help="Remove rows repeating a date")
    import_parser = subparsers.add_parser("import-customers", help="Import the customer XML export")
    import_parser.add_argument("path", nargs="?", help="XML file (defaults to the latest in the customers folder)")
    import_parser.add_argument("--dir", dest="customers_dir", help="Folder searched for customer exports")
    subparsers.add_parser("menu", help="Print the menu tree")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def default_cache_path(workbook_path: Path) -> Path:
    return workbook_path.with_name(f"{workbook_path.stem}.cache.sqlite")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "menu":
        print(render_menu())
        return 0

    settings = Settings.from_env().with_overrides(
        workbook_path=Path(args.workbook).expanduser() if args.workbook else None,
        cache_path=Path(args.cache).expanduser() if args.cache else None,
        customers_dir=Path(args.customers_dir).expanduser() if getattr(args, "customers_dir", None) else None,
    )
    if settings.cache_path is None:
        settings = settings.with_overrides(cache_path=default_cache_path(settings.workbook_path))

    rates = build_rate_client(settings)
    cache = rates.http.cache
    if isinstance(cache, SQLCache):
        cache.purge_expired(utc_now())

    try:
        app = Cotizaciones(settings, ui=ConsoleInteraction(assume_yes=args.assume_yes), rates=rates)
        LOGGER.info("Running '%s' against %s", args.command, settings.workbook_path)
        if args.command == "init":
            created = app.initialise()
            print("Hojas creadas: " + (", ".join(created) if created else "ninguna"))
        elif args.command == "update":
            app.update_until_today()
        elif args.command == "update-range":
            app.update_by_range(args.start, args.end)
        elif args.command == "latest":
            app.consult_latest()
        elif args.command == "by-date":
            app.consult_by_date(args.date)
        elif args.command == "summary":
            app.monthly_summary()
        elif args.command == "dedupe":
            app.remove_duplicates()
        elif args.command == "import-customers":
            app.import_customers(args.path)
    finally:
        rates.close()
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
