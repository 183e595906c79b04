"""Plain-text panels shown for rate queries."""

from __future__ import annotations

from datetime import date, datetime

from cotizaciones.ingestion.models import ExchangeRateRecord, RatePair
from cotizaciones.utils.dates import DateFormat, format_date

PANEL_TITLE = "Cotizaciones"


def format_amount(value: float, decimals: int = 2) -> str:
    """es-AR grouping: dot for thousands, comma for decimals (``1.234,56``)."""

    grouped = f"{value:,.{decimals}f}"
    return grouped.replace(",", "_").replace(".", ",").replace("_", ".")


def format_spread(ratio: float) -> str:
    return format_amount(ratio * 100) + "%"


def render_rate_panel(day: date, record: ExchangeRateRecord, *, last_update: datetime | None) -> str:
    """Render the quotes table for ``day`` with both spreads and the update stamp."""

    rows: list[tuple[str, RatePair]] = [
        ("Oficial", record.official),
        ("Blue", record.blue),
        ("MEP", record.mep),
        ("Cripto", record.crypto),
        ("Mayorista", record.wholesale),
    ]
    lines = [
        PANEL_TITLE,
        format_date(day, DateFormat.FULL_LONG),
        "",
        f"{'Dolar':<12}{'Compra':>14}{'Venta':>14}",
    ]
    for label, pair in rows:
        lines.append(f"{label:<12}{format_amount(pair.buy):>14}{format_amount(pair.sell):>14}")
    lines += [
        "",
        f"{'Brecha Blue/Oficial':<26}{format_spread(record.blue_official_spread):>14}",
        f"{'Brecha Blue/MEP':<26}{format_spread(record.blue_mep_spread):>14}",
        "",
    ]
    if last_update is None:
        lines.append("Fecha de actualización no disponible")
    else:
        lines.append("Últimos datos disponibles:")
        lines.append(format_date(last_update, DateFormat.FULL_LONG_WITH_TIME))
    return "\n".join(lines)


__all__ = ["PANEL_TITLE", "format_amount", "format_spread", "render_rate_panel"]
