"""Monthly summary of the stored dollar rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from cotizaciones.sheet.panels import format_amount, format_spread
from cotizaciones.sheet.row_codec import COLUMN_NAMES, PRICE_COLUMNS, SPREAD_COLUMNS, decode_date, parse_number
from cotizaciones.utils.dates import MONTHS

PRICE_NAMES: tuple[str, ...] = COLUMN_NAMES[PRICE_COLUMNS]
SPREAD_NAMES: tuple[str, ...] = COLUMN_NAMES[SPREAD_COLUMNS]
INSTRUMENT_LABELS: tuple[str, ...] = ("Oficial", "Blue", "MEP", "Cripto", "Mayorista")
SUMMARY_TITLE = "Resumen Mensual"


@dataclass(slots=True)
class MonthlySummary:
    year: int
    month: int
    days: int
    averages: dict[str, float]
    blue_official_spread: float | None
    blue_mep_spread: float | None

    @property
    def label(self) -> str:
        return f"{MONTHS[self.month - 1]} {self.year}"


def rows_to_frame(rows: Iterable[Sequence[object]]) -> pd.DataFrame:
    """Decode stored rows into a frame indexed by civil date; unreadable rows are dropped."""

    records: list[dict[str, object]] = []
    for row in rows:
        day = decode_date(row[0]) if row else None
        if day is None:
            continue
        record: dict[str, object] = {"Fecha": pd.Timestamp(day)}
        cells = list(row[1:13]) + [None] * max(0, 13 - len(row))
        for name, cell in zip(PRICE_NAMES + SPREAD_NAMES, cells):
            record[name] = parse_number(cell)
        records.append(record)

    frame = pd.DataFrame(records, columns=["Fecha", *PRICE_NAMES, *SPREAD_NAMES])
    for column in PRICE_NAMES + SPREAD_NAMES:
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame.sort_values("Fecha").reset_index(drop=True)


def monthly_summary(rows: Iterable[Sequence[object]]) -> list[MonthlySummary]:
    """Group rows by calendar month: day count, mean prices and the last spreads."""

    frame = rows_to_frame(rows)
    if frame.empty:
        return []
    frame["Mes"] = frame["Fecha"].dt.to_period("M")
    grouped = frame.groupby("Mes", sort=True)
    counts = grouped.size()
    means = grouped[list(PRICE_NAMES)].mean()
    spreads = grouped[list(SPREAD_NAMES)].last()

    summaries: list[MonthlySummary] = []
    for period in counts.index:
        averages = {
            name: float(value) for name, value in means.loc[period].items() if not pd.isna(value)
        }
        last_spreads = [
            None if pd.isna(value) else float(value) for value in spreads.loc[period].tolist()
        ]
        summaries.append(
            MonthlySummary(
                year=period.year,
                month=period.month,
                days=int(counts.loc[period]),
                averages=averages,
                blue_official_spread=last_spreads[0],
                blue_mep_spread=last_spreads[1],
            )
        )
    return summaries


def render_summary(summaries: Sequence[MonthlySummary]) -> str:
    if not summaries:
        return f"{SUMMARY_TITLE}\n\nNo hay datos para resumir."

    lines = [SUMMARY_TITLE]
    for summary in summaries:
        lines += ["", f"{summary.label} ({summary.days} días)", f"{'Promedio':<12}{'Compra':>14}{'Venta':>14}"]
        for index, label in enumerate(INSTRUMENT_LABELS):
            buy = summary.averages.get(PRICE_NAMES[index * 2])
            sell = summary.averages.get(PRICE_NAMES[index * 2 + 1])
            lines.append(
                f"{label:<12}"
                f"{format_amount(buy) if buy is not None else '-':>14}"
                f"{format_amount(sell) if sell is not None else '-':>14}"
            )
        for name, value in zip(SPREAD_NAMES, (summary.blue_official_spread, summary.blue_mep_spread)):
            lines.append(f"{name:<26}{format_spread(value) if value is not None else '-':>14}")
    return "\n".join(lines)


__all__ = ["MonthlySummary", "monthly_summary", "render_summary", "rows_to_frame"]
