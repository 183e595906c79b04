"""Reconcile the dollar sheet against the rate APIs, one row per civil day.

The engine decides whether a day already has a row (matched by its sortable
``yyyy-mm-dd`` key), updates that row in place or appends a new one, and keeps
the data range sorted after bulk updates. Existing keys are snapshotted once per
range run; that is sound only because a single writer drives the document.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Protocol

from cotizaciones.config import Settings
from cotizaciones.errors import DataUnavailable, FormatError, RangeError
from cotizaciones.ingestion.models import ExchangeRateRecord
from cotizaciones.sheet.row_codec import (
    LIVE_PERCENT_DECIMALS,
    RANGE_PERCENT_DECIMALS,
    decode_date,
    decode_date_key,
    encode_row,
    header_row,
    sort_key,
)
from cotizaciones.store.base import Table, TableDocument
from cotizaciones.utils.dates import Clock, DateFormat, civil_today, format_date, iter_days, utc_now
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)

FIRST_DATA_ROW = 2


class RateSource(Protocol):
    """What the engine needs from the rate APIs."""

    def fetch_current(self) -> ExchangeRateRecord: ...  # pragma: no cover - protocol definition

    def fetch_historical(self, day: date) -> ExchangeRateRecord: ...  # pragma: no cover


class SyncState(str, Enum):
    """Where the sheet stands relative to today."""

    NO_EXISTING_DATA = "no_existing_data"
    LAST_ROW_IS_TODAY = "last_row_is_today"
    LAST_ROW_IS_YESTERDAY = "last_row_is_yesterday"
    LAST_ROW_IS_OLDER = "last_row_is_older"


@dataclass(frozen=True, slots=True)
class SyncPlan:
    state: SyncState
    today: date
    last_row: int | None = None
    last_date: date | None = None

    @property
    def yesterday(self) -> date:
        return self.today - timedelta(days=1)


@dataclass(slots=True)
class ReconciliationResult:
    """Outcome of a range reconciliation."""

    start: date
    end: date
    updated: int = 0
    appended: int = 0
    skipped: list[date] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def total(self) -> int:
        return self.updated + self.appended

    @property
    def message(self) -> str:
        text = (
            f"Se actualizó el tipo de cambio entre las fechas {format_date(self.start, DateFormat.VERBOSE)}"
            f" y {format_date(self.end, DateFormat.VERBOSE)}.\n\n"
            f"Se actualizaron {self.updated} filas existentes y se agregaron {self.appended} nuevas filas.\n\n"
        )
        if self.skipped:
            days = ", ".join(format_date(day) for day in self.skipped)
            text += f"No hubo datos disponibles para {len(self.skipped)} días: {days}.\n\n"
        return text + f"El proceso tomó {self.elapsed:.2f} segundos."


@dataclass(slots=True)
class CatchUpResult:
    """Backfill up to yesterday plus today's row."""

    backfill: ReconciliationResult | None = None
    today_added: bool = False
    today_error: str | None = None


class ExchangeRateSync:
    """Keeps the dollar sheet in step with the rate APIs."""

    def __init__(
        self,
        settings: Settings,
        document: TableDocument,
        rates: RateSource,
        *,
        logger: logging.Logger | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self.document = document
        self.rates = rates
        self.logger = logger or LOGGER
        self.clock = clock or utc_now

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return civil_today(self.clock())

    def table(self) -> Table:
        return self.document.get_table(self.settings.sheet_name)

    def classify(self) -> SyncPlan:
        """Inspect the last data row and decide which update applies."""

        today = self.today()
        table = self.table()
        last_row = table.last_row()
        if last_row < FIRST_DATA_ROW:
            return SyncPlan(SyncState.NO_EXISTING_DATA, today)

        cell = table.get_values(last_row, 1, 1, 1)[0][0]
        last_date = decode_date(cell)
        if last_date is None:
            raise FormatError(f"No se pudo leer la fecha de la última fila ({cell!r})")
        if last_date > today:
            raise RangeError(f"La última fila tiene una fecha futura: {format_date(last_date)}")

        if last_date == today:
            state = SyncState.LAST_ROW_IS_TODAY
        elif last_date == today - timedelta(days=1):
            state = SyncState.LAST_ROW_IS_YESTERDAY
        else:
            state = SyncState.LAST_ROW_IS_OLDER
        return SyncPlan(state, today, last_row=last_row, last_date=last_date)

    def refresh_today(self, plan: SyncPlan) -> None:
        """Overwrite today's row in place with the current snapshot."""

        if plan.state is not SyncState.LAST_ROW_IS_TODAY or plan.last_row is None:
            raise ValueError("refresh_today requires a plan whose last row is today")
        record = self.rates.fetch_current()
        row = encode_row(
            plan.today, record, modified_at=self.now(), percent_decimals=LIVE_PERCENT_DECIMALS
        )
        self.table().set_values(plan.last_row, 1, [row])
        self.logger.info("Datos del dólar actualizados para %s", format_date(plan.today))

    def carry_forward(self, plan: SyncPlan) -> None:
        """Append today's row seeded from yesterday's closing quotes."""

        if plan.state is not SyncState.LAST_ROW_IS_YESTERDAY:
            raise ValueError("carry_forward requires a plan whose last row is yesterday")
        record = self.rates.fetch_historical(plan.yesterday)
        row = encode_row(
            plan.today, record, modified_at=self.now(), percent_decimals=LIVE_PERCENT_DECIMALS
        )
        self.table().append_rows([row])
        self.logger.info("Agregada la fila de %s con el cierre de ayer", format_date(plan.today))

    def seed_today(self) -> None:
        """Start an empty sheet with today's row from the current snapshot."""

        record = self.rates.fetch_current()
        today = self.today()
        table = self.table()
        self._ensure_header(table)
        row = encode_row(today, record, modified_at=self.now(), percent_decimals=LIVE_PERCENT_DECIMALS)
        table.append_rows([row])
        self.logger.info("Hoja inicializada con los datos de %s", format_date(today))

    def catch_up(self, plan: SyncPlan) -> CatchUpResult:
        """Backfill every missing day up to yesterday, then add today's row."""

        if plan.state is not SyncState.LAST_ROW_IS_OLDER or plan.last_date is None:
            raise ValueError("catch_up requires a plan whose last row is older than yesterday")
        result = CatchUpResult()
        start = plan.last_date + timedelta(days=1)
        if start <= plan.yesterday:
            result.backfill = self.reconcile_range(start, plan.yesterday)

        try:
            record = self.rates.fetch_current()
        except DataUnavailable as exc:
            self.logger.error("No se pudieron obtener los datos de hoy: %s", exc)
            result.today_error = str(exc)
            return result
        row = encode_row(plan.today, record, modified_at=self.now(), percent_decimals=LIVE_PERCENT_DECIMALS)
        self.table().append_rows([row])
        result.today_added = True
        return result

    def validate_day(self, day: date) -> None:
        """Ensure ``day`` lies within ``[settings.min_date, today]``."""

        today = self.today()
        if day < self.settings.min_date or day > today:
            raise RangeError(
                f"La fecha debe estar entre {format_date(self.settings.min_date)} y {format_date(today)}"
            )

    def validate_range(self, start: date, end: date) -> None:
        if start > end:
            raise RangeError("La fecha de inicio debe ser anterior o igual a la fecha de fin.")
        self.validate_day(start)
        self.validate_day(end)

    def reconcile_range(self, start: date, end: date) -> ReconciliationResult:
        """Upsert one row per day in ``[start, end]`` from the historical API.

        Days without data are skipped. Updates are applied first, new rows are
        appended in one write, and the data range is re-sorted by date.
        """

        self.validate_range(start, end)
        self.logger.info("Actualizando valores históricos desde %s hasta %s", format_date(start), format_date(end))
        started = time.perf_counter()
        result = ReconciliationResult(start=start, end=end)

        table = self.table()
        existing: dict[str, int] = {}
        for row_number, row in enumerate(table.data_rows(), start=FIRST_DATA_ROW):
            key = decode_date_key(row)
            if key is not None:
                existing.setdefault(key, row_number)

        updates: list[tuple[int, list[str]]] = []
        additions: list[list[str]] = []
        modified_at = self.now()
        for day in iter_days(start, end):
            try:
                record = self.rates.fetch_historical(day)
            except DataUnavailable as exc:
                self.logger.warning("Sin datos para %s: %s", format_date(day), exc)
                result.skipped.append(day)
                continue
            row = encode_row(day, record, modified_at=modified_at, percent_decimals=RANGE_PERCENT_DECIMALS)
            position = existing.get(format_date(day, DateFormat.SHEET))
            if position is None:
                additions.append(row)
            else:
                updates.append((position, row))

        for position, row in updates:
            table.set_values(position, 1, [row])
        if additions:
            self._ensure_header(table)
            table.append_rows(additions)
        table.sort(start_row=FIRST_DATA_ROW, column=1, key=sort_key)

        result.updated = len(updates)
        result.appended = len(additions)
        result.elapsed = time.perf_counter() - started
        self.logger.info(
            "Range %s → %s: updated %s rows, appended %s rows, skipped %s days",
            start,
            end,
            result.updated,
            result.appended,
            len(result.skipped),
        )
        return result

    def remove_duplicate_dates(self) -> int:
        """Delete rows repeating a date, keeping the bottom-most one per day."""

        table = self.table()
        seen: set[str] = set()
        to_delete: list[int] = []
        rows = table.data_rows()
        for row_number in range(FIRST_DATA_ROW + len(rows) - 1, FIRST_DATA_ROW - 1, -1):
            key = decode_date_key(rows[row_number - FIRST_DATA_ROW])
            if key is None:
                continue
            if key in seen:
                to_delete.append(row_number)
            else:
                seen.add(key)
        # Bottom-up so earlier deletions do not shift pending row numbers.
        for row_number in to_delete:
            table.delete_rows(row_number, 1)
        self.logger.info("Se eliminaron %s filas duplicadas", len(to_delete))
        return len(to_delete)

    @staticmethod
    def _ensure_header(table: Table) -> None:
        if table.last_row() == 0:
            table.set_values(1, 1, [header_row()])


__all__ = [
    "CatchUpResult",
    "ExchangeRateSync",
    "RateSource",
    "ReconciliationResult",
    "SyncPlan",
    "SyncState",
]
