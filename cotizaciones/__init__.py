"""Public interface for the cotizaciones package."""

from __future__ import annotations

from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Callable

from cotizaciones.actions import (
    ERROR_LOG_HEADER,
    ActionContext,
    consult_by_date,
    consult_latest,
    import_customers,
    remove_duplicates,
    show_monthly_summary,
    update_by_range,
    update_until_today,
)
from cotizaciones.config import Settings
from cotizaciones.errors import CotizacionesError, DataUnavailable, FormatError, RangeError, SheetMissing
from cotizaciones.ingestion.cache import MemoryCache, PayloadCache, SQLCache
from cotizaciones.ingestion.customers_xml import CUSTOMER_COLUMNS
from cotizaciones.ingestion.dolar_api import DolarApiClient
from cotizaciones.ingestion.http_client import CachedHttpClient
from cotizaciones.ingestion.models import ExchangeRateRecord, RatePair
from cotizaciones.sheet.row_codec import header_row
from cotizaciones.store.base import TableDocument
from cotizaciones.sync.reconciler import ExchangeRateSync, RateSource, ReconciliationResult, SyncState
from cotizaciones.ui import ConsoleInteraction, UserInteraction
from cotizaciones.utils.dates import Clock, utc_now

__all__ = [
    "__version__",
    "Cotizaciones",
    "CotizacionesError",
    "DataUnavailable",
    "ExchangeRateRecord",
    "ExchangeRateSync",
    "FormatError",
    "RangeError",
    "RatePair",
    "ReconciliationResult",
    "Settings",
    "SheetMissing",
    "SyncState",
]

try:
    __version__ = importlib_metadata.version("cotizaciones")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"


def build_rate_client(settings: Settings, *, clock: Clock | None = None) -> DolarApiClient:
    """Wire the dollar API client to a cache chosen from ``settings.cache_path``."""

    cache: PayloadCache = SQLCache(settings.cache_path) if settings.cache_path else MemoryCache()
    http = CachedHttpClient(
        cache=cache,
        timeout=settings.http_timeout,
        default_ttl=settings.cache_ttl_seconds,
        clock=clock,
    )
    return DolarApiClient(
        http,
        current_url=settings.api_current,
        historical_base_url=settings.api_historical,
        clock=clock,
    )


class Cotizaciones:
    """Entry point tying the workbook, the rate APIs and the user together."""

    __version__ = __version__

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        document: TableDocument | None = None,
        ui: UserInteraction | None = None,
        rates: RateSource | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Collaborators default to the workbook at ``settings.workbook_path``,
        the console and the public dollar APIs; tests inject their own.
        """

        self.settings = settings or Settings()
        self.clock = clock or utc_now
        if document is None:
            from cotizaciones.store.workbook import WorkbookDocument

            document = WorkbookDocument(self.settings.workbook_path)
        self.document = document
        self._owns_rates = rates is None
        self.rates: RateSource = rates or build_rate_client(self.settings, clock=self.clock)
        self.context = ActionContext(
            settings=self.settings,
            document=self.document,
            ui=ui or ConsoleInteraction(),
            rates=self.rates,
            clock=self.clock,
        )

    def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        result = func(self.context, *args)
        # Saved after every action so error-log rows persist alongside data writes.
        self.document.save()
        return result

    def initialise(self) -> list[str]:
        """Create the sheets the workflows expect, each with its header row."""

        sheets = (
            (self.settings.sheet_name, header_row()),
            (self.settings.customers_sheet, list(CUSTOMER_COLUMNS)),
            (self.settings.error_log_sheet, list(ERROR_LOG_HEADER)),
        )
        created: list[str] = []
        for name, header in sheets:
            if self.document.has_table(name):
                continue
            self.document.get_or_create_table(name).set_values(1, 1, [header])
            created.append(name)
        self.document.save()
        return created

    def sync(self) -> ExchangeRateSync:
        return self.context.sync()

    def update_until_today(self):
        return self._run(update_until_today)

    def update_by_range(self, start: str | None = None, end: str | None = None):
        return self._run(update_by_range, start, end)

    def remove_duplicates(self):
        return self._run(remove_duplicates)

    def import_customers(self, path: str | Path | None = None):
        return self._run(import_customers, path)

    def consult_latest(self):
        return self._run(consult_latest)

    def consult_by_date(self, text: str | None = None):
        return self._run(consult_by_date, text)

    def monthly_summary(self):
        return self._run(show_monthly_summary)

    def close(self) -> None:
        if self._owns_rates and isinstance(self.rates, DolarApiClient):
            self.rates.close()

    def __enter__(self) -> "Cotizaciones":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
