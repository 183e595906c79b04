"""Normalise dollar quotes from the current and historical rate APIs."""

from __future__ import annotations

import json
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Iterable

import pandas as pd

from cotizaciones.errors import DataUnavailable
from cotizaciones.ingestion.http_client import CachedHttpClient
from cotizaciones.ingestion.models import ExchangeRateRecord, Quote, RatePair
from cotizaciones.utils.dates import CIVIL_OFFSET, Clock, DateFormat, format_date, utc_now
from cotizaciones.utils.logger import get_logger

LOGGER = get_logger(__name__)

# casa name reported by the APIs -> ExchangeRateRecord field
INSTRUMENTS: dict[str, str] = {
    "oficial": "official",
    "blue": "blue",
    "bolsa": "mep",
    "cripto": "crypto",
    "mayorista": "wholesale",
}

CURRENT_TIMESTAMP_FIELD = "fechaActualizacion"
HISTORICAL_TIMESTAMP_FIELD = "fecha"


def _parse_price(value: object) -> float:
    """Parse ``compra``/``venta`` values; anything unusable becomes ``0``."""

    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _is_quote(entry: object) -> bool:
    return isinstance(entry, dict) and "casa" in entry


def parse_quotes(payload: Any, *, timestamp_field: str = CURRENT_TIMESTAMP_FIELD) -> list[Quote]:
    """Validate a raw API payload into :class:`Quote` entries.

    ``payload`` may be the raw JSON text, a list of entries, a single entry or
    a mapping whose values are entries. Entries without a ``casa`` key are
    skipped; when none is left (error bodies such as ``{"error": ...}``,
    ``[1, 2, 3]``, empty collections) :class:`DataUnavailable` is raised.
    """

    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload)
        except ValueError as exc:
            raise DataUnavailable(f"La respuesta de la API no es JSON válido: {exc}") from exc
    if isinstance(payload, dict):
        payload = [payload] if _is_quote(payload) else list(payload.values())
    if not isinstance(payload, list):
        raise DataUnavailable("La respuesta de la API no contiene cotizaciones")

    quotes: list[Quote] = []
    skipped = 0
    for entry in payload:
        if not _is_quote(entry):
            skipped += 1
            continue
        casa = entry["casa"]
        as_of = entry.get(timestamp_field)
        quotes.append(
            Quote(
                casa=str(casa) if casa is not None else "",
                buy=_parse_price(entry.get("compra")),
                sell=_parse_price(entry.get("venta")),
                as_of=str(as_of) if as_of not in (None, "") else None,
            )
        )
    if skipped:
        LOGGER.warning("Skipped %s entries without a casa field", skipped)
    if not quotes:
        raise DataUnavailable("La API no devolvió cotizaciones")
    return quotes


def parse_source_timestamp(value: str | None) -> datetime | None:
    """Read a source "as of" value as source-local time and return it as UTC.

    The APIs report Argentine wall-clock readings (sometimes with a misleading
    ``Z`` suffix), so any offset is discarded and the civil offset is added back.
    """

    if not value:
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime().replace(tzinfo=timezone.utc) + CIVIL_OFFSET


def _build_record(quotes: Iterable[Quote], *, clock: Clock) -> ExchangeRateRecord:
    pairs: dict[str, RatePair] = {}
    as_of: str | None = None
    for quote in quotes:
        if as_of is None and quote.as_of:
            as_of = quote.as_of
        field_name = INSTRUMENTS.get(quote.casa)
        if field_name is None or field_name in pairs:
            continue
        pairs[field_name] = RatePair(buy=quote.buy, sell=quote.sell)
    if not pairs:
        raise DataUnavailable("La respuesta de la API no contiene ninguna cotización conocida")

    source_timestamp = parse_source_timestamp(as_of) or clock()
    return ExchangeRateRecord(
        official=pairs.get("official", RatePair()),
        blue=pairs.get("blue", RatePair()),
        mep=pairs.get("mep", RatePair()),
        crypto=pairs.get("crypto", RatePair()),
        wholesale=pairs.get("wholesale", RatePair()),
        source_timestamp=source_timestamp,
    )


def normalize_current(payload: Any, *, clock: Clock | None = None) -> ExchangeRateRecord:
    """Normalise a current-snapshot payload (as-of read from ``fechaActualizacion``)."""

    quotes = parse_quotes(payload, timestamp_field=CURRENT_TIMESTAMP_FIELD)
    return _build_record(quotes, clock=clock or utc_now)


def normalize_historical(payload: Any, *, clock: Clock | None = None) -> ExchangeRateRecord:
    """Normalise a historical-by-date payload (as-of read from ``fecha``)."""

    quotes = parse_quotes(payload, timestamp_field=HISTORICAL_TIMESTAMP_FIELD)
    return _build_record(quotes, clock=clock or utc_now)


def historical_url(base_url: str, day: date) -> str:
    """Return the historical endpoint for ``day`` (``<base>/yyyy/mm/dd``)."""

    return f"{base_url.rstrip('/')}/{format_date(day, DateFormat.API)}"


class DolarApiClient:
    """Fetch and normalise quotes through a :class:`CachedHttpClient`."""

    def __init__(
        self,
        http: CachedHttpClient,
        *,
        current_url: str,
        historical_base_url: str,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.http = http
        self.current_url = current_url
        self.historical_base_url = historical_base_url
        self.clock = clock or utc_now
        self.logger = logger or LOGGER

    def fetch_current(self) -> ExchangeRateRecord:
        self.logger.info("Obteniendo cotizaciones actuales")
        payload = self.http.fetch_or_cached(self.current_url)
        if payload is None:
            raise DataUnavailable("No se pudieron obtener las cotizaciones actuales")
        return normalize_current(payload, clock=self.clock)

    def fetch_historical(self, day: date) -> ExchangeRateRecord:
        self.logger.info("Obteniendo cotizaciones para %s", format_date(day))
        payload = self.http.fetch_or_cached(historical_url(self.historical_base_url, day))
        if payload is None:
            raise DataUnavailable(f"No se obtuvieron datos de la API para {format_date(day)}")
        return normalize_historical(payload, clock=self.clock)

    def close(self) -> None:  # pragma: no cover - trivial delegator
        self.http.close()


__all__ = [
    "DolarApiClient",
    "INSTRUMENTS",
    "historical_url",
    "normalize_current",
    "normalize_historical",
    "parse_quotes",
    "parse_source_timestamp",
]
