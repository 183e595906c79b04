import json
from datetime import date, datetime, timezone

import pytest

from cotizaciones.config import DEFAULT_API_CURRENT, DEFAULT_API_HISTORICAL
from cotizaciones.errors import DataUnavailable
from cotizaciones.ingestion.dolar_api import (
    DolarApiClient,
    historical_url,
    normalize_current,
    normalize_historical,
    parse_quotes,
    parse_source_timestamp,
)
from cotizaciones.ingestion.models import RatePair
from cotizaciones.utils.dates import DateFormat, format_date

NOW = datetime(2024, 3, 15, 15, 0, tzinfo=timezone.utc)

CURRENT_PAYLOAD = [
    {"casa": "oficial", "compra": 960, "venta": 1000, "fechaActualizacion": "2024-03-15T14:30:00.000Z"},
    {"casa": "blue", "compra": 1480, "venta": 1500, "fechaActualizacion": "2024-03-15T14:31:00.000Z"},
    {"casa": "bolsa", "compra": "1190.5", "venta": "1200"},
    {"casa": "mayorista", "compra": 950, "venta": 960},
    {"casa": "tarjeta", "compra": 1600, "venta": 1700},
]

HISTORICAL_PAYLOAD = [
    {"casa": "oficial", "compra": 955, "venta": 995, "fecha": "2024-03-14"},
    {"casa": "blue", "compra": 1470, "venta": 1490, "fecha": "2024-03-14"},
    {"casa": "bolsa", "compra": 1180, "venta": 1190, "fecha": "2024-03-14"},
    {"casa": "cripto", "compra": 1230, "venta": 1250, "fecha": "2024-03-14"},
    {"casa": "mayorista", "compra": 940, "venta": 950, "fecha": "2024-03-14"},
]


def test_normalize_current_maps_instruments_and_spreads():
    record = normalize_current(CURRENT_PAYLOAD, clock=lambda: NOW)

    assert record.official == RatePair(960.0, 1000.0)
    assert record.blue == RatePair(1480.0, 1500.0)
    assert record.mep == RatePair(1190.5, 1200.0)
    assert record.wholesale == RatePair(950.0, 960.0)
    assert record.blue_official_spread == pytest.approx(0.5)
    assert record.blue_mep_spread == pytest.approx(0.25)


def test_missing_instrument_yields_zero_pair():
    record = normalize_current(CURRENT_PAYLOAD, clock=lambda: NOW)

    assert record.crypto == RatePair(0.0, 0.0)


def test_source_timestamp_is_read_as_civil_time():
    record = normalize_current(CURRENT_PAYLOAD, clock=lambda: NOW)

    assert record.source_timestamp == datetime(2024, 3, 15, 17, 30, tzinfo=timezone.utc)
    assert format_date(record.source_timestamp, DateFormat.DATE_TIME) == "15/03/24 14:30:00"


def test_normalize_historical_reads_fecha():
    record = normalize_historical(HISTORICAL_PAYLOAD, clock=lambda: NOW)

    assert record.crypto == RatePair(1230.0, 1250.0)
    assert format_date(record.source_timestamp, DateFormat.DATE_TIME) == "14/03/24 00:00:00"
    assert record.blue_official_spread == pytest.approx((1490 - 995) / 995)


def test_normalization_is_idempotent_across_payload_forms():
    from_list = normalize_historical(HISTORICAL_PAYLOAD, clock=lambda: NOW)
    from_text = normalize_historical(json.dumps(HISTORICAL_PAYLOAD), clock=lambda: NOW)
    from_bytes = normalize_historical(json.dumps(HISTORICAL_PAYLOAD).encode(), clock=lambda: NOW)

    assert from_list == from_text == from_bytes == normalize_historical(HISTORICAL_PAYLOAD, clock=lambda: NOW)


def test_unusable_prices_become_zero_and_first_match_wins():
    payload = [
        {"casa": "blue", "compra": "n/a", "venta": -5},
        {"casa": "blue", "compra": 1, "venta": 2},
        {"casa": "oficial", "compra": float("nan"), "venta": True},
    ]

    record = normalize_current(payload, clock=lambda: NOW)

    assert record.blue == RatePair(0.0, 0.0)
    assert record.official == RatePair(0.0, 0.0)
    assert record.blue_official_spread == 0.0


def test_missing_timestamp_falls_back_to_clock():
    record = normalize_current([{"casa": "blue", "compra": 1, "venta": 2}], clock=lambda: NOW)

    assert record.source_timestamp == NOW


def test_parse_quotes_skips_non_dict_entries_and_accepts_mappings():
    quotes = parse_quotes({"a": {"casa": "blue", "compra": 1, "venta": 2}, "b": "junk"})

    assert [quote.casa for quote in quotes] == ["blue"]


def test_parse_quotes_accepts_single_entry_object():
    quotes = parse_quotes('{"casa": "oficial", "compra": 960, "venta": 1000}')

    assert [(quote.casa, quote.sell) for quote in quotes] == [("oficial", 1000.0)]


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "{}",
        "[]",
        42,
        None,
        '{"error": "Not Found", "status": 404}',
        {"error": "Not Found", "status": 404},
        [1, 2, 3],
        [{"compra": 1, "venta": 2}],
    ],
)
def test_parse_quotes_rejects_unusable_payloads(payload):
    with pytest.raises(DataUnavailable):
        parse_quotes(payload)


@pytest.mark.parametrize(
    "payload",
    ['{"error": "Not Found", "status": 404}', "[1, 2, 3]", '[{"casa": "tarjeta", "compra": 1, "venta": 2}]'],
)
def test_normalize_rejects_payloads_without_known_quotes(payload):
    with pytest.raises(DataUnavailable):
        normalize_historical(payload, clock=lambda: NOW)
    with pytest.raises(DataUnavailable):
        normalize_current(payload, clock=lambda: NOW)


def test_client_raises_on_error_body():
    historical = "https://api.argentinadatos.com/v1/cotizaciones/dolares/2024/03/13"
    client, _ = _client({historical: json.dumps({"error": "Not Found", "status": 404})})

    with pytest.raises(DataUnavailable):
        client.fetch_historical(date(2024, 3, 13))


def test_parse_source_timestamp_handles_garbage():
    assert parse_source_timestamp(None) is None
    assert parse_source_timestamp("ayer") is None


def test_historical_url_appends_api_path():
    assert historical_url("https://example.test/dolares/", date(2024, 3, 5)) == "https://example.test/dolares/2024/03/05"
    assert historical_url("https://example.test/dolares", date(2024, 3, 5)) == "https://example.test/dolares/2024/03/05"


class FakeHttp:
    def __init__(self, payloads):
        self.payloads = payloads
        self.urls: list[str] = []

    def fetch_or_cached(self, url, ttl_seconds=None):
        self.urls.append(url)
        return self.payloads.get(url)

    def close(self) -> None:
        pass


def _client(payloads) -> tuple[DolarApiClient, FakeHttp]:
    http = FakeHttp(payloads)
    client = DolarApiClient(
        http,  # type: ignore[arg-type]
        current_url=DEFAULT_API_CURRENT,
        historical_base_url=DEFAULT_API_HISTORICAL,
        clock=lambda: NOW,
    )
    return client, http


def test_client_fetches_current_and_historical():
    historical = "https://api.argentinadatos.com/v1/cotizaciones/dolares/2024/03/14"
    client, http = _client(
        {DEFAULT_API_CURRENT: json.dumps(CURRENT_PAYLOAD), historical: json.dumps(HISTORICAL_PAYLOAD)}
    )

    assert client.fetch_current().blue.sell == 1500.0
    assert client.fetch_historical(date(2024, 3, 14)).blue.sell == 1490.0
    assert http.urls == [DEFAULT_API_CURRENT, historical]


def test_client_raises_when_nothing_comes_back():
    client, _ = _client({})

    with pytest.raises(DataUnavailable):
        client.fetch_current()
    with pytest.raises(DataUnavailable):
        client.fetch_historical(date(2024, 3, 14))
