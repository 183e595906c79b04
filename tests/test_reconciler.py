import json
import re
from datetime import date, datetime, timedelta, timezone

import pytest
from fakes import FIXED_NOW, TODAY, FakeRates, fixed_clock, make_record

from cotizaciones.config import DEFAULT_API_CURRENT, DEFAULT_API_HISTORICAL, Settings
from cotizaciones.errors import FormatError, RangeError
from cotizaciones.ingestion.dolar_api import DolarApiClient
from cotizaciones.sheet.row_codec import decode_date_key, encode_row, header_row
from cotizaciones.store.memory import MemoryDocument
from cotizaciones.sync.reconciler import ExchangeRateSync, SyncState


def stored(day: date, official_sell: float = 1000.0) -> list[str]:
    return encode_row(day, make_record(official_sell), modified_at=FIXED_NOW)


def build(rows=None, *, rates=None, header=True, settings=None):
    initial = ([header_row()] if header else []) + list(rows or [])
    document = MemoryDocument({"Dolar": initial})
    rates = rates or FakeRates()
    sync = ExchangeRateSync(settings or Settings(), document, rates, clock=fixed_clock())
    return sync, document.get_table("Dolar"), rates


def keys(table) -> list[str]:
    return [decode_date_key(row) for row in table.data_rows()]


class TestClassify:
    def test_header_only_sheet_has_no_data(self):
        sync, _, _ = build()

        plan = sync.classify()

        assert plan.state is SyncState.NO_EXISTING_DATA
        assert plan.today == TODAY

    def test_empty_sheet_has_no_data(self):
        sync, _, _ = build(header=False)

        assert sync.classify().state is SyncState.NO_EXISTING_DATA

    @pytest.mark.parametrize(
        ("last_day", "state"),
        [
            (TODAY, SyncState.LAST_ROW_IS_TODAY),
            (TODAY - timedelta(days=1), SyncState.LAST_ROW_IS_YESTERDAY),
            (TODAY - timedelta(days=2), SyncState.LAST_ROW_IS_OLDER),
            (date(2023, 12, 31), SyncState.LAST_ROW_IS_OLDER),
        ],
    )
    def test_state_follows_last_row(self, last_day, state):
        sync, _, _ = build([stored(date(2023, 1, 2)), stored(last_day)])

        plan = sync.classify()

        assert plan.state is state
        assert plan.last_row == 3
        assert plan.last_date == last_day

    def test_future_last_row_is_rejected(self):
        sync, _, _ = build([stored(TODAY + timedelta(days=1))])

        with pytest.raises(RangeError):
            sync.classify()

    def test_unreadable_last_row_is_rejected(self):
        sync, _, _ = build([["sin fecha", "1,00"]])

        with pytest.raises(FormatError):
            sync.classify()

    def test_today_follows_civil_time(self):
        document = MemoryDocument({"Dolar": [header_row(), stored(date(2024, 3, 14))]})
        # 02:00 UTC on the 15th is still the 14th in civil time.
        clock = fixed_clock(datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc))
        sync = ExchangeRateSync(Settings(), document, FakeRates(), clock=clock)

        assert sync.classify().state is SyncState.LAST_ROW_IS_TODAY


class TestLiveUpdates:
    def test_refresh_today_overwrites_in_place(self):
        rates = FakeRates(current=make_record(1100.0, 1650.0))
        sync, table, _ = build([stored(TODAY - timedelta(days=1)), stored(TODAY)], rates=rates)

        sync.refresh_today(sync.classify())

        assert table.last_row() == 3
        row = table.get_values(3, 1, 1, 15)[0]
        assert row[0] == "Viernes 15/03/2024"
        assert row[2] == "1100,00"
        assert row[11] == "50,0%"
        assert rates.current_calls == 1
        assert rates.historical_calls == []

    def test_refresh_today_requires_matching_plan(self):
        sync, _, _ = build([stored(TODAY - timedelta(days=3))])

        with pytest.raises(ValueError):
            sync.refresh_today(sync.classify())

    def test_carry_forward_appends_today_from_yesterday(self):
        yesterday = TODAY - timedelta(days=1)
        closing = make_record(990.0, 1490.0, stamp=datetime(2024, 3, 14, 21, 0, tzinfo=timezone.utc))
        rates = FakeRates(historical={yesterday: closing})
        sync, table, _ = build([stored(yesterday)], rates=rates)

        sync.carry_forward(sync.classify())

        assert rates.historical_calls == [yesterday]
        assert rates.current_calls == 0
        row = table.get_values(3, 1, 1, 15)[0]
        assert row[0] == "Viernes 15/03/2024"
        assert row[2] == "990,00"
        assert row[11] == "50,5%"
        assert row[13] == "14/03/24 18:00:00"
        assert row[14] == "15/03/24 12:00:00"

    def test_seed_today_writes_header_and_first_row(self):
        sync, table, rates = build(header=False)

        sync.seed_today()

        assert table.get_values(1, 1, 1, 15)[0] == header_row()
        assert keys(table) == ["2024-03-15"]
        assert rates.current_calls == 1


class TestCatchUp:
    def test_backfills_then_appends_today(self):
        sync, table, rates = build([stored(date(2024, 3, 10))])

        result = sync.catch_up(sync.classify())

        assert result.backfill is not None
        assert (result.backfill.updated, result.backfill.appended) == (0, 4)
        assert result.today_added is True
        assert rates.historical_calls == [date(2024, 3, day) for day in range(11, 15)]
        assert keys(table) == [f"2024-03-{day}" for day in range(10, 16)]

    def test_today_failure_is_reported_not_raised(self):
        rates = FakeRates(current_available=False)
        sync, table, _ = build([stored(date(2024, 3, 12))], rates=rates)

        result = sync.catch_up(sync.classify())

        assert result.today_added is False
        assert result.today_error
        assert keys(table) == ["2024-03-12", "2024-03-13", "2024-03-14"]


class TestReconcileRange:
    def test_inverted_range_raises_before_any_write(self):
        rows = [stored(date(2024, 3, 11))]
        sync, table, rates = build(rows)

        with pytest.raises(RangeError):
            sync.reconcile_range(date(2024, 3, 12), date(2024, 3, 11))

        assert table.data_rows() == rows
        assert rates.historical_calls == []

    @pytest.mark.parametrize(
        ("start", "end"),
        [(date(2014, 12, 31), date(2015, 1, 2)), (date(2024, 3, 14), date(2024, 3, 16))],
    )
    def test_range_outside_window_is_rejected(self, start, end):
        sync, _, rates = build()

        with pytest.raises(RangeError):
            sync.reconcile_range(start, end)
        assert rates.historical_calls == []

    def test_repeated_single_day_range_updates_in_place(self):
        sync, table, _ = build([stored(date(2024, 3, 11)), stored(date(2024, 3, 12)), stored(date(2024, 3, 13))])

        first = sync.reconcile_range(date(2024, 3, 12), date(2024, 3, 12))
        second = sync.reconcile_range(date(2024, 3, 12), date(2024, 3, 12))

        for result in (first, second):
            assert (result.updated, result.appended) == (1, 0)
        assert table.last_row() == 4
        assert table.get_values(3, 2, 1, 2)[0] == ["972,00", "1012,00"]

    def test_mixed_range_updates_appends_skips_and_sorts(self):
        rows = [stored(date(2024, 3, 13)), stored(date(2024, 3, 11))]
        rates = FakeRates(missing=[date(2024, 3, 12)])
        sync, table, _ = build(rows, rates=rates)

        result = sync.reconcile_range(date(2024, 3, 10), date(2024, 3, 14))

        assert (result.updated, result.appended, result.total) == (2, 2, 4)
        assert result.skipped == [date(2024, 3, 12)]
        assert keys(table) == ["2024-03-10", "2024-03-11", "2024-03-13", "2024-03-14"]
        for row in table.data_rows():
            assert re.fullmatch(r"\d+,\d{2}%", row[11])
        assert "Domingo 10 de Marzo de 2024" in result.message
        assert "Se actualizaron 2 filas existentes y se agregaron 2 nuevas filas." in result.message
        assert "No hubo datos disponibles para 1 días: 12/03/2024." in result.message
        assert result.elapsed >= 0

    def test_range_into_empty_sheet_writes_header(self):
        sync, table, _ = build(header=False)

        result = sync.reconcile_range(date(2024, 3, 13), date(2024, 3, 14))

        assert result.appended == 2
        assert table.get_values(1, 1, 1, 1)[0] == ["Fecha"]
        assert keys(table) == ["2024-03-13", "2024-03-14"]


def test_remove_duplicate_dates_keeps_bottom_most_row():
    rows = [
        ["Lunes 11/03/2024", "a"],
        ["Martes 12/03/2024", "b"],
        ["Lunes 11/03/2024", "c"],
        ["Miércoles 13/03/2024", "d"],
        ["Martes 12/03/2024", "e"],
        ["sin fecha", "f"],
    ]
    sync, table, _ = build(rows)

    removed = sync.remove_duplicate_dates()

    assert removed == 2
    assert [row[1] for row in table.data_rows()] == ["c", "d", "e", "f"]


class ScriptedHttp:
    """HTTP layer returning canned bodies keyed by the URL's ``yyyy/mm/dd`` suffix."""

    def __init__(self, bodies):
        self.bodies = bodies

    def fetch_or_cached(self, url, ttl_seconds=None):
        return self.bodies.get(url[-10:])

    def close(self) -> None:
        pass


@pytest.mark.parametrize(
    "body",
    [json.dumps({"error": "Not Found", "status": 404}), json.dumps([1, 2, 3])],
)
def test_unusable_api_body_skips_the_day_without_writing(body):
    good = json.dumps(
        [
            {"casa": "oficial", "compra": 960, "venta": 1000, "fecha": "2024-03-12"},
            {"casa": "blue", "compra": 1480, "venta": 1500, "fecha": "2024-03-12"},
        ]
    )
    rates = DolarApiClient(
        ScriptedHttp({"2024/03/12": good, "2024/03/13": body}),  # type: ignore[arg-type]
        current_url=DEFAULT_API_CURRENT,
        historical_base_url=DEFAULT_API_HISTORICAL,
        clock=fixed_clock(),
    )
    existing = stored(date(2024, 3, 13))
    sync, table, _ = build([existing], rates=rates)

    only_bad = sync.reconcile_range(date(2024, 3, 13), date(2024, 3, 13))

    assert (only_bad.updated, only_bad.appended, only_bad.skipped) == (0, 0, [date(2024, 3, 13)])
    assert table.data_rows() == [existing]

    mixed = sync.reconcile_range(date(2024, 3, 12), date(2024, 3, 13))

    assert (mixed.updated, mixed.appended, mixed.skipped) == (0, 1, [date(2024, 3, 13)])
    assert keys(table) == ["2024-03-12", "2024-03-13"]
    assert table.data_rows()[1] == existing
