import unittest
from datetime import date, datetime, timezone

import pytest

from cotizaciones.errors import FormatError
from cotizaciones.utils.dates import (
    DateFormat,
    civil_midnight,
    civil_today,
    format_date,
    iter_days,
    parse_user_date,
    to_civil,
)


class FormatDateTests(unittest.TestCase):
    def test_calendar_day_modes(self) -> None:
        day = date(2024, 3, 15)
        self.assertEqual(format_date(day, DateFormat.SHEET), "2024-03-15")
        self.assertEqual(format_date(day, DateFormat.API), "2024/03/15")
        self.assertEqual(format_date(day), "15/03/2024")
        self.assertEqual(format_date(day, DateFormat.VERBOSE), "Viernes 15 de Marzo de 2024")
        self.assertEqual(format_date(day, DateFormat.DAY_COLUMN), "Viernes 15/03/2024")
        self.assertEqual(format_date(day, DateFormat.FULL_LONG), "Viernes 15-03-24")

    def test_instants_are_shifted_three_hours(self) -> None:
        instant = datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)
        self.assertEqual(format_date(instant, DateFormat.DATE_TIME), "14/03/24 23:00:00")
        self.assertEqual(format_date(instant, DateFormat.VERBOSE_LONG), "Jueves 14 de Marzo 23:00:00")
        self.assertEqual(format_date(instant, DateFormat.TIME), "23:00:00")
        self.assertEqual(format_date(instant, DateFormat.FULL_LONG_WITH_TIME), "Jueves 14-03-24 23:00:00")

    def test_naive_datetimes_are_read_as_utc(self) -> None:
        self.assertEqual(format_date(datetime(2024, 3, 15, 2, 0), "dateTime"), "14/03/24 23:00:00")

    def test_unknown_mode_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            format_date(date(2024, 3, 15), "iso")


class CivilTimeTests(unittest.TestCase):
    def test_to_civil_returns_naive_reading(self) -> None:
        instant = datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)
        self.assertEqual(to_civil(instant), datetime(2024, 3, 14, 23, 0))

    def test_civil_today_crosses_midnight(self) -> None:
        self.assertEqual(civil_today(datetime(2024, 3, 15, 2, 59, tzinfo=timezone.utc)), date(2024, 3, 14))
        self.assertEqual(civil_today(datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)), date(2024, 3, 15))

    def test_civil_midnight(self) -> None:
        self.assertEqual(civil_midnight(date(2024, 3, 15)), datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc))


@pytest.mark.parametrize("text", ["15/03/2024", "15-03-24", "15/03-24", "15-3-2024", "15/3/24"])
def test_parse_user_date_accepts_both_separators(text):
    parsed = parse_user_date(text, today=date(2020, 1, 1))

    assert parsed == date(2024, 3, 15)
    assert format_date(parsed, DateFormat.SHEET) == "2024-03-15"


def test_parse_user_date_defaults_to_current_year():
    assert parse_user_date("15/03", today=date(2023, 6, 1)) == date(2023, 3, 15)
    assert parse_user_date("01-12", today=date(2023, 6, 1)) == date(2023, 12, 1)


@pytest.mark.parametrize("text", ["15", "1/2/3/4", "aa/bb", "31/02/2024", "", "15/13/24"])
def test_parse_user_date_rejects_bad_input(text):
    with pytest.raises(FormatError):
        parse_user_date(text, today=date(2024, 1, 1))


def test_parse_user_date_error_is_a_value_error():
    with pytest.raises(ValueError, match="Formato de fecha inválido"):
        parse_user_date("15", today=date(2024, 1, 1))


def test_iter_days_is_inclusive():
    assert list(iter_days(date(2024, 2, 28), date(2024, 3, 1))) == [
        date(2024, 2, 28),
        date(2024, 2, 29),
        date(2024, 3, 1),
    ]
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


if __name__ == "__main__":
    unittest.main()
