"""Date parsing and formatting in the fixed Argentine civil-time convention.

Every instant is projected to civil time by subtracting three hours and then
reading its fields as UTC. Argentina observes no daylight-saving time, so the
projection is a constant offset rather than a time zone lookup.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterator

from cotizaciones.errors import FormatError

CIVIL_OFFSET = timedelta(hours=3)

DAYS_OF_WEEK = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo")
MONTHS = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

_SEPARATORS = re.compile(r"[/-]")

Clock = Callable[[], datetime]


class DateFormat(str, Enum):
    """Textual representations understood by :func:`format_date`."""

    SHORT = "short"
    SHEET = "sheet"
    API = "api"
    VERBOSE = "verbose"
    VERBOSE_LONG = "verboseLong"
    DAY_COLUMN = "dayColumn"
    DATE_TIME = "dateTime"
    FULL_LONG = "fullLong"
    FULL_LONG_WITH_TIME = "fullLongWithTime"
    TIME = "time"


def utc_now() -> datetime:
    """Default clock: the current instant as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def to_civil(instant: datetime) -> datetime:
    """Return the naive civil-time reading of ``instant``.

    Naive inputs are taken to already be UTC.
    """

    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc).replace(tzinfo=None)
    return instant - CIVIL_OFFSET


def civil_today(now: datetime | None = None) -> date:
    """Return the civil calendar day for ``now`` (defaults to the current instant)."""

    return to_civil(now or utc_now()).date()


def civil_midnight(day: date) -> datetime:
    """Return the aware UTC instant at which civil ``day`` begins."""

    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc) + CIVIL_OFFSET


def format_date(value: date | datetime, mode: DateFormat | str = DateFormat.SHORT) -> str:
    """Render ``value`` in one of the :class:`DateFormat` representations.

    ``datetime`` values are instants and are shifted to civil time first. Plain
    ``date`` values already are civil calendar days and render as civil midnight.
    """

    fmt = DateFormat(mode)
    if isinstance(value, datetime):
        civil = to_civil(value)
    else:
        civil = datetime(value.year, value.month, value.day)

    day = f"{civil.day:02d}"
    month = f"{civil.month:02d}"
    year = str(civil.year)
    short_year = year[-2:]
    clock = f"{civil.hour:02d}:{civil.minute:02d}:{civil.second:02d}"
    weekday = DAYS_OF_WEEK[civil.weekday()]
    month_name = MONTHS[civil.month - 1]

    if fmt is DateFormat.VERBOSE:
        return f"{weekday} {day} de {month_name} de {year}"
    if fmt is DateFormat.SHEET:
        return f"{year}-{month}-{day}"
    if fmt is DateFormat.API:
        return f"{year}/{month}/{day}"
    if fmt is DateFormat.DATE_TIME:
        return f"{day}/{month}/{short_year} {clock}"
    if fmt is DateFormat.VERBOSE_LONG:
        return f"{weekday} {day} de {month_name} {clock}"
    if fmt is DateFormat.DAY_COLUMN:
        return f"{weekday} {day}/{month}/{year}"
    if fmt is DateFormat.FULL_LONG:
        return f"{weekday} {day}-{month}-{short_year}"
    if fmt is DateFormat.TIME:
        return clock
    if fmt is DateFormat.FULL_LONG_WITH_TIME:
        return f"{weekday} {day}-{month}-{short_year} {clock}"
    return f"{day}/{month}/{year}"


def parse_user_date(text: str, *, today: date | None = None) -> date:
    """Parse ``dd/mm``, ``dd/mm/yy`` or ``dd/mm/yyyy`` (``/`` or ``-``) into a date.

    A missing year defaults to the civil year of ``today``; two-digit years are
    read as ``2000 + yy``.
    """

    parts = _SEPARATORS.split((text or "").strip())
    if len(parts) < 2 or len(parts) > 3:
        raise FormatError("Formato de fecha inválido. Use dd/mm o dd/mm/yy.")
    if not all(part.strip().isdigit() for part in parts):
        raise FormatError(f"Fecha inválida: {text!r}")

    day = int(parts[0])
    month = int(parts[1])
    year = (today or civil_today()).year
    if len(parts) == 3:
        year = int(parts[2])
        if year < 100:
            year += 2000

    try:
        return date(year, month, day)
    except ValueError as exc:
        raise FormatError(f"Fecha inválida: {text!r}") from exc


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in the inclusive window ``[start, end]``."""

    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


__all__ = [
    "CIVIL_OFFSET",
    "Clock",
    "DateFormat",
    "civil_midnight",
    "civil_today",
    "format_date",
    "iter_days",
    "parse_user_date",
    "to_civil",
    "utc_now",
]
