"""Exception hierarchy shared across the cotizaciones package."""

from __future__ import annotations


class CotizacionesError(Exception):
    """Base class for every error raised on purpose by the package."""


class FormatError(CotizacionesError, ValueError):
    """A user-entered date or an imported file does not have the expected shape."""


class RangeError(CotizacionesError, ValueError):
    """A date range is inverted or falls outside the supported window."""


class DataUnavailable(CotizacionesError, RuntimeError):
    """The rate sources returned nothing usable for one unit of work."""


class SheetMissing(CotizacionesError, LookupError):
    """The expected named table does not exist in the document."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No se encontró la hoja: {name}")
        self.name = name


__all__ = [
    "CotizacionesError",
    "DataUnavailable",
    "FormatError",
    "RangeError",
    "SheetMissing",
]
