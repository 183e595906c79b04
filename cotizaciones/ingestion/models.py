"""Data models shared across ingestion modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RatePair:
    """Buy/sell quote for a single instrument."""

    buy: float = 0.0
    sell: float = 0.0


@dataclass(frozen=True, slots=True)
class Quote:
    """One validated ``{casa, compra, venta}`` entry from a rate payload."""

    casa: str
    buy: float
    sell: float
    as_of: str | None = None


def spread(blue_sell: float, reference_sell: float) -> float:
    """Relative gap between the blue sell price and ``reference_sell`` as a ratio."""

    if reference_sell == 0:
        return 0.0
    return (blue_sell - reference_sell) / reference_sell


@dataclass(frozen=True, slots=True)
class ExchangeRateRecord:
    """Canonical dollar quotes for one moment, shared by both API shapes.

    Spreads are ratios (``0.5`` means 50%). ``source_timestamp`` is an aware UTC
    instant already aligned with the civil-time convention.
    """

    official: RatePair
    blue: RatePair
    mep: RatePair
    crypto: RatePair
    wholesale: RatePair
    source_timestamp: datetime
    blue_official_spread: float = field(init=False)
    blue_mep_spread: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "blue_official_spread", spread(self.blue.sell, self.official.sell))
        object.__setattr__(self, "blue_mep_spread", spread(self.blue.sell, self.mep.sell))

    def prices(self) -> tuple[float, ...]:
        """Return the ten price fields in stored column order."""

        return (
            self.official.buy,
            self.official.sell,
            self.blue.buy,
            self.blue.sell,
            self.mep.buy,
            self.mep.sell,
            self.crypto.buy,
            self.crypto.sell,
            self.wholesale.buy,
            self.wholesale.sell,
        )


__all__ = ["ExchangeRateRecord", "Quote", "RatePair", "spread"]
