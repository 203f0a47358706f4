"""Data models for currency conversion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ...common.models import Currency


@dataclass(frozen=True)
class Conversion:
    """A converted amount plus the provenance of the rate behind it.

    ``amount`` is unrounded; rounding to 2 decimals happens only when a
    value leaves the engine.
    """

    amount: float
    rate: float
    from_currency: Currency
    to_currency: Currency
    is_fallback: bool = False
    rate_date: date | None = None

    def to_dict(self) -> dict:
        return {
            "amount": self.amount,
            "rate": self.rate,
            "from_currency": self.from_currency.value,
            "to_currency": self.to_currency.value,
            "is_fallback": self.is_fallback,
            "rate_date": self.rate_date.isoformat() if self.rate_date else None,
        }
