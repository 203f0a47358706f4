"""Pivot-currency converter over a date-stamped FX rate table.

Every FxRate is quoted against one base currency, so any pair is converted
by going source -> pivot -> target instead of keeping an n x n matrix.
Missing dates resolve to the nearest earlier record, else the nearest later
one. With no usable record at all the converter returns the amount
unchanged with ``rate=1.0`` and ``is_fallback=True``.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable
from datetime import date, datetime

from ...common.models import Currency, FxRate, parse_currency
from .models import Conversion

logger = logging.getLogger(__name__)


class CurrencyConverter:
    """Convert amounts between currencies using an immutable rate table.

    Usage:
        converter = CurrencyConverter(fx_rates)
        result = converter.convert(140.0, "USD", "GBP", date(2026, 1, 15))
        print(result.amount, result.rate, result.is_fallback)
    """

    def __init__(
        self,
        rates: Iterable[FxRate] = (),
        pivot: Currency | str = Currency.GBP,
        max_gap_days: int | None = None,
    ) -> None:
        self.pivot = parse_currency(pivot)
        self.max_gap_days = max_gap_days

        by_date: dict[date, FxRate] = {}
        for rate in rates:
            if rate.base is not self.pivot:
                rate = self._rebase(rate, self.pivot)
                if rate is None:
                    continue
            # One record per date; later entries for the same date win
            by_date[rate.as_of] = rate
        self._dates: tuple[date, ...] = tuple(sorted(by_date))
        self._rates: dict[date, FxRate] = by_date

    @property
    def has_rates(self) -> bool:
        return bool(self._dates)

    def convert(
        self,
        amount: float,
        from_currency: Currency | str,
        to_currency: Currency | str,
        as_of: date | datetime | None = None,
    ) -> Conversion:
        """Convert ``amount`` from one currency to another.

        Args:
            amount: Amount in major units of ``from_currency``.
            from_currency: Source currency code.
            to_currency: Target currency code.
            as_of: Date whose rates to use. None means the latest record.

        Returns:
            Conversion with the unrounded amount, the effective rate and
            whether the rate is a 1.0 fallback.

        Raises:
            ValueError: If either currency code is malformed.
        """
        source = parse_currency(from_currency)
        target = parse_currency(to_currency)

        if source is target:
            return Conversion(amount=amount, rate=1.0, from_currency=source, to_currency=target)

        if isinstance(as_of, datetime):
            as_of = as_of.date()

        record = self._find_record(as_of, (source, target))
        if record is None:
            logger.debug("No FX data for %s->%s around %s, using 1.0", source.value, target.value, as_of)
            return Conversion(
                amount=amount,
                rate=1.0,
                from_currency=source,
                to_currency=target,
                is_fallback=True,
            )

        # units per pivot: amount / source_per_pivot gives pivot units
        rate = record.units_per_base(target) / record.units_per_base(source)
        return Conversion(
            amount=amount * rate,
            rate=rate,
            from_currency=source,
            to_currency=target,
            rate_date=record.as_of,
        )

    def _find_record(self, as_of: date | None, currencies: tuple[Currency, ...]) -> FxRate | None:
        """Nearest record quoting every currency; past dates preferred."""
        if not self._dates:
            return None

        def quotes(d: date) -> bool:
            record = self._rates[d]
            return all(record.units_per_base(c) is not None for c in currencies)

        if as_of is None:
            for d in reversed(self._dates):
                if quotes(d):
                    return self._rates[d]
            return None

        split = bisect.bisect_right(self._dates, as_of)
        for d in reversed(self._dates[:split]):
            if not self._within_gap(as_of, d):
                break
            if quotes(d):
                return self._rates[d]
        for d in self._dates[split:]:
            if not self._within_gap(as_of, d):
                break
            if quotes(d):
                return self._rates[d]
        return None

    def _within_gap(self, as_of: date, candidate: date) -> bool:
        if self.max_gap_days is None:
            return True
        return abs((candidate - as_of).days) <= self.max_gap_days

    @staticmethod
    def _rebase(rate: FxRate, pivot: Currency) -> FxRate | None:
        """Re-express a record against ``pivot``; None if the pivot is unquoted."""
        pivot_per_base = rate.units_per_base(pivot)
        if pivot_per_base is None:
            logger.warning(
                "FX record for %s has no %s quote, skipping", rate.as_of, pivot.value
            )
            return None
        return FxRate(
            as_of=rate.as_of,
            base=pivot,
            rates={code: units / pivot_per_base for code, units in rate.rates.items()},
        )
