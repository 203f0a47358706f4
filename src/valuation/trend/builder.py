"""Bounded price trend series for sparkline display.

Real history is returned as-is when there is enough of it. Otherwise a
flat placeholder around the current price is generated with small random
jitter and flagged ``is_synthetic`` so it is never mistaken for history.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable
from dataclasses import dataclass, field

from ...common.models import Currency, PriceSnapshot
from ..fx.converter import CurrencyConverter

logger = logging.getLogger(__name__)

MAX_JITTER_PCT = 0.007


@dataclass
class TrendSeries:
    """Oldest-to-newest price points plus the synthetic flag."""

    values: list[float] = field(default_factory=list)
    is_synthetic: bool = False

    def __len__(self) -> int:
        return len(self.values)

    def to_dict(self) -> dict:
        return {"values": list(self.values), "is_synthetic": self.is_synthetic}


def snapshot_price(snapshot: PriceSnapshot) -> float | None:
    """Price plotted for a snapshot: lowest ask, else last sale."""
    if snapshot.lowest_ask is not None:
        return snapshot.lowest_ask
    return snapshot.last_sale


class TrendSeriesBuilder:
    """Build display trend series from historical snapshots.

    Usage:
        builder = TrendSeriesBuilder(converter=converter, currency="GBP")
        series = builder.build(history, window_size=7, current_price=110.6)
        if series.is_synthetic:
            ...  # render as placeholder
    """

    def __init__(
        self,
        jitter_pct: float = MAX_JITTER_PCT,
        rng: random.Random | None = None,
        converter: CurrencyConverter | None = None,
        currency: Currency | str | None = None,
    ) -> None:
        if not 0 <= jitter_pct <= MAX_JITTER_PCT:
            raise ValueError(f"jitter_pct must be within [0, {MAX_JITTER_PCT}], got {jitter_pct}")
        self.jitter_pct = jitter_pct
        self._rng = rng or random.Random()
        self.converter = converter
        self.currency = currency

    def build(
        self,
        historical: Iterable[PriceSnapshot],
        window_size: int,
        current_price: float | None = None,
    ) -> TrendSeries:
        """Build a series of at most ``window_size`` points.

        Args:
            historical: Snapshots in any order; sorted by capture time here.
            window_size: Number of points in the display slot (e.g. 7 or 30).
            current_price: Known current price. Defaults to the newest
                historical point when omitted.

        Returns:
            Real series if at least ``window_size`` points exist, a synthetic
            flat series if fewer exist but a current price is known, else an
            empty series.
        """
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")

        points = self._real_points(historical)
        if len(points) >= window_size:
            return TrendSeries(values=points[-window_size:], is_synthetic=False)

        anchor = current_price if current_price is not None else (points[-1] if points else None)
        if anchor is None:
            return TrendSeries()

        logger.debug(
            "Only %d of %d trend points, generating synthetic series", len(points), window_size
        )
        return TrendSeries(values=self._synthetic(anchor, window_size), is_synthetic=True)

    def _real_points(self, historical: Iterable[PriceSnapshot]) -> list[float]:
        points: list[float] = []
        for snapshot in sorted(historical, key=lambda s: s.captured_at):
            price = snapshot_price(snapshot)
            if price is None:
                continue
            if self.converter is not None and self.currency is not None:
                price = self.converter.convert(
                    price, snapshot.currency, self.currency, snapshot.captured_at
                ).amount
            points.append(round(price, 2))
        return points

    def _synthetic(self, price: float, window_size: int) -> list[float]:
        return [self._jittered(price) for _ in range(window_size)]

    def _jittered(self, price: float) -> float:
        """One cent-rounded point within ``jitter_pct`` of ``price``.

        Rounding can push a point out of the band when a cent is wide
        relative to the price; such points snap to the nearest in-band
        cent, or to the anchor itself when no cent fits.
        """
        low = price * (1 - self.jitter_pct)
        high = price * (1 + self.jitter_pct)
        value = round(price * (1 + self._rng.uniform(-self.jitter_pct, self.jitter_pct)), 2)
        if low <= value <= high:
            return value
        cent = math.ceil(low * 100) / 100 if value < low else math.floor(high * 100) / 100
        return cent if low <= cent <= high else price
