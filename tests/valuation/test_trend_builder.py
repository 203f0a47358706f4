"""Tests for the trend series builder."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from src.common.models import PriceSnapshot
from src.valuation.trend import TrendSeriesBuilder, snapshot_price

T0 = datetime(2026, 10, 1, tzinfo=timezone.utc)


def _history(prices, currency="GBP") -> list[PriceSnapshot]:
    return [
        PriceSnapshot(
            provider="stockx",
            catalog_id="sx-1",
            size="9",
            currency=currency,
            lowest_ask=price,
            captured_at=T0 - timedelta(days=len(prices) - i),
        )
        for i, price in enumerate(prices)
    ]


class TestRealSeries:
    def test_enough_points_returns_real_window(self, rng):
        builder = TrendSeriesBuilder(rng=rng)
        prices = [100, 101, 102, 103, 104, 105, 106, 107, 108]
        series = builder.build(_history(prices), window_size=7)
        assert not series.is_synthetic
        assert series.values == [102, 103, 104, 105, 106, 107, 108]

    def test_input_order_does_not_matter(self, rng):
        builder = TrendSeriesBuilder(rng=rng)
        history = _history([100, 101, 102])
        series = builder.build(list(reversed(history)), window_size=3)
        assert series.values == [100, 101, 102]

    def test_history_converted_to_display_currency(self, converter, rng):
        builder = TrendSeriesBuilder(rng=rng, converter=converter, currency="GBP")
        series = builder.build(_history([140.0], currency="USD"), window_size=1)
        # Captured 2026-09-30, so the 2026-09-01 rate (1.25) applies
        assert series.values == [112.0]

    def test_last_sale_used_without_ask(self):
        snapshot = PriceSnapshot(
            provider="ebay", catalog_id="e", size="9", currency="GBP", last_sale=95.0, captured_at=T0
        )
        assert snapshot_price(snapshot) == 95.0


class TestSyntheticSeries:
    def test_flagged_and_bounded(self, rng):
        builder = TrendSeriesBuilder(rng=rng)
        series = builder.build(_history([100, 101]), window_size=7, current_price=200.0)
        assert series.is_synthetic
        assert len(series) == 7
        for value in series.values:
            assert abs(value - 200.0) <= 200.0 * 0.007 + 1e-9

    def test_anchor_defaults_to_latest_point(self, rng):
        builder = TrendSeriesBuilder(rng=rng)
        series = builder.build(_history([90, 100]), window_size=30)
        assert series.is_synthetic
        assert len(series) == 30
        assert all(abs(v - 100) <= 0.71 for v in series.values)

    def test_zero_jitter_is_flat(self):
        builder = TrendSeriesBuilder(jitter_pct=0)
        series = builder.build([], window_size=7, current_price=123.45)
        assert series.values == [123.45] * 7
        assert series.is_synthetic

    def test_sub_cent_anchor_is_not_rounded_off_band(self):
        series = TrendSeriesBuilder(jitter_pct=0).build([], window_size=3, current_price=123.456)
        assert series.values == [123.456] * 3

    @pytest.mark.parametrize("price", [1.0, 0.5, 1.42, 0.125])
    def test_cheap_anchor_stays_within_jitter_band(self, price):
        """A cent exceeds 0.7% of these prices, so rounding must not widen the band."""
        for seed in range(200):
            series = TrendSeriesBuilder(rng=random.Random(seed)).build([], 30, current_price=price)
            for value in series.values:
                assert abs(value - price) <= price * 0.007 + 1e-12

    def test_seeded_rng_is_reproducible(self):
        first = TrendSeriesBuilder(rng=random.Random(7)).build([], 7, current_price=150.0)
        second = TrendSeriesBuilder(rng=random.Random(7)).build([], 7, current_price=150.0)
        assert first.values == second.values

    def test_no_history_no_price_is_empty(self, rng):
        series = TrendSeriesBuilder(rng=rng).build([], window_size=7)
        assert len(series) == 0
        assert not series.is_synthetic


class TestValidation:
    @pytest.mark.parametrize("window", [0, -7])
    def test_non_positive_window_raises(self, rng, window):
        with pytest.raises(ValueError):
            TrendSeriesBuilder(rng=rng).build([], window_size=window, current_price=100.0)

    def test_jitter_above_cap_raises(self):
        with pytest.raises(ValueError):
            TrendSeriesBuilder(jitter_pct=0.05)
