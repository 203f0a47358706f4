"""Tests for the currency converter."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.common.models import Currency, FxRate
from src.valuation.fx import CurrencyConverter


class TestConvert:
    def test_same_currency_is_identity(self, converter):
        result = converter.convert(123.45, "GBP", "GBP")
        assert result.amount == 123.45
        assert result.rate == 1.0
        assert not result.is_fallback

    def test_usd_to_gbp(self, converter):
        result = converter.convert(140.0, "USD", "GBP", date(2026, 10, 1))
        assert result.amount == pytest.approx(110.60)
        assert result.rate == pytest.approx(0.79)
        assert result.rate_date == date(2026, 10, 1)
        assert not result.is_fallback

    def test_cross_rate_through_pivot(self, converter):
        result = converter.convert(100.0, "USD", "EUR", date(2026, 10, 1))
        assert result.amount == pytest.approx(100 * 0.79 * 1.18)

    def test_accepts_datetime(self, converter):
        as_of = datetime(2026, 9, 1, 23, 59, tzinfo=timezone.utc)
        assert converter.convert(125.0, "USD", "GBP", as_of).amount == pytest.approx(100.0)

    def test_nearest_past_record_preferred(self, converter):
        result = converter.convert(125.0, "USD", "GBP", date(2026, 9, 20))
        assert result.rate_date == date(2026, 9, 1)

    def test_future_record_when_no_past(self, converter):
        result = converter.convert(125.0, "USD", "GBP", date(2026, 1, 1))
        assert result.rate_date == date(2026, 9, 1)
        assert not result.is_fallback

    def test_latest_record_by_default(self, converter):
        assert converter.convert(1.0, "GBP", "EUR").rate == pytest.approx(1.18)

    def test_round_trip_within_tolerance(self, converter):
        there = converter.convert(250.0, "GBP", "USD", date(2026, 10, 1)).amount
        back = converter.convert(there, "USD", "GBP", date(2026, 10, 1)).amount
        assert back == pytest.approx(250.0, abs=1e-9)

    def test_malformed_currency_raises(self, converter):
        with pytest.raises(ValueError):
            converter.convert(1.0, "XXX", "GBP")


class TestFallback:
    def test_empty_table_falls_back(self):
        result = CurrencyConverter().convert(140.0, "USD", "GBP")
        assert result.amount == 140.0
        assert result.rate == 1.0
        assert result.is_fallback

    def test_unquoted_currency_falls_back(self):
        converter = CurrencyConverter([FxRate(as_of=date(2026, 10, 1), rates={"USD": 1.27})])
        result = converter.convert(10.0, "EUR", "GBP", date(2026, 10, 1))
        assert result.is_fallback
        assert result.amount == 10.0

    def test_max_gap_days(self):
        converter = CurrencyConverter(
            [FxRate(as_of=date(2026, 1, 1), rates={"USD": 1.25})], max_gap_days=5
        )
        assert converter.convert(1.0, "USD", "GBP", date(2026, 1, 4)).rate_date == date(2026, 1, 1)
        assert converter.convert(1.0, "USD", "GBP", date(2026, 2, 1)).is_fallback

    def test_record_with_other_base_is_rebased(self):
        usd_base = FxRate(as_of=date(2026, 10, 1), base="USD", rates={"GBP": 0.8, "EUR": 0.9})
        converter = CurrencyConverter([usd_base], pivot=Currency.GBP)
        result = converter.convert(100.0, "USD", "GBP", date(2026, 10, 1))
        assert result.amount == pytest.approx(80.0)
        assert not result.is_fallback
