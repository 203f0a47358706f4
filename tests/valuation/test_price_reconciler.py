"""Tests for multi-provider price reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.common.models import Currency, PriceSnapshot, Provider, ProviderMapping
from src.valuation.fx import CurrencyConverter
from src.valuation.reconciler import (
    DataFreshness,
    PriceConfidence,
    PriceReconciler,
    ProviderDataStatus,
    determine_freshness,
    select_ask,
)
from src.valuation.snapshots import SnapshotIndex


@pytest.fixture
def reconciler(converter) -> PriceReconciler:
    return PriceReconciler(converter, stale_after=timedelta(hours=24))


def _snap(provider, catalog_id, currency, ask, bid, captured_at, size="9") -> PriceSnapshot:
    return PriceSnapshot(
        provider=provider,
        catalog_id=catalog_id,
        size=size,
        currency=currency,
        lowest_ask=ask,
        highest_bid=bid,
        captured_at=captured_at,
    )


class TestReconcile:
    def test_mixed_currency_selection(self, reconciler, sample_item, sample_mappings, sample_snapshots):
        """GBP display: StockX 120/100 GBP vs Alias $140/$115 at 0.79."""
        index = SnapshotIndex.build(sample_snapshots)
        price = reconciler.reconcile(sample_item, sample_mappings, index, "GBP")

        assert price.currency is Currency.GBP
        assert price.ask == pytest.approx(110.60)
        assert price.ask_provider is Provider.ALIAS
        assert price.bid == pytest.approx(100.0)
        assert price.bid_provider is Provider.STOCKX
        assert price.confidence is PriceConfidence.HIGH

        alias = price.candidate_for(Provider.ALIAS)
        assert alias.bid == pytest.approx(90.85)
        assert alias.source_currency is Currency.USD
        assert alias.fx_rate == pytest.approx(0.79)

    def test_provider_statuses(self, reconciler, sample_item, sample_mappings, sample_snapshots):
        index = SnapshotIndex.build(sample_snapshots)
        price = reconciler.reconcile(sample_item, sample_mappings, index, "GBP")

        assert list(price.providers) == [Provider.ALIAS, Provider.EBAY, Provider.STOCKX]
        assert price.providers[Provider.EBAY].status is ProviderDataStatus.NOT_MAPPED
        assert not price.providers[Provider.EBAY].mapped
        assert price.providers[Provider.STOCKX].status is ProviderDataStatus.AVAILABLE

    def test_no_mappings_is_empty(self, reconciler, sample_item, sample_snapshots):
        price = reconciler.reconcile(sample_item, [], SnapshotIndex.build(sample_snapshots), "GBP")
        assert price.is_empty
        assert price.ask_provider is None
        assert price.confidence is PriceConfidence.NONE
        assert all(not s.mapped for s in price.providers.values())

    def test_mapped_without_data(self, reconciler, sample_item, sample_mappings):
        price = reconciler.reconcile(sample_item, sample_mappings, SnapshotIndex.build([]), "GBP")
        assert price.is_empty
        assert price.providers[Provider.STOCKX].status is ProviderDataStatus.NO_DATA
        assert price.providers[Provider.STOCKX].mapped

    def test_unhealthy_mappings_are_skipped(self, reconciler, sample_item, sample_snapshots):
        mappings = [
            ProviderMapping(item_id="item-1", provider="stockx", product_id="sx-aj1-chicago", status="pending"),
            ProviderMapping(item_id="item-1", provider="alias", product_id="al-aj1", status="error"),
        ]
        price = reconciler.reconcile(sample_item, mappings, SnapshotIndex.build(sample_snapshots), "GBP")
        assert price.is_empty
        assert price.providers[Provider.STOCKX].status is ProviderDataStatus.PENDING
        assert price.providers[Provider.ALIAS].status is ProviderDataStatus.ERROR

    def test_fallback_currency_order(self, reconciler, sample_item, captured_at):
        """EUR display with GBP and USD listings: USD is tried before GBP."""
        mapping = [ProviderMapping(item_id="item-1", provider="stockx", product_id="sx")]
        index = SnapshotIndex.build(
            [
                _snap("stockx", "sx", "GBP", 100.0, None, captured_at),
                _snap("stockx", "sx", "USD", 150.0, None, captured_at),
            ]
        )
        price = reconciler.reconcile(sample_item, mapping, index, "EUR")
        candidate = price.candidate_for(Provider.STOCKX)
        assert candidate.source_currency is Currency.USD
        assert price.ask == pytest.approx(150.0 * 0.79 * 1.18)

    def test_exact_currency_preferred(self, reconciler, sample_item, captured_at):
        mapping = [ProviderMapping(item_id="item-1", provider="stockx", product_id="sx")]
        index = SnapshotIndex.build(
            [
                _snap("stockx", "sx", "GBP", 100.0, None, captured_at),
                _snap("stockx", "sx", "USD", 150.0, None, captured_at),
            ]
        )
        price = reconciler.reconcile(sample_item, mapping, index, "GBP")
        assert price.ask == 100.0
        assert price.ask_fx_fallback is False

    def test_empty_quote_counts_as_absent(self, reconciler, sample_item, captured_at):
        mapping = [ProviderMapping(item_id="item-1", provider="stockx", product_id="sx")]
        index = SnapshotIndex.build(
            [
                _snap("stockx", "sx", "GBP", None, None, captured_at),
                _snap("stockx", "sx", "USD", 150.0, None, captured_at),
            ]
        )
        price = reconciler.reconcile(sample_item, mapping, index, "GBP")
        assert price.candidate_for(Provider.STOCKX).source_currency is Currency.USD

    def test_single_provider_is_medium(self, reconciler, sample_item, sample_mappings, sample_snapshots):
        price = reconciler.reconcile(sample_item, sample_mappings[:1], SnapshotIndex.build(sample_snapshots), "GBP")
        assert price.ask_provider is Provider.STOCKX
        assert price.confidence is PriceConfidence.MEDIUM

    def test_stale_winner_is_low(self, reconciler, sample_item, sample_mappings, sample_snapshots, captured_at):
        index = SnapshotIndex.build(sample_snapshots)
        price = reconciler.reconcile(sample_item, sample_mappings, index, "GBP", as_of=captured_at + timedelta(days=3))
        assert price.confidence is PriceConfidence.LOW

    def test_naive_as_of_taken_as_utc(self, reconciler, sample_item, sample_mappings, sample_snapshots):
        index = SnapshotIndex.build(sample_snapshots)
        price = reconciler.reconcile(sample_item, sample_mappings, index, "GBP", as_of=datetime(2026, 10, 4, 12, 0))
        assert price.confidence is PriceConfidence.LOW

        fresh = reconciler.reconcile(sample_item, sample_mappings, index, "GBP", as_of=datetime(2026, 10, 1, 13, 0))
        assert fresh.confidence is PriceConfidence.HIGH

    def test_fx_fallback_winner_is_low(self, sample_item, captured_at):
        reconciler = PriceReconciler(CurrencyConverter())
        mapping = [ProviderMapping(item_id="item-1", provider="alias", product_id="al")]
        index = SnapshotIndex.build([_snap("alias", "al", "USD", 140.0, 115.0, captured_at)])
        price = reconciler.reconcile(sample_item, mapping, index, "GBP")
        assert price.ask == 140.0
        assert price.ask_fx_fallback
        assert price.confidence is PriceConfidence.LOW

    def test_deterministic(self, reconciler, sample_item, sample_mappings, sample_snapshots):
        index = SnapshotIndex.build(sample_snapshots)
        first = reconciler.reconcile(sample_item, sample_mappings, index, "GBP")
        second = reconciler.reconcile(sample_item, list(reversed(sample_mappings)), index, "GBP")
        assert first == second

    def test_foreign_mapping_raises(self, reconciler, sample_item):
        mapping = [ProviderMapping(item_id="other", provider="stockx", product_id="sx")]
        with pytest.raises(ValueError):
            reconciler.reconcile(sample_item, mapping, SnapshotIndex.build([]), "GBP")

    def test_duplicate_provider_mapping_raises(self, reconciler, sample_item):
        mappings = [
            ProviderMapping(item_id="item-1", provider="stockx", product_id="a"),
            ProviderMapping(item_id="item-1", provider="stockx", product_id="b"),
        ]
        with pytest.raises(ValueError):
            reconciler.reconcile(sample_item, mappings, SnapshotIndex.build([]), "GBP")

    def test_malformed_display_currency_raises(self, reconciler, sample_item):
        with pytest.raises(ValueError):
            reconciler.reconcile(sample_item, [], SnapshotIndex.build([]), "pounds")


class TestTieBreaks:
    def test_equal_ask_prefers_newer(self, reconciler, sample_item, captured_at):
        mappings = [
            ProviderMapping(item_id="item-1", provider="stockx", product_id="sx"),
            ProviderMapping(item_id="item-1", provider="ebay", product_id="eb"),
        ]
        index = SnapshotIndex.build(
            [
                _snap("stockx", "sx", "GBP", 120.0, None, captured_at),
                _snap("ebay", "eb", "GBP", 120.0, None, captured_at - timedelta(hours=2)),
            ]
        )
        price = reconciler.reconcile(sample_item, mappings, index, "GBP")
        assert price.ask_provider is Provider.STOCKX

    def test_equal_ask_and_time_prefers_provider_name(self, reconciler, sample_item, captured_at):
        mappings = [
            ProviderMapping(item_id="item-1", provider="stockx", product_id="sx"),
            ProviderMapping(item_id="item-1", provider="ebay", product_id="eb"),
        ]
        index = SnapshotIndex.build(
            [
                _snap("stockx", "sx", "GBP", 120.0, 90.0, captured_at),
                _snap("ebay", "eb", "GBP", 120.0, 90.0, captured_at),
            ]
        )
        price = reconciler.reconcile(sample_item, mappings, index, "GBP")
        assert price.ask_provider is Provider.EBAY
        assert price.bid_provider is Provider.EBAY

    def test_select_ask_ignores_missing_asks(self):
        assert select_ask([]) is None


class TestWinnerMonotonicity:
    @pytest.mark.parametrize(
        "ask, bid, ask_provider, bid_provider",
        [
            (105.0, 50.0, Provider.EBAY, Provider.STOCKX),
            (130.0, 101.0, Provider.ALIAS, Provider.EBAY),
            (130.0, 80.0, Provider.ALIAS, Provider.STOCKX),
        ],
        ids=["lowest-ask-wins-ask", "highest-bid-wins-bid", "worse-on-both-changes-nothing"],
    )
    def test_third_provider(
        self, reconciler, sample_item, sample_mappings, sample_snapshots, captured_at,
        ask, bid, ask_provider, bid_provider,
    ):
        """Base winners: Alias ask 110.60, StockX bid 100."""
        mappings = sample_mappings + [ProviderMapping(item_id="item-1", provider="ebay", product_id="eb")]
        snapshots = sample_snapshots + [_snap("ebay", "eb", "GBP", ask, bid, captured_at)]

        price = reconciler.reconcile(sample_item, mappings, SnapshotIndex.build(snapshots), "GBP")

        assert price.ask_provider is ask_provider
        assert price.bid_provider is bid_provider
        assert price.ask == pytest.approx(min(ask, 110.60))
        assert price.bid == pytest.approx(max(bid, 100.0))


class TestFreshness:
    @pytest.mark.parametrize(
        "age, expected",
        [
            (timedelta(minutes=5), DataFreshness.LIVE),
            (timedelta(hours=3), DataFreshness.RECENT),
            (timedelta(days=2), DataFreshness.STALE),
            (timedelta(hours=-1), DataFreshness.LIVE),
        ],
    )
    def test_thresholds(self, captured_at, age, expected):
        assert determine_freshness(captured_at - age, captured_at) is expected

    def test_naive_reference_time_taken_as_utc(self, captured_at):
        naive = datetime(2026, 10, 1, 12, 30)
        assert determine_freshness(captured_at, naive) is DataFreshness.LIVE

    def test_missing_timestamp_is_stale(self, captured_at):
        assert determine_freshness(None, captured_at) is DataFreshness.STALE
