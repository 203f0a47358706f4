"""Batch valuation pipeline.

Wires the engine components together for a whole inventory:

    snapshots -> SnapshotIndex / SnapshotHistory
    fx_rates  -> CurrencyConverter
    per item  -> PriceReconciler -> TrendSeriesBuilder -> ValuationCalculator

Every item is valued independently; a batch never shares mutable state
between items.
"""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta

from ...common.config import Settings
from ...common.config import settings as default_settings
from ...common.models import (
    Currency,
    FxRate,
    InventoryItem,
    PriceSnapshot,
    ProviderMapping,
    ensure_utc,
    parse_currency,
)
from ..calculator.calculator import ValuationCalculator
from ..calculator.fees import FeeSchedule
from ..calculator.models import EnrichedValuation
from ..fx.converter import CurrencyConverter
from ..reconciler.models import ReconciledPrice
from ..reconciler.reconciler import PriceReconciler
from ..snapshots.index import SnapshotHistory, SnapshotIndex
from ..trend.builder import TrendSeries, TrendSeriesBuilder

logger = logging.getLogger(__name__)


def group_mappings(
    items: Iterable[InventoryItem], mappings: Iterable[ProviderMapping]
) -> dict[str, list[ProviderMapping]]:
    """Group mappings by item id, dropping mappings for unknown items."""
    known = {item.id for item in items}
    grouped: dict[str, list[ProviderMapping]] = defaultdict(list)
    for mapping in mappings:
        if mapping.item_id not in known:
            logger.warning(
                "Ignoring %s mapping for unknown item %s", mapping.provider.value, mapping.item_id
            )
            continue
        grouped[mapping.item_id].append(mapping)
    return grouped


class ValuationPipeline:
    """Value a batch of inventory items against one snapshot set.

    Usage:
        pipeline = ValuationPipeline(snapshots, fx_rates, display_currency="GBP")
        valuations = pipeline.run(items, mappings)
        for item_id, valuation in valuations.items():
            print(item_id, valuation.market_price, valuation.profit_loss)
    """

    def __init__(
        self,
        snapshots: Iterable[PriceSnapshot],
        fx_rates: Iterable[FxRate] = (),
        display_currency: Currency | str | None = None,
        fee_schedule: FeeSchedule | None = None,
        window_size: int | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.display_currency = parse_currency(display_currency or self.settings.display_currency)
        self.window_size = window_size if window_size is not None else self.settings.trend.window_size
        if self.window_size <= 0:
            raise ValueError(f"window_size must be positive, got {self.window_size}")

        snapshots = list(snapshots)
        self.index = SnapshotIndex.build(snapshots)
        self.history = SnapshotHistory.build(snapshots)

        fx = self.settings.fx
        self.converter = CurrencyConverter(fx_rates, pivot=fx.pivot_currency, max_gap_days=fx.max_gap_days)
        if not self.converter.has_rates:
            logger.warning("No FX rates loaded, cross-currency amounts use a 1.0 fallback")

        freshness = self.settings.freshness
        live = timedelta(seconds=freshness.live_max_age_seconds)
        recent = timedelta(seconds=freshness.recent_max_age_seconds)

        self.fee_schedule = fee_schedule or FeeSchedule.from_settings(self.settings.fees)
        self.reconciler = PriceReconciler(
            self.converter,
            fallback_currencies=fx.fallback_currencies,
            stale_after=recent,
        )
        self.calculator = ValuationCalculator(self.converter, live_max_age=live, recent_max_age=recent)
        self.trend_builder = TrendSeriesBuilder(
            jitter_pct=self.settings.trend.jitter_pct,
            rng=rng,
            converter=self.converter,
            currency=self.display_currency,
        )

    def run(
        self,
        items: Iterable[InventoryItem],
        mappings: Iterable[ProviderMapping],
        as_of: datetime | None = None,
    ) -> dict[str, EnrichedValuation]:
        """Value every item.

        Raises:
            ValueError: On structurally invalid input (duplicate item ids,
                foreign or duplicate mappings).
        """
        items = list(items)
        ids = [item.id for item in items]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate inventory item ids in batch")

        as_of = ensure_utc(as_of)
        grouped = group_mappings(items, mappings)
        results: dict[str, EnrichedValuation] = {}
        for item in items:
            results[item.id] = self.value_item(item, grouped.get(item.id, []), as_of)

        priced = sum(1 for v in results.values() if v.ask_provider is not None)
        logger.info(
            "Valued %d items in %s (%d with live prices)",
            len(results), self.display_currency.value, priced,
        )
        return results

    def value_item(
        self,
        item: InventoryItem,
        mappings: list[ProviderMapping],
        as_of: datetime | None = None,
    ) -> EnrichedValuation:
        """Reconcile, build the trend and calculate one item's valuation."""
        reconciled = self.reconciler.reconcile(item, mappings, self.index, self.display_currency, as_of)
        trend = self._trend(item, mappings, reconciled)
        return self.calculator.calculate(item, reconciled, self.fee_schedule, trend=trend, as_of=as_of)

    def _trend(
        self,
        item: InventoryItem,
        mappings: list[ProviderMapping],
        reconciled: ReconciledPrice,
    ) -> TrendSeries:
        """Trend from the ask-winning provider's history, anchored on the live ask."""
        history: list[PriceSnapshot] = []
        if reconciled.ask_provider is not None:
            candidate = reconciled.candidate_for(reconciled.ask_provider)
            mapping = next(m for m in mappings if m.provider is reconciled.ask_provider)
            history = self.history.series(mapping.catalog_key, item.size, candidate.source_currency)

        anchor = reconciled.ask
        if anchor is None and item.manual_override_value is not None:
            anchor = self.converter.convert(
                item.manual_override_value, item.currency, self.display_currency
            ).amount
        return self.trend_builder.build(history, self.window_size, current_price=anchor)


def value_portfolio(
    items: Iterable[InventoryItem],
    mappings: Iterable[ProviderMapping],
    snapshots: Iterable[PriceSnapshot],
    fx_rates: Iterable[FxRate] = (),
    display_currency: Currency | str | None = None,
    fee_schedule: FeeSchedule | None = None,
    window_size: int | None = None,
    as_of: datetime | None = None,
    settings: Settings | None = None,
    rng: random.Random | None = None,
) -> dict[str, EnrichedValuation]:
    """Value a whole inventory in one display currency.

    Args:
        items: Inventory items.
        mappings: Provider mappings for those items.
        snapshots: Every fetched snapshot, including history.
        fx_rates: Date-stamped FX records.
        display_currency: Output currency; defaults to the configured one.
        fee_schedule: Seller fees; defaults to the configured ones.
        window_size: Trend window; defaults to the configured one.
        as_of: Reference time for freshness and staleness.
        settings: Settings to use instead of the loaded defaults.
        rng: Random source for synthetic trend jitter.

    Returns:
        ``{item_id: EnrichedValuation}`` in input order.
    """
    pipeline = ValuationPipeline(
        snapshots,
        fx_rates,
        display_currency=display_currency,
        fee_schedule=fee_schedule,
        window_size=window_size,
        settings=settings,
        rng=rng,
    )
    return pipeline.run(items, mappings, as_of=as_of)
