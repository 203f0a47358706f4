"""Valuation calculator.

Turns a reconciled price plus an item's cost basis into the record shown
to the user: market price, P/L, performance, spread and instant-sell net.

Formula chain:
    invested_cost = purchase_price + tax + shipping
    market_price  = reconciled ask -> manual override -> invested cost
    profit_loss   = market_price - invested_cost (None when equal)

Missing upstream prices degrade to None fields; only structurally invalid
input raises.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from ...common.models import Currency, InventoryItem, ItemStatus, ensure_utc
from ..fx.converter import CurrencyConverter
from ..reconciler.freshness import LIVE_MAX_AGE, RECENT_MAX_AGE, determine_freshness
from ..reconciler.models import ReconciledPrice
from ..trend.builder import TrendSeries
from .fees import FeeSchedule
from .models import EnrichedValuation, ProviderSummary

logger = logging.getLogger(__name__)

MARKET_SOURCE_MANUAL = "manual"
MARKET_SOURCE_COST = "cost"


def _round(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


class ValuationCalculator:
    """Derive an EnrichedValuation from a ReconciledPrice.

    Usage:
        calc = ValuationCalculator(converter)
        valuation = calc.calculate(item, reconciled, fee_schedule)
        print(valuation.market_price, valuation.profit_loss)
    """

    def __init__(
        self,
        converter: CurrencyConverter | None = None,
        live_max_age: timedelta = LIVE_MAX_AGE,
        recent_max_age: timedelta = RECENT_MAX_AGE,
    ) -> None:
        self.converter = converter or CurrencyConverter()
        self.live_max_age = live_max_age
        self.recent_max_age = recent_max_age

    def calculate(
        self,
        item: InventoryItem,
        reconciled: ReconciledPrice,
        fee_schedule: FeeSchedule,
        trend: TrendSeries | None = None,
        as_of: datetime | None = None,
    ) -> EnrichedValuation:
        """Calculate the valuation record for one item.

        Args:
            item: Inventory item with its cost basis.
            reconciled: Output of PriceReconciler for the same item.
            fee_schedule: Seller fee fractions per provider.
            trend: Optional display series for the item.
            as_of: Reference time for per-provider freshness labels.

        Returns:
            EnrichedValuation with every amount in ``reconciled.currency``.

        Raises:
            ValueError: If the reconciled price belongs to another item or
                the cost basis is negative.
        """
        if reconciled.item_id != item.id:
            raise ValueError(
                f"Reconciled price for {reconciled.item_id!r} passed for item {item.id!r}"
            )
        invested_native = item.invested_cost
        if invested_native < 0:
            raise ValueError(f"Invested cost for {item.id!r} is negative: {invested_native}")

        display = reconciled.currency
        as_of = ensure_utc(as_of)
        fx_fallback = reconciled.ask_fx_fallback

        # Cost figures are recorded in the item's purchase currency
        invested, cost_fallback = self._to_display(invested_native, item, display, item.purchase_date)
        fx_fallback = fx_fallback or cost_fallback

        manual = None
        if item.manual_override_value is not None:
            manual, manual_fallback = self._to_display(item.manual_override_value, item, display, None)
            fx_fallback = fx_fallback or (manual_fallback and reconciled.ask is None)

        if reconciled.ask is not None:
            market_price = reconciled.ask
            market_source = reconciled.ask_provider.value
        elif manual is not None:
            market_price = manual
            market_source = MARKET_SOURCE_MANUAL
        else:
            market_price = invested
            market_source = MARKET_SOURCE_COST

        invested_r = _round(invested)
        current_value = _round(market_price)

        # Equal values are indistinguishable from the cost fallback
        profit_loss = None
        if current_value != invested_r:
            profit_loss = _round(current_value - invested_r)

        performance_pct = None
        if profit_loss is not None and invested_r > 0:
            performance_pct = _round(profit_loss / invested_r * 100)

        realized = None
        if item.status is ItemStatus.SOLD and item.sold_price is not None:
            sold, sold_fallback = self._to_display(item.sold_price, item, display, None)
            fx_fallback = fx_fallback or sold_fallback
            realized = _round(_round(sold) - invested_r)

        instant_gross = reconciled.bid
        fee_pct = fee_schedule.fee_for(reconciled.bid_provider)
        instant_net = None
        if instant_gross is not None:
            if fee_pct is None:
                logger.warning(
                    "No seller fee configured for %s, instant-sell net unavailable",
                    reconciled.bid_provider.value if reconciled.bid_provider else None,
                )
            else:
                instant_net = _round(instant_gross * (1 - fee_pct))

        spread_pct, listing_fallback = self._spread(item, reconciled, display)
        fx_fallback = fx_fallback or listing_fallback

        return EnrichedValuation(
            item_id=item.id,
            currency=display,
            status=item.status,
            full_title=item.full_title,
            invested_cost=invested_r,
            market_price=current_value,
            market_source=market_source,
            current_value=current_value,
            profit_loss=profit_loss,
            performance_pct=performance_pct,
            realized_profit_loss=realized,
            instant_sell_gross=_round(instant_gross),
            instant_sell_net=instant_net,
            instant_sell_provider=reconciled.bid_provider,
            seller_fee_pct=fee_pct,
            spread_pct=spread_pct,
            ask_provider=reconciled.ask_provider,
            confidence=reconciled.confidence.value,
            price_as_of=reconciled.captured_at,
            fx_fallback=fx_fallback,
            trend=list(trend.values) if trend else [],
            trend_is_synthetic=trend.is_synthetic if trend else False,
            providers=self._provider_summaries(reconciled, as_of),
        )

    def _to_display(
        self, amount: float, item: InventoryItem, display: Currency, as_of: date | None
    ) -> tuple[float, bool]:
        if item.currency is display:
            return amount, False
        conversion = self.converter.convert(amount, item.currency, display, as_of)
        return conversion.amount, conversion.is_fallback

    def _spread(
        self, item: InventoryItem, reconciled: ReconciledPrice, display: Currency
    ) -> tuple[float | None, bool]:
        """Listing-vs-market spread: (ask - bid) / bid * 100.

        The ask side is the item's own listing price when it is listed,
        otherwise the reconciled ask. The flag reports a 1.0 fallback rate
        on the listing price conversion.
        """
        ask = reconciled.ask
        fallback = False
        if item.status is ItemStatus.LISTED and item.listing_price is not None:
            ask, fallback = self._to_display(item.listing_price, item, display, None)
        bid = reconciled.bid
        if ask is None or bid is None or bid <= 0:
            return None, fallback
        return _round((ask - bid) / bid * 100), fallback

    def _provider_summaries(
        self, reconciled: ReconciledPrice, as_of: datetime | None
    ) -> dict:
        summaries = {}
        for provider, status in reconciled.providers.items():
            freshness = None
            if as_of is not None and status.mapped:
                freshness = determine_freshness(
                    status.captured_at, as_of, self.live_max_age, self.recent_max_age
                ).value
            summaries[provider] = ProviderSummary(
                mapped=status.mapped,
                status=status.status.value,
                freshness=freshness,
                captured_at=status.captured_at,
            )
        return summaries
