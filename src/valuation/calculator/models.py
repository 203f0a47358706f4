"""Data models for enriched valuations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ...common.models import Currency, ItemStatus, Provider


@dataclass
class ProviderSummary:
    """Per-provider flags on a valuation record.

    ``mapped`` separates "item not linked to this provider" from "linked
    but the provider returned nothing".
    """

    mapped: bool
    status: str
    freshness: str | None = None
    captured_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "mapped": self.mapped,
            "status": self.status,
            "freshness": self.freshness,
            "captured_at": self.captured_at.isoformat() if self.captured_at else None,
        }


@dataclass
class EnrichedValuation:
    """Final valuation for one inventory item.

    Every monetary field is in ``currency`` and rounded to 2 decimals.
    ``profit_loss`` is None (not 0) when current value equals invested cost.
    ``trend_is_synthetic`` must travel with ``trend`` to any consumer.
    """

    item_id: str
    currency: Currency
    status: ItemStatus
    full_title: str
    invested_cost: float
    market_price: float
    market_source: str  # provider name | manual | cost
    current_value: float
    profit_loss: float | None = None
    performance_pct: float | None = None
    realized_profit_loss: float | None = None
    instant_sell_gross: float | None = None
    instant_sell_net: float | None = None
    instant_sell_provider: Provider | None = None
    seller_fee_pct: float | None = None
    spread_pct: float | None = None
    ask_provider: Provider | None = None
    confidence: str = "none"
    price_as_of: datetime | None = None
    fx_fallback: bool = False
    trend: list[float] = field(default_factory=list)
    trend_is_synthetic: bool = False
    providers: dict[Provider, ProviderSummary] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "currency": self.currency.value,
            "status": self.status.value,
            "full_title": self.full_title,
            "invested_cost": self.invested_cost,
            "market_price": self.market_price,
            "market_source": self.market_source,
            "current_value": self.current_value,
            "profit_loss": self.profit_loss,
            "performance_pct": self.performance_pct,
            "realized_profit_loss": self.realized_profit_loss,
            "instant_sell_gross": self.instant_sell_gross,
            "instant_sell_net": self.instant_sell_net,
            "instant_sell_provider": (
                self.instant_sell_provider.value if self.instant_sell_provider else None
            ),
            "seller_fee_pct": self.seller_fee_pct,
            "spread_pct": self.spread_pct,
            "ask_provider": self.ask_provider.value if self.ask_provider else None,
            "confidence": self.confidence,
            "price_as_of": self.price_as_of.isoformat() if self.price_as_of else None,
            "fx_fallback": self.fx_fallback,
            "trend": list(self.trend),
            "trend_is_synthetic": self.trend_is_synthetic,
            "providers": {p.value: s.to_dict() for p, s in self.providers.items()},
        }
