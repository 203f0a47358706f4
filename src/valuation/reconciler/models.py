"""Data models for multi-provider price reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ...common.models import Currency, Provider


class ProviderDataStatus(str, Enum):
    """Why a provider did or did not contribute a price."""
    AVAILABLE = "available"
    NO_DATA = "no_data"        # mapped and healthy, nothing in the index
    NOT_MAPPED = "not_mapped"
    PENDING = "pending"
    ERROR = "error"


class PriceConfidence(str, Enum):
    """How much to trust the selected ask."""
    HIGH = "high"      # two or more providers quoted an ask
    MEDIUM = "medium"  # exactly one provider quoted an ask
    LOW = "low"        # winner relied on a fallback FX rate or stale data
    NONE = "none"      # no ask at all


@dataclass(frozen=True)
class ProviderStatus:
    """Per-provider outcome attached to every reconciled price."""

    provider: Provider
    mapped: bool
    status: ProviderDataStatus
    captured_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "mapped": self.mapped,
            "status": self.status.value,
            "captured_at": self.captured_at.isoformat() if self.captured_at else None,
        }


@dataclass(frozen=True)
class PriceCandidate:
    """One provider's ask/bid, already converted to the display currency."""

    provider: Provider
    ask: float | None
    bid: float | None
    captured_at: datetime
    source_currency: Currency
    fx_rate: float = 1.0
    fx_fallback: bool = False
    last_sale: float | None = None

    def to_dict(self) -> dict:
        return {
            "provider": self.provider.value,
            "ask": self.ask,
            "bid": self.bid,
            "last_sale": self.last_sale,
            "captured_at": self.captured_at.isoformat(),
            "source_currency": self.source_currency.value,
            "fx_rate": self.fx_rate,
            "fx_fallback": self.fx_fallback,
        }


@dataclass(frozen=True)
class ReconciledPrice:
    """Selected ask and bid for one item, in the caller's display currency.

    Ask and bid attribution are independent: the cheapest ask and the
    highest bid may come from different providers.
    """

    item_id: str
    currency: Currency
    ask: float | None = None
    bid: float | None = None
    ask_provider: Provider | None = None
    bid_provider: Provider | None = None
    ask_captured_at: datetime | None = None
    bid_captured_at: datetime | None = None
    ask_fx_fallback: bool = False
    bid_fx_fallback: bool = False
    confidence: PriceConfidence = PriceConfidence.NONE
    candidates: tuple[PriceCandidate, ...] = ()
    providers: dict[Provider, ProviderStatus] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.ask is None and self.bid is None

    @property
    def captured_at(self) -> datetime | None:
        """Timestamp of the selected ask, else of the selected bid."""
        return self.ask_captured_at or self.bid_captured_at

    def candidate_for(self, provider: Provider) -> PriceCandidate | None:
        for candidate in self.candidates:
            if candidate.provider is provider:
                return candidate
        return None

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "currency": self.currency.value,
            "ask": self.ask,
            "bid": self.bid,
            "ask_provider": self.ask_provider.value if self.ask_provider else None,
            "bid_provider": self.bid_provider.value if self.bid_provider else None,
            "ask_captured_at": self.ask_captured_at.isoformat() if self.ask_captured_at else None,
            "bid_captured_at": self.bid_captured_at.isoformat() if self.bid_captured_at else None,
            "ask_fx_fallback": self.ask_fx_fallback,
            "bid_fx_fallback": self.bid_fx_fallback,
            "confidence": self.confidence.value,
            "candidates": [c.to_dict() for c in self.candidates],
            "providers": {p.value: s.to_dict() for p, s in self.providers.items()},
        }
