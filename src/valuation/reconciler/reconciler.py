"""Multi-provider price reconciliation.

For one inventory item, looks up every healthy provider mapping in the
snapshot index, converts each hit into the display currency and selects:

- ask (market price): the lowest ask across providers, since the floor
  price is what a buyer would actually pay;
- bid (instant-sell basis): the highest bid across providers.

Ties go to the most recent snapshot, then to provider name so the result
is identical for identical inputs. Ask and bid winners are tracked
independently and may differ.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from ...common.models import (
    Currency,
    InventoryItem,
    MappingStatus,
    PriceSnapshot,
    Provider,
    ProviderMapping,
    ensure_utc,
    parse_currency,
)
from ..fx.converter import CurrencyConverter
from ..snapshots.index import SnapshotIndex
from .models import (
    PriceCandidate,
    PriceConfidence,
    ProviderDataStatus,
    ProviderStatus,
    ReconciledPrice,
)

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_CURRENCIES = (Currency.USD, Currency.EUR, Currency.GBP)

_UNHEALTHY_STATUS = {
    MappingStatus.PENDING: ProviderDataStatus.PENDING,
    MappingStatus.ERROR: ProviderDataStatus.ERROR,
}


def validate_mappings(item: InventoryItem, mappings: Iterable[ProviderMapping]) -> list[ProviderMapping]:
    """Check mappings belong to ``item`` with at most one per provider.

    Raises:
        ValueError: On a foreign or duplicate mapping.
    """
    seen: set[Provider] = set()
    result: list[ProviderMapping] = []
    for mapping in mappings:
        if mapping.item_id != item.id:
            raise ValueError(
                f"Mapping for item {mapping.item_id!r} passed while reconciling {item.id!r}"
            )
        if mapping.provider in seen:
            raise ValueError(
                f"Item {item.id!r} has more than one {mapping.provider.value} mapping"
            )
        seen.add(mapping.provider)
        result.append(mapping)
    return sorted(result, key=lambda m: m.provider.value)


def select_ask(candidates: Iterable[PriceCandidate]) -> PriceCandidate | None:
    """Lowest ask; ties to the newest snapshot, then provider name."""
    priced = [c for c in candidates if c.ask is not None]
    if not priced:
        return None
    return min(priced, key=lambda c: (c.ask, -c.captured_at.timestamp(), c.provider.value))


def select_bid(candidates: Iterable[PriceCandidate]) -> PriceCandidate | None:
    """Highest bid; ties to the newest snapshot, then provider name."""
    priced = [c for c in candidates if c.bid is not None]
    if not priced:
        return None
    return min(priced, key=lambda c: (-c.bid, -c.captured_at.timestamp(), c.provider.value))


class PriceReconciler:
    """Select one authoritative ask/bid pair across provider snapshots.

    Usage:
        reconciler = PriceReconciler(CurrencyConverter(fx_rates))
        price = reconciler.reconcile(item, mappings, index, "GBP")
        print(price.ask, price.ask_provider, price.bid, price.bid_provider)
    """

    def __init__(
        self,
        converter: CurrencyConverter,
        fallback_currencies: Sequence[Currency | str] = DEFAULT_FALLBACK_CURRENCIES,
        providers: Sequence[Provider] = tuple(Provider),
        stale_after: timedelta | None = None,
    ) -> None:
        self.converter = converter
        self.fallback_currencies = tuple(parse_currency(c) for c in fallback_currencies)
        self.providers = tuple(providers)
        self.stale_after = stale_after

    def reconcile(
        self,
        item: InventoryItem,
        mappings: Iterable[ProviderMapping],
        index: SnapshotIndex,
        display_currency: Currency | str,
        as_of: datetime | None = None,
    ) -> ReconciledPrice:
        """Reconcile provider snapshots into a single price for ``item``.

        Args:
            item: Inventory item; its ``size`` is the canonical UK size.
            mappings: The item's provider mappings (zero or one per provider).
            index: Latest-snapshot index for this batch.
            display_currency: Currency every returned amount is expressed in.
            as_of: Reference time for staleness; None skips the stale check.
                Naive values are taken as UTC.

        Returns:
            ReconciledPrice. Empty (no ask, no bid) when no provider has data,
            which is a normal outcome for unmapped or manual items.
        """
        display = parse_currency(display_currency)
        as_of = ensure_utc(as_of)
        valid = validate_mappings(item, mappings)

        statuses: dict[Provider, ProviderStatus] = {
            provider: ProviderStatus(provider, mapped=False, status=ProviderDataStatus.NOT_MAPPED)
            for provider in self.providers
        }
        candidates: list[PriceCandidate] = []

        for mapping in valid:
            provider = mapping.provider
            if mapping.status is not MappingStatus.OK:
                statuses[provider] = ProviderStatus(provider, mapped=True, status=_UNHEALTHY_STATUS[mapping.status])
                continue

            candidate = self._candidate(mapping, item.size, index, display)
            if candidate is None:
                statuses[provider] = ProviderStatus(provider, mapped=True, status=ProviderDataStatus.NO_DATA)
                continue

            statuses[provider] = ProviderStatus(
                provider,
                mapped=True,
                status=ProviderDataStatus.AVAILABLE,
                captured_at=candidate.captured_at,
            )
            candidates.append(candidate)

        ordered = {p: statuses[p] for p in sorted(statuses, key=lambda p: p.value)}
        ask_winner = select_ask(candidates)
        bid_winner = select_bid(candidates)

        if ask_winner is None and bid_winner is None:
            logger.debug("No provider data for item %s", item.id)

        return ReconciledPrice(
            item_id=item.id,
            currency=display,
            ask=ask_winner.ask if ask_winner else None,
            bid=bid_winner.bid if bid_winner else None,
            ask_provider=ask_winner.provider if ask_winner else None,
            bid_provider=bid_winner.provider if bid_winner else None,
            ask_captured_at=ask_winner.captured_at if ask_winner else None,
            bid_captured_at=bid_winner.captured_at if bid_winner else None,
            ask_fx_fallback=ask_winner.fx_fallback if ask_winner else False,
            bid_fx_fallback=bid_winner.fx_fallback if bid_winner else False,
            confidence=self._confidence(candidates, ask_winner, as_of),
            candidates=tuple(candidates),
            providers=ordered,
        )

    def _candidate(
        self,
        mapping: ProviderMapping,
        size: str,
        index: SnapshotIndex,
        display: Currency,
    ) -> PriceCandidate | None:
        """Exact-currency lookup first, then the fixed fallback order."""
        order = [display] + [c for c in self.fallback_currencies if c is not display]
        for currency in order:
            snapshot = index.lookup(mapping.catalog_key, size, currency)
            if snapshot is None or (snapshot.lowest_ask is None and snapshot.highest_bid is None):
                continue
            return self._to_candidate(snapshot, display)
        return None

    def _to_candidate(self, snapshot: PriceSnapshot, display: Currency) -> PriceCandidate:
        rate = self.converter.convert(1.0, snapshot.currency, display, snapshot.captured_at)

        def convert(amount: float | None) -> float | None:
            if amount is None:
                return None
            return self.converter.convert(amount, snapshot.currency, display, snapshot.captured_at).amount

        if rate.is_fallback:
            logger.debug(
                "Fallback FX rate for %s %s->%s",
                snapshot.provider.value,
                snapshot.currency.value,
                display.value,
            )

        return PriceCandidate(
            provider=snapshot.provider,
            ask=convert(snapshot.lowest_ask),
            bid=convert(snapshot.highest_bid),
            last_sale=convert(snapshot.last_sale),
            captured_at=snapshot.captured_at,
            source_currency=snapshot.currency,
            fx_rate=rate.rate,
            fx_fallback=rate.is_fallback,
        )

    def _confidence(
        self,
        candidates: list[PriceCandidate],
        ask_winner: PriceCandidate | None,
        as_of: datetime | None,
    ) -> PriceConfidence:
        if ask_winner is None:
            return PriceConfidence.NONE
        if ask_winner.fx_fallback:
            return PriceConfidence.LOW
        if as_of is not None and self.stale_after is not None:
            if as_of - ask_winner.captured_at > self.stale_after:
                return PriceConfidence.LOW
        asks = sum(1 for c in candidates if c.ask is not None)
        return PriceConfidence.HIGH if asks >= 2 else PriceConfidence.MEDIUM
