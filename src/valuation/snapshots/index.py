"""Keyed lookup structures over raw provider price snapshots.

The index keeps only the most recent snapshot per
(provider catalog identity, canonical size, currency) so reconciliation can
resolve each mapping in O(1). Absence is the common case and is reported as
"not found", never as an error.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import NamedTuple

from ...common.models import Currency, PriceSnapshot, Provider, parse_currency
from ..sizing.normalizer import size_key

CatalogKey = tuple[Provider, str]


class SnapshotKey(NamedTuple):
    """Composite key: provider, catalog id, canonical size key, currency."""

    provider: Provider
    catalog_id: str
    size: str
    currency: Currency

    @classmethod
    def for_snapshot(cls, snapshot: PriceSnapshot) -> SnapshotKey:
        return cls(snapshot.provider, snapshot.catalog_id, size_key(snapshot.size), snapshot.currency)

    @classmethod
    def for_lookup(cls, catalog_key: CatalogKey, size: float | str, currency: Currency | str) -> SnapshotKey:
        provider, catalog_id = catalog_key
        return cls(Provider(provider), catalog_id, size_key(size), parse_currency(currency))


class SnapshotIndex:
    """Latest-snapshot index built once per reconciliation batch.

    Usage:
        index = SnapshotIndex.build(snapshots)
        snapshot = index.lookup((Provider.STOCKX, "prod-1"), "9", "GBP")
    """

    def __init__(self, latest: dict[SnapshotKey, PriceSnapshot]) -> None:
        self._latest = dict(latest)

    @classmethod
    def build(cls, snapshots: Iterable[PriceSnapshot]) -> SnapshotIndex:
        """Build the index; newer ``captured_at`` wins regardless of input order."""
        latest: dict[SnapshotKey, PriceSnapshot] = {}
        for snapshot in snapshots:
            key = SnapshotKey.for_snapshot(snapshot)
            current = latest.get(key)
            if current is None or snapshot.captured_at > current.captured_at:
                latest[key] = snapshot
        return cls(latest)

    def lookup(
        self,
        catalog_key: CatalogKey,
        size: float | str,
        currency: Currency | str,
    ) -> PriceSnapshot | None:
        """Return the latest snapshot for the key, or None when absent."""
        return self._latest.get(SnapshotKey.for_lookup(catalog_key, size, currency))

    def __len__(self) -> int:
        return len(self._latest)

    def __contains__(self, key: object) -> bool:
        return key in self._latest


class SnapshotHistory:
    """All snapshots per key, oldest to newest, for trend building."""

    def __init__(self, series: dict[SnapshotKey, list[PriceSnapshot]]) -> None:
        self._series = series

    @classmethod
    def build(cls, snapshots: Iterable[PriceSnapshot]) -> SnapshotHistory:
        series: dict[SnapshotKey, list[PriceSnapshot]] = defaultdict(list)
        for snapshot in snapshots:
            series[SnapshotKey.for_snapshot(snapshot)].append(snapshot)
        return cls({key: sorted(items, key=lambda s: s.captured_at) for key, items in series.items()})

    def series(
        self,
        catalog_key: CatalogKey,
        size: float | str,
        currency: Currency | str,
    ) -> list[PriceSnapshot]:
        return list(self._series.get(SnapshotKey.for_lookup(catalog_key, size, currency), []))
