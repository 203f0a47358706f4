"""Base class for provider price fetchers.

Provides shared normalization from raw provider rows into PriceSnapshot:
minor/major unit amounts, provider size systems and capture timestamps.
Provider-specific fetchers inherit and implement fetch_snapshots().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable

from ...common.models import (
    MappingStatus,
    PriceSnapshot,
    Provider,
    ProviderMapping,
    parse_currency,
)
from ..sizing.normalizer import SizeNormalizer, size_key

logger = logging.getLogger(__name__)

UNIT_MAJOR = "major"
UNIT_MINOR = "minor"

# Units per major unit for every supported currency (pence, cents)
MINOR_UNITS_PER_MAJOR = 100


def to_major_units(amount: Any, unit: str = UNIT_MAJOR) -> float | None:
    """Convert a raw amount into major currency units.

    Args:
        amount: Raw amount, or None/"" when the provider has no quote.
        unit: ``"major"`` (pounds) or ``"minor"`` (pence/cents).

    Raises:
        ValueError: If the unit is unknown or the amount is not numeric.
    """
    if amount is None or amount == "":
        return None
    value = float(amount)
    unit = (unit or UNIT_MAJOR).lower()
    if unit == UNIT_MAJOR:
        return value
    if unit == UNIT_MINOR:
        return value / MINOR_UNITS_PER_MAJOR
    raise ValueError(f"Unknown amount unit: {unit!r}")


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime:
    """Parse an ISO-8601 or epoch-seconds timestamp into an aware datetime."""
    if value is None or value == "":
        return default or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class BaseProviderFetcher(ABC):
    """Abstract base for per-provider snapshot fetchers."""

    provider: Provider

    def __init__(self, normalizer: SizeNormalizer | None = None) -> None:
        self._normalizer = normalizer or SizeNormalizer()

    @abstractmethod
    def fetch_snapshots(self, mappings: Iterable[ProviderMapping]) -> list[PriceSnapshot]:
        """Fetch current snapshots for the given mappings. Provider-specific."""
        ...

    def catalog_ids(self, mappings: Iterable[ProviderMapping]) -> list[str]:
        """Unique catalog ids of this provider's healthy mappings, in order."""
        seen: dict[str, None] = {}
        for mapping in mappings:
            if mapping.provider is not self.provider or mapping.status is not MappingStatus.OK:
                continue
            seen.setdefault(mapping.catalog_key[1], None)
        return list(seen)

    def normalize_size(
        self,
        value: Any,
        size_system: str | None = None,
        gender: str | None = None,
        title: str | None = None,
    ) -> str:
        """Map a provider size onto the canonical UK index key."""
        conversion = self._normalizer.to_canonical(
            str(value), size_system, gender=gender, model=title
        )
        if not conversion.confident:
            logger.debug(
                "[%s] Low-confidence size conversion for %r (%s)",
                self.provider.value, value, size_system,
            )
        return size_key(conversion.value)

    def build_snapshot(
        self,
        catalog_id: str,
        row: dict[str, Any],
        defaults: dict[str, Any] | None = None,
    ) -> PriceSnapshot:
        """Build a PriceSnapshot from one raw provider row.

        Row keys override ``defaults`` (feed-level currency, unit, size
        system, gender and capture time).

        Raises:
            ValueError: If the row cannot be normalized.
        """
        merged = {**(defaults or {}), **row}
        if merged.get("size") in (None, ""):
            raise ValueError("Row has no size")
        unit = merged.get("unit", UNIT_MAJOR)
        return PriceSnapshot(
            provider=self.provider,
            catalog_id=str(merged.get("catalog_id") or catalog_id),
            size=self.normalize_size(
                merged.get("size"),
                merged.get("size_system"),
                merged.get("gender"),
                merged.get("title"),
            ),
            currency=parse_currency(merged.get("currency")),
            lowest_ask=to_major_units(merged.get("lowest_ask"), unit),
            highest_bid=to_major_units(merged.get("highest_bid"), unit),
            last_sale=to_major_units(merged.get("last_sale"), unit),
            captured_at=parse_timestamp(merged.get("captured_at")),
        )
