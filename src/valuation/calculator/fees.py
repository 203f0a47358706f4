"""Per-provider seller fee schedule.

All fee percentages are stored as FRACTIONS (0.095 = 9.5%). Instant-sell
net proceeds always use the fee of the provider that won the bid.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from ...common.config import FeeSettings
from ...common.models import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeSchedule:
    """Seller fee fraction per provider."""

    seller_fee_pct: dict[Provider, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for provider, pct in self.seller_fee_pct.items():
            if not 0 <= pct < 1:
                raise ValueError(
                    f"Seller fee for {provider.value} must be a fraction in [0, 1), got {pct}"
                )

    @classmethod
    def from_settings(cls, fees: FeeSettings) -> FeeSchedule:
        return cls(dict(fees.seller_fee_pct))

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> FeeSchedule:
        """Build a schedule from raw fee configuration.

        Fee stores hold percentages (9.5 = 9.5%). A value between 0 and 1
        already looks like a fraction and is used as-is.
        """
        schedule: dict[Provider, float] = {}
        for key, raw in values.items():
            provider = Provider(str(key).strip().lower())
            pct = float(raw)
            if 0 < pct < 1:
                logger.warning(
                    "Fee for %s=%s looks like a fraction, using as-is", provider.value, raw
                )
            else:
                pct = pct / 100
            schedule[provider] = pct
        return cls(schedule)

    def fee_for(self, provider: Provider | None) -> float | None:
        """Fee fraction for ``provider``; None when unknown or unconfigured."""
        if provider is None:
            return None
        return self.seller_fee_pct.get(provider)

    def to_dict(self) -> dict:
        return {p.value: pct for p, pct in self.seller_fee_pct.items()}
