"""Input bundle for batch valuation runs."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from ...common.models import (
    CurrencyCode,
    FxRate,
    InventoryItem,
    PriceSnapshot,
    ProviderMapping,
)


class ValuationBundle(BaseModel):
    """Everything one valuation run consumes, as loaded from JSON.

    ``fees`` holds percentages (9.5 = 9.5%) as stored in fee configuration;
    when omitted the configured fee fractions apply.
    """

    items: list[InventoryItem] = Field(default_factory=list)
    mappings: list[ProviderMapping] = Field(default_factory=list)
    snapshots: list[PriceSnapshot] = Field(default_factory=list)
    fx_rates: list[FxRate] = Field(default_factory=list)
    fees: dict[str, float] | None = None
    display_currency: CurrencyCode | None = None
    as_of: datetime | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> ValuationBundle:
        with open(path, encoding="utf-8") as f:
            return cls.model_validate(json.load(f))
