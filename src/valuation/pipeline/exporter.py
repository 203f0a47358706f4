"""Valuation exporter: JSON output plus portfolio summary.

Output schema:
- currency, generated_at
- summary: in-stock totals (estimated value, invested, unrealised P/L,
  ROI), realised P/L of sold items, missing-price items
- items: one EnrichedValuation dict per item
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path

from ...common.models import ItemStatus
from ..calculator.calculator import MARKET_SOURCE_COST
from ..calculator.models import EnrichedValuation

logger = logging.getLogger(__name__)

IN_STOCK_STATUSES = {ItemStatus.ACTIVE, ItemStatus.LISTED}


def build_summary(valuations: Mapping[str, EnrichedValuation]) -> dict:
    """Portfolio totals over in-stock items.

    Items without a market price count at invested cost, so they add
    nothing to unrealised P/L, and are listed under ``missing_items``.
    """
    in_stock = [v for v in valuations.values() if v.status in IN_STOCK_STATUSES]
    sold = [v for v in valuations.values() if v.status is ItemStatus.SOLD]

    estimated = round(sum(v.current_value for v in in_stock), 2)
    invested = round(sum(v.invested_cost for v in in_stock), 2)
    unrealised = round(estimated - invested, 2)
    roi = round(unrealised / invested * 100, 2) if invested > 0 else 0.0

    realised_values = [v.realized_profit_loss for v in sold if v.realized_profit_loss is not None]
    missing = [v.item_id for v in in_stock if v.market_source == MARKET_SOURCE_COST]

    timestamps = [v.price_as_of for v in valuations.values() if v.price_as_of is not None]
    return {
        "item_count": len(valuations),
        "in_stock_count": len(in_stock),
        "sold_count": len(sold),
        "estimated_value": estimated,
        "invested": invested,
        "unrealised_pl": unrealised,
        "roi_pct": roi,
        "realised_pl": round(sum(realised_values), 2),
        "missing_prices_count": len(missing),
        "missing_items": missing,
        "synthetic_trend_count": sum(1 for v in valuations.values() if v.trend_is_synthetic),
        "prices_as_of": max(timestamps).isoformat() if timestamps else None,
    }


class ValuationExporter:
    """Export valuations to JSON."""

    @staticmethod
    def build_export(valuations: Mapping[str, EnrichedValuation]) -> dict:
        currency = next(iter(valuations.values())).currency.value if valuations else None
        return {
            "currency": currency,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "summary": build_summary(valuations),
            "items": [v.to_dict() for v in valuations.values()],
        }

    @classmethod
    def export(
        cls,
        valuations: Mapping[str, EnrichedValuation],
        output_path: str | Path | None = None,
    ) -> dict:
        """Build the export dict and optionally write it to ``output_path``."""
        export = cls.build_export(valuations)
        if output_path:
            path = Path(output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(export, f, ensure_ascii=False, indent=2, default=str)
            logger.info("Exported %d valuations to %s", len(valuations), path)
        return export
