"""CLI entry point for the valuation pipeline.

Usage:
    python -m src.valuation.pipeline.main --input data/bundle.json
    python -m src.valuation.pipeline.main --input data/bundle.json --currency USD --window 30
    python -m src.valuation.pipeline.main --input data/bundle.json --output data/exports/valuations.json

    # Refresh snapshots from the configured provider feeds first:
    python -m src.valuation.pipeline.main --input data/bundle.json --fetch
"""

from __future__ import annotations

import argparse
import logging

from ...common.config import Settings
from ...common.logging import PACKAGE_LOGGER, setup_logging
from ...common.models import Currency
from ..calculator.fees import FeeSchedule
from ..fetchers.fan_out import fetch_all
from ..fetchers.feed_fetcher import JsonFeedFetcher
from .exporter import ValuationExporter
from .models import ValuationBundle
from .pipeline import value_portfolio

# Named explicitly so the logger stays under the package when run with -m
logger = logging.getLogger(f"{PACKAGE_LOGGER}.pipeline.main")


def fetch_fresh_snapshots(bundle: ValuationBundle, settings: Settings) -> list:
    """Fan out to every configured provider feed and return new snapshots."""
    fetcher_settings = settings.fetcher
    fetchers = [
        JsonFeedFetcher(provider, url, fetcher_settings)
        for provider, url in fetcher_settings.feed_urls.items()
    ]
    if not fetchers:
        logger.warning("--fetch given but no provider feed_urls are configured")
        return []
    result = fetch_all(
        fetchers,
        bundle.mappings,
        provider_timeout=fetcher_settings.provider_timeout_seconds,
        deadline=fetcher_settings.deadline_seconds,
    )
    for provider, reason in result.failures.items():
        logger.warning("  %s: no fresh data (%s)", provider.value, reason)
    return result.snapshots


def main(argv: list[str] | None = None) -> None:
    settings = Settings.load()

    parser = argparse.ArgumentParser(description="Valuation Engine: Reconcile & Value Inventory")
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Bundle JSON with items, mappings, snapshots, fx_rates (optional fees, as_of)",
    )
    parser.add_argument(
        "--currency",
        type=str.upper,
        choices=[c.value for c in Currency],
        help=f"Display currency (default: bundle or {settings.display_currency.value})",
    )
    parser.add_argument(
        "--window",
        type=int,
        choices=settings.trend.allowed_windows,
        default=settings.trend.window_size,
        help="Trend window size in points",
    )
    parser.add_argument(
        "--fetch",
        action="store_true",
        help="Fetch fresh snapshots from configured provider feeds before valuing",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output JSON file path",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-step DEBUG detail",
    )

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    bundle = ValuationBundle.from_file(args.input)
    currency = args.currency or bundle.display_currency or settings.display_currency
    fees = FeeSchedule.from_mapping(bundle.fees) if bundle.fees else FeeSchedule.from_settings(settings.fees)

    snapshots = list(bundle.snapshots)
    if args.fetch:
        snapshots.extend(fetch_fresh_snapshots(bundle, settings))

    valuations = value_portfolio(
        bundle.items,
        bundle.mappings,
        snapshots,
        bundle.fx_rates,
        display_currency=currency,
        fee_schedule=fees,
        window_size=args.window,
        as_of=bundle.as_of,
        settings=settings,
    )
    export = ValuationExporter.export(valuations, args.output)

    summary = export["summary"]
    logger.info("=== Portfolio Valuation (%s) ===", export["currency"])
    logger.info(
        "Items: %d (in stock %d, sold %d)",
        summary["item_count"], summary["in_stock_count"], summary["sold_count"],
    )
    logger.info(
        "Estimated value: %.2f, invested: %.2f, unrealised P/L: %.2f (%.2f%%)",
        summary["estimated_value"], summary["invested"], summary["unrealised_pl"], summary["roi_pct"],
    )
    for valuation in valuations.values():
        logger.info(
            "  %s [%s]: market=%.2f (%s), P/L=%s, confidence=%s",
            valuation.full_title or valuation.item_id,
            valuation.item_id,
            valuation.market_price,
            valuation.market_source,
            valuation.profit_loss,
            valuation.confidence,
        )
    if summary["missing_prices_count"]:
        logger.info("Missing prices: %s", ", ".join(summary["missing_items"]))


if __name__ == "__main__":
    main()
