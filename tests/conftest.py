"""Shared test fixtures for the valuation engine."""

import random
import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import Settings
from src.common.models import (
    FxRate,
    InventoryItem,
    PriceSnapshot,
    Provider,
    ProviderMapping,
)
from src.valuation.calculator.fees import FeeSchedule
from src.valuation.fx.converter import CurrencyConverter

CAPTURED_AT = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return PROJECT_ROOT / "tests" / "fixtures"


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of config/settings.yaml and env."""
    return Settings()


@pytest.fixture
def captured_at() -> datetime:
    return CAPTURED_AT


@pytest.fixture
def fx_rates() -> list[FxRate]:
    """GBP-pivot rate table: 1 USD = 0.79 GBP, 1 GBP = 1.18 EUR."""
    return [
        FxRate(as_of=date(2026, 9, 1), rates={"USD": 1.25, "EUR": 1.15}),
        FxRate(as_of=date(2026, 10, 1), rates={"USD": 1 / 0.79, "EUR": 1.18}),
    ]


@pytest.fixture
def converter(fx_rates) -> CurrencyConverter:
    return CurrencyConverter(fx_rates)


@pytest.fixture
def fee_schedule() -> FeeSchedule:
    return FeeSchedule({Provider.STOCKX: 0.10, Provider.ALIAS: 0.095, Provider.EBAY: 0.128})


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def sample_item() -> InventoryItem:
    """UK 9 Jordan 1 bought for 140 + 10 shipping."""
    return InventoryItem(
        id="item-1",
        sku="DZ5485-612",
        brand="Jordan",
        model="Air Jordan 1 Retro High OG",
        colorway="Chicago Lost & Found",
        size="9",
        currency="GBP",
        purchase_price=140.0,
        shipping=10.0,
        purchase_date=date(2026, 9, 15),
    )


@pytest.fixture
def sample_mappings() -> list[ProviderMapping]:
    return [
        ProviderMapping(item_id="item-1", provider="stockx", product_id="sx-aj1-chicago"),
        ProviderMapping(item_id="item-1", provider="alias", product_id="al-4471", catalog_id="al-aj1"),
    ]


@pytest.fixture
def sample_snapshots() -> list[PriceSnapshot]:
    """StockX quotes GBP 120/100; Alias quotes USD 140/115."""
    return [
        PriceSnapshot(
            provider="stockx",
            catalog_id="sx-aj1-chicago",
            size="9",
            currency="GBP",
            lowest_ask=120.0,
            highest_bid=100.0,
            captured_at=CAPTURED_AT,
        ),
        PriceSnapshot(
            provider="alias",
            catalog_id="al-aj1",
            size="9",
            currency="USD",
            lowest_ask=140.0,
            highest_bid=115.0,
            captured_at=CAPTURED_AT,
        ),
    ]
