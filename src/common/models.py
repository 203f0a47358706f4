"""Shared Pydantic data models for the valuation engine.

These models define the data contracts between the external collaborators
(inventory store, provider fetchers, FX rate store) and the engine. All
engine modules import from here. Validation failures are programming or
data-integrity bugs upstream and surface as ``ValueError``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator


# === Enums ===

class Currency(str, Enum):
    """Supported display and settlement currencies."""
    GBP = "GBP"
    USD = "USD"
    EUR = "EUR"


class Provider(str, Enum):
    """Marketplaces that publish price snapshots."""
    STOCKX = "stockx"  # bid/ask exchange
    ALIAS = "alias"    # consignment marketplace
    EBAY = "ebay"      # auction aggregator


class ItemStatus(str, Enum):
    """Lifecycle status of an inventory item."""
    ACTIVE = "active"
    LISTED = "listed"
    SOLD = "sold"
    ARCHIVED = "archived"


class MappingStatus(str, Enum):
    """Health of an item -> provider catalog link."""
    OK = "ok"
    ERROR = "error"
    PENDING = "pending"


class SizeSystem(str, Enum):
    """Shoe sizing systems seen across providers."""
    UK = "UK"
    US = "US"
    EU = "EU"
    JP = "JP"


class Gender(str, Enum):
    """Sizing convention; US offsets differ by gender."""
    MEN = "men"
    WOMEN = "women"


def parse_currency(value: object) -> Currency:
    """Parse a currency code, raising ValueError for anything malformed."""
    if isinstance(value, Currency):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Currency code must be a string, got {value!r}")
    code = value.strip().upper()
    try:
        return Currency(code)
    except ValueError:
        raise ValueError(f"Unsupported currency code: {value!r}") from None


CurrencyCode = Annotated[Currency, BeforeValidator(parse_currency)]


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat a naive timestamp as UTC; aware timestamps pass through."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# === Inventory ===

class InventoryItem(BaseModel):
    """A single item in a user's resale inventory."""
    id: str
    sku: str = ""
    brand: str = ""
    model: str = ""
    colorway: str = ""
    size: str = Field(default="", description="Canonical UK size")
    category: str = "sneakers"
    currency: CurrencyCode = Currency.GBP
    purchase_price: float = Field(ge=0)
    tax: float = Field(default=0.0, ge=0)
    shipping: float = Field(default=0.0, ge=0)
    purchase_date: date | None = None
    status: ItemStatus = ItemStatus.ACTIVE
    manual_override_value: float | None = Field(default=None, ge=0)
    listing_price: float | None = Field(default=None, ge=0)
    sold_price: float | None = Field(default=None, ge=0)

    @property
    def invested_cost(self) -> float:
        return self.purchase_price + self.tax + self.shipping

    @property
    def full_title(self) -> str:
        return " • ".join(part for part in (self.brand, self.model, self.colorway) if part)


class ProviderMapping(BaseModel):
    """Link between one inventory item and one provider's catalog identity."""
    item_id: str
    provider: Provider
    product_id: str
    variant_id: str | None = None
    catalog_id: str | None = None
    match_confidence: float = Field(default=1.0, ge=0, le=1)
    status: MappingStatus = MappingStatus.OK

    @property
    def catalog_key(self) -> tuple[Provider, str]:
        return (self.provider, self.catalog_id or self.product_id)


# === Market data ===

class PriceSnapshot(BaseModel):
    """One provider observation for a (catalog id, size, currency) tuple.

    Amounts are always major currency units (pounds, not pence); fetchers
    normalize before constructing snapshots.
    """

    model_config = {"frozen": True}

    provider: Provider
    catalog_id: str
    size: str
    currency: CurrencyCode
    lowest_ask: float | None = Field(default=None, ge=0)
    highest_bid: float | None = Field(default=None, ge=0)
    last_sale: float | None = Field(default=None, ge=0)
    captured_at: datetime

    @field_validator("captured_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def catalog_key(self) -> tuple[Provider, str]:
        return (self.provider, self.catalog_id)


class FxRate(BaseModel):
    """Date-stamped conversion factors relative to a single pivot currency.

    ``rates`` holds units of each currency per one unit of ``base``
    (e.g. ``{"USD": 1.27}`` means 1 GBP = 1.27 USD). The base currency
    is implicitly 1.0.
    """

    model_config = {"frozen": True}

    as_of: date
    base: CurrencyCode = Currency.GBP
    rates: dict[CurrencyCode, float]

    @model_validator(mode="after")
    def _check_rates(self) -> FxRate:
        for code, rate in self.rates.items():
            if rate <= 0:
                raise ValueError(f"FX rate for {code.value} must be positive, got {rate}")
        self.rates.setdefault(self.base, 1.0)
        return self

    def units_per_base(self, currency: Currency) -> float | None:
        """Units of ``currency`` per one unit of the base, or None if unquoted."""
        return self.rates.get(currency)
