"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .models import Currency, CurrencyCode, Provider

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class FxSettings(BaseModel):
    """Currency conversion settings."""
    pivot_currency: CurrencyCode = Currency.GBP
    fallback_currencies: list[CurrencyCode] = Field(
        default_factory=lambda: [Currency.USD, Currency.EUR, Currency.GBP]
    )
    max_gap_days: int | None = None


class FeeSettings(BaseModel):
    """Seller fee fractions per provider (0.095 = 9.5%)."""
    seller_fee_pct: dict[Provider, float] = Field(
        default_factory=lambda: {
            Provider.STOCKX: 0.10,
            Provider.ALIAS: 0.095,
            Provider.EBAY: 0.128,
        }
    )

    @field_validator("seller_fee_pct")
    @classmethod
    def _check_fractions(cls, value: dict[Provider, float]) -> dict[Provider, float]:
        for provider, pct in value.items():
            if not 0 <= pct < 1:
                raise ValueError(
                    f"Seller fee for {provider.value} must be a fraction in [0, 1), got {pct}"
                )
        return value


class TrendSettings(BaseModel):
    """Sparkline series settings."""
    window_size: int = 7
    allowed_windows: list[int] = Field(default_factory=lambda: [7, 30])
    jitter_pct: float = Field(default=0.007, ge=0, le=0.007)


class FreshnessSettings(BaseModel):
    """Age thresholds for provider data freshness."""
    live_max_age_seconds: int = 60 * 60
    recent_max_age_seconds: int = 24 * 60 * 60


class FetcherSettings(BaseModel):
    """Settings for the provider fetch boundary."""
    provider_timeout_seconds: float = 10.0
    deadline_seconds: float = 20.0
    request_timeout: int = 30
    rate_limit_rpm: int = 60
    max_retries: int = 3
    feed_urls: dict[Provider, str] = Field(default_factory=dict)


class Settings(BaseModel):
    """Top-level application settings."""
    display_currency: CurrencyCode = Currency.GBP
    fx: FxSettings = Field(default_factory=FxSettings)
    fees: FeeSettings = Field(default_factory=FeeSettings)
    trend: TrendSettings = Field(default_factory=TrendSettings)
    freshness: FreshnessSettings = Field(default_factory=FreshnessSettings)
    fetcher: FetcherSettings = Field(default_factory=FetcherSettings)

    @classmethod
    def load(cls, path: str | Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults.

        Environment variables override the file:
        VALUATION_DISPLAY_CURRENCY, VALUATION_FETCH_DEADLINE,
        VALUATION_REQUEST_TIMEOUT, VALUATION_RATE_LIMIT_RPM.
        """
        settings_path = Path(path) if path else CONFIG_DIR / "settings.yaml"
        data: dict = {}
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        if currency := os.getenv("VALUATION_DISPLAY_CURRENCY"):
            data["display_currency"] = currency
        fetcher = data.setdefault("fetcher", {})
        if deadline := os.getenv("VALUATION_FETCH_DEADLINE"):
            fetcher["deadline_seconds"] = float(deadline)
        if timeout := os.getenv("VALUATION_REQUEST_TIMEOUT"):
            fetcher["request_timeout"] = int(timeout)
        if rpm := os.getenv("VALUATION_RATE_LIMIT_RPM"):
            fetcher["rate_limit_rpm"] = int(rpm)

        return cls(**data)


# Singleton settings instance
settings = Settings.load()
