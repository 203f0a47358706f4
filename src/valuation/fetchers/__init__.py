"""Fetchers Module - Provider snapshot fetch boundary and parallel fan-out."""

from .base_fetcher import BaseProviderFetcher, to_major_units
from .fan_out import FetchResult, fetch_all
from .feed_fetcher import JsonFeedFetcher
from .http_client import HTTPClient

__all__ = [
    "BaseProviderFetcher",
    "FetchResult",
    "HTTPClient",
    "JsonFeedFetcher",
    "fetch_all",
    "to_major_units",
]
