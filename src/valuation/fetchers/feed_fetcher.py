"""Fetcher for JSON price feeds.

Each provider exposes one JSON document per catalog id:

    {
      "currency": "USD",
      "unit": "minor",
      "size_system": "US",
      "captured_at": "2026-10-01T12:00:00Z",
      "variants": [
        {"size": "10", "lowest_ask": 14000, "highest_bid": 11500}
      ]
    }

Feed-level keys act as defaults for every variant row.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ...common.config import FetcherSettings
from ...common.models import PriceSnapshot, Provider, ProviderMapping
from ..sizing.normalizer import SizeNormalizer
from .base_fetcher import BaseProviderFetcher
from .http_client import HTTPClient

logger = logging.getLogger(__name__)

_FEED_DEFAULT_KEYS = ("currency", "unit", "size_system", "gender", "title", "captured_at")


class JsonFeedFetcher(BaseProviderFetcher):
    """Fetch snapshots for one provider from a JSON feed.

    Usage:
        fetcher = JsonFeedFetcher(Provider.STOCKX, "https://feed.example/{catalog_id}")
        snapshots = fetcher.fetch_snapshots(mappings)
    """

    def __init__(
        self,
        provider: Provider | str,
        url: str,
        settings: FetcherSettings | None = None,
        client: HTTPClient | None = None,
        normalizer: SizeNormalizer | None = None,
    ) -> None:
        super().__init__(normalizer)
        self.provider = Provider(provider)
        self.url = url
        self._client = client or HTTPClient(settings)

    def fetch_snapshots(self, mappings: Iterable[ProviderMapping]) -> list[PriceSnapshot]:
        """Fetch and normalize every mapped catalog id for this provider.

        A catalog id whose feed is unreachable raises; malformed variant
        rows are skipped with a warning.
        """
        snapshots: list[PriceSnapshot] = []
        for catalog_id in self.catalog_ids(mappings):
            payload = self._client.get_json(self._url_for(catalog_id))
            snapshots.extend(self.parse_feed(catalog_id, payload))
        logger.info("[%s] Fetched %d snapshots", self.provider.value, len(snapshots))
        return snapshots

    def parse_feed(self, catalog_id: str, payload: Any) -> list[PriceSnapshot]:
        """Normalize one feed document into snapshots."""
        if isinstance(payload, list):
            defaults: dict[str, Any] = {}
            rows = payload
        else:
            defaults = {k: payload[k] for k in _FEED_DEFAULT_KEYS if k in payload}
            rows = payload.get("variants", [])

        snapshots = []
        for row in rows:
            try:
                snapshots.append(self.build_snapshot(catalog_id, row, defaults))
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "[%s] Skipping malformed row for %s: %s", self.provider.value, catalog_id, exc
                )
        return snapshots

    def _url_for(self, catalog_id: str) -> str:
        if "{catalog_id}" in self.url:
            return self.url.format(catalog_id=catalog_id)
        return f"{self.url.rstrip('/')}/{catalog_id}"
