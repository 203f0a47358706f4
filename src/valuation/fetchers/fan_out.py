"""Parallel per-provider fetch under a deadline.

One slow or failing provider never blocks the others: every fetcher runs on
its own thread, and whatever has finished when the deadline passes is
returned. Failures are recorded per provider instead of raised.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ...common.models import PriceSnapshot, Provider, ProviderMapping
from .base_fetcher import BaseProviderFetcher

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Snapshots from responding providers plus per-provider failures."""
    snapshots: list[PriceSnapshot] = field(default_factory=list)
    failures: dict[Provider, str] = field(default_factory=dict)
    counts: dict[Provider, int] = field(default_factory=dict)

    @property
    def responded(self) -> list[Provider]:
        return list(self.counts)

    def to_dict(self) -> dict:
        return {
            "snapshot_count": len(self.snapshots),
            "counts": {p.value: n for p, n in self.counts.items()},
            "failures": {p.value: reason for p, reason in self.failures.items()},
        }


def fetch_all(
    fetchers: Sequence[BaseProviderFetcher],
    mappings: Iterable[ProviderMapping],
    provider_timeout: float | None = None,
    deadline: float | None = None,
) -> FetchResult:
    """Run every fetcher in parallel and merge what returns in time.

    Args:
        fetchers: One fetcher per provider.
        mappings: Provider mappings for the items being valued.
        provider_timeout: Seconds any single provider may take.
        deadline: Seconds for the whole fan-out.

    Returns:
        FetchResult; partial results are valid.
    """
    mappings = list(mappings)
    result = FetchResult()
    if not fetchers:
        return result

    # All fetchers start together, so the tighter limit bounds each one
    limits = [t for t in (provider_timeout, deadline) if t is not None]
    timeout = min(limits) if limits else None

    executor = ThreadPoolExecutor(max_workers=len(fetchers), thread_name_prefix="fetch")
    try:
        futures = {
            executor.submit(fetcher.fetch_snapshots, mappings): fetcher.provider
            for fetcher in fetchers
        }
        done, not_done = wait(futures, timeout=timeout)

        for future in done:
            provider = futures[future]
            try:
                snapshots = future.result()
            except Exception as exc:
                logger.warning("[%s] Fetch failed: %s", provider.value, exc)
                result.failures[provider] = str(exc) or type(exc).__name__
                continue
            result.counts[provider] = len(snapshots)
            result.snapshots.extend(snapshots)

        for future in not_done:
            provider = futures[future]
            future.cancel()
            logger.warning("[%s] Fetch timed out after %.1fs", provider.value, timeout)
            result.failures[provider] = "timeout"
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    # Deterministic merge order regardless of completion timing
    result.snapshots.sort(key=lambda s: (s.provider.value, s.catalog_id, s.size, s.currency.value))
    result.counts = dict(sorted(result.counts.items(), key=lambda kv: kv[0].value))
    result.failures = dict(sorted(result.failures.items(), key=lambda kv: kv[0].value))
    logger.info(
        "Fetched %d snapshots from %d providers (%d failed)",
        len(result.snapshots), len(result.counts), len(result.failures),
    )
    return result
