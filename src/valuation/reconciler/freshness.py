"""Age-based freshness classification for provider data."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from ...common.models import ensure_utc


class DataFreshness(str, Enum):
    LIVE = "live"
    RECENT = "recent"
    STALE = "stale"


LIVE_MAX_AGE = timedelta(hours=1)
RECENT_MAX_AGE = timedelta(hours=24)


def determine_freshness(
    captured_at: datetime | None,
    as_of: datetime,
    live_max_age: timedelta = LIVE_MAX_AGE,
    recent_max_age: timedelta = RECENT_MAX_AGE,
) -> DataFreshness:
    """Classify data age relative to ``as_of``.

    Missing timestamps are stale. Future timestamps (clock skew) count as
    zero age. Naive timestamps are taken as UTC.
    """
    if captured_at is None:
        return DataFreshness.STALE
    age = max(timedelta(0), ensure_utc(as_of) - ensure_utc(captured_at))
    if age < live_max_age:
        return DataFreshness.LIVE
    if age < recent_max_age:
        return DataFreshness.RECENT
    return DataFreshness.STALE
