"""Token-bucket rate limiter for provider feed requests."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Spaces requests to one provider evenly across each minute.

    Slots are reserved under the lock and slept on outside it, so
    concurrent callers queue up instead of bursting.
    """

    def __init__(self, requests_per_minute: int = 60) -> None:
        self._interval = 60.0 / max(requests_per_minute, 1)
        self._next_allowed: float = 0.0
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next request is allowed; return seconds slept."""
        with self._lock:
            now = time.monotonic()
            delay = max(0.0, self._next_allowed - now)
            self._next_allowed = max(now, self._next_allowed) + self._interval
        if delay:
            time.sleep(delay)
        return delay
