"""HTTP client for provider price feeds with rate limiting and retry."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from ...common.config import FetcherSettings
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class HTTPClient:
    """HTTP client wrapping requests for JSON price feeds.

    Features:
    - Rate limiting (token bucket)
    - Automatic retries with exponential backoff
    - No retry on 4xx other than 429
    """

    BACKOFF_BASE = 2.0

    def __init__(self, settings: FetcherSettings | None = None) -> None:
        self.settings = settings or FetcherSettings()
        self._rate_limiter = RateLimiter(self.settings.rate_limit_rpm)
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a GET request and decode the JSON body.

        Raises:
            requests.RequestException: After all retries are exhausted.
            ValueError: If the body is not valid JSON.
        """
        return self.get(url, params=params, headers=headers).json()

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """Send a GET request with rate limiting and retries.

        Raises:
            requests.RequestException: After all retries are exhausted.
        """
        max_retries = max(self.settings.max_retries, 1)
        last_exc: Exception | None = None
        for attempt in range(max_retries):
            self._rate_limiter.wait()
            try:
                resp = self._session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self.settings.request_timeout,
                )
                resp.raise_for_status()
                return resp

            except requests.RequestException as exc:
                last_exc = exc

                # 4xx other than 429 is permanent
                if (
                    isinstance(exc, requests.HTTPError)
                    and exc.response is not None
                    and 400 <= exc.response.status_code < 500
                    and exc.response.status_code != 429
                ):
                    logger.warning("Request failed (4xx, no retry): %s", exc)
                    raise

                if attempt + 1 >= max_retries:
                    break
                wait_time = self.BACKOFF_BASE ** attempt
                logger.warning(
                    "Request failed (attempt %d/%d): %s, retrying in %.1fs",
                    attempt + 1,
                    max_retries,
                    exc,
                    wait_time,
                )
                time.sleep(wait_time)

        raise last_exc  # type: ignore[misc]

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> HTTPClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
