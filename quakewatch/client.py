"""USGS real-time earthquake feed client.

Fetches the USGS GeoJSON summary feeds with exponential-backoff retries,
courtesy rate limiting and an optional ``ResponseCache``, and normalises
the result into ``EarthquakeRecord`` objects.

Usage::

    from quakewatch.client import USGSFeedClient
    from quakewatch.cache import ResponseCache

    with USGSFeedClient(cache=ResponseCache("data/feed-cache.db", ttl=60)) as client:
        records = client.fetch_records("all_day")   # Bay Area only
"""

import logging
import time

import httpx

from quakewatch.cache import ResponseCache
from quakewatch.feed import records_from_geojson

logger = logging.getLogger(__name__)

FEED_BASE = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary"
FEED_URLS = {
    "all_hour": f"{FEED_BASE}/all_hour.geojson",
    "all_day": f"{FEED_BASE}/all_day.geojson",
    "all_week": f"{FEED_BASE}/all_week.geojson",
}
DEFAULT_FEED = "all_day"

# 429 (rate limit) + server errors
DEFAULT_RETRY_ON = frozenset({429, 500, 502, 503, 504})


class USGSFeedClient:
    """HTTP client for the USGS summary feeds.

    Args:
        cache: Optional ``ResponseCache``; when set, feed responses are
            cached under the feed URL's fingerprint. The client closes it.
        timeout: Request timeout in seconds.
        rate_limit_delay: Minimum seconds between requests (0 disables).
        max_retries: Retries on 429/5xx, timeouts and connection errors.
        backoff_base: Backoff delay is ``backoff_base * 2^attempt`` seconds,
            capped at ``backoff_max``.
        user_agent: User-Agent header.
        transport: Optional ``httpx.BaseTransport`` (e.g. ``MockTransport``).
    """

    def __init__(
        self,
        *,
        cache: ResponseCache | None = None,
        timeout: float = 30.0,
        rate_limit_delay: float = 0.5,
        max_retries: int = 3,
        backoff_base: float = 2.0,
        backoff_max: float = 60.0,
        user_agent: str = "quakewatch/0.1",
        transport: httpx.BaseTransport | None = None,
    ):
        self.cache = cache
        self.rate_limit_delay = rate_limit_delay
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max

        self._last_request_time = 0.0
        self._request_count = 0
        self._cache_hits = 0

        client_kwargs = {
            "timeout": timeout,
            "headers": {"User-Agent": user_agent},
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.Client(**client_kwargs)

    def fetch_feed(self, feed: str = DEFAULT_FEED) -> dict:
        """Return the parsed GeoJSON for a summary feed.

        Unknown feed names fall back to ``all_day``.

        Raises:
            httpx.HTTPStatusError: On a non-retryable status or once
                retries are exhausted.
        """
        url = FEED_URLS.get(feed, FEED_URLS[DEFAULT_FEED])
        if self.cache is None:
            return self._fetch_json(url)

        key = ResponseCache.make_key(url)
        if self.cache.has(key):
            self._cache_hits += 1
        return self.cache.get_or_compute(key, lambda: self._fetch_json(url))

    def fetch_records(self, feed: str = DEFAULT_FEED, bay_area_only: bool = True):
        """Fetch a feed and normalise it into deduplicated EarthquakeRecords."""
        data = self.fetch_feed(feed)
        records = records_from_geojson(data, bay_area_only=bay_area_only)
        logger.info(f"Feed {feed}: {len(data.get('features') or [])} features, "
                    f"{len(records)} records kept")
        return records

    @property
    def stats(self) -> dict:
        return {"requests": self._request_count, "cache_hits": self._cache_hits}

    def close(self) -> None:
        if self._http:
            self._http.close()
            self._http = None
        if self.cache:
            self.cache.close()
            self.cache = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _fetch_json(self, url: str) -> dict:
        start = time.time()
        response = self._request_with_retry(url)
        self._request_count += 1
        logger.debug(f"GET {url} -> {response.status_code} in {time.time() - start:.2f}s")
        return response.json()

    def _enforce_rate_limit(self):
        if self.rate_limit_delay <= 0:
            return
        elapsed = time.time() - self._last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self._last_request_time = time.time()

    def _backoff(self, attempt):
        delay = min(self.backoff_base * (2 ** attempt), self.backoff_max)
        time.sleep(delay)

    def _request_with_retry(self, url: str) -> httpx.Response:
        for attempt in range(self.max_retries + 1):
            self._enforce_rate_limit()
            try:
                response = self._http.get(url)
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                if attempt < self.max_retries:
                    logger.warning(f"Request to {url} failed ({exc}), retrying")
                    self._backoff(attempt)
                    continue
                raise

            if response.status_code in DEFAULT_RETRY_ON and attempt < self.max_retries:
                logger.warning(f"USGS returned {response.status_code}, "
                               f"retry {attempt + 1}/{self.max_retries}")
                self._backoff(attempt)
                continue

            response.raise_for_status()
            return response

        raise RuntimeError("Unreachable: retry loop completed without result")
