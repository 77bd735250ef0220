"""Brave Search API adapter.

Free tier allows one request per second; calls are serialized through an
asyncio lock and HTTP 429 answers are retried with a short backoff.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from extsearch.contracts.search_v1 import (
    EngineCapabilities,
    EngineSearchResult,
    PrivacyRating,
    RateLimit,
    ResultItem,
    SearchQuery,
)
from extsearch.core.config import config
from extsearch.search.engines.base import (
    MALFORMED_PAYLOAD_ERRORS,
    as_dict,
    build_result,
    fetch_json,
    item_url,
    malformed_payload,
    result_items,
    section,
    with_site_scope,
)
from extsearch.search.errors import EngineNotConfiguredError, RateLimitedError
from extsearch.search.interface import SearchEngine

logger = logging.getLogger(__name__)

MAX_COUNT = 20
MAX_RETRIES = 5
BACKOFF_BASE_SECONDS = 0.5
BACKOFF_FACTOR = 1.5
BACKOFF_CAP_SECONDS = 2.0


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the ``attempt``-th (0-based) rate-limited call."""
    if attempt == 0:
        return BACKOFF_BASE_SECONDS
    return min(BACKOFF_FACTOR**attempt * BACKOFF_BASE_SECONDS, BACKOFF_CAP_SECONDS)


class BraveSearchEngine(SearchEngine):
    id = "brave"
    name = "Brave Search"
    description = "Independent, privacy-focused search"
    requires_auth = True
    privacy_rating = PrivacyRating.EXCELLENT
    capabilities = EngineCapabilities(news=True)
    rate_limit = RateLimit(requests_per_minute=60, requests_per_day=2000)

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_key = api_key or config.brave_api_key
        self.base_url = (base_url or config.brave_base_url).rstrip("/")
        self._sleep = sleep
        self._clock = clock
        self._rate_lock = asyncio.Lock()
        self._last_request: float | None = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _enforce_rate_limit(self) -> None:
        min_interval = 60.0 / self.rate_limit.requests_per_minute
        async with self._rate_lock:
            if self._last_request is not None:
                wait = min_interval - (self._clock() - self._last_request)
                if wait > 0:
                    await self._sleep(wait)
            self._last_request = self._clock()

    async def search(self, query: SearchQuery) -> EngineSearchResult:
        if not self.api_key:
            raise EngineNotConfiguredError(self.id, "Brave Search API key not configured")
        # Brave rejects any offset > 0; only the first page is served.
        if query.page > 0:
            return EngineSearchResult(results=[], total_results=0, search_time_ms=0)

        for attempt in range(MAX_RETRIES + 1):
            await self._enforce_rate_limit()
            try:
                return await self._perform_search(query)
            except RateLimitedError:
                if attempt == MAX_RETRIES:
                    raise RateLimitedError(
                        self.id,
                        "Brave Search temporarily unavailable - rate limit exceeded",
                    ) from None
                delay = backoff_delay(attempt)
                logger.debug(
                    "Brave rate limited, retry %s/%s in %.2fs",
                    attempt + 1,
                    MAX_RETRIES,
                    delay,
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")

    async def _perform_search(self, query: SearchQuery) -> EngineSearchResult:
        news = query.category == "news"
        params = {
            "q": with_site_scope(query.q, query.site_scope),
            "offset": "0",
            "count": str(min(query.per_page, MAX_COUNT)),
            "safesearch": "strict" if query.safe_search else "off",
            "text_decorations": "false",
            "result_filter": "news" if news else "web",
        }
        data = await fetch_json(
            self.id,
            f"{self.base_url}/web/search",
            params=params,
            headers={
                "Accept": "application/json",
                "Accept-Encoding": "gzip",
                "X-Subscription-Token": self.api_key,
            },
        )

        try:
            return self._parse(data, news)
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise malformed_payload(self.id, e) from e

    def _parse(self, data: dict[str, Any], news: bool) -> EngineSearchResult:
        results: list[ResultItem] = []
        for item in result_items(section(data, "web").get("results")):
            url = item_url(item)
            if not url:
                continue
            results.append(
                build_result(
                    self.id,
                    url=url,
                    title=item.get("title"),
                    snippet=item.get("description"),
                    position=len(results) + 1,
                    published_date=item.get("page_age"),
                    favicon=item.get("favicon"),
                    has_cookies=False,
                    has_trackers=False,
                    engine_metadata={
                        "age": item.get("age"),
                        "family_friendly": item.get("family_friendly"),
                        "thumbnail": as_dict(item.get("thumbnail")).get("src"),
                    },
                )
            )

        if news:
            for item in result_items(section(data, "news").get("results")):
                url = item_url(item)
                if not url:
                    continue
                results.append(
                    build_result(
                        self.id,
                        url=url,
                        title=item.get("title"),
                        snippet=item.get("description"),
                        position=len(results) + 1,
                        published_date=item.get("age"),
                        engine_metadata={
                            "source": item.get("source"),
                            "thumbnail": as_dict(item.get("thumbnail")).get("src"),
                        },
                    )
                )

        # Brave does not report a total count.
        return EngineSearchResult(results=results, total_results=len(results))
