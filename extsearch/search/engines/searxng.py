"""SearXNG adapter: a primary instance plus optional mirrors tried in order."""

import logging

from extsearch.contracts.search_v1 import (
    EngineCapabilities,
    EngineSearchResult,
    PrivacyRating,
    ResultItem,
    SearchQuery,
)
from extsearch.core.config import config
from extsearch.search.engines.base import (
    MALFORMED_PAYLOAD_ERRORS,
    build_result,
    fetch_json,
    item_url,
    malformed_payload,
    reported_total,
    result_items,
    with_site_scope,
)
from extsearch.search.errors import EngineError, EngineNotConfiguredError
from extsearch.search.interface import SearchEngine

logger = logging.getLogger(__name__)


def _search_endpoint(base_url: str) -> str:
    url = base_url.rstrip("/")
    if not url.endswith("/search"):
        url = url + "/search"
    return url


def _positional_score(index: int) -> float:
    return max(0.5, 1.0 - index * 0.05)


class SearXNGEngine(SearchEngine):
    """SearXNG-backed web search."""

    id = "searxng"
    name = "SearXNG"
    description = "Self-hostable metasearch without tracking"
    privacy_rating = PrivacyRating.EXCELLENT
    capabilities = EngineCapabilities(images=True, news=True)

    def __init__(self, base_url: str | None = None, mirrors: list[str] | None = None) -> None:
        urls = [base_url or config.searxng_url]
        urls.extend(config.searxng_mirrors if mirrors is None else mirrors)
        self._endpoints: list[str] = []
        for u in urls:
            if u and u.strip():
                endpoint = _search_endpoint(u.strip())
                if endpoint not in self._endpoints:
                    self._endpoints.append(endpoint)

    @property
    def endpoints(self) -> list[str]:
        return list(self._endpoints)

    def is_available(self) -> bool:
        return bool(self._endpoints)

    async def search(self, query: SearchQuery) -> EngineSearchResult:
        if not self._endpoints:
            raise EngineNotConfiguredError(self.id, "No SearXNG instance configured")
        params = {
            "q": with_site_scope(query.q, query.site_scope),
            "format": "json",
            "pageno": str(query.page + 1),
            "safesearch": "1" if query.safe_search else "0",
            "categories": query.category or "general",
        }
        last_error: EngineError | None = None
        for endpoint in self._endpoints:
            try:
                data = await fetch_json(self.id, endpoint, params=params)
                try:
                    return self._parse(data, query, endpoint)
                except MALFORMED_PAYLOAD_ERRORS as e:
                    raise malformed_payload(self.id, e) from e
            except EngineError as e:
                logger.warning("SearXNG instance %s failed: %s", endpoint, e)
                last_error = e
        raise EngineError(self.id, f"All SearXNG instances failed; last error: {last_error}")

    def _parse(self, data: dict, query: SearchQuery, endpoint: str) -> EngineSearchResult:
        results: list[ResultItem] = []
        for item in result_items(data.get("results")):
            url = item_url(item)
            if not url:
                continue
            if len(results) >= query.per_page:
                break
            results.append(
                build_result(
                    self.id,
                    url=url,
                    title=item.get("title"),
                    snippet=item.get("content") or item.get("snippet"),
                    position=len(results) + 1,
                    score=_positional_score(len(results)),
                    published_date=item.get("publishedDate"),
                    engine_metadata={
                        "instance": endpoint,
                        "engines": item.get("engines") or [],
                        "category": item.get("category"),
                    },
                )
            )
        # Many instances report 0 when the upstream engines give no estimate.
        total = reported_total(data.get("number_of_results")) or None
        return EngineSearchResult(results=results, total_results=total)
