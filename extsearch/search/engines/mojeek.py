"""Mojeek adapter: independent crawler-based search, keyed API."""

from typing import Any

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
    section,
    with_site_scope,
)
from extsearch.search.errors import EngineNotConfiguredError
from extsearch.search.interface import SearchEngine

MAX_COUNT = 100


class MojeekEngine(SearchEngine):
    id = "mojeek"
    name = "Mojeek"
    description = "Independent search engine with its own index and no tracking"
    requires_auth = True
    privacy_rating = PrivacyRating.EXCELLENT
    capabilities = EngineCapabilities()

    def __init__(self, api_key: str | None = None, base_url: str | None = None) -> None:
        self.api_key = api_key or config.mojeek_api_key
        self.base_url = (base_url or config.mojeek_base_url).rstrip("/")

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: SearchQuery) -> EngineSearchResult:
        if not self.api_key:
            raise EngineNotConfiguredError(self.id, "Mojeek API key not configured")
        count = min(query.per_page, MAX_COUNT)
        data = await fetch_json(
            self.id,
            f"{self.base_url}/search",
            params={
                "q": with_site_scope(query.q, query.site_scope),
                "fmt": "json",
                "api_key": self.api_key,
                "t": str(count),
                "s": str(query.page * count + 1),
                "safe": "1" if query.safe_search else "0",
            },
        )

        try:
            return self._parse(data)
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise malformed_payload(self.id, e) from e

    def _parse(self, data: dict[str, Any]) -> EngineSearchResult:
        body = section(data, "response")
        results: list[ResultItem] = []
        for item in result_items(body.get("results")):
            url = item_url(item)
            if not url:
                continue
            results.append(
                build_result(
                    self.id,
                    url=url,
                    title=item.get("title"),
                    snippet=item.get("desc"),
                    position=len(results) + 1,
                    published_date=item.get("pdate") or item.get("date"),
                    has_trackers=False,
                    engine_metadata={"cached": item.get("cached")},
                )
            )
        total = reported_total(section(body, "head").get("results"))
        if total is None:
            total = len(results)
        return EngineSearchResult(results=results, total_results=total)
