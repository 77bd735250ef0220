"""Search My Site adapter: an index of personal and independent websites."""

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
    with_site_scope,
)
from extsearch.search.interface import SearchEngine

SEARCH_PATH = "/api/v1/search/search"


def _snippet(item: dict) -> str | None:
    fragment = item.get("fragment")
    if isinstance(fragment, list):
        fragment = " ... ".join(str(f) for f in fragment if f)
    return fragment or item.get("description")


class SearchMySiteEngine(SearchEngine):
    id = "searchmysite"
    name = "Search My Site"
    description = "Open source search engine for personal and independent websites"
    privacy_rating = PrivacyRating.EXCELLENT
    capabilities = EngineCapabilities()

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = (base_url or config.searchmysite_url).rstrip("/")

    def is_available(self) -> bool:
        return bool(self.base_url)

    async def search(self, query: SearchQuery) -> EngineSearchResult:
        data = await fetch_json(
            self.id,
            f"{self.base_url}{SEARCH_PATH}",
            params={
                "q": with_site_scope(query.q, query.site_scope),
                "page": str(query.page + 1),
                "resultsperpage": str(query.per_page),
            },
            headers={"Accept": "application/json"},
        )

        try:
            return self._parse(data)
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise malformed_payload(self.id, e) from e

    def _parse(self, data: dict[str, Any]) -> EngineSearchResult:
        results: list[ResultItem] = []
        for item in result_items(data.get("results")):
            url = item_url(item)
            if not url:
                continue
            results.append(
                build_result(
                    self.id,
                    url=url,
                    title=item.get("title"),
                    snippet=_snippet(item),
                    position=len(results) + 1,
                    published_date=item.get("published_date"),
                    # Every indexed site is submitted by its owner.
                    is_indie_web=True,
                    has_trackers=item.get("contains_adverts"),
                    engine_metadata={
                        "author": item.get("author"),
                        "tags": item.get("tags") or [],
                        "domain": item.get("domain"),
                    },
                )
            )
        total = reported_total(data.get("totalresults"))
        return EngineSearchResult(
            results=results,
            total_results=len(results) if total is None else total,
        )
