"""Concrete search engine adapters."""

from extsearch.search.engines.brave import BraveSearchEngine
from extsearch.search.engines.mojeek import MojeekEngine
from extsearch.search.engines.searchmysite import SearchMySiteEngine
from extsearch.search.engines.searxng import SearXNGEngine

__all__ = [
    "BraveSearchEngine",
    "MojeekEngine",
    "SearchMySiteEngine",
    "SearXNGEngine",
]
