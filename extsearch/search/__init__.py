"""External search: registry, orchestrator, fusion and boosts over pluggable engines."""

from extsearch.contracts.search_v1 import SearchOptions, SearchQuery, SearchResponse
from extsearch.search.interface import SearchEngine
from extsearch.search.orchestrator import SearchOrchestrator, get_engine_status, run_ext_search
from extsearch.search.registry import EngineRegistry, create_default_registry

__all__ = [
    "EngineRegistry",
    "SearchEngine",
    "SearchOptions",
    "SearchOrchestrator",
    "SearchQuery",
    "SearchResponse",
    "create_default_registry",
    "get_engine_status",
    "run_ext_search",
]
