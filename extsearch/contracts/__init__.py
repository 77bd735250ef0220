"""External search contract v1: shared types for engines, requests, results and telemetry."""

from extsearch.contracts.search_v1 import (
    BoostOptions,
    CommunityData,
    ContentType,
    EngineCapabilities,
    EngineConfig,
    EngineMeta,
    EngineSearchResult,
    EngineStatus,
    PrivacyRating,
    RateLimit,
    ResponseMeta,
    ResultItem,
    RingMember,
    SearchFilters,
    SearchOptions,
    SearchQuery,
    SearchResponse,
)

__all__ = [
    "BoostOptions",
    "CommunityData",
    "ContentType",
    "EngineCapabilities",
    "EngineConfig",
    "EngineMeta",
    "EngineSearchResult",
    "EngineStatus",
    "PrivacyRating",
    "RateLimit",
    "ResponseMeta",
    "ResultItem",
    "RingMember",
    "SearchFilters",
    "SearchOptions",
    "SearchQuery",
    "SearchResponse",
]
