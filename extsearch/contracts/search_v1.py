"""External Search Contract v1.

Defines the canonical types for:
  - Engine description (EngineCapabilities, RateLimit, EngineConfig, EngineStatus)
  - Search request (SearchQuery, SearchOptions, SearchFilters, BoostOptions)
  - Standardized result payload (ResultItem, EngineSearchResult, SearchResponse)

Engine adapters produce ResultItem lists; the orchestrator merges them into a
SearchResponse whose meta block carries per-engine telemetry.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SCORE = 0.5

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ContentType(StrEnum):
    BLOG = "blog"
    FORUM = "forum"
    PERSONAL = "personal"
    WIKI = "wiki"
    COMMERCIAL = "commercial"
    EXCLUDED = "excluded"  # Mainstream platforms tagged by adapters
    UNKNOWN = "unknown"


class PrivacyRating(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# ---------------------------------------------------------------------------
# Engine description
# ---------------------------------------------------------------------------


class EngineCapabilities(BaseModel):
    """What an engine can answer besides plain web search."""

    search: bool = True
    instant_answer: bool = False
    images: bool = False
    news: bool = False
    suggestions: bool = False


class RateLimit(BaseModel):
    """Published rate-limit hints for an engine."""

    requests_per_minute: int | None = Field(default=None, ge=1)
    requests_per_day: int | None = Field(default=None, ge=1)


class EngineConfig(BaseModel):
    """Per-engine dispatch settings, independent of any query."""

    enabled: bool = True
    priority: int | None = Field(default=None, description="Lower is preferred; None sorts last")
    fallback_only: bool = Field(
        default=False,
        description="Only queried when no primary engine is eligible",
    )
    timeout_ms: int = Field(default=3000, gt=0)
    max_results: int = Field(default=50, ge=1)


class EngineStatus(BaseModel):
    """Operator-facing status row for one registered engine."""

    id: str
    name: str
    available: bool
    requires_auth: bool
    privacy_rating: PrivacyRating


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class SearchQuery(BaseModel):
    """One search request. Immutable for the lifetime of the request."""

    model_config = ConfigDict(frozen=True)

    q: str
    page: int = Field(default=0, ge=0)
    per_page: int = Field(default=20, ge=1, le=100)
    site_scope: str | None = None
    category: str | None = Field(default=None, description="web, news, images, ...")
    safe_search: bool = True


class SearchFilters(BaseModel):
    """Post-merge constraints applied before truncation."""

    indie_only: bool = False
    privacy_only: bool = Field(default=False, description="Keep privacy_score >= 0.7 only")
    no_trackers: bool = False
    content_types: list[ContentType] | None = None


class RingMember(BaseModel):
    domain: str
    trust_score: float | None = Field(default=None, ge=0, le=1)
    is_verified: bool = False

    @field_validator("domain")
    @classmethod
    def _domain_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("ring member domain must not be blank")
        return v


class CommunityData(BaseModel):
    """Read-only community signals supplied by the caller."""

    domain_popularity: dict[str, float] = Field(
        default_factory=dict, description="domain -> popularity in [0, 1]"
    )
    recent_shares: dict[str, int] = Field(
        default_factory=dict, description="url -> share count over the recent window"
    )
    bookmarks: list[str] = Field(default_factory=list, description="Bookmarked URLs")

    @field_validator("domain_popularity")
    @classmethod
    def _popularity_in_range(cls, v: dict[str, float]) -> dict[str, float]:
        for domain, score in v.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"popularity for {domain!r} must be in [0, 1], got {score}")
        return v

    @field_validator("recent_shares")
    @classmethod
    def _shares_non_negative(cls, v: dict[str, int]) -> dict[str, int]:
        for url, count in v.items():
            if count < 0:
                raise ValueError(f"share count for {url!r} must be >= 0, got {count}")
        return v


class BoostOptions(BaseModel):
    ring_members: list[RingMember] | None = None
    community_data: CommunityData | None = None
    enable_recency_boost: bool = False
    recency_max_boost: float = Field(default=0.2, ge=0)
    recency_decay_rate: float = Field(default=0.1, ge=0)


class SearchOptions(BaseModel):
    timeout_ms: int | None = Field(
        default=None, gt=0, description="Overall budget; None uses EXTSEARCH_TIMEOUT_MS"
    )
    enabled_engines: list[str] | None = Field(
        default=None, description="Explicit engine allow-list; None or empty means all"
    )
    filters: SearchFilters | None = None
    boost: BoostOptions | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ResultItem(BaseModel):
    """One result as produced by an engine adapter.

    ``score`` and ``position`` are engine-local until the fusion stage rewrites
    them; always read the score through ``effective_score``.
    """

    engine: str
    url: str
    title: str = ""
    snippet: str | None = None
    score: float | None = Field(default=None, ge=0)
    position: int | None = Field(default=None, ge=0)
    favicon: str | None = None
    published_date: str | None = None
    privacy_score: float | None = Field(default=None, ge=0, le=1)
    is_indie_web: bool | None = None
    has_trackers: bool | None = None
    has_cookies: bool | None = None
    content_type: ContentType = ContentType.UNKNOWN
    engine_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def effective_score(self) -> float:
        return self.score if self.score is not None else DEFAULT_SCORE


class EngineSearchResult(BaseModel):
    """What one adapter call returns."""

    results: list[ResultItem] = Field(default_factory=list)
    total_results: int | None = Field(default=None, ge=0)
    search_time_ms: float | None = None


class EngineMeta(BaseModel):
    """Per-engine telemetry for one search."""

    id: str
    name: str
    success: bool
    latency_ms: float
    result_count: int = 0
    error: str | None = None


class ResponseMeta(BaseModel):
    engines: list[EngineMeta] = Field(default_factory=list)
    total_ms: float = 0.0
    partial: bool = False
    total_results: int = 0
    optimized_query: str = ""
    cache_hit: bool = False

    @property
    def attempted(self) -> int:
        return len(self.engines)

    @property
    def responded(self) -> int:
        return sum(1 for e in self.engines if e.success)

    def sources_summary(self) -> str:
        """Human-readable 'N of M sources responded' line."""
        return f"{self.responded} of {self.attempted} sources responded"


class SearchResponse(BaseModel):
    """Final response from the search orchestrator."""

    query: SearchQuery
    results: list[ResultItem] = Field(default_factory=list)
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
