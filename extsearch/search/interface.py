"""Standard interface for search engine adapters used by the orchestrator.

All adapters implement SearchEngine and return EngineSearchResult. Cancellation
is asyncio task cancellation: adapters must let ``asyncio.CancelledError``
propagate and report ordinary failures as ``EngineError``.
"""

from abc import ABC, abstractmethod
from typing import ClassVar

from extsearch.contracts.search_v1 import (
    EngineCapabilities,
    EngineSearchResult,
    EngineStatus,
    PrivacyRating,
    RateLimit,
    SearchQuery,
)


class SearchEngine(ABC):
    """Base class for all search engine adapters."""

    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str] = ""
    requires_auth: ClassVar[bool] = False
    privacy_rating: ClassVar[PrivacyRating] = PrivacyRating.GOOD
    capabilities: ClassVar[EngineCapabilities] = EngineCapabilities()
    rate_limit: ClassVar[RateLimit | None] = None

    @abstractmethod
    def is_available(self) -> bool:
        """False when the engine cannot be called (e.g. missing credential)."""

    @abstractmethod
    async def search(self, query: SearchQuery) -> EngineSearchResult:
        """Execute one search and return normalized results."""

    def status(self) -> EngineStatus:
        return EngineStatus(
            id=self.id,
            name=self.name,
            available=self.is_available(),
            requires_auth=self.requires_auth,
            privacy_rating=self.privacy_rating,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
