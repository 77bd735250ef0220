"""Engine registry: configured adapters, priority ordering, breaker-aware eligibility.

The registry owns the circuit breaker store. The orchestrator reports failures
through ``record_failure``; only ``get_eligible`` reads the breaker.
"""

import logging

from extsearch.contracts.search_v1 import EngineConfig, EngineStatus
from extsearch.core.config import config
from extsearch.search.circuit_breaker import CircuitBreaker
from extsearch.search.engines import (
    BraveSearchEngine,
    MojeekEngine,
    SearchMySiteEngine,
    SearXNGEngine,
)
from extsearch.search.interface import SearchEngine

logger = logging.getLogger(__name__)

_NO_PRIORITY = float("inf")

DEFAULT_CONFIGS: dict[str, EngineConfig] = {
    "searchmysite": EngineConfig(priority=1, timeout_ms=3000, max_results=50),
    "brave": EngineConfig(priority=2, timeout_ms=3000, max_results=20),
    "searxng": EngineConfig(priority=3, timeout_ms=3500, max_results=50),
    "mojeek": EngineConfig(priority=3, timeout_ms=3000, max_results=50),
}


class EngineRegistry:
    """Stores engines with their configs and decides which are eligible."""

    def __init__(self, breaker: CircuitBreaker | None = None) -> None:
        self._engines: dict[str, SearchEngine] = {}
        self._configs: dict[str, EngineConfig] = {}
        self.breaker = breaker or CircuitBreaker(
            threshold=config.breaker_threshold,
            window_seconds=config.breaker_window_seconds,
        )

    def register(self, engine: SearchEngine, engine_config: EngineConfig | None = None) -> None:
        cfg = engine_config or DEFAULT_CONFIGS.get(engine.id) or EngineConfig()
        self._engines[engine.id] = engine
        self._configs[engine.id] = cfg
        logger.info(
            "Registered engine: id=%s enabled=%s priority=%s available=%s",
            engine.id,
            cfg.enabled,
            cfg.priority,
            engine.is_available(),
        )

    def get(self, engine_id: str) -> SearchEngine | None:
        return self._engines.get(engine_id)

    def get_config(self, engine_id: str) -> EngineConfig | None:
        return self._configs.get(engine_id)

    @property
    def engines(self) -> dict[str, SearchEngine]:
        return dict(self._engines)

    def get_enabled(self) -> list[SearchEngine]:
        """Engines whose config is enabled and whose adapter reports available."""
        return [
            engine
            for engine_id, engine in self._engines.items()
            if self._configs[engine_id].enabled and engine.is_available()
        ]

    def get_by_priority(self) -> list[SearchEngine]:
        def _priority(engine: SearchEngine) -> float:
            p = self._configs[engine.id].priority
            return _NO_PRIORITY if p is None else p

        return sorted(self.get_enabled(), key=_priority)

    def get_eligible(self, allow_list: list[str] | None = None) -> list[SearchEngine]:
        """Engines to dispatch for one request, in priority order.

        Applies the allow-list, drops engines with an open circuit, and keeps
        fallback-only engines only when no primary engine is left.
        """
        engines = self.get_by_priority()
        if allow_list:
            allowed = set(allow_list)
            engines = [e for e in engines if e.id in allowed]

        eligible: list[SearchEngine] = []
        for engine in engines:
            if self.breaker.is_open(engine.id):
                logger.debug(
                    "Skipping %s: %s recent failures",
                    engine.id,
                    self.breaker.failure_count(engine.id),
                )
                continue
            eligible.append(engine)

        primary = [e for e in eligible if not self._configs[e.id].fallback_only]
        return primary or eligible

    def is_tripped(self, engine_id: str) -> bool:
        return self.breaker.is_open(engine_id)

    def record_failure(self, engine_id: str) -> int:
        return self.breaker.record_failure(engine_id)

    def get_status(self) -> list[EngineStatus]:
        return [engine.status() for engine in self._engines.values()]


def create_default_registry(breaker: CircuitBreaker | None = None) -> EngineRegistry:
    """Registry with every shipped adapter; keyed engines stay idle without credentials."""
    registry = EngineRegistry(breaker=breaker)
    registry.register(SearchMySiteEngine())
    registry.register(BraveSearchEngine())
    registry.register(SearXNGEngine())
    registry.register(MojeekEngine())
    return registry
