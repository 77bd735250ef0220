import asyncio
from collections.abc import Sequence

import pytest

from extsearch.contracts.search_v1 import (
    EngineConfig,
    EngineSearchResult,
    ResultItem,
    SearchQuery,
)
from extsearch.search.circuit_breaker import CircuitBreaker
from extsearch.search.interface import SearchEngine
from extsearch.search.registry import EngineRegistry


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration/e2e tests that hit live search engines.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: requires network access or engine credentials"
    )
    config.addinivalue_line("markers", "e2e: end-to-end runtime tests")
    config.addinivalue_line("markers", "property: property-based deterministic tests")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: Sequence[pytest.Item],
) -> None:
    run_integration = config.getoption("--run-integration")
    skip_integration = pytest.mark.skip(
        reason="integration/e2e is opt-in; rerun with --run-integration"
    )

    for item in items:
        if "tests/e2e/" in item.nodeid:
            item.add_marker("integration")
            item.add_marker("e2e")
        if (
            item.get_closest_marker("integration") or item.get_closest_marker("e2e")
        ) and not run_integration:
            item.add_marker(skip_integration)


class FakeEngine(SearchEngine):
    """In-memory engine: returns canned results, raises, or sleeps."""

    description = "test double"

    def __init__(
        self,
        engine_id: str,
        results: list[ResultItem] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        available: bool = True,
        total_results: int | None = None,
    ) -> None:
        self.id = engine_id
        self.name = f"Fake {engine_id}"
        self._results = results or []
        self._error = error
        self._delay = delay
        self._available = available
        self._total = total_results
        self.queries: list[SearchQuery] = []
        self.cancelled = False

    def is_available(self) -> bool:
        return self._available

    async def search(self, query: SearchQuery) -> EngineSearchResult:
        self.queries.append(query)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error is not None:
            raise self._error
        return EngineSearchResult(results=list(self._results), total_results=self._total)


def _make_result(engine: str, url: str, **fields) -> ResultItem:
    return ResultItem(engine=engine, url=url, title=fields.pop("title", url), **fields)


@pytest.fixture
def fake_engine() -> type[FakeEngine]:
    return FakeEngine


@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def breaker() -> CircuitBreaker:
    return CircuitBreaker(threshold=3, window_seconds=300)


@pytest.fixture
def make_registry(breaker: CircuitBreaker):
    """Factory: registry holding the given engines, each with an optional config."""

    def _make(*engines: SearchEngine, configs: dict[str, EngineConfig] | None = None):
        registry = EngineRegistry(breaker=breaker)
        for engine in engines:
            registry.register(engine, (configs or {}).get(engine.id) or EngineConfig())
        return registry

    return _make
