import pytest

from extsearch.search.circuit_breaker import CircuitBreaker
from extsearch.search.registry import EngineRegistry, create_default_registry


@pytest.fixture
def live_registry() -> EngineRegistry:
    """Shipped adapters with a private breaker, for e2e/integration suites only."""
    return create_default_registry(breaker=CircuitBreaker())
