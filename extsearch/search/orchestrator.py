"""External search orchestrator: parallel engine fan-out, fusion and boosts.

Pipeline:
  1. Eligible engines from the registry (priority, allow-list, circuit breaker)
  2. Query optimization (shared text, then once per engine)
  3. Concurrent dispatch, each engine bounded by its own timeout and all of
     them by the global budget
  4. Per-engine outcome capture: failures become telemetry plus a breaker hit
  5. Merge (dedupe -> filter -> balance or fuse), boosts, truncation
"""

import asyncio
import time

from extsearch.contracts.search_v1 import (
    EngineConfig,
    EngineMeta,
    EngineSearchResult,
    EngineStatus,
    ResponseMeta,
    ResultItem,
    SearchOptions,
    SearchQuery,
    SearchResponse,
)
from extsearch.core.config import config
from extsearch.core.logger import logger
from extsearch.search.boost import apply_all_boosts
from extsearch.search.fusion import FusionRanker
from extsearch.search.interface import SearchEngine
from extsearch.search.query_optimizer import (
    DEFAULT_OPTIONS,
    QueryOptimizerOptions,
    optimize_query,
)
from extsearch.search.registry import EngineRegistry, create_default_registry

_default_registry: EngineRegistry | None = None


def get_default_registry() -> EngineRegistry:
    """Process-wide registry with the shipped adapters, built on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry


def _coerce_query(query: SearchQuery | str) -> SearchQuery:
    if isinstance(query, SearchQuery):
        return query
    if isinstance(query, str):
        return SearchQuery(q=query)
    raise TypeError(f"query must be SearchQuery or str, got {type(query).__name__}")


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def _describe_failure(task: asyncio.Task, engine_config: EngineConfig, budget_ms: int) -> str | None:
    """Error message for a finished task, or None when it succeeded."""
    if task.cancelled():
        return f"Cancelled: global timeout of {budget_ms}ms elapsed"
    exc = task.exception()
    if exc is None:
        return None
    if isinstance(exc, TimeoutError):
        return f"Timed out after {engine_config.timeout_ms}ms"
    return str(exc) or type(exc).__name__


class SearchOrchestrator:
    """Runs one federated search across the registry's eligible engines."""

    def __init__(
        self,
        registry: EngineRegistry,
        optimizer_options: QueryOptimizerOptions | None = None,
    ):
        self._registry = registry
        self._optimizer_options = optimizer_options or DEFAULT_OPTIONS
        self._fusion = FusionRanker()

    @property
    def registry(self) -> EngineRegistry:
        return self._registry

    def _eligible_engines(self, allow_list: list[str] | None) -> list[SearchEngine]:
        candidates = self._registry.get_by_priority()
        if allow_list:
            candidates = [e for e in candidates if e.id in set(allow_list)]
        for engine in candidates:
            if self._registry.is_tripped(engine.id):
                logger.engine_skipped(
                    engine.id,
                    f"circuit open ({self._registry.breaker.failure_count(engine.id)} recent failures)",
                )
        return self._registry.get_eligible(allow_list)

    async def _call_engine(
        self,
        engine: SearchEngine,
        query: SearchQuery,
        engine_config: EngineConfig,
        latencies: dict[str, float],
    ) -> EngineSearchResult:
        start = time.monotonic()
        try:
            return await asyncio.wait_for(engine.search(query), engine_config.timeout_ms / 1000)
        finally:
            latencies[engine.id] = _elapsed_ms(start)

    async def _dispatch(
        self,
        engines: list[SearchEngine],
        queries: dict[str, SearchQuery],
        budget_ms: int,
    ) -> tuple[list[asyncio.Task], dict[str, float]]:
        """Run all engines concurrently; pending tasks are cancelled at the budget."""
        latencies: dict[str, float] = {}
        tasks = [
            asyncio.create_task(
                self._call_engine(
                    engine,
                    queries[engine.id],
                    self._registry.get_config(engine.id) or EngineConfig(),
                    latencies,
                ),
                name=f"extsearch:{engine.id}",
            )
            for engine in engines
        ]
        try:
            await asyncio.wait(tasks, timeout=budget_ms / 1000)
        finally:
            # Also reached when the caller cancels search().
            leftover = [t for t in tasks if not t.done()]
            for t in leftover:
                t.cancel()
            if leftover:
                await asyncio.gather(*leftover, return_exceptions=True)
        return tasks, latencies

    async def search(
        self,
        query: SearchQuery | str,
        options: SearchOptions | None = None,
    ) -> SearchResponse:
        """Main search pipeline.

        Never raises for engine failures; they are reported in ``meta.engines``.
        Raises TypeError for a non-query argument and pydantic.ValidationError
        for invalid query values.
        """
        query = _coerce_query(query)
        opts = options or SearchOptions()
        pipeline_start = time.monotonic()

        optimized = optimize_query(query.q, self._optimizer_options)
        logger.query_optimized(query.q, optimized, self._optimizer_options.target_engine)

        engines = self._eligible_engines(opts.enabled_engines)
        logger.search_start(query.q, [e.id for e in engines])
        if not engines or not optimized:
            total_ms = _elapsed_ms(pipeline_start)
            logger.search_done(total_ms, 0, 0, 0, False)
            return SearchResponse(
                query=query,
                meta=ResponseMeta(total_ms=round(total_ms, 1), optimized_query=optimized),
            )

        queries: dict[str, SearchQuery] = {}
        for engine in engines:
            engine_options = self._optimizer_options.for_engine(engine.id)
            engine_q = optimize_query(query.q, engine_options) or optimized
            logger.query_optimized(query.q, engine_q, engine.id)
            queries[engine.id] = query.model_copy(update={"q": engine_q})

        budget_ms = opts.timeout_ms or config.search_timeout_ms
        tasks, latencies = await self._dispatch(engines, queries, budget_ms)

        collected: list[ResultItem] = []
        telemetry: list[EngineMeta] = []
        total_results = 0
        for engine, task in zip(engines, tasks):
            engine_config = self._registry.get_config(engine.id) or EngineConfig()
            latency_ms = round(latencies.get(engine.id, _elapsed_ms(pipeline_start)), 1)
            error = _describe_failure(task, engine_config, budget_ms)
            if error is not None:
                self._registry.record_failure(engine.id)
                logger.engine_result(engine.id, False, latency_ms, 0, error=error)
                telemetry.append(
                    EngineMeta(
                        id=engine.id,
                        name=engine.name,
                        success=False,
                        latency_ms=latency_ms,
                        error=error,
                    )
                )
                continue

            result: EngineSearchResult = task.result()
            capped = result.results[: engine_config.max_results]
            collected.extend(capped)
            total_results += (
                result.total_results if result.total_results is not None else len(result.results)
            )
            logger.engine_result(engine.id, True, latency_ms, len(capped))
            telemetry.append(
                EngineMeta(
                    id=engine.id,
                    name=engine.name,
                    success=True,
                    latency_ms=latency_ms,
                    result_count=len(capped),
                )
            )

        successful = sum(1 for m in telemetry if m.success)
        ranked = self._fusion.merge(collected, successful, opts.filters)
        if opts.boost is not None:
            ranked = apply_all_boosts(ranked, opts.boost)
        final = ranked[: query.per_page]

        meta = ResponseMeta(
            engines=telemetry,
            total_ms=round(_elapsed_ms(pipeline_start), 1),
            partial=any(not m.success for m in telemetry),
            total_results=total_results,
            optimized_query=optimized,
        )
        logger.search_done(meta.total_ms, len(final), meta.responded, meta.attempted, meta.partial)
        return SearchResponse(query=query, results=final, meta=meta)


async def run_ext_search(
    query: SearchQuery | str,
    options: SearchOptions | None = None,
    registry: EngineRegistry | None = None,
) -> SearchResponse:
    """Convenience entry point using the default registry when none is given."""
    orchestrator = SearchOrchestrator(registry or get_default_registry())
    return await orchestrator.search(query, options)


def get_engine_status(registry: EngineRegistry | None = None) -> list[EngineStatus]:
    """Status row for every registered engine, for operators and UIs."""
    return (registry or get_default_registry()).get_status()
