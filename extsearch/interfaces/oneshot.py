"""One-shot interface: run a single search, print the ranked list, exit."""

from __future__ import annotations

import asyncio
import json

from extsearch.contracts.search_v1 import SearchOptions, SearchResponse
from extsearch.search.orchestrator import get_engine_status, run_ext_search
from extsearch.search.registry import EngineRegistry


def format_response(response: SearchResponse) -> str:
    lines: list[str] = []
    if not response.results:
        lines.append("No results.")
    for i, r in enumerate(response.results, 1):
        tags = [r.engine]
        if r.is_indie_web:
            tags.append("indie")
        lines.append(f"{i}. {r.title}  [{', '.join(tags)}]  score={r.effective_score:.3f}")
        lines.append(f"   {r.url}")
        if r.snippet:
            lines.append(f"   {r.snippet[:200]}")
    meta = response.meta
    lines.append("")
    lines.append(f"{meta.sources_summary()} in {meta.total_ms:.0f}ms")
    for e in meta.engines:
        status = "ok" if e.success else f"failed: {e.error}"
        lines.append(f"  - {e.id}: {e.result_count} results, {e.latency_ms:.0f}ms, {status}")
    return "\n".join(lines)


async def run_oneshot(
    query: str,
    options: SearchOptions | None = None,
    *,
    as_json: bool = False,
    registry: EngineRegistry | None = None,
) -> int:
    text = (query or "").strip()
    if not text:
        print("Error: query must not be empty")
        return 2

    response = await run_ext_search(text, options, registry=registry)
    if as_json:
        print(response.model_dump_json(indent=2))
    else:
        print(format_response(response))
    return 0


def print_engine_status(as_json: bool = False, registry: EngineRegistry | None = None) -> int:
    statuses = get_engine_status(registry)
    if as_json:
        print(json.dumps([s.model_dump(mode="json") for s in statuses], indent=2))
        return 0
    for s in statuses:
        availability = "available" if s.available else "unavailable"
        auth = "key required" if s.requires_auth else "no key"
        print(f"{s.id:<14} {s.name:<16} {availability:<12} {auth:<13} privacy={s.privacy_rating}")
    return 0


def main(query: str, options: SearchOptions | None = None, as_json: bool = False) -> int:
    return asyncio.run(run_oneshot(query, options, as_json=as_json))
