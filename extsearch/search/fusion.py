"""Merge and rank results from several engines.

dedupe -> filter -> balance (several engines answered) or fuse (one engine).
Rankings are independent of engine dispatch order.
"""

import logging
import math
from collections.abc import Iterable

from extsearch.contracts.search_v1 import ContentType, ResultItem, SearchFilters
from extsearch.search.urls import canonical_key

logger = logging.getLogger(__name__)

RRF_K = 60
DEFAULT_POSITION = 20
RRF_WEIGHT = 0.7
NATIVE_WEIGHT = 0.3
MULTI_ENGINE_WEIGHT = 0.1

INDIE_MULTIPLIER = 1.3
PRIVACY_MULTIPLIER = 1.1
TRACKER_MULTIPLIER = 0.9
PRIVACY_THRESHOLD = 0.7


def count_metadata(result: ResultItem) -> int:
    """Number of optional fields that carry information; higher means richer."""
    return sum(
        (
            bool(result.snippet),
            bool(result.favicon),
            bool(result.published_date),
            result.privacy_score is not None,
            result.is_indie_web is not None,
            result.content_type != ContentType.UNKNOWN,
        )
    )


def _group_by_key(results: Iterable[ResultItem]) -> dict[str, list[ResultItem]]:
    groups: dict[str, list[ResultItem]] = {}
    for r in results:
        groups.setdefault(canonical_key(r.url), []).append(r)
    return groups


def dedupe(results: list[ResultItem]) -> list[ResultItem]:
    """One result per canonical URL: highest score wins, then richest metadata."""
    seen: dict[str, ResultItem] = {}
    for r in results:
        key = canonical_key(r.url)
        existing = seen.get(key)
        if existing is None:
            seen[key] = r
        elif r.effective_score > existing.effective_score:
            seen[key] = r
        elif r.effective_score == existing.effective_score and count_metadata(r) > count_metadata(
            existing
        ):
            seen[key] = r
    return list(seen.values())


def reciprocal_rank(position: int | None, k: int = RRF_K) -> float:
    rank = DEFAULT_POSITION if position is None else position
    return 1.0 / (k + rank)


def compute_fused_score(group: list[ResultItem]) -> tuple[float, ResultItem]:
    """Fused score for all results sharing one canonical URL, and the representative."""
    representative = group[0]
    total = 0.0
    for r in group:
        total += RRF_WEIGHT * reciprocal_rank(r.position) + NATIVE_WEIGHT * r.effective_score
        if count_metadata(r) > count_metadata(representative):
            representative = r

    fused = total / len(group)
    fused += math.log(len(group) + 1) * MULTI_ENGINE_WEIGHT

    if representative.is_indie_web:
        fused *= INDIE_MULTIPLIER
    if representative.privacy_score is not None and representative.privacy_score > PRIVACY_THRESHOLD:
        fused *= PRIVACY_MULTIPLIER
    if representative.has_trackers:
        fused *= TRACKER_MULTIPLIER
    return fused, representative


def fuse_rank(results: list[ResultItem]) -> list[ResultItem]:
    """Reciprocal-rank fusion blended with native scores; output carries the fused score."""
    scored: list[tuple[float, str, ResultItem]] = []
    for key, group in _group_by_key(results).items():
        fused, representative = compute_fused_score(group)
        scored.append((fused, key, representative.model_copy(update={"score": fused})))
    scored.sort(key=lambda x: (-x[0], x[1]))
    return [r for _, _, r in scored]


def balance_results(results: list[ResultItem]) -> list[ResultItem]:
    """Round-robin one result per engine per round so no engine crowds out the rest."""
    groups: dict[str, list[ResultItem]] = {}
    for r in results:
        groups.setdefault(r.engine, []).append(r)
    for group in groups.values():
        group.sort(key=lambda r: (-r.effective_score, canonical_key(r.url)))

    engine_order = sorted(groups, key=lambda e: (-groups[e][0].effective_score, e))
    rounds = max((len(g) for g in groups.values()), default=0)

    balanced: list[ResultItem] = []
    for i in range(rounds):
        for engine in engine_order:
            group = groups[engine]
            if i < len(group):
                balanced.append(group[i])
    return balanced


def filter_results(
    results: list[ResultItem], filters: SearchFilters | None = None
) -> list[ResultItem]:
    if filters is None:
        return results
    allowed = set(filters.content_types or [])

    def _keep(r: ResultItem) -> bool:
        if filters.indie_only and not r.is_indie_web:
            return False
        if filters.privacy_only and (r.privacy_score is None or r.privacy_score < PRIVACY_THRESHOLD):
            return False
        if filters.no_trackers and r.has_trackers:
            return False
        if allowed and r.content_type not in allowed:
            return False
        return True

    return [r for r in results if _keep(r)]


class FusionRanker:
    """Runs the merge stage for one search."""

    def merge(
        self,
        results: list[ResultItem],
        successful_engines: int,
        filters: SearchFilters | None = None,
    ) -> list[ResultItem]:
        """Deduplicate, filter, then balance or fuse.

        Args:
            results: Raw results from all engines that answered.
            successful_engines: How many engines answered; above one selects balancing.
            filters: Optional caller constraints.

        Returns:
            Ranked, deduplicated results.
        """
        if not results:
            return []

        deduped = dedupe(results)
        filtered = filter_results(deduped, filters)
        if successful_engines > 1:
            ranked = balance_results(filtered)
            strategy = "balance"
        else:
            ranked = fuse_rank(filtered)
            strategy = "fuse"

        logger.info(
            "Fusion: %s input -> %s deduped -> %s filtered -> %s ranked | strategy=%s",
            len(results),
            len(deduped),
            len(filtered),
            len(ranked),
            strategy,
        )
        return ranked
