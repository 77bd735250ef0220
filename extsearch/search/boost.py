"""Post-fusion boosts: ring membership, community signals, recency.

Stages run in fixed order (ring -> community -> recency). Each reads the
effective score, caps the new score at MAX_SCORE, and leaves unmatched items
untouched. ``apply_all_boosts`` re-sorts the full list at the end.
"""

import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from extsearch.contracts.search_v1 import BoostOptions, CommunityData, ResultItem, RingMember
from extsearch.search.urls import canonical_key, normalize_url

logger = logging.getLogger(__name__)

MAX_SCORE = 1.0

RING_BASE_MULTIPLIER = 1.25
RING_VERIFIED_BONUS = 0.10
RING_TRUST_BONUS = 0.15

POPULARITY_WEIGHT = 0.10
SHARE_WEIGHT = 0.05
BOOKMARK_BONUS = 0.20

RECENCY_WINDOW_DAYS = 30
RECENCY_MAX_BOOST = 0.2
RECENCY_DECAY_RATE = 0.1


def _with_score(result: ResultItem, score: float) -> ResultItem:
    return result.model_copy(update={"score": min(MAX_SCORE, score)})


def _member_domain(domain: str) -> str:
    return normalize_url(domain).domain


def apply_ring_boost(results: list[ResultItem], ring_members: list[RingMember]) -> list[ResultItem]:
    members = {_member_domain(m.domain): m for m in ring_members}
    if not members:
        return results

    boosted: list[ResultItem] = []
    for r in results:
        member = members.get(normalize_url(r.url).domain)
        if member is None:
            boosted.append(r)
            continue
        multiplier = RING_BASE_MULTIPLIER
        if member.is_verified:
            multiplier += RING_VERIFIED_BONUS
        multiplier += RING_TRUST_BONUS * (member.trust_score or 0.0)
        boosted.append(_with_score(r, r.effective_score * multiplier))
    return boosted


def apply_community_boost(results: list[ResultItem], community: CommunityData) -> list[ResultItem]:
    popularity = {_member_domain(d): p for d, p in community.domain_popularity.items()}
    shares: dict[str, int] = {}
    for url, count in community.recent_shares.items():
        key = canonical_key(url)
        shares[key] = shares.get(key, 0) + count
    bookmarks = {canonical_key(url) for url in community.bookmarks}

    boosted: list[ResultItem] = []
    for r in results:
        normalized = normalize_url(r.url)
        contribution = POPULARITY_WEIGHT * popularity.get(normalized.domain, 0.0)
        share_count = shares.get(normalized.normalized, 0)
        if share_count > 0:
            contribution += math.log10(share_count + 1) * SHARE_WEIGHT
        if normalized.normalized in bookmarks:
            contribution += BOOKMARK_BONUS
        if contribution <= 0:
            boosted.append(r)
            continue
        boosted.append(_with_score(r, r.effective_score * (1 + contribution)))
    return boosted


def parse_published_date(value: str | None) -> datetime | None:
    """ISO 8601 or RFC 2822 date as an aware datetime; None when unparseable."""
    if not value or not value.strip():
        return None
    text = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def apply_recency_boost(
    results: list[ResultItem],
    max_boost: float = RECENCY_MAX_BOOST,
    decay_rate: float = RECENCY_DECAY_RATE,
    now: datetime | None = None,
) -> list[ResultItem]:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    boosted: list[ResultItem] = []
    for r in results:
        published = parse_published_date(r.published_date)
        if published is None:
            boosted.append(r)
            continue
        age_days = (current - published).total_seconds() / 86400
        if age_days < 0 or age_days > RECENCY_WINDOW_DAYS:
            boosted.append(r)
            continue
        bonus = max_boost * math.exp(-decay_rate * age_days)
        boosted.append(_with_score(r, r.effective_score + bonus))
    return boosted


def apply_all_boosts(
    results: list[ResultItem],
    boost: BoostOptions,
    now: datetime | None = None,
) -> list[ResultItem]:
    """Run the requested stages in order and re-sort by score, highest first."""
    boosted = results
    if boost.ring_members:
        boosted = apply_ring_boost(boosted, boost.ring_members)
    if boost.community_data is not None:
        boosted = apply_community_boost(boosted, boost.community_data)
    if boost.enable_recency_boost:
        boosted = apply_recency_boost(
            boosted,
            max_boost=boost.recency_max_boost,
            decay_rate=boost.recency_decay_rate,
            now=now,
        )
    logger.debug(
        "Boosts applied: ring=%s community=%s recency=%s",
        bool(boost.ring_members),
        boost.community_data is not None,
        boost.enable_recency_boost,
    )
    return sorted(boosted, key=lambda r: -r.effective_score)
