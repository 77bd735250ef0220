from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from extsearch.contracts.search_v1 import BoostOptions, CommunityData, RingMember
from extsearch.search.boost import (
    apply_all_boosts,
    apply_community_boost,
    apply_recency_boost,
    apply_ring_boost,
    parse_published_date,
)

NOW = datetime(2026, 1, 31, tzinfo=timezone.utc)
TEN_DAY_BONUS = 0.2 * math.exp(-0.1 * 10)


def test_ring_boost_multiplier(make_result):
    member = make_result("a", "https://www.foo.com/post", score=0.4)
    other = make_result("a", "https://bar.com/post", score=0.4)
    ring = [RingMember(domain="foo.com", trust_score=1.0, is_verified=True)]
    boosted = apply_ring_boost([member, other], ring)
    assert boosted[0].score == pytest.approx(0.4 * 1.5)
    assert boosted[1] is other


def test_ring_boost_caps_at_one(make_result):
    r = make_result("a", "https://foo.com/", score=0.9)
    boosted = apply_ring_boost([r], [RingMember(domain="https://www.foo.com/")])
    assert boosted[0].score == 1.0


def test_ring_boost_uses_default_score(make_result):
    r = make_result("a", "https://foo.com/")
    boosted = apply_ring_boost([r], [RingMember(domain="foo.com", trust_score=0.0)])
    assert boosted[0].score == pytest.approx(0.5 * 1.25)


def test_ring_member_domain_must_not_be_blank():
    with pytest.raises(ValueError):
        RingMember(domain="  ")


def test_community_popularity(make_result):
    r = make_result("a", "https://www.foo.com/x", score=0.5)
    boosted = apply_community_boost([r], CommunityData(domain_popularity={"foo.com": 1.0}))
    assert boosted[0].score == pytest.approx(0.55)


def test_community_shares_match_canonical_url(make_result):
    r = make_result("a", "http://www.foo.com/x/", score=0.5)
    boosted = apply_community_boost([r], CommunityData(recent_shares={"https://foo.com/x": 9}))
    assert boosted[0].score == pytest.approx(0.5 * (1 + math.log10(10) * 0.05))


def test_community_bookmark(make_result):
    r = make_result("a", "http://www.foo.com/x", score=0.5)
    boosted = apply_community_boost([r], CommunityData(bookmarks=["https://foo.com/x/"]))
    assert boosted[0].score == pytest.approx(0.6)


def test_community_without_match_is_untouched(make_result):
    r = make_result("a", "https://bar.com/", score=0.5)
    assert apply_community_boost([r], CommunityData(bookmarks=["https://foo.com/"]))[0] is r


@pytest.mark.parametrize(
    "published",
    [
        "2026-01-21T00:00:00Z",
        "2026-01-21T00:00:00",
        "Wed, 21 Jan 2026 00:00:00 +0000",
    ],
)
def test_recency_boost_accepts_iso_and_rfc2822(make_result, published):
    r = make_result("a", "https://foo.com/", score=0.5, published_date=published)
    boosted = apply_recency_boost([r], now=NOW)
    assert boosted[0].score == pytest.approx(0.5 + TEN_DAY_BONUS)


@pytest.mark.parametrize(
    "published",
    [None, "", "yesterday", "2025-01-01", "2026-03-01T00:00:00Z"],
)
def test_recency_boost_skips_old_future_and_unparseable(make_result, published):
    r = make_result("a", "https://foo.com/", score=0.5, published_date=published)
    assert apply_recency_boost([r], now=NOW)[0] is r


def test_recency_boost_caps_at_one(make_result):
    r = make_result("a", "https://foo.com/", score=0.95, published_date="2026-01-31T00:00:00Z")
    assert apply_recency_boost([r], now=NOW)[0].score == 1.0


def test_parse_published_date_is_aware():
    parsed = parse_published_date("2026-01-21")
    assert parsed == datetime(2026, 1, 21, tzinfo=timezone.utc)
    assert parse_published_date("garbage") is None


def test_apply_all_boosts_resorts(make_result):
    a = make_result("a", "https://a.example/", score=0.6)
    b = make_result("b", "https://b.example/", score=0.5, published_date="2026-01-30T00:00:00Z")
    options = BoostOptions(
        ring_members=[RingMember(domain="b.example")],
        enable_recency_boost=True,
    )
    boosted = apply_all_boosts([a, b], options, now=NOW)
    assert [r.url for r in boosted] == ["https://b.example/", "https://a.example/"]
    assert boosted[0].score == pytest.approx(0.5 * 1.25 + 0.2 * math.exp(-0.1))


def test_apply_all_boosts_without_stages_only_sorts(make_result):
    low = make_result("a", "https://a.example/", score=0.2)
    high = make_result("a", "https://b.example/", score=0.8)
    assert apply_all_boosts([low, high], BoostOptions(), now=NOW) == [high, low]
