from __future__ import annotations

import itertools
import math

import pytest

from extsearch.contracts.search_v1 import ContentType, SearchFilters
from extsearch.search.fusion import (
    FusionRanker,
    balance_results,
    compute_fused_score,
    count_metadata,
    dedupe,
    filter_results,
    fuse_rank,
    reciprocal_rank,
)


def test_dedupe_keeps_higher_score(make_result):
    low = make_result("a", "https://example.com/p", score=0.5)
    high = make_result("b", "https://www.example.com/p/", score=0.8)
    out = dedupe([low, high])
    assert out == [high]


def test_dedupe_tie_prefers_richer_metadata(make_result):
    bare = make_result("a", "https://example.com/p", score=0.5)
    rich = make_result("b", "http://example.com/p", score=0.5, snippet="about p")
    assert dedupe([bare, rich]) == [rich]
    assert dedupe([rich, bare]) == [rich]


def test_dedupe_treats_missing_score_as_default(make_result):
    missing = make_result("a", "https://example.com/p")
    explicit = make_result("b", "https://example.com/p", score=0.5, favicon="f.ico")
    assert dedupe([missing, explicit]) == [explicit]


def test_count_metadata(make_result):
    r = make_result(
        "a",
        "https://example.com",
        snippet="s",
        privacy_score=0.5,
        content_type=ContentType.BLOG,
    )
    assert count_metadata(r) == 3


def test_reciprocal_rank():
    assert reciprocal_rank(1) == pytest.approx(1 / 61)
    assert reciprocal_rank(None) == pytest.approx(1 / 80)


def test_fusion_favors_better_position(make_result):
    top = make_result("a", "https://one.example/x", score=0.5, position=1)
    low = make_result("a", "https://two.example/x", score=0.5, position=10)
    assert [r.url for r in fuse_rank([low, top])] == [top.url, low.url]


def test_indie_multiplier_beats_higher_native_score(make_result):
    indie = make_result("a", "https://indie.example/x", score=0.5, position=1, is_indie_web=True)
    corp = make_result("a", "https://corp.example/x", score=0.6, position=1, is_indie_web=False)
    ranked = fuse_rank([corp, indie])
    assert ranked[0].url == indie.url
    assert ranked[0].score > ranked[1].score


def test_fused_score_formula(make_result):
    a = make_result("a", "https://example.com/p", score=0.4, position=1)
    b = make_result("b", "https://example.com/p/", score=0.8, position=3, snippet="s")
    fused, representative = compute_fused_score([a, b])
    expected = ((0.7 / 61 + 0.3 * 0.4) + (0.7 / 63 + 0.3 * 0.8)) / 2 + math.log(3) * 0.1
    assert fused == pytest.approx(expected)
    assert representative is b


def test_fused_score_privacy_and_tracker_multipliers(make_result):
    base = make_result("a", "https://example.com/p", score=0.5, position=1)
    private = base.model_copy(update={"privacy_score": 0.9})
    tracked = base.model_copy(update={"has_trackers": True})
    plain, _ = compute_fused_score([base])
    assert compute_fused_score([private])[0] == pytest.approx(plain * 1.1)
    assert compute_fused_score([tracked])[0] == pytest.approx(plain * 0.9)


def test_fuse_rank_is_order_independent(make_result):
    items = [
        make_result("a", "https://one.example/", score=0.3, position=2),
        make_result("b", "https://two.example/", score=0.9, position=1),
        make_result("c", "https://three.example/", score=0.6, position=5),
    ]
    expected = [r.url for r in fuse_rank(items)]
    for perm in itertools.permutations(items):
        assert [r.url for r in fuse_rank(list(perm))] == expected


def test_balance_interleaves_engines(make_result):
    a = [make_result("a", f"https://a.example/{i}", score=s) for i, s in enumerate((0.7, 0.9, 0.8))]
    b = [make_result("b", "https://b.example/0", score=0.5)]
    ranked = balance_results(a + b)
    assert [(r.engine, r.score) for r in ranked] == [
        ("a", 0.9),
        ("b", 0.5),
        ("a", 0.8),
        ("a", 0.7),
    ]


def test_balance_is_order_independent(make_result):
    items = [
        make_result("a", "https://a.example/1", score=0.6),
        make_result("b", "https://b.example/1", score=0.6),
        make_result("a", "https://a.example/2", score=0.4),
        make_result("c", "https://c.example/1", score=0.9),
    ]
    expected = [r.url for r in balance_results(items)]
    assert expected[0] == "https://c.example/1"
    for perm in itertools.permutations(items):
        assert [r.url for r in balance_results(list(perm))] == expected


def test_filter_results(make_result):
    indie = make_result("a", "https://i.example/", is_indie_web=True, privacy_score=0.7)
    tracked = make_result("a", "https://t.example/", has_trackers=True, privacy_score=0.9)
    blog = make_result("a", "https://b.example/", content_type=ContentType.BLOG)
    items = [indie, tracked, blog]

    assert filter_results(items, None) == items
    assert filter_results(items, SearchFilters(indie_only=True)) == [indie]
    assert filter_results(items, SearchFilters(privacy_only=True)) == [indie, tracked]
    assert filter_results(items, SearchFilters(no_trackers=True)) == [indie, blog]
    assert filter_results(items, SearchFilters(content_types=[ContentType.BLOG])) == [blog]


def test_merge_balances_when_several_engines_answered(make_result):
    items = [
        make_result("a", "https://x.example/", score=0.4),
        make_result("b", "https://y.example/", score=0.7),
    ]
    ranked = FusionRanker().merge(items, successful_engines=2)
    assert [(r.url, r.score) for r in ranked] == [
        ("https://y.example/", 0.7),
        ("https://x.example/", 0.4),
    ]


def test_merge_fuses_single_engine_results(make_result):
    items = [make_result("a", "https://x.example/", score=0.4, position=1)]
    ranked = FusionRanker().merge(items, successful_engines=1)
    assert ranked[0].score == pytest.approx(0.7 / 61 + 0.3 * 0.4 + math.log(2) * 0.1)


def test_merge_empty():
    assert FusionRanker().merge([], successful_engines=0) == []
