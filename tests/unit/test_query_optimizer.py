from __future__ import annotations

import pytest

from extsearch.search.query_optimizer import (
    DEFAULT_OPTIONS,
    QueryOptimizerOptions,
    correct_word,
    extract_phrases,
    join_within,
    optimize_query,
    remove_stop_words,
    truncate_at_word,
)


def test_typos_are_corrected():
    assert optimize_query("javscript tutroial") == "javascript tutorial"


def test_correction_keeps_capitalization_and_punctuation():
    assert correct_word("Javscript,") == "Javascript,"
    assert correct_word("unknownword") == "unknownword"


def test_quoted_phrases_are_verbatim():
    assert optimize_query('"javscript rocks" tutroial') == '"javscript rocks" tutorial'


def test_phrases_come_first():
    assert optimize_query('rust "exact phrase"') == '"exact phrase" rust'


def test_phrases_keep_their_quotes_and_spacing():
    assert optimize_query("'exact phrase' rust") == "'exact phrase' rust"
    assert optimize_query('"exact   phrase"  teh') == '"exact   phrase" the'


@pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
def test_empty_query_returns_empty_string(raw: str):
    assert optimize_query(raw) == ""


def test_extract_phrases_handles_single_quotes():
    phrases, remainder = extract_phrases("find 'small web' sites")
    assert phrases == ["'small web'"]
    assert remainder.split() == ["find", "sites"]


def test_apostrophes_are_not_phrases():
    phrases, _ = extract_phrases("don't stop")
    assert phrases == []


def test_stop_words_are_removed_only_when_enabled():
    opts = QueryOptimizerOptions(enable_stop_word_removal=True)
    assert optimize_query("the history of the web", opts) == "history web"
    assert optimize_query("the history of the web") == "the history of the web"


def test_stop_word_removal_keeps_capitalized_and_all_stop_queries():
    assert remove_stop_words(["The", "Who", "of"]) == ["The", "Who"]
    assert remove_stop_words(["the", "of"]) == ["the", "of"]


def test_synonym_expansion_prefers_bigrams():
    opts = QueryOptimizerOptions(enable_synonyms=True)
    assert optimize_query("indie web blog", opts) == (
        "indie web independent web small web blog weblog journal"
    )


def test_operators_are_stripped_for_engines_without_support():
    assert optimize_query("site:example.com rust", DEFAULT_OPTIONS.for_engine("searchmysite")) == "rust"
    assert optimize_query("site:example.com rust", DEFAULT_OPTIONS.for_engine("brave")) == (
        "site:example.com rust"
    )


def test_for_engine_only_changes_target():
    opts = QueryOptimizerOptions(enable_synonyms=True).for_engine("mojeek")
    assert opts.target_engine == "mojeek"
    assert opts.enable_synonyms is True


def test_truncate_at_word_boundary():
    assert truncate_at_word("aaa bbb ccc", 5) == "aaa"
    assert truncate_at_word("aaa bbb ccc", 7) == "aaa bbb"
    assert truncate_at_word("short", 200) == "short"


def test_long_queries_are_truncated():
    query = " ".join(["word"] * 100)
    out = optimize_query(query)
    assert len(out) <= 200
    assert out.endswith("word")


def test_truncation_never_splits_a_quote():
    phrase = '"' + " ".join(["lorem"] * 60) + '"'
    out = optimize_query(f"{phrase} tail")
    assert len(out) <= 200
    assert out.count('"') == 2
    assert out.startswith('"lorem') and out.endswith('lorem"')


def test_join_within_drops_tokens_that_do_not_fit():
    assert join_within(['"a b"', "ccc", "dd"], 9) == '"a b" ccc'
    assert join_within(["'aaa bbb ccc'"], 9) == "'aaa bbb'"
    assert join_within(["abcdefghij"], 4) == "abcd"
