from __future__ import annotations

from voicenews.orchestrator.policies import DialoguePolicies
from voicenews.orchestrator.selection import ArticleSelectionResolver


def test_digits_scanned_before_words() -> None:
    resolver = ArticleSelectionResolver()
    assert resolver.candidates("open four or 2") == [1, 3]


def test_first_valid_reference_wins() -> None:
    resolver = ArticleSelectionResolver()
    assert resolver.resolve("open 2 or select 5", article_count=10) == 1
    assert resolver.resolve("open 7 or select 2", article_count=3) == 1


def test_last_strategy() -> None:
    resolver = ArticleSelectionResolver(policies=DialoguePolicies(selection_strategy="last"))
    assert resolver.resolve("open 2 or select 5", article_count=10) == 4


def test_out_of_range_and_missing() -> None:
    resolver = ArticleSelectionResolver()
    assert resolver.resolve("open 0", article_count=3) is None
    assert resolver.resolve("open 4", article_count=3) is None
    assert resolver.resolve("open it", article_count=3) is None
    assert resolver.resolve("open 1", article_count=0) is None


def test_duplicates_collapse() -> None:
    resolver = ArticleSelectionResolver()
    assert resolver.candidates("two 2 two") == [1]


def test_hindi_words_follow_english() -> None:
    resolver = ArticleSelectionResolver()
    assert resolver.candidates("तीन three", "hi-IN") == [2]
    assert resolver.candidates("पांच या दो", "hi-IN") == [1, 4]
    assert resolver.resolve("पाँच", article_count=5, language_key="hi-IN") == 4
    assert resolver.candidates("तीन", "en-US") == []
