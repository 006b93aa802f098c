from __future__ import annotations

from pathlib import Path

import pytest

from voicenews.lang.localization import articles_message, localize
from voicenews.lang.normalize import normalize, tokenize
from voicenews.lang.vocab import language_prefix, load_vocabulary, parse_vocabulary


def test_normalize_never_fails() -> None:
    assert normalize(None) == ""
    assert normalize("") == ""
    assert normalize("  Latest NEWS \n") == "latest news"


def test_tokenize_keeps_devanagari_marks() -> None:
    assert tokenize("पाँच नहीं") == ["पाँच", "नहीं"]
    assert tokenize("what's 'new', 42?") == ["what's", "new", "42"]
    assert tokenize(None) == []


def test_language_prefix() -> None:
    assert language_prefix("hi-IN") == "hi"
    assert language_prefix("EN") == "en"
    assert language_prefix(None) == "en"
    assert language_prefix("") == "en"


def test_packaged_vocabulary_shape() -> None:
    vocab = load_vocabulary()
    assert vocab.category_names() == [
        "business",
        "entertainment",
        "general",
        "health",
        "science",
        "sports",
        "technology",
    ]
    assert vocab.default_category == "general"
    assert {"yes", "okay"} <= vocab.yes_words("en-US")
    assert "हाँ" in vocab.yes_words("hi-IN")
    assert "हाँ" not in vocab.yes_words("en-US")
    assert "नहीं" in vocab.no_words("hi")
    assert len(vocab.word_maps("hi-IN")) == 2
    assert len(vocab.word_maps("fr-FR")) == 1


def test_custom_vocabulary_file(tmp_path: Path) -> None:
    path = tmp_path / "vocab.yml"
    path.write_text(
        "\n".join(
            [
                "categories:",
                "  world: [world, global]",
                "default_category: world",
                "languages:",
                "  en:",
                '    "yes": ["yes"]',
                '    "no": ["no"]',
                "    numbers: {one: 1}",
            ]
        ),
        encoding="utf-8",
    )
    vocab = load_vocabulary(path)
    assert vocab.categories == (("world", ("world", "global")),)
    assert vocab.number_words("en") == {"one"}
    assert vocab.fallback_keyword == "news"


def test_invalid_vocabulary() -> None:
    with pytest.raises(ValueError):
        parse_vocabulary({"categories": {}})
    with pytest.raises(ValueError):
        parse_vocabulary({"categories": {"world": ["world"]}, "default_category": "world"})
    with pytest.raises(ValueError):
        parse_vocabulary(
            {
                "categories": {"world": ["world"]},
                "default_category": "sports",
                "languages": {"en": {"yes": ["yes"], "no": ["no"]}},
            }
        )


def test_localize_falls_back_to_english() -> None:
    assert localize("en-US", "ok") == "Okay."
    assert localize("hi-IN", "ok") == "ठीक है।"
    assert localize("hi-IN", "mic_error", code="network") == "Mic error: network"
    assert localize("fr-FR", "resumed") == "Resumed listening."
    assert localize("en-US", "does_not_exist") == ""


def test_articles_message() -> None:
    assert articles_message("en-US", 1) == "Fetched 1 article."
    assert articles_message("en-US", 7) == "Fetched 7 articles."
    assert articles_message("hi-IN", 7) == "7 समाचार मिले।"
