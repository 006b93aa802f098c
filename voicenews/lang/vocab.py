from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_VOCAB_PATH = Path(__file__).resolve().parent / "vocab.yml"
FALLBACK_LANGUAGE = "en"


def language_prefix(language_key: str | None) -> str:
    """``"hi-IN"`` -> ``"hi"``; empty keys fall back to English."""
    if not language_key:
        return FALLBACK_LANGUAGE
    return language_key.split("-")[0].strip().lower() or FALLBACK_LANGUAGE


@dataclass(frozen=True, slots=True)
class LanguageWords:
    yes: tuple[str, ...]
    no: tuple[str, ...]
    numbers: tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class Vocabulary:
    stop_phrases: tuple[str, ...]
    stop_exact: tuple[str, ...]
    pause_phrases: tuple[str, ...]
    resume_phrases: tuple[str, ...]
    read_headlines: tuple[str, ...]
    fallback_keyword: str
    latest: tuple[str, ...]
    categories: tuple[tuple[str, tuple[str, ...]], ...]
    default_category: str
    query_markers: frozenset[str]
    query_stopwords: frozenset[str]
    languages: dict[str, LanguageWords] = field(default_factory=dict)

    def category_names(self) -> list[str]:
        return [name for name, _ in self.categories]

    def word_maps(self, language_key: str | None) -> list[tuple[tuple[str, int], ...]]:
        """Number word maps to scan: English first, then the active language."""
        maps = [self.languages[FALLBACK_LANGUAGE].numbers]
        prefix = language_prefix(language_key)
        if prefix != FALLBACK_LANGUAGE and prefix in self.languages:
            maps.append(self.languages[prefix].numbers)
        return maps

    def number_words(self, language_key: str | None) -> set[str]:
        return {word for mapping in self.word_maps(language_key) for word, _ in mapping}

    def yes_words(self, language_key: str | None) -> set[str]:
        return self._collect(language_key, "yes")

    def no_words(self, language_key: str | None) -> set[str]:
        return self._collect(language_key, "no")

    def _collect(self, language_key: str | None, attr: str) -> set[str]:
        words = set(getattr(self.languages[FALLBACK_LANGUAGE], attr))
        prefix = language_prefix(language_key)
        if prefix in self.languages:
            words.update(getattr(self.languages[prefix], attr))
        return words


def _words(raw: Any, name: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw.lower(),)
    if not isinstance(raw, list):
        raise ValueError(f"vocab entry '{name}' must be a list of strings")
    return tuple(str(item).lower() for item in raw)


def parse_vocabulary(raw: dict[str, Any]) -> Vocabulary:
    commands = raw.get("commands") or {}
    categories_raw = raw.get("categories") or {}
    if not isinstance(categories_raw, dict) or not categories_raw:
        raise ValueError("vocab must declare at least one category")
    categories = tuple((str(name), _words(words, f"categories.{name}")) for name, words in categories_raw.items())

    languages: dict[str, LanguageWords] = {}
    for lang, cfg in (raw.get("languages") or {}).items():
        numbers = cfg.get("numbers") or {}
        languages[str(lang)] = LanguageWords(
            yes=_words(cfg.get("yes"), f"languages.{lang}.yes"),
            no=_words(cfg.get("no"), f"languages.{lang}.no"),
            numbers=tuple((str(word).lower(), int(value)) for word, value in numbers.items()),
        )
    if FALLBACK_LANGUAGE not in languages:
        raise ValueError("vocab must define the English word lists")

    query = raw.get("query") or {}
    default_category = str(raw.get("default_category", "general"))
    if default_category not in dict(categories):
        raise ValueError(f"default category '{default_category}' is not declared")

    return Vocabulary(
        stop_phrases=_words(commands.get("stop_phrases"), "stop_phrases"),
        stop_exact=_words(commands.get("stop_exact"), "stop_exact"),
        pause_phrases=_words(commands.get("pause_phrases"), "pause_phrases"),
        resume_phrases=_words(commands.get("resume_phrases"), "resume_phrases"),
        read_headlines=_words(commands.get("read_headlines"), "read_headlines"),
        fallback_keyword=str(commands.get("fallback_keyword", "news")).lower(),
        latest=_words(raw.get("latest"), "latest"),
        categories=categories,
        default_category=default_category,
        query_markers=frozenset(_words(query.get("markers"), "query.markers")),
        query_stopwords=frozenset(_words(query.get("stopwords"), "query.stopwords")),
        languages=languages,
    )


@functools.lru_cache(maxsize=4)
def load_vocabulary(path: Path = DEFAULT_VOCAB_PATH) -> Vocabulary:
    if not path.exists():
        raise FileNotFoundError(path)
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} must define a mapping")
    return parse_vocabulary(raw)


__all__ = ["LanguageWords", "Vocabulary", "language_prefix", "load_vocabulary", "parse_vocabulary"]
