from __future__ import annotations

import re

from voicenews.lang.normalize import tokenize
from voicenews.lang.vocab import Vocabulary, load_vocabulary
from voicenews.orchestrator.policies import DialoguePolicies

DIGITS = re.compile(r"\d+")


class ArticleSelectionResolver:
    """Turn "open 3" / "two" style references into a zero-based article index."""

    def __init__(self, vocab: Vocabulary | None = None, policies: DialoguePolicies | None = None) -> None:
        self._vocab = vocab or load_vocabulary()
        self._policies = policies or DialoguePolicies()

    def candidates(self, normalized: str, language_key: str | None = None) -> list[int]:
        """All referenced numbers as zero-based indices, deduplicated, in scan order.

        Digit runs are scanned first, in the order they appear. Word maps follow,
        English before the active language, each in its declared order.
        """
        found: list[int] = []
        for match in DIGITS.finditer(normalized):
            found.append(int(match.group()) - 1)
        tokens = set(tokenize(normalized))
        for mapping in self._vocab.word_maps(language_key):
            for word, value in mapping:
                if word in tokens:
                    found.append(value - 1)
        return list(dict.fromkeys(found))

    def resolve(self, normalized: str, article_count: int, language_key: str | None = None) -> int | None:
        valid = [index for index in self.candidates(normalized, language_key) if 0 <= index < article_count]
        return self._policies.pick(valid)


__all__ = ["ArticleSelectionResolver"]
