from __future__ import annotations

import regex as re

WORD = re.compile(r"[\p{L}\p{M}\p{N}']+")


def normalize(raw: str | None) -> str:
    """Lowercase and trim a raw transcript. Never fails; ``""`` is valid."""
    if not raw:
        return ""
    return raw.lower().strip()


def tokenize(text: str | None) -> list[str]:
    """Split *text* into word tokens, keeping Devanagari marks inside words."""
    if not text:
        return []
    return [token.strip("'") for token in WORD.findall(text) if token.strip("'")]


__all__ = ["normalize", "tokenize"]
