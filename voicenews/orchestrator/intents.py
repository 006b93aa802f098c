from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Union

from voicenews.lang.normalize import tokenize
from voicenews.lang.vocab import Vocabulary, load_vocabulary
from voicenews.models import Session
from voicenews.orchestrator.events import (
    Confirm,
    FetchNews,
    Intent,
    Pause,
    ReadHeadlines,
    Resume,
    SelectOrOpen,
    Stop,
    Summarize,
    Unrecognized,
    Utterance,
)


class _Drop:
    """Rule outcome: the utterance is consumed without dispatching anything."""

    def __repr__(self) -> str:
        return "DROP"


DROP = _Drop()

RuleOutcome = Union[Intent, _Drop, None]

SUMMARIZE_PATTERN = re.compile(r"summarize (article )?(\d+)")
SELECT_PATTERN = re.compile(r"(select|open)\s*\d+")


@dataclass(frozen=True)
class Rule:
    name: str
    apply: Callable[[Utterance, Session], RuleOutcome]


class IntentClassifier:
    """Ordered keyword/regex rule table. The first rule with an outcome wins."""

    def __init__(self, vocab: Vocabulary | None = None) -> None:
        self._vocab = vocab or load_vocabulary()
        self.rules: tuple[Rule, ...] = (
            Rule("confirmation", self._confirmation),
            Rule("stop", self._stop),
            Rule("pause", self._pause),
            Rule("resume", self._resume),
            Rule("paused_gate", self._paused_gate),
            Rule("read_headlines", self._read_headlines),
            Rule("summarize", self._summarize),
            Rule("select_or_open", self._select_or_open),
            Rule("fetch_news", self._fetch_news),
            Rule("unrecognized", self._unrecognized),
        )

    @property
    def vocab(self) -> Vocabulary:
        return self._vocab

    def classify(self, utterance: Utterance, session: Session) -> Intent | None:
        """Return the intent for *utterance*, or ``None`` when it is ignored."""
        return self.explain(utterance, session)[1]

    def explain(self, utterance: Utterance, session: Session) -> tuple[str, Intent | None]:
        for rule in self.rules:
            outcome = rule.apply(utterance, session)
            if outcome is None:
                continue
            if outcome is DROP:
                return rule.name, None
            return rule.name, outcome  # type: ignore[return-value]
        return "none", None

    def rule(self, name: str) -> Rule:
        for rule in self.rules:
            if rule.name == name:
                return rule
        raise KeyError(name)

    def _confirmation(self, utterance: Utterance, session: Session) -> RuleOutcome:
        if not session.awaiting_confirmation:
            return None
        tokens = set(tokenize(utterance.normalized))
        if tokens & self._vocab.yes_words(session.language_key):
            return Confirm(affirmative=True)
        if tokens & self._vocab.no_words(session.language_key):
            return Confirm(affirmative=False)
        return DROP

    def _stop(self, utterance: Utterance, _: Session) -> RuleOutcome:
        text = utterance.normalized
        if text in self._vocab.stop_exact or any(phrase in text for phrase in self._vocab.stop_phrases):
            return Stop()
        return None

    def _pause(self, utterance: Utterance, _: Session) -> RuleOutcome:
        if any(phrase in utterance.normalized for phrase in self._vocab.pause_phrases):
            return Pause()
        return None

    def _resume(self, utterance: Utterance, _: Session) -> RuleOutcome:
        if any(phrase in utterance.normalized for phrase in self._vocab.resume_phrases):
            return Resume()
        return None

    def _paused_gate(self, _: Utterance, session: Session) -> RuleOutcome:
        return DROP if session.paused else None

    def _read_headlines(self, utterance: Utterance, _: Session) -> RuleOutcome:
        if any(phrase in utterance.normalized for phrase in self._vocab.read_headlines):
            return ReadHeadlines()
        return None

    def _summarize(self, utterance: Utterance, _: Session) -> RuleOutcome:
        match = SUMMARIZE_PATTERN.search(utterance.normalized)
        if match:
            return Summarize(index=int(match.group(2)) - 1)
        return None

    def _select_or_open(self, utterance: Utterance, session: Session) -> RuleOutcome:
        text = utterance.normalized
        if SELECT_PATTERN.search(text):
            return SelectOrOpen(raw_utterance=text)
        if set(tokenize(text)) & self._vocab.number_words(session.language_key):
            return SelectOrOpen(raw_utterance=text)
        return None

    def _fetch_news(self, utterance: Utterance, _: Session) -> RuleOutcome:
        text = utterance.normalized
        matched = (
            any(keyword in text for keyword in self._vocab.latest)
            or any(keyword in text for _, keywords in self._vocab.categories for keyword in keywords)
            or self._vocab.fallback_keyword in text
        )
        if not matched:
            return None
        return FetchNews(category=self.resolve_category(text), query=self.extract_query(text))

    def _unrecognized(self, utterance: Utterance, _: Session) -> RuleOutcome:
        return Unrecognized(text=utterance.normalized)

    def resolve_category(self, text: str) -> str:
        for name, keywords in self._vocab.categories:
            if any(keyword in text for keyword in keywords):
                return name
        return self._vocab.default_category

    def extract_query(self, text: str) -> str | None:
        tokens = tokenize(text)
        if not any(token in self._vocab.query_markers for token in tokens):
            return None
        remaining = [token for token in tokens if token not in self._vocab.query_stopwords]
        return " ".join(remaining) or None


__all__ = ["DROP", "IntentClassifier", "Rule"]
