from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from voicenews.lang.normalize import normalize


@dataclass(frozen=True, slots=True)
class Utterance:
    raw: str
    normalized: str

    @classmethod
    def from_transcript(cls, raw: str | None) -> "Utterance":
        return cls(raw=raw or "", normalized=normalize(raw))


# Intents


@dataclass(frozen=True, slots=True)
class Stop:
    pass


@dataclass(frozen=True, slots=True)
class Pause:
    pass


@dataclass(frozen=True, slots=True)
class Resume:
    pass


@dataclass(frozen=True, slots=True)
class ReadHeadlines:
    pass


@dataclass(frozen=True, slots=True)
class Summarize:
    index: int


@dataclass(frozen=True, slots=True)
class SelectOrOpen:
    raw_utterance: str


@dataclass(frozen=True, slots=True)
class FetchNews:
    category: str
    query: str | None = None


@dataclass(frozen=True, slots=True)
class Unrecognized:
    text: str


@dataclass(frozen=True, slots=True)
class Confirm:
    affirmative: bool


Intent = Union[Stop, Pause, Resume, ReadHeadlines, Summarize, SelectOrOpen, FetchNews, Unrecognized, Confirm]


# Recognition engine events


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    transcript: str


@dataclass(frozen=True, slots=True)
class RecognitionEnded:
    capture: int = 0


@dataclass(frozen=True, slots=True)
class RecognitionError:
    code: str
    message: str = ""


RecognitionEvent = Union[RecognitionResult, RecognitionEnded, RecognitionError]

UIState = Literal[
    "IDLE",
    "LISTENING",
    "PAUSED",
    "AWAITING_CONFIRMATION",
    "TRANSCRIPT",
    "TOAST",
    "LOADING",
    "ARTICLES",
    "ARTICLE_OUTPUT",
    "OPEN_LINK",
]


__all__ = [
    "Confirm",
    "FetchNews",
    "Intent",
    "Pause",
    "ReadHeadlines",
    "RecognitionEnded",
    "RecognitionError",
    "RecognitionEvent",
    "RecognitionResult",
    "Resume",
    "SelectOrOpen",
    "Stop",
    "Summarize",
    "UIState",
    "Unrecognized",
    "Utterance",
]
