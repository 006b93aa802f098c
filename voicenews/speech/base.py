from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class SpeechEngineError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class Voice:
    name: str
    language: str


@dataclass(frozen=True, slots=True)
class SpeechRequest:
    text: str
    language: str
    voice: Voice | None = None


class SpeechEngine(ABC):
    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether speech output can be produced at all."""

    @abstractmethod
    async def voices(self) -> list[Voice]:
        """List the synthetic voices the engine offers."""

    @abstractmethod
    async def say(self, request: SpeechRequest) -> None:
        """Speak *request* and return once it has finished playing."""

    @abstractmethod
    def stop(self) -> None:
        """Silence current playback immediately."""

    async def close(self) -> None:
        return None


class NullSpeechEngine(SpeechEngine):
    """Engine used when no synthesizer is configured; every call is a no-op."""

    @property
    def available(self) -> bool:
        return False

    async def voices(self) -> list[Voice]:
        return []

    async def say(self, request: SpeechRequest) -> None:
        return None

    def stop(self) -> None:
        return None


__all__ = ["NullSpeechEngine", "SpeechEngine", "SpeechEngineError", "SpeechRequest", "Voice"]
