from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from voicenews.orchestrator.events import RecognitionEvent

EventSink = Callable[[RecognitionEvent], None]

RECOVERABLE_ERRORS = frozenset({"no-speech", "aborted"})
PERMISSION_ERRORS = frozenset({"not-allowed", "service-not-allowed"})


class RecognitionEngineError(RuntimeError):
    pass


class MicrophonePermissionError(RecognitionEngineError):
    pass


class RecognitionEngine(ABC):
    """Continuous speech recognizer that reports through an event sink."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Check microphone access before the first capture."""

    @abstractmethod
    async def start(self, language: str, sink: EventSink) -> None:
        """Begin a capture segment; results, end and errors go to *sink*."""

    @abstractmethod
    async def stop(self) -> None:
        """End the current capture segment."""

    async def close(self) -> None:
        await self.stop()
