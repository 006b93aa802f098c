from __future__ import annotations

from voicenews.orchestrator.events import RecognitionEnded, RecognitionError, RecognitionResult
from voicenews.recognition.base import EventSink, RecognitionEngine
from voicenews.telemetry.logging import get_logger


class ManualRecognitionEngine(RecognitionEngine):
    """Engine fed from outside (HTTP text input, tests) instead of a microphone."""

    def __init__(self, permission_granted: bool = True) -> None:
        self.permission_granted = permission_granted
        self.language: str | None = None
        self.starts = 0
        self.stops = 0
        self._sink: EventSink | None = None
        self._logger = get_logger(__name__)

    @property
    def capturing(self) -> bool:
        return self._sink is not None

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def start(self, language: str, sink: EventSink) -> None:
        self.language = language
        self._sink = sink
        self.starts += 1

    async def stop(self) -> None:
        sink, self._sink = self._sink, None
        if sink is None:
            return
        self.stops += 1
        sink(RecognitionEnded())

    def inject(self, transcript: str) -> bool:
        """Deliver a finalized transcript; dropped when no segment is open."""
        if self._sink is None:
            self._logger.debug("manual.inject.dropped", transcript=transcript)
            return False
        self._sink(RecognitionResult(transcript))
        return True

    def end_segment(self) -> None:
        """Simulate the recognizer ending a segment on its own."""
        sink, self._sink = self._sink, None
        if sink is not None:
            sink(RecognitionEnded())

    def fail(self, code: str, message: str = "") -> None:
        if self._sink is not None:
            self._sink(RecognitionError(code=code, message=message))


__all__ = ["ManualRecognitionEngine"]
