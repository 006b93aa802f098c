from __future__ import annotations

import asyncio
import contextlib
from typing import Sequence

from voicenews.lang.vocab import language_prefix
from voicenews.speech.base import SpeechEngine, SpeechEngineError, SpeechRequest, Voice
from voicenews.telemetry.logging import get_logger


class SpeechOutputSequencer:
    """Serialises voice feedback so that at most one utterance is audible.

    Every ``speak`` cancels whatever is playing or queued (including a headline
    batch) and schedules the new text as a background task. Callers never wait
    on speech; failures are logged and swallowed so feedback can never break
    the dialogue loop.
    """

    def __init__(self, engine: SpeechEngine, language: str = "en-US", headline_pause: float = 0.8) -> None:
        self._engine = engine
        self._language = language
        self._headline_pause = headline_pause
        self._voices: list[Voice] = []
        self._voice: Voice | None = None
        self._current: asyncio.Task[None] | None = None
        self._batch: asyncio.Task[None] | None = None
        self._logger = get_logger(__name__)

    @property
    def language(self) -> str:
        return self._language

    @property
    def voice(self) -> Voice | None:
        return self._voice

    @property
    def speaking(self) -> bool:
        return any(task is not None and not task.done() for task in (self._current, self._batch))

    async def refresh_voices(self) -> Voice | None:
        if not self._engine.available:
            return None
        try:
            self._voices = await self._engine.voices()
        except SpeechEngineError as exc:
            self._logger.warning("speech.voices.unavailable", error=str(exc))
            self._voices = []
        return self._resolve_voice()

    def set_language(self, language: str) -> Voice | None:
        self._language = language
        return self._resolve_voice()

    def _resolve_voice(self) -> Voice | None:
        prefix = language_prefix(self._language)
        self._voice = next(
            (voice for voice in self._voices if (voice.language or "").lower().startswith(prefix)),
            None,
        )
        self._logger.debug("speech.voice.resolved", language=self._language, voice=getattr(self._voice, "name", None))
        return self._voice

    def speak(self, text: str) -> asyncio.Task[None] | None:
        """Cancel current speech and speak *text*. Returns the playback task."""
        if not self._engine.available or not text:
            return None
        self.cancel()
        self._current = asyncio.get_running_loop().create_task(self._say(text))
        return self._current

    def read_headlines(self, items: Sequence[str]) -> asyncio.Task[None] | None:
        """Speak *items* one after another with a short pause between them."""
        if not self._engine.available or not items:
            return None
        self.cancel()
        self._batch = asyncio.get_running_loop().create_task(self._read_batch(list(items)))
        return self._batch

    def cancel(self) -> None:
        for task in (self._batch, self._current):
            if task is not None and not task.done():
                task.cancel()
        self._batch = None
        self._current = None
        if self._engine.available:
            self._engine.stop()

    async def wait_idle(self) -> None:
        for task in (self._batch, self._current):
            if task is None:
                continue
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _read_batch(self, items: list[str]) -> None:
        for position, text in enumerate(items):
            if position:
                await asyncio.sleep(self._headline_pause)
            self._current = asyncio.get_running_loop().create_task(self._say(text))
            await self._current

    async def _say(self, text: str) -> None:
        request = SpeechRequest(text=text, language=self._language, voice=self._voice)
        try:
            await self._engine.say(request)
        except SpeechEngineError as exc:
            self._logger.warning("speech.say.failed", error=str(exc), text=text[:80])


__all__ = ["SpeechOutputSequencer"]
