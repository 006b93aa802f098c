from __future__ import annotations

import asyncio
import io
from typing import Optional

import numpy as np
import sounddevice as sd
import soundfile as sf

from voicenews.speech.base import SpeechEngineError
from voicenews.telemetry.logging import get_logger


class AudioPlayback:
    """Single-channel playback; a new clip or ``stop()`` silences the previous one."""

    def __init__(self) -> None:
        self._current_tag: Optional[str] = None
        self._logger = get_logger(__name__)

    @staticmethod
    def decode(audio: bytes) -> tuple[np.ndarray, int]:
        try:
            with io.BytesIO(audio) as buffer:
                data, samplerate = sf.read(buffer, dtype="float32")
        except RuntimeError as exc:
            raise SpeechEngineError(f"could not decode audio: {exc}") from exc
        return np.asarray(data), int(samplerate)

    async def play_bytes(self, audio: bytes, tag: str) -> float:
        """Decode *audio* and play it, returning once playback ends or is stopped."""
        if not audio:
            self._logger.warning("playback.empty_bytes", tag=tag)
            return 0.0
        data, samplerate = self.decode(audio)
        if samplerate <= 0 or data.size == 0:
            self._logger.warning("playback.invalid_payload", tag=tag, samplerate=samplerate, frames=int(data.size))
            return 0.0

        duration = data.shape[0] / float(samplerate)
        self.stop()
        self._current_tag = tag

        def _play() -> None:
            sd.play(data, samplerate=samplerate, blocking=False)
            sd.wait()

        try:
            await asyncio.to_thread(_play)
        except sd.PortAudioError as exc:
            raise SpeechEngineError(f"playback failed: {exc}") from exc
        finally:
            if self._current_tag == tag:
                self._current_tag = None
        return max(duration, 0.0)

    def stop(self) -> None:
        if self._current_tag is not None:
            self._logger.debug("playback.stop", tag=self._current_tag)
        sd.stop()
        self._current_tag = None

    def current_tag(self) -> Optional[str]:
        return self._current_tag


__all__ = ["AudioPlayback"]
