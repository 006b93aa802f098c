from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

import sounddevice as sd
from vosk import KaldiRecognizer, Model, SetLogLevel  # type: ignore[import]

from voicenews.lang.vocab import FALLBACK_LANGUAGE, language_prefix
from voicenews.orchestrator.events import RecognitionEnded, RecognitionError, RecognitionResult
from voicenews.recognition.base import EventSink, RecognitionEngine, RecognitionEngineError
from voicenews.telemetry.logging import get_logger


class VoskRecognitionEngine(RecognitionEngine):
    """Microphone capture through sounddevice, decoded by a per-language Vosk model.

    A segment ends on its own after ``silence_timeout`` seconds without a final
    result, reported as a ``no-speech`` error followed by an end event.
    """

    def __init__(
        self,
        model_paths: dict[str, str],
        sample_rate: int = 16_000,
        device: str | int | None = None,
        block_ms: int = 100,
        silence_timeout: float = 8.0,
    ) -> None:
        if not model_paths:
            raise ValueError("At least one Vosk model path must be provided.")
        SetLogLevel(-1)
        self._model_paths = dict(model_paths)
        self._models: dict[str, Model] = {}
        self._sample_rate = sample_rate
        self._device = device
        self._blocksize = int(sample_rate * block_ms / 1000)
        self._silence_timeout = silence_timeout
        self._stream: sd.RawInputStream | None = None
        self._task: asyncio.Task[None] | None = None
        self._sink: EventSink | None = None
        self._recognizer: KaldiRecognizer | None = None
        self._logger = get_logger(__name__)

    async def request_permission(self) -> bool:
        try:
            await asyncio.to_thread(
                sd.check_input_settings,
                device=self._device,
                channels=1,
                dtype="int16",
                samplerate=self._sample_rate,
            )
        except (sd.PortAudioError, ValueError) as exc:
            self._logger.warning("vosk.permission.denied", device=self._device, error=str(exc))
            return False
        return True

    def _model_key(self, language: str) -> str:
        prefix = language_prefix(language)
        if prefix in self._model_paths:
            return prefix
        if FALLBACK_LANGUAGE in self._model_paths:
            return FALLBACK_LANGUAGE
        return next(iter(self._model_paths))

    async def _model_for(self, language: str) -> Model:
        key = self._model_key(language)
        model = self._models.get(key)
        if model is None:
            model = await asyncio.to_thread(Model, self._model_paths[key])
            self._models[key] = model
            self._logger.info("vosk.model.loaded", language=key, path=self._model_paths[key])
        return model

    async def start(self, language: str, sink: EventSink) -> None:
        if self._stream is not None:
            return
        model = await self._model_for(language)
        self._recognizer = KaldiRecognizer(model, self._sample_rate)
        loop = asyncio.get_running_loop()
        audio: asyncio.Queue[bytes] = asyncio.Queue(maxsize=256)

        def callback(indata: Any, frames: int, time_info: Any, status: Any) -> None:
            if status:
                self._logger.warning("vosk.capture.status", status=str(status))
            chunk = bytes(indata)
            loop.call_soon_threadsafe(self._offer, audio, chunk)

        try:
            self._stream = sd.RawInputStream(
                samplerate=self._sample_rate,
                blocksize=self._blocksize,
                channels=1,
                dtype="int16",
                device=self._device,
                callback=callback,
            )
            self._stream.start()
        except sd.PortAudioError as exc:
            self._stream = None
            raise RecognitionEngineError(f"could not open microphone: {exc}") from exc

        self._sink = sink
        self._task = asyncio.create_task(self._decode_loop(audio), name=f"vosk-decode:{language}")
        self._logger.info("vosk.capture.started", language=language, device=self._device)

    def _offer(self, audio: asyncio.Queue[bytes], chunk: bytes) -> None:
        try:
            audio.put_nowait(chunk)
        except asyncio.QueueFull:
            self._logger.warning("vosk.capture.overflow")

    async def _decode_loop(self, audio: asyncio.Queue[bytes]) -> None:
        recognizer = self._recognizer
        assert recognizer is not None
        loop = asyncio.get_running_loop()
        last_speech = loop.time()
        while True:
            try:
                chunk = await asyncio.wait_for(audio.get(), timeout=0.5)
            except asyncio.TimeoutError:
                chunk = b""
            if chunk:
                accepted = await asyncio.to_thread(recognizer.AcceptWaveform, chunk)
                if accepted and self._emit_result(recognizer.Result()):
                    last_speech = loop.time()
            if loop.time() - last_speech > self._silence_timeout:
                self._logger.info("vosk.segment.silence", seconds=self._silence_timeout)
                self._emit(RecognitionError(code="no-speech"))
                self._close_stream()
                self._emit(RecognitionEnded())
                self._sink = None
                return

    def _emit_result(self, payload: str) -> bool:
        try:
            text = (json.loads(payload or "{}").get("text") or "").strip()
        except json.JSONDecodeError:
            self._logger.debug("vosk.payload.unparsable", payload=(payload or "")[:120])
            return False
        if not text:
            return False
        self._emit(RecognitionResult(text))
        return True

    def _emit(self, event: Any) -> None:
        if self._sink is not None:
            self._sink(event)

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            with contextlib.suppress(sd.PortAudioError):
                stream.stop()
                stream.close()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._stream is None and self._sink is None:
            return
        self._close_stream()
        if self._recognizer is not None:
            self._emit_result(self._recognizer.FinalResult())
            self._recognizer = None
        self._emit(RecognitionEnded())
        self._sink = None
        self._logger.info("vosk.capture.stopped")


__all__ = ["VoskRecognitionEngine"]
