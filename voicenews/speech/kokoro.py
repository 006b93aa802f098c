from __future__ import annotations

import itertools

import httpx

from voicenews.speech.base import SpeechEngine, SpeechEngineError, SpeechRequest, Voice
from voicenews.speech.playback import AudioPlayback
from voicenews.telemetry.logging import get_logger

# Kokoro voice ids carry their language in the first letter (af_sky, hf_alpha, ...).
VOICE_LANGUAGES: dict[str, str] = {
    "a": "en-US",
    "b": "en-GB",
    "e": "es-ES",
    "f": "fr-FR",
    "h": "hi-IN",
    "i": "it-IT",
    "j": "ja-JP",
    "p": "pt-BR",
    "z": "zh-CN",
}

DEFAULT_VOICE = "af_alloy"


def voice_from_id(voice_id: str) -> Voice:
    return Voice(name=voice_id, language=VOICE_LANGUAGES.get(voice_id[:1].lower(), "en-US"))


class KokoroSpeechEngine(SpeechEngine):
    """Speech through a Kokoro-compatible ``/v1/audio/speech`` endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        playback: AudioPlayback | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(15.0, connect=5.0))
        self._playback = playback or AudioPlayback()
        self._counter = itertools.count(1)
        self._logger = get_logger(__name__)

    @property
    def available(self) -> bool:
        return True

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def voices(self) -> list[Voice]:
        try:
            resp = await self._client.get(f"{self._base_url}/v1/audio/voices", headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SpeechEngineError(f"voice listing failed: {exc}") from exc
        raw = data.get("voices", []) if isinstance(data, dict) else data
        voices: list[Voice] = []
        for item in raw or []:
            voice_id = (item.get("id") or item.get("name")) if isinstance(item, dict) else item
            if isinstance(voice_id, str) and voice_id:
                voices.append(voice_from_id(voice_id))
        return voices

    async def synthesize(self, request: SpeechRequest) -> bytes:
        payload: dict[str, object] = {
            "model": "kokoro",
            "voice": request.voice.name if request.voice else DEFAULT_VOICE,
            "input": request.text,
            "response_format": "wav",
            "language": request.language,
        }
        log_text = request.text if len(request.text) <= 120 else request.text[:120] + "…"
        self._logger.info("kokoro.tts.request", voice=payload["voice"], lang=request.language, text=log_text)
        try:
            async with self._client.stream(
                "POST", f"{self._base_url}/v1/audio/speech", headers=self._headers(), json=payload
            ) as resp:
                resp.raise_for_status()
                chunks: list[bytes] = []
                async for chunk in resp.aiter_bytes():
                    chunks.append(chunk)
                return b"".join(chunks)
        except httpx.HTTPError as exc:
            raise SpeechEngineError(f"synthesis failed: {exc}") from exc

    async def say(self, request: SpeechRequest) -> None:
        audio = await self.synthesize(request)
        await self._playback.play_bytes(audio, tag=f"tts:{next(self._counter)}")

    def stop(self) -> None:
        self._playback.stop()

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["KokoroSpeechEngine", "VOICE_LANGUAGES", "voice_from_id"]
