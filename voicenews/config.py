from __future__ import annotations

import functools
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseModel):
    news_proxy_url: str
    ai_proxy_url: str
    timeout_seconds: float = 15.0
    news_max_articles: int = 10
    ai_prompt_max_chars: int = 5000


class RecognitionSettings(BaseModel):
    vosk_model_path: str | None = None
    vosk_model_path_hi: str | None = None
    sample_rate: int = 16_000
    input_device: str | int | None = None
    restart_debounce_seconds: float = 0.3

    @property
    def model_paths(self) -> dict[str, str]:
        paths: dict[str, str] = {}
        if self.vosk_model_path:
            paths["en"] = self.vosk_model_path
        if self.vosk_model_path_hi:
            paths["hi"] = self.vosk_model_path_hi
        return paths


class SpeechSettings(BaseModel):
    kokoro_url: str | None = None
    kokoro_api_key: str | None = None
    headline_pause_seconds: float = 0.8


class DialogueSettings(BaseModel):
    default_language: str = "en-US"
    selection_strategy: Literal["first", "last"] = "first"


class TelemetrySettings(BaseModel):
    log_level: str = "INFO"
    otlp_endpoint: str | None = None


class UISettings(BaseModel):
    origin: str = "http://localhost:8010"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env", ".env.local"), env_file_encoding="utf-8", extra="ignore")

    NEWS_PROXY_URL: str = "http://localhost:3000/api/gnews"
    AI_PROXY_URL: str = "http://localhost:3000/api/gemini"
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    NEWS_MAX_ARTICLES: int = 10
    AI_PROMPT_MAX_CHARS: int = 5000
    DEFAULT_LANGUAGE: str = "en-US"
    SELECTION_STRATEGY: Literal["first", "last"] = "first"
    VOSK_MODEL_PATH: str | None = None
    VOSK_MODEL_PATH_HI: str | None = None
    AUDIO_SAMPLE_RATE: int = 16_000
    AUDIO_INPUT_DEVICE: str | int | None = None
    RESTART_DEBOUNCE_MS: int = 300
    HEADLINE_PAUSE_SECONDS: float = 0.8
    KOKORO_API_URL: str | None = None
    KOKORO_API_KEY: str | None = None
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    UI_ORIGIN: str = "http://localhost:8010"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    @staticmethod
    def _coerce_device(device: str | int | None) -> str | int | None:
        if isinstance(device, str):
            trimmed = device.strip()
            if not trimmed:
                return None
            if trimmed.isdigit():
                return int(trimmed)
            return trimmed
        return device

    @property
    def gateways(self) -> GatewaySettings:
        return GatewaySettings(
            news_proxy_url=self.NEWS_PROXY_URL,
            ai_proxy_url=self.AI_PROXY_URL,
            timeout_seconds=self.GATEWAY_TIMEOUT_SECONDS,
            news_max_articles=self.NEWS_MAX_ARTICLES,
            ai_prompt_max_chars=self.AI_PROMPT_MAX_CHARS,
        )

    @property
    def recognition(self) -> RecognitionSettings:
        return RecognitionSettings(
            vosk_model_path=self.VOSK_MODEL_PATH,
            vosk_model_path_hi=self.VOSK_MODEL_PATH_HI,
            sample_rate=self.AUDIO_SAMPLE_RATE,
            input_device=self._coerce_device(self.AUDIO_INPUT_DEVICE),
            restart_debounce_seconds=max(self.RESTART_DEBOUNCE_MS, 0) / 1000.0,
        )

    @property
    def speech(self) -> SpeechSettings:
        return SpeechSettings(
            kokoro_url=self.KOKORO_API_URL,
            kokoro_api_key=self.KOKORO_API_KEY,
            headline_pause_seconds=self.HEADLINE_PAUSE_SECONDS,
        )

    @property
    def dialogue(self) -> DialogueSettings:
        return DialogueSettings(
            default_language=self.DEFAULT_LANGUAGE,
            selection_strategy=self.SELECTION_STRATEGY,
        )

    @property
    def telemetry(self) -> TelemetrySettings:
        return TelemetrySettings(log_level=self.LOG_LEVEL, otlp_endpoint=self.OTEL_EXPORTER_OTLP_ENDPOINT)

    @property
    def ui(self) -> UISettings:
        return UISettings(origin=self.UI_ORIGIN)


@functools.lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    return AppSettings()


__all__ = ["AppSettings", "load_settings"]
