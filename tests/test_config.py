from __future__ import annotations

import pytest

from voicenews.config import AppSettings
from voicenews.telemetry import tracing
from voicenews.telemetry.tracing import configure_tracing
from voicenews.ui.websocket import SessionUIBridge


@pytest.fixture
def anyio_backend():
    return "asyncio"


def test_defaults() -> None:
    settings = AppSettings(_env_file=None)
    assert settings.gateways.news_max_articles == 10
    assert settings.gateways.ai_prompt_max_chars == 5000
    assert settings.recognition.restart_debounce_seconds == pytest.approx(0.3)
    assert settings.recognition.model_paths == {}
    assert settings.dialogue.selection_strategy == "first"
    assert settings.speech.kokoro_url is None
    assert settings.telemetry.otlp_endpoint is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("RESTART_DEBOUNCE_MS", "500")
    monkeypatch.setenv("AUDIO_INPUT_DEVICE", " 3 ")
    monkeypatch.setenv("VOSK_MODEL_PATH", "/models/en")
    monkeypatch.setenv("VOSK_MODEL_PATH_HI", "/models/hi")
    monkeypatch.setenv("SELECTION_STRATEGY", "last")
    settings = AppSettings(_env_file=None)
    assert settings.recognition.restart_debounce_seconds == pytest.approx(0.5)
    assert settings.recognition.input_device == 3
    assert settings.recognition.model_paths == {"en": "/models/en", "hi": "/models/hi"}
    assert settings.dialogue.selection_strategy == "last"


def test_named_input_device(monkeypatch) -> None:
    monkeypatch.setenv("AUDIO_INPUT_DEVICE", "USB Mic")
    assert AppSettings(_env_file=None).recognition.input_device == "USB Mic"


@pytest.mark.anyio("asyncio")
async def test_ui_bridge_keeps_history() -> None:
    bridge = SessionUIBridge(history_size=2)
    await bridge.publish_state("LISTENING", {"language": "en-US"})
    await bridge.toast("Okay.", ms=1500)
    await bridge.publish_state("IDLE")
    assert bridge.history() == [
        {"state": "TOAST", "payload": {"message": "Okay.", "ms": 1500}},
        {"state": "IDLE", "payload": {}},
    ]


def test_tracing_without_endpoint_stays_noop() -> None:
    assert configure_tracing("voicenews-test", None) is None
    assert tracing._configured is False
