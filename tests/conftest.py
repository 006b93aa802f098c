from __future__ import annotations

import contextlib
from dataclasses import dataclass

import pytest

from tests.fakes import FakeAIGateway, FakeNewsGateway, FakeSpeechEngine, RecordingUI
from voicenews.orchestrator.policies import DialoguePolicies
from voicenews.orchestrator.state_machine import DialogueOrchestrator
from voicenews.recognition.manual import ManualRecognitionEngine
from voicenews.speech.sequencer import SpeechOutputSequencer


@dataclass
class Harness:
    orchestrator: DialogueOrchestrator
    recognition: ManualRecognitionEngine
    speech_engine: FakeSpeechEngine
    speech: SpeechOutputSequencer
    ui: RecordingUI
    news: FakeNewsGateway
    ai: FakeAIGateway

    async def say(self, transcript: str) -> None:
        """Deliver *transcript* through the event queue and let speech settle."""
        self.orchestrator.submit_transcript(transcript)
        await self.orchestrator.drain()
        await self.speech.wait_idle()

    async def dictate(self, transcript: str) -> bool:
        """Speak *transcript* into the recognition engine; False when no segment is open."""
        accepted = self.recognition.inject(transcript)
        await self.orchestrator.drain()
        await self.speech.wait_idle()
        return accepted

    async def settle(self) -> None:
        await self.orchestrator.wait_for_tasks()
        await self.speech.wait_idle()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def harness_factory():
    @contextlib.asynccontextmanager
    async def build(
        news: FakeNewsGateway | None = None,
        ai: FakeAIGateway | None = None,
        permission_granted: bool = True,
        speech_engine: FakeSpeechEngine | None = None,
    ):
        recognition = ManualRecognitionEngine(permission_granted=permission_granted)
        engine = speech_engine or FakeSpeechEngine()
        speech = SpeechOutputSequencer(engine, headline_pause=0)
        ui = RecordingUI()
        news = news or FakeNewsGateway()
        ai = ai or FakeAIGateway()
        orchestrator = DialogueOrchestrator(
            recognition=recognition,
            speech=speech,
            news=news,
            ai=ai,
            ui=ui,
            policies=DialoguePolicies(headline_pause_seconds=0, restart_debounce_seconds=0.01),
        )
        orchestrator.start_worker()
        try:
            yield Harness(orchestrator, recognition, engine, speech, ui, news, ai)
        finally:
            await orchestrator.shutdown()

    return build
