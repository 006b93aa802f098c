from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from voicenews.config import AppSettings, load_settings
from voicenews.gateways.ai import AIGateway
from voicenews.gateways.news import NewsGateway
from voicenews.orchestrator.intents import IntentClassifier
from voicenews.orchestrator.policies import DialoguePolicies
from voicenews.orchestrator.state_machine import DialogueOrchestrator
from voicenews.recognition.base import RecognitionEngine
from voicenews.recognition.manual import ManualRecognitionEngine
from voicenews.speech.base import NullSpeechEngine, SpeechEngine
from voicenews.speech.sequencer import SpeechOutputSequencer
from voicenews.telemetry.logging import configure_logging, get_logger
from voicenews.telemetry.tracing import configure_tracing
from voicenews.ui.websocket import SessionUIBridge

settings = load_settings()
configure_logging(settings.telemetry.log_level, json=settings.ENVIRONMENT != "local")
configure_tracing("voicenews", settings.telemetry.otlp_endpoint)
logger = get_logger(__name__)

app = FastAPI(title="Voice News")
ui_bridge = SessionUIBridge()

origins = {settings.ui.origin}
if "localhost" in settings.ui.origin:
    origins.add(settings.ui.origin.replace("localhost", "127.0.0.1"))
app.include_router(ui_bridge.router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.on_event("startup")
async def startup_event() -> None:
    app.state.runtime = await bootstrap_runtime()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    runtime = getattr(app.state, "runtime", None)
    if runtime:
        await runtime.shutdown()


def _runtime() -> "Runtime":
    runtime = getattr(app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="runtime unavailable")
    return runtime


class LanguageRequest(BaseModel):
    language: str


class VisibilityRequest(BaseModel):
    visible: bool


class TranscriptRequest(BaseModel):
    text: str


class FetchRequest(BaseModel):
    category: str = "general"
    query: str | None = None


class QuestionRequest(BaseModel):
    question: str


@app.get("/session")
async def session_snapshot() -> dict[str, Any]:
    return _runtime().orchestrator.snapshot()


@app.post("/session/start")
async def session_start() -> dict[str, Any]:
    runtime = _runtime()
    started = await runtime.orchestrator.start()
    logger.info("session.endpoint.start", started=started)
    return {"started": started, **runtime.orchestrator.snapshot()}


@app.post("/session/pause")
async def session_pause() -> dict[str, Any]:
    runtime = _runtime()
    changed = await runtime.orchestrator.pause(announcement="paused")
    return {"changed": changed, **runtime.orchestrator.snapshot()}


@app.post("/session/resume")
async def session_resume() -> dict[str, Any]:
    runtime = _runtime()
    changed = await runtime.orchestrator.resume()
    return {"changed": changed, **runtime.orchestrator.snapshot()}


@app.post("/session/toggle-pause")
async def session_toggle_pause() -> dict[str, Any]:
    runtime = _runtime()
    changed = await runtime.orchestrator.toggle_pause()
    return {"changed": changed, **runtime.orchestrator.snapshot()}


@app.post("/session/stop")
async def session_stop() -> dict[str, Any]:
    runtime = _runtime()
    await runtime.orchestrator.stop()
    logger.info("session.endpoint.stop")
    return runtime.orchestrator.snapshot()


@app.post("/session/language")
async def session_language(req: LanguageRequest) -> dict[str, Any]:
    language = req.language.strip()
    if not language:
        raise HTTPException(status_code=400, detail="language must be non-empty")
    runtime = _runtime()
    await runtime.orchestrator.set_language(language)
    return runtime.orchestrator.snapshot()


@app.post("/session/visibility")
async def session_visibility(req: VisibilityRequest) -> dict[str, Any]:
    runtime = _runtime()
    await runtime.orchestrator.set_visibility(req.visible)
    return runtime.orchestrator.snapshot()


@app.post("/transcript")
async def post_transcript(req: TranscriptRequest) -> dict[str, Any]:
    runtime = _runtime()
    accepted = await runtime.handle_transcript(req.text)
    return {"accepted": accepted, **runtime.orchestrator.snapshot()}


@app.get("/articles")
async def list_articles() -> dict[str, Any]:
    return {"articles": _runtime().orchestrator.articles.to_list()}


@app.post("/news/fetch")
async def fetch_news(req: FetchRequest) -> dict[str, Any]:
    runtime = _runtime()
    applied = await runtime.orchestrator.fetch_news(req.category, req.query or None)
    return {"applied": applied, "articles": runtime.orchestrator.articles.to_list()}


def _article_index(runtime: "Runtime", number: int) -> int:
    if runtime.orchestrator.articles.get(number - 1) is None:
        raise HTTPException(status_code=404, detail=f"no article {number}")
    return number - 1


def _ai_result(number: int, kind: str, text: str | None) -> dict[str, Any]:
    if text is None:
        raise HTTPException(status_code=502, detail=f"{kind} unavailable for article {number}")
    return {"number": number, "kind": kind, "text": text}


@app.post("/articles/{number}/summarize")
async def summarize_article(number: int) -> dict[str, Any]:
    runtime = _runtime()
    text = await runtime.orchestrator.summarize(_article_index(runtime, number))
    return _ai_result(number, "summary", text)


@app.post("/articles/{number}/key-points")
async def article_key_points(number: int) -> dict[str, Any]:
    runtime = _runtime()
    text = await runtime.orchestrator.key_points(_article_index(runtime, number))
    return _ai_result(number, "key_points", text)


@app.post("/articles/{number}/sentiment")
async def article_sentiment(number: int) -> dict[str, Any]:
    runtime = _runtime()
    text = await runtime.orchestrator.sentiment(_article_index(runtime, number))
    return _ai_result(number, "sentiment", text)


@app.post("/articles/{number}/ask")
async def ask_article(number: int, req: QuestionRequest) -> dict[str, Any]:
    question = req.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="question must be non-empty")
    runtime = _runtime()
    text = await runtime.orchestrator.ask(_article_index(runtime, number), question)
    return _ai_result(number, "answer", text)


class Runtime:
    def __init__(
        self,
        orchestrator: DialogueOrchestrator,
        recognition: RecognitionEngine,
        speech_engine: SpeechEngine,
        speech: SpeechOutputSequencer,
        news: NewsGateway,
        ai: AIGateway,
    ) -> None:
        self.orchestrator = orchestrator
        self._recognition = recognition
        self._speech_engine = speech_engine
        self._speech = speech
        self._news = news
        self._ai = ai
        self._logger = get_logger(__name__)

    async def start(self) -> None:
        self._logger.info("runtime.starting", recognition=type(self._recognition).__name__)
        self.orchestrator.start_worker()
        voice = await self._speech.refresh_voices()
        self._logger.info("runtime.voice", voice=getattr(voice, "name", None))

    async def handle_transcript(self, text: str) -> bool:
        """Feed a typed transcript through the same queue as spoken ones.

        With the manual engine the text is only accepted while a capture
        segment is open, just like speech would be.
        """
        if isinstance(self._recognition, ManualRecognitionEngine):
            accepted = self._recognition.inject(text)
        else:
            self.orchestrator.submit_transcript(text)
            accepted = True
        await self.orchestrator.drain()
        return accepted

    async def shutdown(self) -> None:
        self._logger.info("runtime.shutdown.start")
        await self.orchestrator.shutdown()
        await self._speech_engine.close()
        await self._news.aclose()
        await self._ai.aclose()
        self._logger.info("runtime.shutdown.complete")


def build_speech_engine(config: AppSettings) -> SpeechEngine:
    speech = config.speech
    if not speech.kokoro_url:
        logger.info("speech.engine.disabled", reason="no_kokoro_url")
        return NullSpeechEngine()
    from voicenews.speech.kokoro import KokoroSpeechEngine

    return KokoroSpeechEngine(speech.kokoro_url, speech.kokoro_api_key)


def build_recognition_engine(config: AppSettings) -> RecognitionEngine:
    recognition = config.recognition
    if not recognition.model_paths:
        logger.info("recognition.engine.manual", reason="no_vosk_model")
        return ManualRecognitionEngine()
    from voicenews.recognition.vosk import VoskRecognitionEngine

    return VoskRecognitionEngine(
        recognition.model_paths,
        sample_rate=recognition.sample_rate,
        device=recognition.input_device,
    )


async def bootstrap_runtime(config: AppSettings | None = None) -> Runtime:
    config = config or settings
    gateways = config.gateways
    news = NewsGateway(
        gateways.news_proxy_url,
        timeout=gateways.timeout_seconds,
        max_articles=gateways.news_max_articles,
    )
    ai = AIGateway(gateways.ai_proxy_url, max_chars=gateways.ai_prompt_max_chars)

    speech_engine = build_speech_engine(config)
    policies = DialoguePolicies(
        selection_strategy=config.dialogue.selection_strategy,
        headline_pause_seconds=config.speech.headline_pause_seconds,
        restart_debounce_seconds=config.recognition.restart_debounce_seconds,
    )
    speech = SpeechOutputSequencer(
        speech_engine,
        language=config.dialogue.default_language,
        headline_pause=policies.headline_pause_seconds,
    )
    recognition = build_recognition_engine(config)

    orchestrator = DialogueOrchestrator(
        recognition=recognition,
        speech=speech,
        news=news,
        ai=ai,
        ui=ui_bridge,
        classifier=IntentClassifier(),
        policies=policies,
        language=config.dialogue.default_language,
    )

    runtime = Runtime(orchestrator, recognition, speech_engine, speech, news, ai)
    await runtime.start()
    logger.info("runtime.started")
    return runtime


def run() -> None:
    import uvicorn

    uvicorn.run("voicenews.main:app", host="127.0.0.1", port=8010, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
