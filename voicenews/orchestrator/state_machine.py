from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Protocol

from voicenews.gateways.base import GatewayError
from voicenews.lang.localization import articles_message, localize
from voicenews.models import Article, ArticleSet, Session
from voicenews.orchestrator.events import (
    Confirm,
    FetchNews,
    Intent,
    Pause,
    ReadHeadlines,
    RecognitionEnded,
    RecognitionError,
    RecognitionEvent,
    RecognitionResult,
    Resume,
    SelectOrOpen,
    Stop,
    Summarize,
    UIState,
    Unrecognized,
    Utterance,
)
from voicenews.orchestrator.intents import IntentClassifier
from voicenews.orchestrator.policies import DialoguePolicies
from voicenews.orchestrator.selection import ArticleSelectionResolver
from voicenews.recognition.base import (
    PERMISSION_ERRORS,
    RECOVERABLE_ERRORS,
    MicrophonePermissionError,
    RecognitionEngine,
    RecognitionEngineError,
)
from voicenews.recognition.lifecycle import RecognitionLifecycleManager
from voicenews.speech.sequencer import SpeechOutputSequencer
from voicenews.telemetry.logging import get_logger


class NewsService(Protocol):
    async def fetch_news(self, category: str, query: str | None = None, language: str = "en-US") -> ArticleSet: ...


class AIService(Protocol):
    async def summarize(self, article: Article) -> str: ...

    async def key_points(self, article: Article) -> str: ...

    async def sentiment(self, article: Article) -> str: ...

    async def ask(self, article: Article, question: str) -> str: ...


class UIBridge(Protocol):
    async def publish_state(self, state: UIState, payload: dict | None = None) -> None: ...

    async def toast(self, message: str, ms: int = 2000) -> None: ...


class DialogueOrchestrator:
    """Owns the Session and ArticleSet and turns recognition events into actions.

    Recognition events arrive on a single queue and are handled one at a time,
    in order. Gateway calls triggered by voice run as background tasks so that
    a spoken "stop" is never stuck behind network I/O. Each news fetch carries
    a generation number and only the latest one may replace the ArticleSet.
    """

    def __init__(
        self,
        recognition: RecognitionEngine,
        speech: SpeechOutputSequencer,
        news: NewsService,
        ai: AIService,
        ui: UIBridge,
        classifier: IntentClassifier | None = None,
        resolver: ArticleSelectionResolver | None = None,
        policies: DialoguePolicies | None = None,
        language: str = "en-US",
    ) -> None:
        self._policies = policies or DialoguePolicies()
        self.session = Session(language_key=language)
        self.articles = ArticleSet()
        self._speech = speech
        self._news = news
        self._ai = ai
        self._ui = ui
        self._classifier = classifier or IntentClassifier()
        self._resolver = resolver or ArticleSelectionResolver(self._classifier.vocab, self._policies)
        self._events: asyncio.Queue[RecognitionEvent] = asyncio.Queue()
        self.recognition = RecognitionLifecycleManager(
            recognition,
            sink=self._events.put_nowait,
            session_active=self._session_active,
            restart_delay=self._policies.restart_debounce_seconds,
        )
        self._fetch_generation = 0
        self._epoch = 0
        self._tasks: set[asyncio.Task[Any]] = set()
        self._worker: asyncio.Task[None] | None = None
        self._logger = get_logger(__name__)
        self._speech.set_language(language)

    def _session_active(self) -> bool:
        # paused sessions keep capturing so "resume listening" can be heard
        return self.session.listening

    # Event channel

    def start_worker(self) -> asyncio.Task[None]:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self.run(), name="dialogue-events")
        return self._worker

    async def run(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._handle_event(event)
            except Exception as exc:  # keep the loop alive for the next utterance
                self._logger.exception("dialogue.dispatch.failed", event=type(event).__name__, error=str(exc))
            finally:
                self._events.task_done()

    def submit(self, event: RecognitionEvent) -> None:
        self._events.put_nowait(event)

    def submit_transcript(self, transcript: str) -> None:
        self.submit(RecognitionResult(transcript))

    async def drain(self) -> None:
        """Wait until every queued recognition event has been handled."""
        await self._events.join()

    async def _handle_event(self, event: RecognitionEvent) -> None:
        if isinstance(event, RecognitionResult):
            await self.handle_transcript(event.transcript)
        elif isinstance(event, RecognitionEnded):
            await self.recognition.on_segment_end(event.capture)
        elif isinstance(event, RecognitionError):
            await self._handle_recognition_error(event)

    # Classification

    async def handle_transcript(self, transcript: str) -> Intent | None:
        if not self.session.listening:
            self._logger.info("dialogue.transcript.ignored", reason="idle", transcript=transcript)
            return None
        utterance = Utterance.from_transcript(transcript)
        if not utterance.normalized:
            return None
        await self._ui.publish_state("TRANSCRIPT", {"text": utterance.normalized})
        rule, intent = self._classifier.explain(utterance, self.session)
        self._logger.info(
            "dialogue.intent",
            transcript=utterance.normalized,
            rule=rule,
            intent=type(intent).__name__ if intent else None,
            state=self.session.state,
        )
        if intent is not None:
            await self.dispatch(intent)
        return intent

    async def dispatch(self, intent: Intent) -> None:
        if isinstance(intent, Confirm):
            await self._answer_confirmation(intent.affirmative)
        elif isinstance(intent, Stop):
            await self.stop()
        elif isinstance(intent, Pause):
            await self.pause(announcement="paused_long")
        elif isinstance(intent, Resume):
            await self.resume()
        elif isinstance(intent, ReadHeadlines):
            self.read_headlines()
        elif isinstance(intent, Summarize):
            self._spawn(self.summarize(intent.index), name="ai-summarize")
        elif isinstance(intent, SelectOrOpen):
            await self.select(intent.raw_utterance)
        elif isinstance(intent, FetchNews):
            self._spawn(self.fetch_news(intent.category, intent.query), name="news-fetch")
        elif isinstance(intent, Unrecognized):
            await self._ui.toast(self._text("not_recognized"), self._policies.toast_ms)

    # Session transitions

    async def start(self) -> bool:
        if self.session.listening:
            self._logger.info("dialogue.start.ignored", reason="already_listening")
            return True
        try:
            await self.recognition.start(self.session.language_key)
        except MicrophonePermissionError:
            self._logger.warning("dialogue.start.permission_denied")
            await self._ui.toast(self._text("mic_denied"), self._policies.toast_ms)
            await self._publish_session(reason="permission_denied")
            return False
        except RecognitionEngineError as exc:
            self._logger.error("dialogue.start.failed", error=str(exc))
            await self._ui.toast(self._text("mic_error", code="audio-capture"), self._policies.toast_ms)
            return False
        self.session.listening = True
        self.session.paused = False
        self._logger.info("dialogue.started", language=self.session.language_key)
        await self._publish_session()
        return True

    async def pause(self, announcement: str = "paused") -> bool:
        if not self.session.listening:
            await self._ui.toast(self._text("start_first"), self._policies.toast_ms)
            return False
        self.session.paused = True
        self._say(announcement)
        await self._publish_session()
        return True

    async def resume(self) -> bool:
        if not self.session.listening:
            await self._ui.toast(self._text("start_first"), self._policies.toast_ms)
            return False
        self.session.paused = False
        try:
            await self.recognition.resume()
        except MicrophonePermissionError:
            await self._permission_lost()
            return False
        except RecognitionEngineError as exc:
            self._logger.error("dialogue.resume.failed", error=str(exc))
            await self._ui.toast(self._text("mic_error", code="audio-capture"), self._policies.toast_ms)
        self._say("resumed")
        await self._publish_session()
        return True

    async def toggle_pause(self) -> bool:
        if self.session.listening and self.session.paused:
            return await self.resume()
        return await self.pause(announcement="paused")

    async def stop(self) -> None:
        self.session.listening = False
        self.session.paused = False
        self.session.clear_confirmation()
        self._fetch_generation += 1
        self._epoch += 1
        self._speech.cancel()
        await self.recognition.stop()
        self._logger.info("dialogue.stopped")
        await self._publish_session()

    async def set_language(self, language: str) -> None:
        self.session.language_key = language
        self._speech.set_language(language)
        await self.recognition.set_language(language)
        self._logger.info("dialogue.language.set", language=language)
        await self._publish_session()

    async def set_visibility(self, visible: bool) -> None:
        await self.recognition.set_visible(visible)

    async def _permission_lost(self) -> None:
        await self.recognition.abandon()
        self._epoch += 1
        self.session.listening = False
        self.session.paused = False
        self.session.clear_confirmation()
        self._speech.cancel()
        await self._ui.toast(self._text("mic_denied"), self._policies.toast_ms)
        await self._publish_session(reason="permission_denied")

    async def _handle_recognition_error(self, error: RecognitionError) -> None:
        if error.code in RECOVERABLE_ERRORS:
            self._logger.debug("recognition.error.ignored", code=error.code)
            return
        if error.code in PERMISSION_ERRORS:
            self._logger.warning("recognition.error.permission", code=error.code)
            await self._permission_lost()
            return
        self._logger.error("recognition.error", code=error.code, message=error.message)
        await self._ui.toast(self._text("mic_error", code=error.code), self._policies.toast_ms)

    # Confirmation and selection

    async def select(self, utterance: str) -> int | None:
        index = self._resolver.resolve(utterance, len(self.articles), self.session.language_key)
        if index is None:
            await self._invalid_selection()
            return None
        article = self.articles[index]
        await self._ui.publish_state("OPEN_LINK", {"number": index + 1, "url": article.url, "title": article.title})
        self.session.await_confirmation(article.title)
        self._say("ask_read")
        await self._publish_session()
        return index

    async def _answer_confirmation(self, affirmative: bool) -> None:
        payload = self.session.pending_confirmation_payload
        self.session.clear_confirmation()
        if affirmative and payload:
            self._speech.speak(payload)
        else:
            self._say("ok")
        await self._publish_session()

    async def _invalid_selection(self) -> None:
        message = self._text("invalid_selection")
        self._speech.speak(message)
        await self._ui.toast(message, self._policies.toast_ms)

    # News

    def read_headlines(self) -> asyncio.Task[None] | None:
        if not self.articles:
            self._say("no_news")
            return None
        items = [f"{number}. {title}" for number, title in enumerate(self.articles.titles(), start=1)]
        return self._speech.read_headlines(items)

    async def fetch_news(self, category: str, query: str | None = None) -> bool:
        """Fetch and apply a news batch. Returns False for failed or stale responses."""
        self._fetch_generation += 1
        generation = self._fetch_generation
        await self._ui.publish_state(
            "LOADING", {"message": self._text("loading"), "category": category, "query": query}
        )
        try:
            result = await self._news.fetch_news(category, query, self.session.language_key)
        except GatewayError as exc:
            if generation != self._fetch_generation:
                self._logger.debug("news.fetch.stale_error", generation=generation, error=str(exc))
                return False
            self._logger.error("news.fetch.failed", category=category, query=query, error=str(exc))
            self._say("error_news")
            await self._ui.toast(self._text("error_news"), self._policies.toast_ms)
            return False

        if generation != self._fetch_generation:
            self._logger.info("news.fetch.stale", generation=generation, latest=self._fetch_generation)
            return False

        self.articles = result
        await self._ui.publish_state("ARTICLES", {"articles": result.to_list(), "category": category, "query": query})
        if not result:
            await self._ui.toast(self._text("no_articles_found"), self._policies.toast_ms)
            self._say("no_news")
            return True
        self._speech.speak(articles_message(self.session.language_key, len(result)))
        return True

    # AI features

    async def summarize(self, index: int) -> str | None:
        return await self._run_ai(index, "summary", "summarizing", "summary_failed", self._ai.summarize, "summary_ready")

    async def key_points(self, index: int) -> str | None:
        return await self._run_ai(index, "key_points", "key_points_running", "key_points_failed", self._ai.key_points)

    async def sentiment(self, index: int) -> str | None:
        return await self._run_ai(index, "sentiment", "sentiment_running", "sentiment_failed", self._ai.sentiment)

    async def ask(self, index: int, question: str) -> str | None:
        async def call(article: Article) -> str:
            return await self._ai.ask(article, question)

        return await self._run_ai(index, "answer", "thinking", "answer_failed", call, "answer_ready")

    async def _run_ai(
        self,
        index: int,
        kind: str,
        running_key: str,
        failed_key: str,
        call: Callable[[Article], Awaitable[str]],
        ready_key: str | None = None,
    ) -> str | None:
        article = self.articles.get(index)
        if article is None:
            await self._invalid_selection()
            return None
        number = index + 1
        epoch = self._epoch
        await self._ui.publish_state(
            "ARTICLE_OUTPUT", {"number": number, "kind": kind, "status": "running", "text": self._text(running_key)}
        )
        try:
            text = await call(article)
        except GatewayError as exc:
            if self._ai_stale(epoch, index, article):
                self._logger.debug("ai.request.stale_error", kind=kind, number=number, error=str(exc))
                return None
            self._logger.error("ai.request.failed", kind=kind, number=number, error=str(exc))
            await self._ui.publish_state(
                "ARTICLE_OUTPUT", {"number": number, "kind": kind, "status": "error", "text": self._text(failed_key)}
            )
            return None
        if self._ai_stale(epoch, index, article):
            self._logger.info("ai.request.stale", kind=kind, number=number)
            return None
        await self._ui.publish_state(
            "ARTICLE_OUTPUT", {"number": number, "kind": kind, "status": "complete", "text": text}
        )
        if ready_key:
            self._say(ready_key, n=number)
        return text

    def _ai_stale(self, epoch: int, index: int, article: Article) -> bool:
        """A stop happened, or the article at *index* was replaced by a newer fetch."""
        return epoch != self._epoch or self.articles.get(index) is not article

    # Helpers

    def _text(self, key: str, **variables: object) -> str:
        return localize(self.session.language_key, key, **variables)

    def _say(self, key: str, **variables: object) -> None:
        self._speech.speak(self._text(key, **variables))

    async def _publish_session(self, **extra: Any) -> None:
        await self._ui.publish_state(self.session.state, {**self.session.to_dict(), **extra})

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("dialogue.task.failed", task=task.get_name(), error=str(exc))

    async def wait_for_tasks(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def snapshot(self) -> dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "articles": self.articles.to_list(),
            "capturing": self.recognition.capturing,
            "speaking": self._speech.speaking,
        }

    async def shutdown(self) -> None:
        worker, self._worker = self._worker, None
        pending = [task for task in self._tasks if not task.done()]
        if worker is not None:
            pending.append(worker)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self._speech.cancel()
        await self.recognition.close()
        self._logger.info("dialogue.shutdown.complete")


__all__ = ["AIService", "DialogueOrchestrator", "NewsService", "UIBridge"]
