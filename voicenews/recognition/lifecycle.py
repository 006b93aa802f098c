from __future__ import annotations

import asyncio
import contextlib
from dataclasses import replace
from typing import Callable

from voicenews.orchestrator.events import RecognitionEnded, RecognitionError, RecognitionEvent
from voicenews.recognition.base import (
    EventSink,
    MicrophonePermissionError,
    RecognitionEngine,
    RecognitionEngineError,
)
from voicenews.telemetry.logging import get_logger


class RecognitionLifecycleManager:
    """Start/stop/auto-restart policy around a continuous recognition engine.

    After a natural end of segment capture restarts (after ``restart_delay``)
    only while the session is active, auto-restart is enabled and the page is
    visible. Each capture gets an id. End events are tagged with it: those of
    captures stopped on purpose are dropped at once, and an end that was
    already queued when a newer capture began is ignored when handled.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        sink: EventSink,
        session_active: Callable[[], bool],
        restart_delay: float = 0.3,
    ) -> None:
        self._engine = engine
        self._sink = sink
        self._session_active = session_active
        self._restart_delay = restart_delay
        self._language = "en-US"
        self._capture_id = 0
        self._restart_task: asyncio.Task[None] | None = None
        self._permission: bool | None = None
        self.capturing = False
        self.auto_restart = False
        self.visible = True
        self._logger = get_logger(__name__)

    @property
    def engine(self) -> RecognitionEngine:
        return self._engine

    @property
    def permission_denied(self) -> bool:
        return self._permission is False

    @property
    def restart_pending(self) -> bool:
        return self._restart_task is not None and not self._restart_task.done()

    async def preflight(self) -> None:
        granted = await self._engine.request_permission()
        self._permission = granted
        if not granted:
            self.disable()
            raise MicrophonePermissionError("microphone permission denied")
        self._logger.info("recognition.permission.granted")

    async def start(self, language: str) -> None:
        """Begin capture for a session; a denied permission is re-checked every call."""
        if self._permission is not True:
            await self.preflight()
        self._language = language
        self.auto_restart = True
        if not self.visible:
            self._logger.info("recognition.start.deferred", reason="hidden")
            return
        await self._start_capture()

    async def halt(self) -> None:
        """Stop capturing without touching the auto-restart flag."""
        self._cancel_restart()
        if not self.capturing:
            return
        self._capture_id += 1
        self.capturing = False
        await self._engine.stop()
        self._logger.info("recognition.capture.halted")

    async def resume(self) -> None:
        if self.permission_denied:
            raise MicrophonePermissionError("microphone permission denied")
        self.auto_restart = True
        if self.visible:
            await self._start_capture()

    async def stop(self) -> None:
        self.auto_restart = False
        await self.halt()

    def disable(self) -> None:
        """Terminal failure: no further restarts until an explicit ``start``."""
        self.auto_restart = False
        self._cancel_restart()
        self._logger.warning("recognition.disabled")

    async def abandon(self) -> None:
        """Permission revoked mid-session: stop and require a fresh preflight."""
        self._permission = False
        self.disable()
        await self.halt()

    async def set_language(self, language: str) -> None:
        if language == self._language:
            return
        self._language = language
        if self.capturing:
            await self.halt()
            await self._start_capture()

    async def set_visible(self, visible: bool) -> None:
        self.visible = visible
        if not visible:
            self.auto_restart = False
            await self.halt()
            self._logger.info("recognition.hidden")
            return
        if self._session_active() and not self.permission_denied:
            self.auto_restart = True
            await self._start_capture()
            self._logger.info("recognition.visible.resumed")

    async def on_segment_end(self, capture: int) -> None:
        """Handle a natural end-of-segment delivered through the event queue."""
        if capture != self._capture_id:
            self._logger.debug("recognition.end.stale", capture=capture, current=self._capture_id)
            return
        self.capturing = False
        if self.auto_restart and self.visible and self._session_active():
            self._schedule_restart()
        else:
            self._logger.debug(
                "recognition.restart.skipped",
                auto_restart=self.auto_restart,
                visible=self.visible,
                active=self._session_active(),
            )

    async def close(self) -> None:
        self._cancel_restart()
        self.auto_restart = False
        self._capture_id += 1
        self.capturing = False
        await self._engine.close()

    async def _start_capture(self) -> None:
        if self.capturing:
            return
        self._cancel_restart()
        self._capture_id += 1
        capture_id = self._capture_id
        await self._engine.start(self._language, self._sink_for(capture_id))
        self.capturing = True
        self._logger.info("recognition.capture.started", language=self._language, capture=capture_id)

    def _sink_for(self, capture_id: int) -> EventSink:
        def emit(event: RecognitionEvent) -> None:
            if isinstance(event, RecognitionEnded):
                if capture_id != self._capture_id:
                    self._logger.debug("recognition.end.dropped", capture=capture_id)
                    return
                event = replace(event, capture=capture_id)
            self._sink(event)

        return emit

    def _schedule_restart(self) -> None:
        self._cancel_restart()
        self._restart_task = asyncio.get_running_loop().create_task(self._restart_after_delay())

    def _cancel_restart(self) -> None:
        task, self._restart_task = self._restart_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _restart_after_delay(self) -> None:
        await asyncio.sleep(self._restart_delay)
        if not (self.auto_restart and self.visible and self._session_active()):
            return
        try:
            await self._start_capture()
        except RecognitionEngineError as exc:
            self._logger.error("recognition.restart.failed", error=str(exc))
            self._sink(RecognitionError(code="audio-capture", message=str(exc)))

    async def wait_restart(self) -> None:
        task = self._restart_task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task


__all__ = ["RecognitionLifecycleManager"]
