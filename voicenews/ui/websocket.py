from __future__ import annotations

import asyncio
from collections import deque
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from voicenews.orchestrator.events import UIState
from voicenews.telemetry.logging import get_logger


class SessionUIBridge:
    """Pushes session state, toasts and article updates to connected UI clients."""

    def __init__(self, history_size: int = 50) -> None:
        self._clients: set[WebSocket] = set()
        self._router = APIRouter()
        self._router.add_api_websocket_route("/ws/state", self._websocket_handler)
        self._lock = asyncio.Lock()
        self._history: deque[dict[str, Any]] = deque(maxlen=history_size)
        self._logger = get_logger(__name__)

    @property
    def router(self) -> APIRouter:
        return self._router

    def history(self) -> list[dict[str, Any]]:
        return list(self._history)

    async def _websocket_handler(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
        self._logger.info("ui.client.connected", count=len(self._clients))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            async with self._lock:
                self._clients.discard(websocket)
            self._logger.info("ui.client.disconnected", count=len(self._clients))

    async def publish_state(self, state: UIState, payload: dict[str, Any] | None = None) -> None:
        message = {"state": state, "payload": payload or {}}
        self._history.append(message)
        async with self._lock:
            send_tasks = [client.send_json(message) for client in self._clients]
        if send_tasks:
            await asyncio.gather(*send_tasks, return_exceptions=True)

    async def toast(self, message: str, ms: int = 2000) -> None:
        await self.publish_state("TOAST", {"message": message, "ms": ms})


__all__ = ["SessionUIBridge"]
