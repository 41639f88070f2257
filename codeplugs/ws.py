"""WebSocket endpoint for live import progress."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .progress import ImportProgress

logger = logging.getLogger(__name__)

router = APIRouter()


class ProgressHub:
    """Broadcast progress snapshots to every connected websocket.

    Snapshots arrive on the import worker thread, so they are handed to
    the server's event loop with ``run_coroutine_threadsafe``.
    """

    def __init__(self) -> None:
        self.connections: List[WebSocket] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self.connections.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.connections:
            self.connections.remove(websocket)

    async def _broadcast(self, message: dict) -> None:
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                self.disconnect(ws)

    def __call__(self, progress: ImportProgress) -> None:
        loop = self._loop
        if loop is None or loop.is_closed() or not self.connections:
            return
        asyncio.run_coroutine_threadsafe(self._broadcast(progress.to_dict()), loop)


@router.websocket("/ws")
async def progress_ws(websocket: WebSocket):
    hub: ProgressHub = websocket.app.state.hub
    await hub.connect(websocket)
    await websocket.send_json(websocket.app.state.worker.progress().to_dict())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)
