"""
WebSocket Manager - Pushes session events to connected viewers.

A viewer gets a `session_state` snapshot when it connects, then one message
per session event:
- `document_updated` after uploads, manual edits, undo/redo and chat turns;
  chat turns carry the matched intent and the change records so a viewer can
  show what the assistant did without re-reading the chat log
- `session_reset` after the session is cleared
"""
import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket

from blueprint_backend.session_manager import SessionEvent

logger = logging.getLogger(__name__)


def event_message(event: SessionEvent) -> dict:
    """Wire format for one session event."""
    if event.reason == "reset":
        return {"type": "session_reset"}
    return {"type": "document_updated", **event.to_dict()}


class WebSocketManager:
    """Tracks viewer connections and the last event sent to them."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._last_message: Optional[dict] = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def last_message(self) -> Optional[dict]:
        """The most recent event broadcast, if any."""
        return self._last_message

    async def connect(self, websocket: WebSocket, snapshot: dict):
        """Accept a viewer and send it the current session state."""
        await websocket.accept()
        await websocket.send_text(json.dumps({"type": "session_state", **snapshot}))
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Viewer connected (%d open)", len(self._connections))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("Viewer disconnected (%d open)", len(self._connections))

    async def publish(self, event: SessionEvent):
        """Send one session event to every viewer, dropping those that fail."""
        message = event_message(event)
        self._last_message = message
        if not self._connections:
            return

        text = json.dumps(message)
        async with self._lock:
            dead = set()
            for websocket in self._connections:
                try:
                    await websocket.send_text(text)
                except Exception as e:
                    logger.debug("Dropping viewer after failed send: %s", e)
                    dead.add(websocket)
            self._connections -= dead

        if event.changes:
            logger.info("Pushed %s to %d viewer(s): %s", event.reason, len(self._connections), event.changes)


# Global instance
ws_manager = WebSocketManager()
