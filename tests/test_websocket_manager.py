"""Tests for pushing session events to viewers."""

import asyncio
import json

from blueprint_backend.session_manager import SessionEvent
from blueprint_backend.websocket_manager import WebSocketManager, event_message
from blueprint_core import Intent


class FakeWebSocket:
    """Collects what the manager sends; optionally fails every send after connect."""

    def __init__(self, broken: bool = False):
        self.sent: list[dict] = []
        self.accepted = False
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.broken and self.sent:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(text))


CHAT_EVENT = SessionEvent(
    reason="chat",
    document_name="arch.drawio",
    intent=Intent.REMOVE,
    changes=["Removed GPU component and its connections"],
    can_undo=True,
)


class TestEventMessage:

    def test_chat_turn_carries_intent_and_changes(self) -> None:
        message = event_message(CHAT_EVENT)
        assert message["type"] == "document_updated"
        assert message["intent"] == "remove"
        assert message["changes"] == ["Removed GPU component and its connections"]

    def test_reset(self) -> None:
        assert event_message(SessionEvent(reason="reset")) == {"type": "session_reset"}


class TestWebSocketManager:

    def test_snapshot_on_connect(self) -> None:
        manager = WebSocketManager()
        viewer = FakeWebSocket()
        asyncio.run(manager.connect(viewer, {"has_files": False}))

        assert viewer.accepted
        assert viewer.sent == [{"type": "session_state", "has_files": False}]
        assert manager.connection_count == 1

    def test_publish_reaches_every_viewer(self) -> None:
        manager = WebSocketManager()
        viewers = [FakeWebSocket(), FakeWebSocket()]

        async def scenario():
            for viewer in viewers:
                await manager.connect(viewer, {})
            await manager.publish(CHAT_EVENT)

        asyncio.run(scenario())
        for viewer in viewers:
            assert viewer.sent[-1] == event_message(CHAT_EVENT)
        assert manager.last_message == event_message(CHAT_EVENT)

    def test_failed_viewer_dropped(self) -> None:
        manager = WebSocketManager()
        healthy, broken = FakeWebSocket(), FakeWebSocket(broken=True)

        async def scenario():
            await manager.connect(healthy, {})
            await manager.connect(broken, {})
            await manager.publish(SessionEvent(reason="undo", can_redo=True))

        asyncio.run(scenario())
        assert manager.connection_count == 1
        assert healthy.sent[-1]["reason"] == "undo"

    def test_disconnect(self) -> None:
        manager = WebSocketManager()
        viewer = FakeWebSocket()

        async def scenario():
            await manager.connect(viewer, {})
            await manager.disconnect(viewer)
            await manager.publish(CHAT_EVENT)

        asyncio.run(scenario())
        assert manager.connection_count == 0
        assert len(viewer.sent) == 1
