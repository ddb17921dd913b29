"""
Session Manager - Core logic for the single in-memory chat session.

This module implements:
- One current document (markup text) plus the text as first uploaded
- The reference image uploaded next to it
- The append-only chat log
- Linear undo/redo history of document snapshots
- Change callbacks for real-time sync
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Callable, Optional

from blueprint_backend import config
from blueprint_core import (
    GREETING,
    ChatMessage,
    ChatRole,
    Intent,
    ReplaceScope,
    apply_instruction,
    build_response,
    looks_like_diagram,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".svg"})
MARKUP_EXTENSIONS = frozenset({".xml", ".drawio"})


class UnsupportedFileError(ValueError):
    """Uploaded file is neither an image nor diagram markup."""


class ChatRejected(ValueError):
    """A chat turn was refused before the engine ran."""


@dataclass
class UploadedImage:
    """Reference image shown next to the diagram. Never edited."""
    name: str
    media_type: str
    data: bytes = field(repr=False)

    def to_dict(self) -> dict:
        return {"name": self.name, "media_type": self.media_type, "size": len(self.data)}


@dataclass
class ChatTurn:
    """Result of one processed instruction."""
    user_message: ChatMessage
    reply: ChatMessage
    changes: list[str]
    intent: Intent

    @property
    def document_updated(self) -> bool:
        return len(self.changes) > 0

    def to_dict(self) -> dict:
        return {
            "reply": self.reply.to_json_dict(),
            "changes": self.changes,
            "intent": self.intent.value,
            "document_updated": self.document_updated,
        }


@dataclass
class SessionEvent:
    """What changed in the session, handed to change callbacks."""
    reason: str  # upload, image, chat, edit, undo, redo, reset
    document_name: Optional[str] = None
    intent: Optional[Intent] = None
    changes: list[str] = field(default_factory=list)
    can_undo: bool = False
    can_redo: bool = False

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "document_name": self.document_name,
            "intent": self.intent.value if self.intent else None,
            "changes": self.changes,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
        }


def classify_upload(filename: str, content_type: Optional[str] = None) -> str:
    """Return "image" or "document" for an upload, or raise UnsupportedFileError."""
    suffix = PurePath(filename or "").suffix.lower()
    if (content_type or "").startswith("image/") or suffix in IMAGE_EXTENSIONS:
        return "image"
    if suffix in MARKUP_EXTENSIONS:
        return "document"
    raise UnsupportedFileError(f"Unsupported file type: {filename}")


class SessionManager:
    """
    Manages the session's document, chat log and history.

    The history system works via snapshots of the document text:
    - Each change pushes the previous text onto the history stack
    - Undo restores the previous snapshot
    - Redo re-applies a snapshot from the future stack
    """

    def __init__(self, max_history: int = 50, replace_scope: ReplaceScope = ReplaceScope.LABELS):
        self._max_history = max_history
        self._replace_scope = replace_scope
        self._on_change_callbacks: list[Callable[[SessionEvent], None]] = []
        self._reset_state()

    def _reset_state(self):
        self._document: str = ""
        self._original_document: str = ""
        self._document_name: Optional[str] = None
        self._image: Optional[UploadedImage] = None
        self._messages: list[ChatMessage] = [ChatMessage(role=ChatRole.ASSISTANT, text=GREETING)]
        self._history: list[str] = []
        self._future: list[str] = []

    # --- Properties ---

    @property
    def document(self) -> str:
        """Get the current document text."""
        return self._document

    @property
    def original_document(self) -> str:
        """Get the document text as it was uploaded."""
        return self._original_document

    @property
    def document_name(self) -> Optional[str]:
        return self._document_name

    @property
    def image(self) -> Optional[UploadedImage]:
        return self._image

    @property
    def has_files(self) -> bool:
        """True once an image or a markup file has been uploaded."""
        return self._image is not None or self._document_name is not None

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def replace_scope(self) -> ReplaceScope:
        return self._replace_scope

    @property
    def can_undo(self) -> bool:
        return len(self._history) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[SessionEvent], None]):
        """Register a callback for session changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self, reason: str, intent: Optional[Intent] = None, changes: Optional[list[str]] = None):
        """Notify all registered callbacks of a change."""
        event = SessionEvent(
            reason=reason,
            document_name=self._document_name,
            intent=intent,
            changes=list(changes or []),
            can_undo=self.can_undo,
            can_redo=self.can_redo,
        )
        for callback in self._on_change_callbacks:
            callback(event)

    # --- History Management ---

    def _save_to_history(self):
        """Save current document text before a mutation."""
        self._future.clear()
        self._history.append(self._document)
        if len(self._history) > self._max_history:
            self._history.pop(0)

    def undo(self) -> Optional[str]:
        """Undo the last document change. Returns the restored text, or None."""
        if not self.can_undo:
            return None
        self._future.append(self._document)
        self._document = self._history.pop()
        self._notify_change("undo")
        return self._document

    def redo(self) -> Optional[str]:
        """Redo the last undone change. Returns the restored text, or None."""
        if not self.can_redo:
            return None
        self._history.append(self._document)
        self._document = self._future.pop()
        self._notify_change("redo")
        return self._document

    # --- Files ---

    def upload_file(self, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        Accept an uploaded file.

        Images are kept for reference only. Markup files replace the document
        and reset history; undecodable markup leaves the document empty.

        Returns:
            "image" or "document"

        Raises:
            UnsupportedFileError: unknown file type; session state is unchanged
        """
        kind = classify_upload(filename, content_type)

        if kind == "image":
            self._image = UploadedImage(
                name=filename,
                media_type=content_type or "application/octet-stream",
                data=data,
            )
            logger.info("Image uploaded: %s (%d bytes)", filename, len(data))
            self._notify_change("image")
            return kind

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Could not read %s as UTF-8, document left empty: %s", filename, e)
            text = ""

        self._document = text
        self._original_document = text
        self._document_name = filename
        self._history.clear()
        self._future.clear()
        logger.info("Markup uploaded: %s (%d chars)", filename, len(text))
        self._notify_change("upload")
        return kind

    def set_document(self, content: str) -> str:
        """Replace the document text (manual markup edit)."""
        if content == self._document:
            return self._document
        self._save_to_history()
        self._document = content
        self._notify_change("edit")
        return self._document

    def reset(self):
        """Drop files, history and the chat log."""
        self._reset_state()
        self._notify_change("reset")

    # --- Chat ---

    def chat(self, instruction: str) -> ChatTurn:
        """
        Process one instruction.

        The user message and the reply are appended to the log. The document
        only changes when the engine reports at least one change.

        Raises:
            ValueError: blank instruction
            ChatRejected: no files uploaded, or the document is not draw.io markup
        """
        if not instruction or not instruction.strip():
            raise ValueError("Instruction must not be empty")
        if not self.has_files:
            raise ChatRejected("Please upload architecture files first")
        if self._document and not looks_like_diagram(self._document):
            raise ChatRejected("The uploaded file doesn't seem to be a valid draw.io diagram")

        user_message = ChatMessage(role=ChatRole.USER, text=instruction)
        self._messages.append(user_message)

        result = apply_instruction(self._document, instruction, self._replace_scope)
        logger.info(
            "Instruction %r -> %s, %d change(s)",
            instruction, result.intent.value, len(result.changes),
        )

        if result.changed:
            self._save_to_history()
            self._document = result.markup

        reply = ChatMessage(
            role=ChatRole.ASSISTANT,
            text=build_response(instruction, self._document, result.changes),
        )
        self._messages.append(reply)

        if result.changed:
            self._notify_change("chat", result.intent, result.changes)

        return ChatTurn(
            user_message=user_message,
            reply=reply,
            changes=result.changes,
            intent=result.intent,
        )

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "document": self._document,
            "document_name": self._document_name,
            "image": self._image.to_dict() if self._image else None,
            "has_files": self.has_files,
            "modified": self._document != self._original_document,
            "message_count": len(self._messages),
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
        }


# Global instance for the application
session_manager = SessionManager(max_history=config.MAX_HISTORY, replace_scope=config.REPLACE_SCOPE)
