"""
Blueprint Edit Backend - FastAPI Application

This is the main entry point for the chat backend.
It provides:
- REST API for uploads, the document, chat turns and undo/redo
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from blueprint_backend import config
from blueprint_backend.session_manager import SessionEvent, UnsupportedFileError, session_manager
from blueprint_backend.websocket_manager import ws_manager
from blueprint_core import (
    ChatRequest,
    DocumentRequest,
    MarkupError,
    build_viewer_url,
    extract_component_labels,
    format_markup,
    markup_stats,
    parse_document,
    validate_document,
    validation_summary,
)

logger = logging.getLogger(__name__)

DOWNLOAD_FILENAME = "architecture.xml"


# --- Async change notification ---
# Bridge between sync SessionManager callbacks and async WebSocket broadcasts

_change_queue: Optional[asyncio.Queue] = None


def on_session_change(event: SessionEvent):
    """Callback for session changes - queues the event for the async handler."""
    if _change_queue is not None:
        _change_queue.put_nowait(event)


session_manager.on_change(on_session_change)


async def change_broadcaster(queue: asyncio.Queue):
    """Background task that pushes session events to WebSocket clients, in order."""
    while True:
        event = await queue.get()
        await ws_manager.publish(event)


def session_snapshot() -> dict:
    """Session state sent to a viewer on connect, without the document text."""
    state = session_manager.get_state()
    state.pop("document")
    return state


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    global _change_queue
    config.configure_logging()
    _change_queue = asyncio.Queue()
    broadcaster_task = asyncio.create_task(change_broadcaster(_change_queue))
    logger.info("Backend started (replace scope: %s)", session_manager.replace_scope.value)

    yield

    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass
    _change_queue = None


# --- FastAPI App ---

app = FastAPI(
    title="Blueprint Edit API",
    description="Chat-driven editing of draw.io architecture diagrams",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_document() -> str:
    if not session_manager.document:
        raise HTTPException(status_code=404, detail="No document loaded")
    return session_manager.document


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Session State ---

@app.get("/api/session")
async def get_session():
    """Get the current session state."""
    return session_manager.get_state()


@app.post("/api/reset")
async def reset_session():
    """Clear files, document history and the chat log."""
    session_manager.reset()
    return {"success": True}


# --- Files ---

@app.post("/api/upload")
async def upload_file(file: UploadFile = File(...)):
    """Upload a reference image or a .xml/.drawio markup file."""
    data = await file.read()
    try:
        kind = session_manager.upload_file(file.filename or "", data, file.content_type)
    except UnsupportedFileError as e:
        raise HTTPException(status_code=415, detail=str(e))
    return {"success": True, "kind": kind, "filename": file.filename, "message": f"{kind.title()} uploaded: {file.filename}"}


@app.get("/api/image")
async def get_image():
    """Get the uploaded reference image."""
    image = session_manager.image
    if image is None:
        raise HTTPException(status_code=404, detail="No image uploaded")
    return Response(content=image.data, media_type=image.media_type)


# --- Document ---

@app.get("/api/document")
async def get_document():
    """Get the current document text."""
    return {"content": session_manager.document, "name": session_manager.document_name}


@app.put("/api/document")
async def set_document(request: DocumentRequest):
    """Replace the document text (manual edit)."""
    content = session_manager.set_document(request.content)
    return {"success": True, "content": content}


@app.get("/api/document/original")
async def get_original_document():
    """Get the document as it was uploaded."""
    return {"content": session_manager.original_document, "name": session_manager.document_name}


@app.get("/api/document/download")
async def download_document():
    """Download the current document as an XML attachment."""
    content = _require_document()
    return Response(
        content=content,
        media_type="application/xml",
        headers={"Content-Disposition": f'attachment; filename="{DOWNLOAD_FILENAME}"'},
    )


@app.get("/api/document/stats")
async def document_stats():
    """Line, character and element counts."""
    return markup_stats(session_manager.document)


@app.get("/api/document/formatted", response_class=PlainTextResponse)
async def formatted_document():
    """The document re-indented for reading."""
    return format_markup(session_manager.document)


@app.get("/api/document/components")
async def document_components():
    """Component labels detected in the document."""
    return {"components": extract_component_labels(session_manager.document)}


@app.get("/api/document/validate")
async def validate_current_document():
    """
    Validate the current document for structural issues.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    content = _require_document()
    try:
        doc = parse_document(content)
    except MarkupError as e:
        raise HTTPException(status_code=400, detail=str(e))

    issues = validate_document(doc)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


@app.get("/api/document/viewer-url")
async def viewer_url():
    """Link to the hosted diagrams.net viewer for the current document."""
    content = _require_document()
    return {"url": build_viewer_url(content)}


# --- Chat ---

@app.post("/api/chat")
async def chat(request: ChatRequest):
    """Process one instruction and return the assistant's reply."""
    await asyncio.sleep(config.RESPONSE_DELAY_SECONDS)
    try:
        turn = session_manager.chat(request.instruction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, **turn.to_dict(), "document": session_manager.document}


@app.get("/api/messages")
async def list_messages(limit: Optional[int] = None):
    """The chat log, oldest first."""
    messages = session_manager.messages
    if limit is not None:
        messages = messages[-limit:] if limit > 0 else []
    return {"messages": [m.to_json_dict() for m in messages]}


# --- Undo/Redo ---

@app.post("/api/undo")
async def undo():
    """Undo the last document change."""
    content = session_manager.undo()
    if content is not None:
        return {"success": True, "content": content}
    return {"success": False, "message": "Nothing to undo"}


@app.post("/api/redo")
async def redo():
    """Redo the last undone change."""
    content = session_manager.redo()
    if content is not None:
        return {"success": True, "content": content}
    return {"success": False, "message": "Nothing to redo"}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients get a session_state snapshot, then document_updated and
    session_reset events as the session changes.
    """
    await ws_manager.connect(websocket, session_snapshot())

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


def run():
    """Console entry point."""
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
