#!/usr/bin/env python3
"""Blueprint Edit CLI - talk to the chat backend, or edit a local file offline."""

import argparse
import json
import sys
from pathlib import Path

import httpx

from blueprint_backend import config
from blueprint_core import (
    ReplaceScope,
    apply_instruction,
    build_response,
    build_viewer_url,
    parse_document,
    validate_document,
    validation_summary,
)


def _json_out(data):
    print(json.dumps(data))
    sys.exit(0)


def _api_request(method, endpoint, data=None, params=None, files=None):
    """Make a request to the backend and return the decoded JSON body."""
    url = f"{config.API_BASE}{endpoint}"
    if params:
        params = {k: v for k, v in params.items() if v is not None}

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.request(method, url, json=data, params=params or None, files=files)
    except httpx.TransportError as e:
        _json_out({"status": "error", "error": f"Connection failed: {e}. Is the blueprint backend running?"})

    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", "Unknown error")
        except ValueError:
            detail = response.text
        _json_out({"status": "error", "error": f"API error ({response.status_code}): {detail}"})

    return response.json()


def _read_text(path):
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _json_out({"status": "error", "error": f"Cannot read {path}: {e}"})


# ── Session ──────────────────────────────────────────────────────────────────

def cmd_health(args):
    _json_out(_api_request("GET", "/health"))


def cmd_state(args):
    _json_out(_api_request("GET", "/session"))


def cmd_reset(args):
    _json_out(_api_request("POST", "/reset"))


def cmd_upload(args):
    path = Path(args.file_path)
    try:
        data = path.read_bytes()
    except OSError as e:
        _json_out({"status": "error", "error": f"Cannot read {path}: {e}"})
    _json_out(_api_request("POST", "/upload", files={"file": (path.name, data)}))


# ── Document ─────────────────────────────────────────────────────────────────

def cmd_get_document(args):
    _json_out(_api_request("GET", "/document"))


def cmd_set_document(args):
    _json_out(_api_request("PUT", "/document", data={"content": _read_text(args.file_path)}))


def cmd_download(args):
    content = _api_request("GET", "/document")["content"]
    if not content:
        _json_out({"status": "error", "error": "No document loaded"})
    Path(args.output).write_text(content, encoding="utf-8")
    _json_out({"status": "ok", "path": args.output, "chars": len(content)})


def cmd_validate(args):
    _json_out(_api_request("GET", "/document/validate"))


def cmd_viewer_url(args):
    _json_out(_api_request("GET", "/document/viewer-url"))


# ── Chat ─────────────────────────────────────────────────────────────────────

def cmd_chat(args):
    _json_out(_api_request("POST", "/chat", data={"instruction": args.instruction}))


def cmd_messages(args):
    _json_out(_api_request("GET", "/messages", params={"limit": args.limit}))


# ── History ──────────────────────────────────────────────────────────────────

def cmd_undo(args):
    _json_out(_api_request("POST", "/undo"))


def cmd_redo(args):
    _json_out(_api_request("POST", "/redo"))


# ── Offline ──────────────────────────────────────────────────────────────────

def cmd_apply(args):
    """Run one instruction against a local file without the backend."""
    markup = _read_text(args.file_path)
    result = apply_instruction(markup, args.instruction, ReplaceScope(args.replace_scope))

    output = args.output or (args.file_path if args.in_place else None)
    if output and result.changed:
        Path(output).write_text(result.markup, encoding="utf-8")

    _json_out({
        "status": "ok",
        "intent": result.intent.value,
        "changes": result.changes,
        "reply": build_response(args.instruction, result.markup, result.changes),
        "written": output if output and result.changed else None,
    })


def cmd_check(args):
    """Validate a local file and print its viewer link."""
    markup = _read_text(args.file_path)
    try:
        doc = parse_document(markup)
    except ValueError as e:
        _json_out({"status": "error", "error": str(e)})
    issues = validate_document(doc)
    _json_out({
        "status": "ok",
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues),
        "viewer_url": build_viewer_url(markup),
    })


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Blueprint Edit CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Session
    sub.add_parser("health")
    sub.add_parser("state")
    sub.add_parser("reset")

    p = sub.add_parser("upload")
    p.add_argument("--file-path", required=True)

    # Document
    sub.add_parser("get-document")

    p = sub.add_parser("set-document")
    p.add_argument("--file-path", required=True)

    p = sub.add_parser("download")
    p.add_argument("--output", default="architecture.xml")

    sub.add_parser("validate")
    sub.add_parser("viewer-url")

    # Chat
    p = sub.add_parser("chat")
    p.add_argument("--instruction", required=True)

    p = sub.add_parser("messages")
    p.add_argument("--limit", type=int, default=None)

    # History
    sub.add_parser("undo")
    sub.add_parser("redo")

    # Offline
    p = sub.add_parser("apply")
    p.add_argument("--file-path", required=True)
    p.add_argument("--instruction", required=True)
    p.add_argument("--output", default=None)
    p.add_argument("--in-place", action="store_true")
    p.add_argument("--replace-scope", default=config.REPLACE_SCOPE.value,
                   choices=[s.value for s in ReplaceScope])

    p = sub.add_parser("check")
    p.add_argument("--file-path", required=True)

    args = parser.parse_args(argv)

    cmd_map = {
        "health": cmd_health,
        "state": cmd_state,
        "reset": cmd_reset,
        "upload": cmd_upload,
        "get-document": cmd_get_document,
        "set-document": cmd_set_document,
        "download": cmd_download,
        "validate": cmd_validate,
        "viewer-url": cmd_viewer_url,
        "chat": cmd_chat,
        "messages": cmd_messages,
        "undo": cmd_undo,
        "redo": cmd_redo,
        "apply": cmd_apply,
        "check": cmd_check,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
