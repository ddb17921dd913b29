#!/usr/bin/env python3
"""
Blueprint Edit MCP Server

Provides MCP tools for AI agents to edit the session's diagram through the
chat backend. All changes are immediately reflected in connected viewers
via WebSocket updates.
"""

import json
from pathlib import Path
from typing import Optional

import httpx
from mcp.server.fastmcp import FastMCP

from blueprint_backend import config

# Create MCP server
mcp = FastMCP("blueprint-edit")


class BackendError(Exception):
    """The backend answered with an error status."""


# --- HTTP Client Helper ---

def api_request(method: str, endpoint: str, **kwargs) -> dict:
    """Make a request to the Blueprint Edit backend."""
    url = f"{config.API_BASE}{endpoint}"
    with httpx.Client(timeout=30.0) as client:
        if method == "GET":
            response = client.get(url, params=kwargs.get("params"))
        elif method == "POST":
            response = client.post(url, json=kwargs.get("json"), files=kwargs.get("files"))
        elif method == "PUT":
            response = client.put(url, json=kwargs.get("json"))
        else:
            raise ValueError(f"Unknown method: {method}")

        if response.status_code >= 400:
            error = response.json().get("detail", "Unknown error")
            raise BackendError(f"API error: {error}")

        return response.json()


# ============================================================================
# CHAT TOOLS
# ============================================================================

@mcp.tool()
def diagram_chat(instruction: str) -> str:
    """
    Send one plain-English editing instruction to the diagram.

    Args:
        instruction: What to change. Examples:
            - "remove the GPU"
            - "change Kafka to RabbitMQ"
            - "remove arrows between API and Database"
            - "add Redis cache"
            - "make CPU color red"

    Returns the assistant's reply, the list of changes made and whether
    the document was updated.
    """
    result = api_request("POST", "/chat", json={"instruction": instruction})
    result.pop("document", None)
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_messages(limit: Optional[int] = None) -> str:
    """
    Get the chat log, oldest first.

    Args:
        limit: Only return the most recent N messages
    """
    result = api_request("GET", "/messages", params={"limit": limit} if limit is not None else None)
    return json.dumps(result, indent=2)


# ============================================================================
# DOCUMENT TOOLS
# ============================================================================

@mcp.tool()
def diagram_get_document() -> str:
    """
    Get the current diagram markup and the session state.

    Use this to see which components exist before sending instructions.
    """
    state = api_request("GET", "/session")
    components = api_request("GET", "/document/components")
    state["components"] = components["components"]
    return json.dumps(state, indent=2)


@mcp.tool()
def diagram_upload(file_path: str) -> str:
    """
    Upload a draw.io (.xml/.drawio) file or a reference image from disk.

    Args:
        file_path: Full path to the file

    Uploading markup replaces the document and clears undo history.
    """
    path = Path(file_path)
    result = api_request("POST", "/upload", files={"file": (path.name, path.read_bytes())})
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_set_document(content: str) -> str:
    """
    Replace the document markup directly.

    Args:
        content: Complete draw.io markup. The previous text can be restored with diagram_undo().
    """
    result = api_request("PUT", "/document", json={"content": content})
    return json.dumps({"success": result["success"], "chars": len(result["content"])}, indent=2)


@mcp.tool()
def diagram_validate() -> str:
    """
    Check the document for structural issues.

    Reports duplicate ids and dangling connections as errors, and orphan
    or unlabeled components as warnings.
    """
    result = api_request("GET", "/document/validate")
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_viewer_url() -> str:
    """Get a diagrams.net viewer link that renders the current document."""
    result = api_request("GET", "/document/viewer-url")
    return json.dumps(result, indent=2)


# ============================================================================
# HISTORY TOOLS
# ============================================================================

@mcp.tool()
def diagram_undo() -> str:
    """Undo the last document change."""
    result = api_request("POST", "/undo")
    return json.dumps({k: v for k, v in result.items() if k != "content"}, indent=2)


@mcp.tool()
def diagram_redo() -> str:
    """Redo the last undone change."""
    result = api_request("POST", "/redo")
    return json.dumps({k: v for k, v in result.items() if k != "content"}, indent=2)


@mcp.tool()
def diagram_reset() -> str:
    """Clear uploaded files, document history and the chat log."""
    result = api_request("POST", "/reset")
    return json.dumps(result, indent=2)


# ============================================================================
# MAIN
# ============================================================================

def main():
    mcp.run()


if __name__ == "__main__":
    main()
