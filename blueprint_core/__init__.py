"""
Blueprint Edit Core - Diagram models, markup codec and the instruction engine.

This module provides the functionality shared by the backend API, the CLI
and the MCP tools: parsing draw.io markup, matching chat instructions to
edit intents and applying them.
"""

from .models import (
    # Enums
    CellKind,
    Intent,
    ReplaceScope,
    ChatRole,
    # Core models
    Geometry,
    Node,
    Edge,
    StructureCell,
    DocumentWrapper,
    DiagramDocument,
    ChatMessage,
    # Request models (for API)
    ChatRequest,
    DocumentRequest,
)

from .markup import (
    MarkupError,
    parse_document,
    serialize_document,
    parse_style,
    format_style,
    looks_like_diagram,
    markup_stats,
    format_markup,
)
from .matcher import IntentMatch, classify, iter_matches
from .mutator import EditResult, TransformResult, apply_instruction
from .responses import GREETING, build_response, extract_component_labels
from .validation import validate_document, validation_summary, ValidationIssue, IssueSeverity
from .viewer import build_viewer_url

__all__ = [
    # Enums
    "CellKind",
    "Intent",
    "ReplaceScope",
    "ChatRole",
    # Models
    "Geometry",
    "Node",
    "Edge",
    "StructureCell",
    "DocumentWrapper",
    "DiagramDocument",
    "ChatMessage",
    # Request models
    "ChatRequest",
    "DocumentRequest",
    # Markup
    "MarkupError",
    "parse_document",
    "serialize_document",
    "parse_style",
    "format_style",
    "looks_like_diagram",
    "markup_stats",
    "format_markup",
    # Engine
    "IntentMatch",
    "classify",
    "iter_matches",
    "EditResult",
    "TransformResult",
    "apply_instruction",
    # Responses
    "GREETING",
    "build_response",
    "extract_component_labels",
    # Validation
    "validate_document",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Viewer
    "build_viewer_url",
]
