"""
Diagram mutator - Apply matched intents to a parsed diagram.

The pipeline is parse -> mutate -> serialize:
- the document text is parsed once into a DiagramDocument
- each candidate match from the matcher is tried on a fresh copy
- the first transform that reports success is serialized and returned

At most one intent category is applied per instruction. A document that
does not parse is returned unchanged with no changes.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .markup import MarkupError, parse_document, serialize_document, set_style_value
from .matcher import IntentMatch, iter_matches
from .models import DiagramDocument, Geometry, Intent, Node, ReplaceScope

logger = logging.getLogger(__name__)

DEFAULT_NODE_STYLE = "rounded=1;whiteSpace=wrap;html=1;fillColor=#dae8fc;strokeColor=#6c8ebf;"
DEFAULT_NODE_POSITION = (400.0, 200.0)
DEFAULT_NODE_SIZE = (120.0, 60.0)

COLOR_MAP = {
    "red": "#ff0000",
    "blue": "#0000ff",
    "green": "#00ff00",
    "yellow": "#ffff00",
    "orange": "#ffa500",
    "purple": "#800080",
    "pink": "#ffc0cb",
    "gray": "#808080",
}

CONTEXT_STOP_WORDS = frozenset({
    "the", "and", "or", "to", "from", "with", "by", "as", "into",
    "remove", "add", "change", "make",
})
BIGGER_SIZE = "150"
SMALLER_SIZE = "80"


@dataclass
class TransformResult:
    """Outcome of one transform attempt."""
    success: bool
    changes: list[str] = field(default_factory=list)
    count: int = 0


@dataclass
class EditResult:
    """What one instruction did to a document."""
    markup: str
    changes: list[str] = field(default_factory=list)
    intent: Intent = Intent.UNRECOGNIZED

    @property
    def changed(self) -> bool:
        return len(self.changes) > 0


# --- Transforms ---

def remove_component(doc: DiagramDocument, name: str) -> TransformResult:
    """
    Delete every node whose label contains `name` (case-sensitive) and every
    edge attached to one of them.
    """
    matches = doc.find_nodes(name, case_sensitive=True)
    if not matches:
        return TransformResult(success=False)

    removed_ids = {n.id for n in matches}
    edge_ids = {e.id for e in doc.edges if e.source in removed_ids or e.target in removed_ids}
    doc.remove_cells(removed_ids | edge_ids)

    logger.debug("Removed nodes %s and edges %s", sorted(removed_ids), sorted(edge_ids))
    return TransformResult(
        success=True,
        changes=[f"Removed {name.upper()} component and its connections"],
        count=len(removed_ids),
    )


def _whole_word(text: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(text)}\b", re.IGNORECASE)


def replace_component(
    doc: DiagramDocument,
    old: str,
    new: str,
    scope: ReplaceScope = ReplaceScope.LABELS,
) -> TransformResult:
    """
    Replace whole-word, case-insensitive occurrences of `old` with `new` upper-cased.

    LABELS scope rewrites cell labels only. DOCUMENT scope rewrites the whole
    serialized markup, attributes included, and fails if the result no longer
    parses.
    """
    pattern = _whole_word(old)
    replacement = new.upper()

    if scope == ReplaceScope.DOCUMENT:
        text, count = pattern.subn(lambda _: replacement, serialize_document(doc))
        if count == 0:
            return TransformResult(success=False)
        try:
            rewritten = parse_document(text)
        except MarkupError as e:
            logger.warning("Document-wide replace of %r broke the markup: %s", old, e)
            return TransformResult(success=False)
        for name in DiagramDocument.model_fields:
            setattr(doc, name, getattr(rewritten, name))
    else:
        count = 0
        for cell in doc.cells:
            if not cell.value or getattr(cell, "raw", None) is not None:
                continue
            cell.value, hits = pattern.subn(lambda _: replacement, cell.value)
            count += hits
        if count == 0:
            return TransformResult(success=False)

    return TransformResult(
        success=True,
        changes=[f'Changed {count} instance(s) of "{old.upper()}" to "{replacement}"'],
        count=count,
    )


def _edge_mentions(doc: DiagramDocument, edge) -> str:
    parts = [edge.id, edge.value, edge.source or "", edge.target or ""]
    for endpoint in (edge.source, edge.target):
        cell = doc.get_cell(endpoint) if endpoint else None
        if cell is not None:
            parts.append(cell.value)
    return " ".join(parts)


def remove_connections(
    doc: DiagramDocument,
    component1: Optional[str] = None,
    component2: Optional[str] = None,
) -> TransformResult:
    """
    With two names, delete edges that mention both (id, label, endpoint ids or
    endpoint labels). With fewer, delete every edge in the document.
    """
    if component1 and component2:
        doomed = set()
        for edge in doc.edges:
            text = _edge_mentions(doc, edge)
            if component1 in text and component2 in text:
                doomed.add(edge.id)
        removed = doc.remove_cells(doomed)
        message = (
            f"Removed {removed} connection(s) between "
            f"{component1.upper()} and {component2.upper()}"
        )
    else:
        removed = doc.remove_cells({e.id for e in doc.edges})
        message = f"Removed {removed} arrow(s)/connection(s) from the diagram"

    if removed == 0:
        return TransformResult(success=False, count=0)
    return TransformResult(success=True, changes=[message], count=removed)


def add_component(doc: DiagramDocument, name: str) -> TransformResult:
    """Append a default-styled node labelled `name` upper-cased, with the next numeric id."""
    if not doc.has_root:
        return TransformResult(success=False)
    x, y = DEFAULT_NODE_POSITION
    width, height = DEFAULT_NODE_SIZE
    node = Node(
        id=str(doc.next_numeric_id()),
        value=name.upper(),
        style=DEFAULT_NODE_STYLE,
        parent=doc.default_parent(),
        geometry=Geometry(x=x, y=y, width=width, height=height),
    )
    doc.cells.append(node)
    return TransformResult(
        success=True,
        changes=[f"Added new {name.upper()} component to the architecture"],
        count=1,
    )


def _resize(nodes: list[Node], value: str) -> int:
    size = float(value)
    resized = 0
    for node in nodes:
        if node.geometry is None:
            continue
        node.geometry.width = size
        node.geometry.height = size
        resized += 1
    return resized


def modify_component_property(
    doc: DiagramDocument,
    component: str,
    value: str,
    instruction: str,
) -> TransformResult:
    """
    Resize or recolor nodes whose label contains `component` (case-insensitive).

    The branch comes from the instruction text: size/width/height wins over
    color/colour. Sizes are square. Known color names map to hex codes,
    anything else is written as given.
    """
    lower = instruction.lower()
    nodes = doc.find_nodes(component, case_sensitive=False)

    if "size" in lower or "width" in lower or "height" in lower:
        resized = _resize(nodes, value) if value.isdigit() else 0
        if resized == 0:
            return TransformResult(success=False)
        return TransformResult(
            success=True,
            changes=[f"Changed {component.upper()} size to {value}x{value}"],
            count=resized,
        )

    if "color" in lower or "colour" in lower:
        if not nodes:
            return TransformResult(success=False)
        color = COLOR_MAP.get(value.lower(), value)
        for node in nodes:
            node.style = set_style_value(node.style, "fillColor", color)
        return TransformResult(
            success=True,
            changes=[f"Changed {component.upper()} color to {value}"],
            count=len(nodes),
        )

    return TransformResult(success=False)


def apply_contextual_changes(doc: DiagramDocument, instruction: str) -> TransformResult:
    """
    Resize every component word of the instruction that appears in the document.

    "bigger"/"larger" resize to 150, "smaller" to 80. Unlike the other
    transforms this can touch several components at once.
    """
    lower = instruction.lower()
    grow = "bigger" in lower or "larger" in lower
    shrink = "smaller" in lower
    if not (grow or shrink):
        return TransformResult(success=False)

    document_text = serialize_document(doc).lower()
    words = [w.strip(".,!?;:") for w in lower.split()]
    candidates = dict.fromkeys(
        w for w in words
        if len(w) > 2 and w not in CONTEXT_STOP_WORDS and w in document_text
    )

    changes = []
    for word in candidates:
        nodes = doc.find_nodes(word, case_sensitive=False)
        if grow and _resize(nodes, BIGGER_SIZE):
            changes.append(f"Made {word.upper()} larger")
        if shrink and _resize(nodes, SMALLER_SIZE):
            changes.append(f"Made {word.upper()} smaller")

    return TransformResult(success=bool(changes), changes=changes, count=len(changes))


# --- Dispatch ---

Transform = Callable[[DiagramDocument, IntentMatch, ReplaceScope], TransformResult]

TRANSFORMS: dict[Intent, Transform] = {
    Intent.REMOVE: lambda doc, m, scope: remove_component(doc, m.arg(0)),
    Intent.REPLACE: lambda doc, m, scope: replace_component(doc, m.arg(0), m.arg(1), scope),
    Intent.DISCONNECT_EDGES: lambda doc, m, scope: remove_connections(doc, m.arg(0), m.arg(1)),
    Intent.ADD: lambda doc, m, scope: add_component(doc, m.arg(0)),
    Intent.MODIFY_PROPERTY: lambda doc, m, scope: modify_component_property(
        doc, m.arg(0), m.arg(1), m.instruction
    ),
    Intent.CONTEXTUAL_BULK_RESIZE: lambda doc, m, scope: apply_contextual_changes(doc, m.instruction),
}


def apply_instruction(
    markup: str,
    instruction: str,
    scope: ReplaceScope = ReplaceScope.LABELS,
) -> EditResult:
    """
    Run one instruction against document text.

    Returns the new markup and the change records. When nothing applies
    (no match, nothing found, or unparseable markup) the original text is
    returned untouched and the change list is empty.
    """
    unchanged = EditResult(markup=markup)
    if not markup or not markup.strip():
        return unchanged

    try:
        doc = parse_document(markup)
    except MarkupError as e:
        logger.info("Skipping instruction, document does not parse: %s", e)
        return unchanged

    for match in iter_matches(instruction):
        working = doc.model_copy(deep=True)
        result = TRANSFORMS[match.intent](working, match, scope)
        if result.success:
            logger.info("Applied %s (%s): %s", match.intent.value, match.pattern, result.changes)
            return EditResult(
                markup=serialize_document(working),
                changes=result.changes,
                intent=match.intent,
            )
        logger.debug("No-op %s for %r", match.intent.value, match.args)

    return unchanged
