"""
Core data models for diagram documents and chat sessions.

These models define the typed view of a draw.io document:
- Nodes (vertex cells) with a label, style, parent and geometry
- Edges (edge cells) with source/target node ids
- Structural cells (root and layer cells) carried through untouched

Anything the models do not understand (extra attributes, child elements,
wrapper objects) is kept verbatim so a parse -> serialize round trip does not
lose information.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field


class CellKind(str, Enum):
    """Kinds of cells in a graph model."""
    NODE = "node"
    EDGE = "edge"
    STRUCTURE = "structure"  # Root/layer cells and passthrough elements


class Intent(str, Enum):
    """Kinds of edits an instruction can request, in matching priority order."""
    REMOVE = "remove"
    REPLACE = "replace"
    DISCONNECT_EDGES = "disconnect_edges"
    ADD = "add"
    MODIFY_PROPERTY = "modify_property"
    CONTEXTUAL_BULK_RESIZE = "contextual_bulk_resize"
    UNRECOGNIZED = "unrecognized"


class ReplaceScope(str, Enum):
    """Where rename/replace instructions are allowed to rewrite text."""
    LABELS = "labels"      # Cell labels only
    DOCUMENT = "document"  # Entire serialized markup (legacy behaviour)


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Geometry(BaseModel):
    """An mxGeometry element. Non-numeric or unknown attributes stay in `attributes`."""
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    attributes: dict[str, str] = Field(default_factory=lambda: {"as": "geometry"})
    children: list[str] = Field(default_factory=list)  # Raw XML (mxPoint, Array, ...)


class CellBase(BaseModel):
    """Fields shared by every cell."""
    id: str
    value: str = ""
    style: str = ""
    parent: Optional[str] = None
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list[str] = Field(default_factory=list)  # Raw XML of unknown children
    # Set when the cell was written as <UserObject label=".." id=".."><mxCell /></UserObject>
    object_tag: Optional[str] = None
    object_attributes: dict[str, str] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.value


class Node(CellBase):
    """A vertex cell: something drawn on the canvas."""
    kind: Literal["node"] = CellKind.NODE.value
    geometry: Optional[Geometry] = None

    def label_contains(self, text: str, case_sensitive: bool = True) -> bool:
        """Substring match on the raw label text."""
        if not text:
            return False
        if case_sensitive:
            return text in self.value
        return text.lower() in self.value.lower()


class Edge(CellBase):
    """An edge cell connecting two node ids."""
    kind: Literal["edge"] = CellKind.EDGE.value
    source: Optional[str] = None
    target: Optional[str] = None
    geometry: Optional[Geometry] = None

    def references(self, node_id: str) -> bool:
        return node_id in (self.source, self.target)


class StructureCell(CellBase):
    """
    A cell that is neither a vertex nor an edge.

    When `raw` is set the element was not an mxCell we understand (e.g. a
    user object without a vertex or edge inside) and is written back exactly
    as read.
    """
    kind: Literal["structure"] = CellKind.STRUCTURE.value
    raw: Optional[str] = None


Cell = Annotated[Union[Node, Edge, StructureCell], Field(discriminator="kind")]


class DocumentWrapper(BaseModel):
    """The <mxfile>/<diagram> envelope a model was read from, if any."""
    file_attributes: dict[str, str] = Field(default_factory=dict)
    diagram_attributes: dict[str, str] = Field(default_factory=dict)
    extra_pages: list[str] = Field(default_factory=list)  # Raw XML of other <diagram> pages


class DiagramDocument(BaseModel):
    """
    A parsed graph model.

    Cells keep document order; serialization writes them back in the same
    order so diffs stay small.
    """
    model_attributes: dict[str, str] = Field(default_factory=dict)
    cells: list[Cell] = Field(default_factory=list)
    wrapper: Optional[DocumentWrapper] = None
    has_root: bool = True  # False when the model had no <root> element

    @property
    def nodes(self) -> list[Node]:
        return [c for c in self.cells if isinstance(c, Node)]

    @property
    def edges(self) -> list[Edge]:
        return [c for c in self.cells if isinstance(c, Edge)]

    def get_cell(self, cell_id: str) -> Optional[CellBase]:
        """Get a cell by id (O(n))."""
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        return None

    def find_nodes(self, text: str, case_sensitive: bool = True) -> list[Node]:
        """Nodes whose label contains `text`."""
        return [n for n in self.nodes if n.label_contains(text, case_sensitive)]

    def next_numeric_id(self) -> int:
        """max(numeric ids) + 1, where non-numeric ids count as 0."""
        ids = [int(c.id) if c.id.isdigit() else 0 for c in self.cells]
        return max(ids, default=0) + 1

    def default_parent(self) -> str:
        """The layer new nodes are attached to."""
        for cell in self.cells:
            if isinstance(cell, StructureCell) and cell.raw is None and cell.parent:
                return cell.id
        return "1"

    def remove_cells(self, cell_ids: set[str]) -> int:
        """Drop cells by id. Returns the number removed."""
        before = len(self.cells)
        self.cells = [c for c in self.cells if c.id not in cell_ids]
        return before - len(self.cells)


class ChatMessage(BaseModel):
    """One entry in the append-only chat log."""
    role: ChatRole
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json_dict(self) -> dict:
        return {
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }


# --- API Request/Response Models ---

class ChatRequest(BaseModel):
    """Request to process one chat instruction."""
    instruction: str


class DocumentRequest(BaseModel):
    """Request to replace the document text (manual markup edit)."""
    content: str
