"""
Markup codec - Parse and serialize draw.io graph models.

Reads a bare <mxGraphModel>, an <mxfile> envelope with plain or compressed
<diagram> pages, and turns it into a DiagramDocument. Serialization writes
the canonical form back (pages are always written uncompressed).

Also holds the small text helpers used by the markup editor: style string
parsing, stats and indentation.
"""

import base64
import binascii
import logging
import re
import urllib.parse
import xml.etree.ElementTree as ET
import zlib
from typing import Optional

from .models import (
    DiagramDocument,
    DocumentWrapper,
    Edge,
    Geometry,
    Node,
    StructureCell,
)

logger = logging.getLogger(__name__)

GEOMETRY_FIELDS = ("x", "y", "width", "height")

# Characters encodeURIComponent leaves alone (letters, digits and "-_.~" are always safe)
_URI_COMPONENT_SAFE = "!*'()"

_ELEMENT_RE = re.compile(r"<[^/][^>]*>")

# Wrappers draw.io uses for cells with a tooltip, link or custom properties
OBJECT_TAGS = ("UserObject", "object")


class MarkupError(ValueError):
    """The text is not a graph model this codec can read."""


# --- Style strings ---

def parse_style(style: str) -> dict[str, Optional[str]]:
    """
    Parse a `key=value;key2=value2;` style string.

    Bare entries such as `ellipse;` map to None so they survive a round trip.
    """
    out: dict[str, Optional[str]] = {}
    for part in (style or "").split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            key, value = part.split("=", 1)
            out[key.strip()] = value.strip()
        else:
            out[part] = None
    return out


def format_style(entries: dict[str, Optional[str]]) -> str:
    """Inverse of parse_style. Always ends with ';' when non-empty."""
    if not entries:
        return ""
    parts = [key if value is None else f"{key}={value}" for key, value in entries.items()]
    return ";".join(parts) + ";"


def set_style_value(style: str, key: str, value: str) -> str:
    """Set one style key, keeping the position of an existing entry."""
    entries = parse_style(style)
    entries[key] = value
    return format_style(entries)


# --- Compressed diagram payloads ---

def decode_diagram_payload(payload: str) -> str:
    """
    Decode a compressed <diagram> body: base64 -> inflate -> URI-decode.

    Raw deflate is what draw.io writes; zlib and gzip headers are accepted too.
    """
    try:
        raw = base64.b64decode(payload.strip(), validate=False)
    except (binascii.Error, ValueError) as e:
        raise MarkupError(f"Diagram payload is not base64: {e}") from e

    inflated: Optional[bytes] = None
    for wbits in (-15, 15, 31):
        try:
            inflated = zlib.decompress(raw, wbits=wbits)
            break
        except zlib.error:
            continue
    if inflated is None:
        raise MarkupError("Failed to decompress diagram payload")

    try:
        decoded = urllib.parse.unquote(inflated.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MarkupError(f"Diagram payload is not UTF-8: {e}") from e

    if "<mxGraphModel" not in decoded:
        raise MarkupError("Decoded payload did not contain <mxGraphModel>")
    return decoded


def encode_diagram_payload(markup: str) -> str:
    """base64(raw-deflate level 9 (URI-encoded markup)), the draw.io page/viewer encoding."""
    data = urllib.parse.quote(markup, safe=_URI_COMPONENT_SAFE).encode("utf-8")
    compressor = zlib.compressobj(9, zlib.DEFLATED, -15)
    compressed = compressor.compress(data) + compressor.flush()
    return base64.b64encode(compressed).decode("ascii")


# --- Parsing ---

def looks_like_diagram(text: str) -> bool:
    """Cheap check used before accepting text as a draw.io document."""
    return "mxGraphModel" in text or "<mxfile" in text


def format_number(value: float) -> str:
    """Write 120.0 as '120' and keep real fractions."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _element_text(elem: ET.Element) -> str:
    elem.tail = None
    return ET.tostring(elem, encoding="unicode")


def _parse_geometry(elem: ET.Element) -> Geometry:
    attrs = dict(elem.attrib)
    numbers: dict[str, float] = {}
    for name in GEOMETRY_FIELDS:
        if name not in attrs:
            continue
        try:
            numbers[name] = float(attrs[name])
        except ValueError:
            continue  # Leave non-numeric values in attributes
        del attrs[name]
    return Geometry(
        **numbers,
        attributes=attrs,
        children=[_element_text(child) for child in elem],
    )


def _parse_object(elem: ET.Element):
    """
    A <UserObject>/<object> wrapping a single vertex or edge mxCell.

    The wrapper carries the id and the label; its other attributes (tooltip,
    link, custom properties) are kept on the cell.
    """
    cell = _parse_cell(elem[0])
    attrs = dict(elem.attrib)
    cell.id = attrs.pop("id", cell.id)
    cell.value = attrs.pop("label", "")
    cell.object_tag = elem.tag
    cell.object_attributes = attrs
    return cell


def _parse_cell(elem: ET.Element):
    if elem.tag in OBJECT_TAGS and len(elem) == 1 and elem[0].tag == "mxCell":
        inner = elem[0]
        if inner.get("vertex") == "1" or inner.get("edge") == "1":
            return _parse_object(elem)

    if elem.tag != "mxCell":
        return StructureCell(id=elem.get("id", ""), value=elem.get("label", ""), raw=_element_text(elem))

    attrs = dict(elem.attrib)
    common = {
        "id": attrs.pop("id", ""),
        "value": attrs.pop("value", ""),
        "style": attrs.pop("style", ""),
        "parent": attrs.pop("parent", None),
    }
    is_vertex = attrs.get("vertex") == "1"
    is_edge = attrs.get("edge") == "1"

    if not (is_vertex or is_edge):
        children = [_element_text(child) for child in elem]
        return StructureCell(**common, attributes=attrs, children=children)

    geometry = None
    children = []
    for child in elem:
        if child.tag == "mxGeometry" and geometry is None:
            geometry = _parse_geometry(child)
        else:
            children.append(_element_text(child))

    if is_vertex:
        del attrs["vertex"]
        return Node(**common, geometry=geometry, attributes=attrs, children=children)

    del attrs["edge"]
    return Edge(
        **common,
        source=attrs.pop("source", None),
        target=attrs.pop("target", None),
        geometry=geometry,
        attributes=attrs,
        children=children,
    )


def _parse_model(model: ET.Element, wrapper: Optional[DocumentWrapper]) -> DiagramDocument:
    cells = []
    root = model.find("root")
    if root is not None:
        cells = [_parse_cell(child) for child in root]
    return DiagramDocument(
        model_attributes=dict(model.attrib),
        cells=cells,
        wrapper=wrapper,
        has_root=root is not None,
    )


def _fromstring(text: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise MarkupError(f"Malformed markup: {e}") from e


def parse_document(text: str) -> DiagramDocument:
    """
    Parse markup text into a DiagramDocument.

    Raises:
        MarkupError: the text is empty, not XML, or holds no graph model
    """
    if not text or not text.strip():
        raise MarkupError("Document is empty")

    top = _fromstring(text.strip())

    if top.tag == "mxGraphModel":
        return _parse_model(top, wrapper=None)

    if top.tag != "mxfile":
        raise MarkupError(f"Expected <mxGraphModel> or <mxfile>, got <{top.tag}>")

    pages = top.findall("diagram")
    if not pages:
        raise MarkupError("<mxfile> has no <diagram> pages")

    first = pages[0]
    model = first.find("mxGraphModel")
    if model is None:
        payload = (first.text or "").strip()
        if not payload:
            raise MarkupError("First <diagram> page is empty")
        model = _fromstring(decode_diagram_payload(payload))
        logger.debug("Inflated compressed diagram page %s", first.get("id", "?"))

    wrapper = DocumentWrapper(
        file_attributes=dict(top.attrib),
        diagram_attributes=dict(first.attrib),
        extra_pages=[_element_text(page) for page in pages[1:]],
    )
    return _parse_model(model, wrapper)


# --- Serialization ---

def _geometry_element(geometry: Geometry) -> ET.Element:
    elem = ET.Element("mxGeometry")
    for name in GEOMETRY_FIELDS:
        value = getattr(geometry, name)
        if value is not None:
            elem.set(name, format_number(value))
    for key, value in geometry.attributes.items():
        elem.set(key, value)
    for child in geometry.children:
        elem.append(ET.fromstring(child))
    return elem


def _mx_cell_element(cell, in_object: bool = False) -> ET.Element:
    elem = ET.Element("mxCell")
    if not in_object:
        elem.set("id", cell.id)
        if cell.value or not isinstance(cell, StructureCell):
            elem.set("value", cell.value)
    if cell.style:
        elem.set("style", cell.style)
    if isinstance(cell, Node):
        elem.set("vertex", "1")
    elif isinstance(cell, Edge):
        elem.set("edge", "1")
    if cell.parent is not None:
        elem.set("parent", cell.parent)
    if isinstance(cell, Edge):
        if cell.source is not None:
            elem.set("source", cell.source)
        if cell.target is not None:
            elem.set("target", cell.target)
    for key, value in cell.attributes.items():
        elem.set(key, value)

    geometry = getattr(cell, "geometry", None)
    if geometry is not None:
        elem.append(_geometry_element(geometry))
    for child in cell.children:
        elem.append(ET.fromstring(child))
    return elem


def _cell_element(cell) -> ET.Element:
    if isinstance(cell, StructureCell) and cell.raw is not None:
        return ET.fromstring(cell.raw)
    if cell.object_tag is None:
        return _mx_cell_element(cell)

    wrapper = ET.Element(cell.object_tag)
    wrapper.set("label", cell.value)
    for key, value in cell.object_attributes.items():
        wrapper.set(key, value)
    wrapper.set("id", cell.id)
    wrapper.append(_mx_cell_element(cell, in_object=True))
    return wrapper


def build_model_element(doc: DiagramDocument) -> ET.Element:
    model = ET.Element("mxGraphModel", dict(doc.model_attributes))
    if not doc.has_root and not doc.cells:
        return model
    root = ET.SubElement(model, "root")
    for cell in doc.cells:
        root.append(_cell_element(cell))
    return model


def serialize_document(doc: DiagramDocument) -> str:
    """Write a DiagramDocument as indented markup."""
    top = build_model_element(doc)
    if doc.wrapper is not None:
        mxfile = ET.Element("mxfile", dict(doc.wrapper.file_attributes))
        diagram = ET.SubElement(mxfile, "diagram", dict(doc.wrapper.diagram_attributes))
        diagram.append(top)
        for page in doc.wrapper.extra_pages:
            mxfile.append(ET.fromstring(page))
        top = mxfile
    ET.indent(top, space="  ")
    return ET.tostring(top, encoding="unicode")


# --- Editor helpers ---

def markup_stats(text: str) -> dict:
    """Line, character and opening-element counts for the markup editor."""
    if not text:
        return {"lines": 0, "chars": 0, "elements": 0}
    return {
        "lines": len(text.split("\n")),
        "chars": len(text),
        "elements": len(_ELEMENT_RE.findall(text)),
    }


def format_markup(text: str, indent_size: int = 2) -> str:
    """
    Line-based indentation that also works on markup that does not parse.

    Every tag goes on its own line; opening tags indent what follows and
    closing tags dedent.
    """
    if not text:
        return ""

    lines = text.replace("><", ">\n<").split("\n")
    indent = 0
    out = []
    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            out.append("")
            continue
        if trimmed.startswith("</"):
            indent = max(0, indent - indent_size)
        out.append(" " * indent + trimmed)
        if (trimmed.startswith("<") and not trimmed.startswith("</")
                and not trimmed.endswith("/>") and not trimmed.startswith("<?")
                and "</" not in trimmed):
            indent += indent_size
    return "\n".join(out)
