"""
Diagram validation - Ad-hoc well-formedness checks on a parsed document.

Mutations never enforce these rules; validation only reports them so a
caller can show what a sequence of edits left behind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import DiagramDocument


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, viewers may refuse the markup
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a document."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def validate_document(doc: "DiagramDocument") -> list[ValidationIssue]:
    """
    Validate a document and return a list of issues.

    Checks for:
    - Duplicate cell ids - ERROR
    - Edges whose source/target is not a node - ERROR
    - Self-referencing edges - WARNING
    - Duplicate edges (same source->target) - WARNING
    - Orphan nodes (no connections) - WARNING
    - Empty labels - WARNING
    - Empty diagram - INFO
    """
    issues: list[ValidationIssue] = []

    seen_ids: set[str] = set()
    for cell in doc.cells:
        if cell.id in seen_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Duplicate cell id: {cell.id}"
            ))
        seen_ids.add(cell.id)

    nodes = doc.nodes
    edges = doc.edges

    if not nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no nodes"
        ))
        return issues

    node_ids = {n.id for n in nodes}

    for edge in edges:
        if edge.source is not None and edge.source not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent source node: {edge.source}",
                edge_id=edge.id
            ))
        if edge.target is not None and edge.target not in node_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Edge references non-existent target node: {edge.target}",
                edge_id=edge.id
            ))
        if edge.source is not None and edge.source == edge.target:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing edge (node points to itself)",
                edge_id=edge.id,
                node_id=edge.source
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for edge in edges:
        if edge.source is None or edge.target is None:
            continue
        pair = (edge.source, edge.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate edge from {edge.source} to {edge.target}",
                edge_id=edge.id
            ))
        else:
            seen_pairs.add(pair)

    connected: set[str] = set()
    for edge in edges:
        connected.update(i for i in (edge.source, edge.target) if i)
    orphans = [n for n in nodes if n.id not in connected]
    if orphans:
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message="Orphan nodes (no connections): "
                    + ", ".join(f"{n.value or '(unlabelled)'} ({n.id})" for n in orphans)
        ))

    for node in nodes:
        if not node.value.strip():
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has an empty label",
                node_id=node.id
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """Counts by severity; `valid` is False when any ERROR is present."""
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
