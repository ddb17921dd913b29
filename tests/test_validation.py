"""Tests for document validation."""

from blueprint_core import IssueSeverity, parse_document, validate_document, validation_summary


def _issues(xml_cells: str):
    doc = parse_document(f'<mxGraphModel><root><mxCell id="0" /><mxCell id="1" parent="0" />{xml_cells}</root></mxGraphModel>')
    return validate_document(doc)


class TestValidateDocument:

    def test_clean_document(self, gpu_cpu_xml: str) -> None:
        issues = validate_document(parse_document(gpu_cpu_xml))
        assert issues == []
        assert validation_summary(issues)["valid"] is True

    def test_empty_diagram_is_info(self, empty_model_xml: str) -> None:
        issues = validate_document(parse_document(empty_model_xml))
        assert [i.severity for i in issues] == [IssueSeverity.INFO]
        assert issues[0].message == "Diagram has no nodes"

    def test_dangling_edge_after_manual_edit(self) -> None:
        issues = _issues(
            '<mxCell id="2" value="A" vertex="1" parent="1" />'
            '<mxCell id="3" edge="1" parent="1" source="2" target="9" />'
        )
        errors = [i for i in issues if i.severity == IssueSeverity.ERROR]
        assert len(errors) == 1
        assert errors[0].edge_id == "3"
        assert "target" in errors[0].message

    def test_duplicate_ids(self) -> None:
        issues = _issues(
            '<mxCell id="2" value="A" vertex="1" parent="1" />'
            '<mxCell id="2" value="B" vertex="1" parent="1" />'
        )
        assert any(i.message == "Duplicate cell id: 2" for i in issues)
        assert validation_summary(issues)["valid"] is False

    def test_warnings(self) -> None:
        issues = _issues(
            '<mxCell id="2" value="A" vertex="1" parent="1" />'
            '<mxCell id="3" value="" vertex="1" parent="1" />'
            '<mxCell id="4" edge="1" parent="1" source="2" target="2" />'
            '<mxCell id="5" edge="1" parent="1" source="2" target="2" />'
        )
        messages = [i.message for i in issues]

        assert all(i.severity == IssueSeverity.WARNING for i in issues)
        assert "Duplicate edge from 2 to 2" in messages
        assert "Orphan nodes (no connections): (unlabelled) (3)" in messages
        assert "Node has an empty label" in messages
        assert messages.count("Self-referencing edge (node points to itself)") == 2

    def test_summary_counts(self) -> None:
        issues = _issues('<mxCell id="2" value="" vertex="1" parent="1" />')
        assert validation_summary(issues) == {
            "total": 2, "errors": 0, "warnings": 2, "info": 0, "valid": True,
        }

    def test_to_dict(self) -> None:
        issues = _issues(
            '<mxCell id="2" value="A" vertex="1" parent="1" />'
            '<mxCell id="3" edge="1" parent="1" source="9" target="2" />'
        )
        assert issues[0].to_dict() == {
            "type": "error",
            "message": "Edge references non-existent source node: 9",
            "edge_id": "3",
        }

    def test_user_object_endpoints(self) -> None:
        """Nodes wrapped in <UserObject> count as edge endpoints."""
        issues = _issues(
            '<UserObject label="Gateway" link="https://wiki/gw" id="7">'
            '<mxCell vertex="1" parent="1" /></UserObject>'
            '<mxCell id="8" value="Auth" vertex="1" parent="1" />'
            '<mxCell id="9" edge="1" parent="1" source="7" target="8" />'
        )
        assert issues == []
        assert validation_summary(issues)["valid"] is True
