"""Tests for assistant replies."""

from blueprint_core import Intent, apply_instruction, build_response, extract_component_labels
from blueprint_core.responses import GREETING, NO_COMPONENTS, guidance_message


class TestExtractComponentLabels:

    def test_labels_in_document_order(self, gpu_cpu_xml: str) -> None:
        assert extract_component_labels(gpu_cpu_xml) == ["GPU", "CPU"]

    def test_skips_markup_values_and_duplicates(self) -> None:
        markup = (
            '<mxCell value="API" /><mxCell value="&lt;b&gt;x" />'
            '<mxCell value="<b>bold</b>" /><mxCell value="API" />'
        )
        assert extract_component_labels(markup) == ["API", "&lt;b&gt;x"]

    def test_capped(self) -> None:
        markup = "".join(f'<mxCell value="N{i}" />' for i in range(15))
        labels = extract_component_labels(markup)
        assert len(labels) == 10
        assert labels[-1] == "N9"

    def test_placeholder_when_empty(self) -> None:
        assert extract_component_labels("") == [NO_COMPONENTS]


class TestBuildResponse:

    def test_change_summary(self) -> None:
        reply = build_response("remove GPU", "", ["Removed GPU component and its connections"])
        assert reply.startswith("**Architecture Successfully Updated!**")
        assert "• Removed GPU component and its connections" in reply

    def test_guidance_lists_components(self, gpu_cpu_xml: str) -> None:
        reply = build_response("remove TPU", gpu_cpu_xml, [])
        assert reply.startswith("**Component Removal**")
        assert "• GPU\n• CPU" in reply

    def test_strategy_order(self) -> None:
        """Removal keywords win over connection keywords."""
        assert guidance_message("delete the wire", "").startswith("**Component Removal**")
        assert guidance_message("insert something", "").startswith("**Add New Components**")
        assert guidance_message("rename it", "").startswith("**Component Modification**")
        assert guidance_message("that arrow", "").startswith("**Connection Management**")
        assert guidance_message("bigger please", "").startswith("**Visual Properties**")

    def test_default_help(self) -> None:
        reply = guidance_message("hello", "")
        assert reply.startswith("**Architecture AI Assistant**")
        assert f"• {NO_COMPONENTS}" in reply

    def test_greeting(self) -> None:
        assert GREETING.startswith("Hello!")

    def test_visual_help_example_resizes(self, gpu_cpu_xml: str) -> None:
        """The suggested resize phrasing is read as a resize, not a rename."""
        assert '"set GPU size 150"' in guidance_message("bigger please", "")

        result = apply_instruction(gpu_cpu_xml, "set GPU size 150")
        assert result.intent == Intent.MODIFY_PROPERTY
        assert result.changes == ["Changed GPU size to 150x150"]
