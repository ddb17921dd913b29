"""Tests for instruction -> intent matching."""

import pytest

from blueprint_core import Intent, classify, iter_matches


class TestClassify:
    """Tests for the first-match classification."""

    @pytest.mark.parametrize(
        "instruction, intent, args",
        [
            ("remove GPU block", Intent.REMOVE, ("GPU",)),
            ("delete the memory component", Intent.REMOVE, ("memory",)),
            ("take out the cache", Intent.REMOVE, ("cache",)),
            ("eliminate CPU", Intent.REMOVE, ("CPU",)),
            ("change GPU to CPU", Intent.REPLACE, ("GPU", "CPU")),
            ("rename kafka as rabbitmq", Intent.REPLACE, ("kafka", "rabbitmq")),
            ("disconnect memory from CPU", Intent.DISCONNECT_EDGES, ("memory", "CPU")),
            ("add a RAM component", Intent.ADD, ("RAM",)),
            ("insert GPU", Intent.ADD, ("GPU",)),
            ("create an ethernet", Intent.ADD, ("ethernet",)),
            ("set CPU size 200", Intent.MODIFY_PROPERTY, ("CPU", "200")),
            ("make CPU color red", Intent.MODIFY_PROPERTY, ("CPU", "red")),
            ("make CPU bigger", Intent.CONTEXTUAL_BULK_RESIZE, ("bigger",)),
        ],
    )
    def test_first_match(self, instruction: str, intent: Intent, args: tuple) -> None:
        match = classify(instruction)
        assert match.intent == intent
        assert match.args == args

    def test_case_insensitive_keywords_keep_argument_case(self) -> None:
        match = classify("REMOVE Gpu")
        assert match.intent == Intent.REMOVE
        assert match.arg(0) == "Gpu"

    def test_unrecognized(self) -> None:
        match = classify("hello there")
        assert match.intent == Intent.UNRECOGNIZED
        assert match.args == ()
        assert match.arg(0) is None

    def test_remove_wins_over_replace(self) -> None:
        """Remove is checked before Replace even when both phrasings match."""
        assert classify("remove GPU to save power").intent == Intent.REMOVE

    def test_resize_phrase_reads_as_replace(self) -> None:
        """`X to N` is caught by the generic replace phrasing first."""
        assert classify("resize GPU to 150").intent == Intent.REPLACE


class TestIterMatches:
    """Tests for ranked enumeration."""

    def test_priority_order(self) -> None:
        intents = [m.intent for m in iter_matches("remove the connection between GPU and CPU")]
        assert intents[0] == Intent.REMOVE
        assert Intent.DISCONNECT_EDGES in intents
        assert intents.index(Intent.REMOVE) < intents.index(Intent.DISCONNECT_EDGES)

    def test_disconnect_args(self) -> None:
        matches = [m for m in iter_matches("remove the connection between GPU and CPU")
                   if m.intent == Intent.DISCONNECT_EDGES]
        assert matches[0].args == ("GPU", "CPU")

    def test_disconnect_without_names(self) -> None:
        matches = [m for m in iter_matches("delete the arrow") if m.intent == Intent.DISCONNECT_EDGES]
        assert matches[0].args == (None, None)

    def test_property_after_replace(self) -> None:
        """`set X size to N` also matches the replace phrasing, ranked first."""
        intents = [m.intent for m in iter_matches("set CPU size to 200")]
        assert intents[0] == Intent.REPLACE
        assert Intent.MODIFY_PROPERTY in intents

    def test_nothing_for_chatter(self) -> None:
        assert list(iter_matches("what is this")) == []
