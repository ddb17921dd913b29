"""
Pattern matcher - Map free-text instructions to edit intents.

Each intent owns an ordered tuple of phrasings. Intents are tried in the
order of INTENT_PRIORITY and, within an intent, phrasings in listed order.
Matching is case-insensitive and captured arguments are returned as typed
in the instruction.
"""

import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .models import Intent


def _phrasings(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


REMOVE_PATTERNS = _phrasings(
    r"remove\s+(?:the\s+)?(\w+)(?:\s+block|\s+component)?",
    r"delete\s+(?:the\s+)?(\w+)(?:\s+block|\s+component)?",
    r"take\s+out\s+(?:the\s+)?(\w+)",
    r"eliminate\s+(?:the\s+)?(\w+)",
)

REPLACE_PATTERNS = _phrasings(
    r"(?:change|rename|replace|convert|switch|update|make|turn)\s+(?:the\s+)?(\w+)"
    r"(?:\s+(?:to|as|into|with|by))\s+(?:a\s+|an\s+)?(\w+)",
    r"(\w+)\s+(?:to|as|into|→|->)\s+(\w+)",
    r"replace\s+(\w+)\s+with\s+(\w+)",
)

DISCONNECT_PATTERNS = _phrasings(
    r"remove\s+(?:the\s+)?(?:arrow|connection|line|wire)(?:\s+between\s+(\w+)\s+and\s+(\w+))?",
    r"delete\s+(?:the\s+)?(?:arrow|connection|line|wire)(?:\s+between\s+(\w+)\s+and\s+(\w+))?",
    r"disconnect\s+(\w+)(?:\s+(?:from|and)\s+(\w+))?",
)

ADD_PATTERNS = _phrasings(
    r"add\s+(?:a\s+|an\s+)?(\w+)(?:\s+(?:component|block|unit))?",
    r"insert\s+(?:a\s+|an\s+)?(\w+)",
    r"create\s+(?:a\s+|an\s+)?(\w+)",
)

PROPERTY_PATTERNS = _phrasings(
    r"(?:make|set|change)\s+(\w+)\s+(?:size|width|height)\s+(?:to\s+)?(\d+)",
    r"resize\s+(\w+)\s+to\s+(\d+)",
    r"(?:make|set)\s+(\w+)\s+(?:color|colour)\s+(?:to\s+)?(\w+)",
)

# Relative size words the contextual resize reacts to
CONTEXTUAL_PATTERNS = _phrasings(
    r"\b(bigger|larger|smaller)\b",
)

PATTERN_TABLE: dict[Intent, tuple[re.Pattern, ...]] = {
    Intent.REMOVE: REMOVE_PATTERNS,
    Intent.REPLACE: REPLACE_PATTERNS,
    Intent.DISCONNECT_EDGES: DISCONNECT_PATTERNS,
    Intent.ADD: ADD_PATTERNS,
    Intent.MODIFY_PROPERTY: PROPERTY_PATTERNS,
    Intent.CONTEXTUAL_BULK_RESIZE: CONTEXTUAL_PATTERNS,
}

INTENT_PRIORITY: tuple[Intent, ...] = (
    Intent.REMOVE,
    Intent.REPLACE,
    Intent.DISCONNECT_EDGES,
    Intent.ADD,
    Intent.MODIFY_PROPERTY,
    Intent.CONTEXTUAL_BULK_RESIZE,
)


@dataclass(frozen=True)
class IntentMatch:
    """One phrasing that matched an instruction."""
    intent: Intent
    instruction: str
    args: tuple[Optional[str], ...] = field(default_factory=tuple)
    pattern: str = ""

    def arg(self, index: int) -> Optional[str]:
        """Captured argument by position, None if the group did not participate."""
        if index < len(self.args):
            return self.args[index]
        return None


def iter_matches(instruction: str) -> Iterator[IntentMatch]:
    """
    Yield every matching phrasing in priority order.

    The mutator walks this to fall through from a phrasing whose transform
    found nothing to edit.
    """
    for intent in INTENT_PRIORITY:
        for pattern in PATTERN_TABLE[intent]:
            match = pattern.search(instruction)
            if match:
                yield IntentMatch(
                    intent=intent,
                    instruction=instruction,
                    args=match.groups(),
                    pattern=pattern.pattern,
                )


def classify(instruction: str) -> IntentMatch:
    """Return the first matching intent, or Unrecognized."""
    for match in iter_matches(instruction):
        return match
    return IntentMatch(intent=Intent.UNRECOGNIZED, instruction=instruction)
