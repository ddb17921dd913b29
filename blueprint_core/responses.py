"""
Assistant responses for the chat boundary.

A turn that changed the diagram gets a change summary. A turn that changed
nothing gets a guidance message picked by keyword, listing the component
labels found in the document where that helps.
"""

import re

GREETING = (
    "Hello! I'm your Architecture AI assistant. Upload your architecture diagrams "
    "and XML files, then tell me what changes you'd like to make. I can help you "
    "modify components, add new elements, or restructure your architecture."
)

NO_COMPONENTS = "No components detected"
MAX_LISTED_COMPONENTS = 10

_LABEL_RE = re.compile(r'value="([^"]+)"')


def extract_component_labels(markup: str, limit: int = MAX_LISTED_COMPONENTS) -> list[str]:
    """
    Scan raw markup for label attributes.

    Works on text that does not parse. Labels are deduplicated in document
    order and capped at `limit`; an empty result becomes the placeholder.
    """
    labels: list[str] = []
    for value in _LABEL_RE.findall(markup or ""):
        if "<" in value or "mxCell" in value or value in labels:
            continue
        labels.append(value)
        if len(labels) >= limit:
            break
    return labels or [NO_COMPONENTS]


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def format_change_summary(changes: list[str]) -> str:
    return (
        "**Architecture Successfully Updated!**\n\n"
        f"Here's what I accomplished:\n{_bullets(changes)}\n\n"
        "**How to View Changes:**\n"
        "1. Open the viewer to see your updated diagram\n"
        "2. Compare with the original upload to see what moved\n"
        "3. Check the XML code to see the underlying changes\n\n"
        "**What's Next?**\n"
        "I can help you make additional modifications:\n"
        "• Add more components\n"
        "• Remove other elements\n"
        "• Change colors, sizes, or properties\n"
        "• Modify connections between components\n\n"
        "Just tell me what you'd like to change next!"
    )


def _removal_help(markup: str) -> str:
    return (
        "**Component Removal**\n\n"
        "I can help you remove any component from your architecture. I'll automatically handle:\n"
        "• Removing the component itself\n"
        "• Cleaning up all connections to/from that component\n\n"
        f"**Available Components:**\n{_bullets(extract_component_labels(markup))}\n\n"
        "**Example Commands:**\n"
        '• "remove GPU block"\n'
        '• "delete the memory component"\n'
        '• "eliminate CPU"\n\n'
        "Which component would you like me to remove?"
    )


def _addition_help(markup: str) -> str:
    return (
        "**Add New Components**\n\n"
        "I can add new components to your architecture:\n"
        "• Processing units (CPU, GPU, DSP)\n"
        "• Memory components (RAM, Cache, Storage)\n"
        "• Interface modules (USB, Ethernet, SPI)\n"
        "• Custom components (any name you specify)\n\n"
        "**Example Commands:**\n"
        '• "add a RAM component"\n'
        '• "insert GPU"\n'
        '• "create ethernet"\n\n'
        "What component would you like me to add?"
    )


def _modification_help(markup: str) -> str:
    return (
        "**Component Modification**\n\n"
        f"**Current Components:**\n{_bullets(extract_component_labels(markup))}\n\n"
        "**Modification Types:**\n"
        "• Rename components (GPU → CPU)\n"
        "• Change properties (size, color)\n\n"
        "**Example Commands:**\n"
        '• "change GPU to CPU"\n'
        '• "make memory color red"\n'
        '• "set CPU size 150"\n\n'
        "What would you like me to modify?"
    )


def _connection_help(markup: str) -> str:
    return (
        "**Connection Management**\n\n"
        "I can remove connections in your architecture:\n"
        "• Remove specific arrows between components\n"
        "• Delete all connections\n"
        "• Disconnect components\n\n"
        "**Example Commands:**\n"
        '• "remove arrow between CPU and GPU"\n'
        '• "delete all connections"\n'
        '• "disconnect memory from CPU"\n\n'
        "What connection changes would you like me to make?"
    )


def _visual_help(markup: str) -> str:
    return (
        "**Visual Properties**\n\n"
        f"**Available Components:**\n{_bullets(extract_component_labels(markup))}\n\n"
        "**Property Changes:**\n"
        "• Colors: red, blue, green, yellow, orange, purple, pink, gray\n"
        "• Sizes: specific dimensions or relative (bigger/smaller)\n\n"
        "**Example Commands:**\n"
        '• "make CPU color red"\n'
        '• "set GPU size 150"\n'
        '• "make memory bigger"\n\n'
        "What visual changes would you like me to make?"
    )


def _default_help(markup: str) -> str:
    return (
        "**Architecture AI Assistant**\n\n"
        "I'm ready to help you modify your architecture!\n\n"
        f"**Current Components:**\n{_bullets(extract_component_labels(markup))}\n\n"
        "**What I Can Do:**\n"
        "• **Add** new components\n"
        "• **Remove** existing components and their connections\n"
        "• **Rename/Replace** components (GPU → CPU, etc.)\n"
        "• **Modify** properties (colors, sizes)\n"
        "• **Manage** connections and arrows\n\n"
        "**Examples:**\n"
        '• "remove GPU block"\n'
        '• "change memory to storage"\n'
        '• "add ethernet interface"\n'
        '• "make CPU bigger"\n'
        '• "delete all arrows"\n\n'
        "What would you like me to change in your architecture?"
    )


# Checked in order; the first group with a keyword in the instruction wins
GUIDANCE_STRATEGIES = (
    (("remove", "delete", "eliminate", "take out"), _removal_help),
    (("add", "insert", "create", "new"), _addition_help),
    (("change", "rename", "replace", "convert", "switch", "update", "make", "turn"), _modification_help),
    (("arrow", "connection", "line", "wire", "link", "connect"), _connection_help),
    (("color", "colour", "size", "resize", "bigger", "smaller", "larger"), _visual_help),
)


def guidance_message(instruction: str, markup: str) -> str:
    """Non-mutating help text for an instruction that changed nothing."""
    lower = instruction.lower()
    for keywords, render in GUIDANCE_STRATEGIES:
        if any(keyword in lower for keyword in keywords):
            return render(markup)
    return _default_help(markup)


def build_response(instruction: str, markup: str, changes: list[str]) -> str:
    """The assistant's reply for one chat turn."""
    if changes:
        return format_change_summary(changes)
    return guidance_message(instruction, markup)
