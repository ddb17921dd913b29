"""
Hosted viewer links.

The diagrams.net viewer takes the whole diagram in the URL fragment, encoded
the same way draw.io compresses a page, with an `R` prefix marking raw
deflate.
"""

from .markup import encode_diagram_payload

VIEWER_BASE_URL = "https://viewer.diagrams.net/"
VIEWER_PARAMS = "highlight=0000ff&nav=1&layers=1&lightbox=1&edit=_blank&spin=1"


def build_viewer_url(markup: str, base_url: str = VIEWER_BASE_URL) -> str:
    """Viewer URL for a document. Raises ValueError on empty markup."""
    if not markup or not markup.strip():
        raise ValueError("No document to view")
    return f"{base_url}?{VIEWER_PARAMS}#R{encode_diagram_payload(markup)}"
