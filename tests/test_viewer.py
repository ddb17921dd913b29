"""Tests for hosted viewer links."""

import pytest

from blueprint_core import build_viewer_url
from blueprint_core.markup import decode_diagram_payload
from blueprint_core.viewer import VIEWER_BASE_URL, VIEWER_PARAMS


def test_url_shape(gpu_cpu_xml: str) -> None:
    url = build_viewer_url(gpu_cpu_xml)
    assert url.startswith(f"{VIEWER_BASE_URL}?{VIEWER_PARAMS}#R")


def test_fragment_decodes_to_document(gpu_cpu_xml: str) -> None:
    payload = build_viewer_url(gpu_cpu_xml).split("#R", 1)[1]
    assert decode_diagram_payload(payload) == gpu_cpu_xml


def test_custom_base() -> None:
    url = build_viewer_url("<mxGraphModel />", base_url="https://viewer.example/")
    assert url.startswith("https://viewer.example/?")


def test_empty_document_rejected() -> None:
    with pytest.raises(ValueError):
        build_viewer_url("  ")
