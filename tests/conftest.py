"""Shared fixtures: sample draw.io documents and a clean session."""

import pytest

from blueprint_backend import config
from blueprint_backend.session_manager import session_manager

GPU_CPU_XML = """<mxGraphModel dx="1000" dy="600" grid="1">
  <root>
    <mxCell id="0" />
    <mxCell id="1" parent="0" />
    <mxCell id="2" value="GPU" style="rounded=1;whiteSpace=wrap;html=1;" vertex="1" parent="1">
      <mxGeometry x="100" y="100" width="120" height="60" as="geometry" />
    </mxCell>
    <mxCell id="3" value="CPU" style="rounded=1;whiteSpace=wrap;html=1;fillColor=#dae8fc;" vertex="1" parent="1">
      <mxGeometry x="300" y="100" width="120" height="60" as="geometry" />
    </mxCell>
    <mxCell id="4" value="" style="endArrow=classic;html=1;" edge="1" parent="1" source="2" target="3">
      <mxGeometry relative="1" as="geometry" />
    </mxCell>
  </root>
</mxGraphModel>"""

EMPTY_MODEL_XML = """<mxGraphModel>
  <root>
    <mxCell id="0" />
    <mxCell id="1" parent="0" />
  </root>
</mxGraphModel>"""


@pytest.fixture
def gpu_cpu_xml() -> str:
    return GPU_CPU_XML


@pytest.fixture
def empty_model_xml() -> str:
    return EMPTY_MODEL_XML


@pytest.fixture
def fresh_session():
    """Reset the global session before and after a test."""
    session_manager.reset()
    yield session_manager
    session_manager.reset()


@pytest.fixture
def no_delay(monkeypatch):
    """Skip the pause before chat replies."""
    monkeypatch.setattr(config, "RESPONSE_DELAY_SECONDS", 0)
