"""Tests for the command-line interface."""

import json

import pytest

from blueprint_backend import cli, config
from blueprint_core import parse_document


def run_cli(capsys, *argv: str) -> dict:
    with pytest.raises(SystemExit) as exc:
        cli.main(list(argv))
    assert exc.value.code == 0
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def diagram_file(tmp_path, gpu_cpu_xml: str):
    path = tmp_path / "arch.drawio"
    path.write_text(gpu_cpu_xml, encoding="utf-8")
    return path


class TestApply:

    def test_reports_without_writing(self, capsys, diagram_file, gpu_cpu_xml: str) -> None:
        out = run_cli(capsys, "apply", "--file-path", str(diagram_file), "--instruction", "remove GPU")

        assert out["status"] == "ok"
        assert out["intent"] == "remove"
        assert out["changes"] == ["Removed GPU component and its connections"]
        assert out["written"] is None
        assert diagram_file.read_text(encoding="utf-8") == gpu_cpu_xml

    def test_output_file(self, capsys, diagram_file, tmp_path) -> None:
        target = tmp_path / "out.xml"
        out = run_cli(
            capsys, "apply", "--file-path", str(diagram_file),
            "--instruction", "add a RAM component", "--output", str(target),
        )

        assert out["written"] == str(target)
        assert [n.value for n in parse_document(target.read_text(encoding="utf-8")).nodes] == ["GPU", "CPU", "RAM"]

    def test_in_place_noop_does_not_write(self, capsys, diagram_file, gpu_cpu_xml: str) -> None:
        out = run_cli(capsys, "apply", "--file-path", str(diagram_file), "--instruction", "hello", "--in-place")

        assert out["changes"] == []
        assert out["written"] is None
        assert out["reply"].startswith("**Architecture AI Assistant**")

    def test_document_scope(self, capsys, diagram_file) -> None:
        out = run_cli(
            capsys, "apply", "--file-path", str(diagram_file),
            "--instruction", "change GPU to TPU", "--replace-scope", "document", "--in-place",
        )
        assert out["written"] == str(diagram_file)
        assert "TPU" in diagram_file.read_text(encoding="utf-8")

    def test_missing_file(self, capsys, tmp_path) -> None:
        out = run_cli(capsys, "apply", "--file-path", str(tmp_path / "nope.xml"), "--instruction", "remove GPU")
        assert out["status"] == "error"


class TestCheck:

    def test_valid_file(self, capsys, diagram_file) -> None:
        out = run_cli(capsys, "check", "--file-path", str(diagram_file))
        assert out["summary"]["valid"] is True
        assert out["viewer_url"].startswith("https://viewer.diagrams.net/")

    def test_unparseable_file(self, capsys, tmp_path) -> None:
        path = tmp_path / "broken.xml"
        path.write_text("<mxGraphModel>", encoding="utf-8")
        out = run_cli(capsys, "check", "--file-path", str(path))
        assert out["status"] == "error"


def test_backend_unreachable(capsys, monkeypatch) -> None:
    monkeypatch.setattr(config, "API_BASE", "http://127.0.0.1:1/api")
    out = run_cli(capsys, "health")
    assert out["status"] == "error"
    assert out["error"].startswith("Connection failed")
