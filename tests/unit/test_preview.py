"""Unit tests for PNG preview generation."""

import subprocess

import pytest

from latex_toolkit.contexts.building import preview
from latex_toolkit.contexts.building.preview import generate_preview


@pytest.fixture
def warnings(monkeypatch):
    messages = []
    monkeypatch.setattr(preview, "_log_warning", messages.append)
    return messages


@pytest.mark.unit
def test_generate_preview_without_pdftoppm(make_pdf, monkeypatch, warnings):
    pdf = make_pdf("memo.pdf")
    monkeypatch.setattr(preview, "tool_available", lambda name: False)

    def unexpected(cmd, **kwargs):
        raise AssertionError("pdftoppm should not run")

    monkeypatch.setattr(preview, "run_tool", unexpected)

    assert generate_preview(pdf) == []
    assert any("pdftoppm not found" in message for message in warnings)
    assert not pdf.with_suffix(".png").exists()


@pytest.mark.unit
def test_generate_preview_pdftoppm_fails(make_pdf, monkeypatch, warnings):
    pdf = make_pdf("memo.pdf")
    monkeypatch.setattr(preview, "tool_available", lambda name: True)
    monkeypatch.setattr(
        preview,
        "run_tool",
        lambda cmd: subprocess.CompletedProcess(cmd, 99, stdout="", stderr="Syntax Error: Couldn't read xref table"),
    )

    assert generate_preview(pdf) == []
    assert warnings == ["pdftoppm failed for memo.pdf: Syntax Error: Couldn't read xref table"]


@pytest.mark.unit
def test_generate_preview_all_pages(make_pdf, monkeypatch, warnings):
    pdf = make_pdf("memo.pdf", pages=2)
    commands = []

    def fake_pdftoppm(cmd):
        cmd = [str(part) for part in cmd]
        commands.append(cmd)
        for page in (1, 2):
            (pdf.parent / f"memo-{page}.png").write_bytes(b"\x89PNG")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(preview, "tool_available", lambda name: True)
    monkeypatch.setattr(preview, "run_tool", fake_pdftoppm)

    pngs = generate_preview(pdf, dpi=72, single_file=False)

    assert [png.name for png in pngs] == ["memo-1.png", "memo-2.png"]
    assert commands[0][:4] == ["pdftoppm", "-png", "-r", "72"]
    assert "-singlefile" not in commands[0]
    assert warnings == []


@pytest.mark.unit
def test_generate_preview_missing_pdf(tmp_path):
    with pytest.raises(FileNotFoundError):
        generate_preview(tmp_path / "missing.pdf")
