"""Unit tests for the software attestation."""

import subprocess

import pytest

from latex_toolkit.contexts.release import attestation
from latex_toolkit.contexts.release.attestation import (
    AttestationInfo,
    collect_attestation_info,
    generate_attestation,
    git_version,
)
from latex_toolkit.contexts.release.external_deps import DependencyStatus, ExternalDependency
from latex_toolkit.utils.event_logging import read_events
from latex_toolkit.utils.exceptions import ToolkitError


@pytest.fixture
def info():
    return AttestationInfo(
        attestation_id="ATT-20260118-001",
        date="January 18, 2026",
        date_stamp="20260118",
        generated_at="2026-01-18T14:25:01Z",
        toolkit_version="v0.1.0",
        toolkit_commit="abc1234",
    )


@pytest.fixture
def no_git(monkeypatch):
    monkeypatch.setattr(attestation, "tool_available", lambda name: False)


@pytest.mark.unit
def test_git_version_without_git(tmp_path, no_git):
    assert git_version(tmp_path) == ("dev", "unknown")


@pytest.mark.unit
def test_git_version_outside_repository(tmp_path, monkeypatch):
    monkeypatch.setattr(attestation, "tool_available", lambda name: True)
    monkeypatch.setattr(
        attestation,
        "run_tool",
        lambda cmd: subprocess.CompletedProcess(cmd, 128, stdout="", stderr="fatal: not a git repository"),
    )

    assert git_version(tmp_path) == ("dev", "unknown")


@pytest.mark.unit
def test_git_version(tmp_path, monkeypatch):
    outputs = {"describe": "v0.1.0-3-gabc1234\n", "rev-parse": "abc1234\n"}
    monkeypatch.setattr(attestation, "tool_available", lambda name: True)
    monkeypatch.setattr(
        attestation,
        "run_tool",
        lambda cmd: subprocess.CompletedProcess(cmd, 0, stdout=outputs[cmd[3]], stderr=""),
    )

    assert git_version(tmp_path) == ("v0.1.0-3-gabc1234", "abc1234")


@pytest.mark.unit
def test_collect_attestation_info(tmp_path, no_git, monkeypatch):
    monkeypatch.setattr(attestation, "date_stamp", lambda: "20260118")
    status = DependencyStatus(
        dependency=ExternalDependency("PdfSigner", "brucedombrowski/PDFSigner", "PdfSigner.exe"),
        installed=False,
        install_path=tmp_path / "PdfSigner.exe",
        download_url="https://github.com/brucedombrowski/PDFSigner/releases/latest",
    )

    info = collect_attestation_info(tmp_path, [status])

    assert info.attestation_id == "ATT-20260118-001"
    assert info.toolkit_version == "dev"
    assert info.dependencies == [
        {
            "name": "PdfSigner",
            "executable": "PdfSigner.exe",
            "version": "unknown",
            "status": "not installed",
            "checksum": "not-available",
            "url": "https://github.com/brucedombrowski/PDFSigner/releases/latest",
        }
    ]


@pytest.mark.unit
def test_generate_attestation(tmp_path, info, fake_engine, monkeypatch):
    monkeypatch.setattr(attestation, "require_tool", lambda name: name)
    output_dir = tmp_path / "Attestations"
    dist_dir = tmp_path / ".dist"

    path = generate_attestation(info, output_dir, dist_dir=dist_dir)

    assert path == output_dir / "software-attestation-20260118.pdf"
    assert path.exists()
    latest = output_dir / "software-attestation-latest.pdf"
    assert latest.is_symlink()
    assert latest.resolve() == path.resolve()
    assert (dist_dir / "attestations" / "software-attestation-20260118.pdf").exists()
    assert fake_engine.engines == ["pdflatex", "pdflatex"]

    event = read_events()[-1]
    assert event["event_type"] == "attestation_generated"
    assert event["attestation_id"] == "ATT-20260118-001"


@pytest.mark.unit
def test_generate_attestation_replaces_latest(tmp_path, info, fake_engine, monkeypatch):
    monkeypatch.setattr(attestation, "require_tool", lambda name: name)
    output_dir = tmp_path / "Attestations"
    output_dir.mkdir()
    (output_dir / "software-attestation-20260101.pdf").write_bytes(b"%PDF old")
    (output_dir / "software-attestation-latest.pdf").symlink_to("software-attestation-20260101.pdf")

    generate_attestation(info, output_dir)

    assert (output_dir / "software-attestation-latest.pdf").resolve().name == "software-attestation-20260118.pdf"
    assert (output_dir / "software-attestation-20260101.pdf").exists()


@pytest.mark.unit
def test_generate_attestation_compile_failure(tmp_path, info, monkeypatch):
    from latex_toolkit.contexts.building.compiler import CompilationResult

    monkeypatch.setattr(attestation, "require_tool", lambda name: name)
    monkeypatch.setattr(
        attestation,
        "compile_latex",
        lambda tex, num_passes, compiler: CompilationResult(success=False, compiler=compiler, errors=["boom"]),
    )

    with pytest.raises(ToolkitError, match="Failed to compile attestation"):
        generate_attestation(info, tmp_path / "Attestations")
    assert not (tmp_path / "Attestations").exists()
