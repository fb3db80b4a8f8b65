"""Shared fixtures: throwaway PDFs, an isolated event log and a fake TeX engine."""

import re
import subprocess
from pathlib import Path

import pytest
from PyPDF2 import PdfReader, PdfWriter

from latex_toolkit.contexts.building import compiler
from latex_toolkit.utils import event_logging

INCLUDEPDF = re.compile(r"\\includepdf\[pages=-\]\{([^}]+)\}")


def write_pdf(path: Path, pages: int = 1, size=(612, 792)) -> Path:
    """Write a PDF of blank pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=size[0], height=size[1])
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        writer.write(f)
    return path


@pytest.fixture
def make_pdf(tmp_path):
    """Factory for blank PDFs: make_pdf("a.pdf", pages=2, size=(300, 400))."""

    def _make(name, pages=1, size=(612, 792), directory=None):
        return write_pdf(Path(directory or tmp_path) / name, pages=pages, size=size)

    return _make


@pytest.fixture(autouse=True)
def isolated_event_log(tmp_path, monkeypatch):
    """Keep build events out of the real outs/logs directory."""
    events_file = tmp_path / "logs" / "build_events.log"
    monkeypatch.setattr(event_logging, "BUILD_EVENTS_FILE", events_file)
    return events_file


class FakeEngine:
    """
    Stands in for pdflatex/xelatex.

    Writes <stem>.pdf and <stem>.log beside the source. A pdfpages wrapper
    yields the concatenation of the included PDFs; a source containing
    FAIL_BUILD yields an error log and no PDF.
    """

    def __init__(self):
        self.calls = []

    def __call__(self, cmd, cwd=None, env=None, timeout=None):
        cmd = [str(part) for part in cmd]
        self.calls.append((cmd, Path(cwd) if cwd else None))

        compile_dir = Path(cwd)
        tex_file = compile_dir / cmd[-1]
        source = tex_file.read_text(encoding="utf-8")
        stem = tex_file.stem

        if "FAIL_BUILD" in source:
            (compile_dir / f"{stem}.log").write_text(
                f"./{tex_file.name}:7: Undefined control sequence.\n! Emergency stop.\n",
                encoding="latin-1",
            )
            (compile_dir / f"{stem}.aux").write_text("\\relax\n")
            return subprocess.CompletedProcess(cmd, 1, stdout="! Emergency stop.", stderr="")

        writer = PdfWriter()
        included = INCLUDEPDF.findall(source)
        if included:
            for name in included:
                for page in PdfReader(str(compile_dir / name)).pages:
                    writer.add_page(page)
        else:
            writer.add_blank_page(width=612, height=792)
        with open(compile_dir / f"{stem}.pdf", "wb") as f:
            writer.write(f)

        (compile_dir / f"{stem}.log").write_text(
            "This is pdfTeX, Version 3.141592653\nLaTeX Warning: Reference `fig' undefined.\n",
            encoding="latin-1",
        )
        (compile_dir / f"{stem}.aux").write_text("\\relax\n")
        return subprocess.CompletedProcess(cmd, 0, stdout="Output written", stderr="")

    @property
    def engines(self):
        return [cmd[0] for cmd, _ in self.calls]


@pytest.fixture
def fake_engine(monkeypatch):
    """Replace the TeX engine used by compile_latex() with FakeEngine."""
    engine = FakeEngine()
    monkeypatch.setattr(compiler, "run_tool", engine)
    monkeypatch.setattr(compiler, "require_tool", lambda name: f"/usr/bin/{name}")
    return engine
