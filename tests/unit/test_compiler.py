"""Unit tests for the LaTeX compiler wrapper."""

import shutil

import pytest

from latex_toolkit.contexts.building import compiler
from latex_toolkit.contexts.building.compiler import (
    cleanup_aux_files,
    cleanup_aux_tree,
    compile_latex,
    determine_compiler,
    parse_latex_log,
)
from latex_toolkit.utils.exceptions import MissingToolError

PLAIN_SOURCE = "\\documentclass{article}\n\\begin{document}\nHello\n\\end{document}\n"


@pytest.mark.unit
def test_determine_compiler_fontspec(tmp_path):
    tex = tmp_path / "cover.tex"
    tex.write_text("\\documentclass{article}\n\\usepackage{fontspec}\n")
    assert determine_compiler(tex) == "xelatex"


@pytest.mark.unit
def test_determine_compiler_sf901_template(tmp_path):
    tex = tmp_path / "SF901_BASIC.tex"
    tex.write_text("\\input{../SF901-template}\n")
    assert determine_compiler(tex) == "xelatex"


@pytest.mark.unit
def test_determine_compiler_default(tmp_path):
    tex = tmp_path / "memo.tex"
    tex.write_text(PLAIN_SOURCE)
    assert determine_compiler(tex) == compiler.DEFAULT_COMPILER


@pytest.mark.unit
def test_parse_latex_log_errors_and_warnings():
    log = (
        "./memo.tex:12: Undefined control sequence.\n"
        "! Undefined control sequence.\n"
        "LaTeX Warning: Reference `sec:intro' undefined on input line 4.\n"
        "Overfull \\hbox (12.3pt too wide) in paragraph at lines 5--6\n"
    )
    errors, warnings = parse_latex_log(log)

    assert errors == ["Undefined control sequence."]
    assert len(warnings) == 2
    assert "Reference `sec:intro' undefined on input line 4." in warnings


@pytest.mark.unit
def test_parse_latex_log_emergency_stop():
    errors, _ = parse_latex_log("*** (job aborted, no legal \\end found)\nEmergency stop\n")
    assert errors == ["Emergency stop"]


@pytest.mark.unit
def test_compile_latex_success(tmp_path, fake_engine):
    tex = tmp_path / "memo.tex"
    tex.write_text(PLAIN_SOURCE)

    result = compile_latex(tex, num_passes=3)

    assert result.success
    assert result.pdf_path == tmp_path / "memo.pdf"
    assert result.passes_run == 3
    assert result.page_count == 1
    assert result.errors == []
    assert len(result.warnings) == 1
    assert fake_engine.engines == [compiler.DEFAULT_COMPILER] * 3

    # Auxiliary files removed, PDF kept
    assert not (tmp_path / "memo.aux").exists()
    assert not (tmp_path / "memo.log").exists()
    assert (tmp_path / "memo.pdf").exists()


@pytest.mark.unit
def test_compile_latex_runs_in_source_directory(tmp_path, fake_engine):
    tex = tmp_path / "sub" / "memo.tex"
    tex.parent.mkdir()
    tex.write_text(PLAIN_SOURCE)

    compile_latex(tex, num_passes=1, compiler="xelatex")

    cmd, cwd = fake_engine.calls[0]
    assert cmd == ["xelatex", "-interaction=nonstopmode", "-file-line-error", "memo.tex"]
    assert cwd == tex.parent


@pytest.mark.unit
def test_compile_latex_failure_stops_early(tmp_path, fake_engine):
    tex = tmp_path / "broken.tex"
    tex.write_text("\\documentclass{article}\n\\begin{document}\nFAIL_BUILD\n\\end{document}\n")

    result = compile_latex(tex, num_passes=3)

    assert not result.success
    assert result.pdf_path is None
    assert result.passes_run == 1
    assert "Undefined control sequence." in result.errors
    assert not (tmp_path / "broken.aux").exists()


@pytest.mark.unit
def test_compile_latex_keep_artifacts(tmp_path, fake_engine):
    tex = tmp_path / "memo.tex"
    tex.write_text(PLAIN_SOURCE)

    compile_latex(tex, num_passes=1, keep_artifacts=True)

    assert (tmp_path / "memo.aux").exists()
    assert (tmp_path / "memo.log").exists()


@pytest.mark.unit
def test_compile_latex_removes_stale_pdf(tmp_path, fake_engine):
    tex = tmp_path / "broken.tex"
    tex.write_text("FAIL_BUILD")
    (tmp_path / "broken.pdf").write_bytes(b"%PDF-1.4 stale")

    result = compile_latex(tex, num_passes=1)

    assert not result.success
    assert not (tmp_path / "broken.pdf").exists()


@pytest.mark.unit
def test_compile_latex_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        compile_latex(tmp_path / "nope.tex")


@pytest.mark.unit
def test_compile_latex_missing_engine(tmp_path, monkeypatch):
    tex = tmp_path / "memo.tex"
    tex.write_text(PLAIN_SOURCE)
    monkeypatch.setattr(shutil, "which", lambda name: None)

    with pytest.raises(MissingToolError, match="pdflatex not found"):
        compile_latex(tex, compiler="pdflatex")


@pytest.mark.unit
def test_cleanup_aux_files_only_touches_latex_outputs(tmp_path):
    (tmp_path / "memo.tex").write_text(PLAIN_SOURCE)
    for name in ("memo.aux", "memo.log", "memo.out", "memo.synctex.gz", "memo.pdf"):
        (tmp_path / name).write_text("x")
    # No memo2.tex: this log is not a LaTeX artifact
    (tmp_path / "build.log").write_text("toolkit log")

    removed = cleanup_aux_files(tmp_path)

    assert sorted(p.name for p in removed) == ["memo.aux", "memo.log", "memo.out", "memo.synctex.gz"]
    assert (tmp_path / "memo.pdf").exists()
    assert (tmp_path / "build.log").exists()


@pytest.mark.unit
def test_cleanup_aux_files_single_document(tmp_path):
    for stem in ("a", "b"):
        (tmp_path / f"{stem}.tex").write_text(PLAIN_SOURCE)
        (tmp_path / f"{stem}.aux").write_text("x")

    cleanup_aux_files(tmp_path, stem="a")

    assert not (tmp_path / "a.aux").exists()
    assert (tmp_path / "b.aux").exists()


@pytest.mark.unit
def test_cleanup_aux_tree_skips_hidden_directories(tmp_path):
    for directory in (tmp_path / "docs", tmp_path / ".dist"):
        directory.mkdir()
        (directory / "memo.tex").write_text(PLAIN_SOURCE)
        (directory / "memo.aux").write_text("x")

    assert cleanup_aux_tree(tmp_path) == 1
    assert not (tmp_path / "docs" / "memo.aux").exists()
    assert (tmp_path / ".dist" / "memo.aux").exists()
