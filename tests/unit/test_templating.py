"""Unit tests for the document template registry and renderer."""

import pytest

from latex_toolkit.contexts.templating import TemplateRenderError, escape_latex, render_template, render_to_file
from latex_toolkit.contexts.templating.registries import TemplateRegistry
from latex_toolkit.contexts.templating.renderer import load_context


@pytest.fixture
def registry():
    """Fresh registry over the packaged templates."""
    return TemplateRegistry()


@pytest.fixture
def custom_registry(tmp_path):
    """Registry over a throwaway template directory."""
    base = tmp_path / "templates"
    (base / "letter").mkdir(parents=True)
    (base / "letter" / "template.tex.jinja").write_text(
        "\\textbf{<<< recipient | tex >>>} <<< closing >>>\n"
    )
    (base / "letter" / "defaults.yaml").write_text("recipient: Team\n")
    (base / "broken").mkdir()
    (base / "broken" / "template.tex.jinja").write_text("<%% if %%>\n")
    (base / "notes").mkdir()  # no template file
    return TemplateRegistry(base)


class TestEscapeLatex:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R&D", r"R\&D"),
            ("50% done", r"50\% done"),
            ("$5 #1 item_a", r"\$5 \#1 item\_a"),
            ("{x}", r"\{x\}"),
            ("~^", r"\textasciitilde{}\textasciicircum{}"),
            ("plain text", "plain text"),
        ],
    )
    def test_special_characters(self, text, expected):
        assert escape_latex(text) == expected

    @pytest.mark.unit
    def test_backslash_escaped_once(self):
        assert escape_latex("a\\b") == r"a\textbackslash{}b"

    @pytest.mark.unit
    def test_none_and_numbers(self):
        assert escape_latex(None) == ""
        assert escape_latex(42) == "42"


class TestRegistry:
    @pytest.mark.unit
    def test_list_packaged_templates(self, registry):
        assert registry.list_templates() == ["attestation", "cui_cover_sheet"]

    @pytest.mark.unit
    def test_list_skips_directories_without_template(self, custom_registry):
        assert custom_registry.list_templates() == ["broken", "letter"]

    @pytest.mark.unit
    def test_template_cached(self, registry):
        assert not registry.is_cached("attestation")
        first = registry.get_template("attestation")
        assert registry.is_cached("attestation")
        assert registry.get_template("attestation") is first

        registry.clear_cache()
        assert not registry.is_cached("attestation")

    @pytest.mark.unit
    def test_defaults_are_copies(self, registry):
        defaults = registry.get_defaults("cui_cover_sheet")
        defaults["categories"].append("PRVCY")
        assert registry.get_defaults("cui_cover_sheet")["categories"] == []

    @pytest.mark.unit
    def test_defaults_missing_file(self, custom_registry):
        assert custom_registry.get_defaults("broken") == {}


class TestRenderTemplate:
    @pytest.mark.unit
    def test_defaults_fill_missing_values(self, custom_registry):
        assert render_template("letter", {"closing": "Thanks"}, custom_registry) == "\\textbf{Team} Thanks\n"

    @pytest.mark.unit
    def test_context_overrides_and_escapes(self, custom_registry):
        result = render_template("letter", {"recipient": "R&D", "closing": "-"}, custom_registry)
        assert result.startswith(r"\textbf{R\&D}")

    @pytest.mark.unit
    def test_undefined_value(self, custom_registry):
        with pytest.raises(TemplateRenderError) as excinfo:
            render_template("letter", {}, custom_registry)
        assert excinfo.value.template_name == "letter"

    @pytest.mark.unit
    def test_syntax_error(self, custom_registry):
        with pytest.raises(TemplateRenderError):
            render_template("broken", {}, custom_registry)

    @pytest.mark.unit
    def test_unknown_template(self, custom_registry):
        with pytest.raises(ValueError, match=r"Unknown template 'memo' \(available: broken, letter\)"):
            render_template("memo", {}, custom_registry)

    @pytest.mark.unit
    def test_attestation_lists_dependencies(self, registry):
        context = {
            "attestation_id": "ATT-20260118-001",
            "date": "January 18, 2026",
            "dependencies": [
                {
                    "name": "PdfSigner",
                    "executable": "PdfSigner.exe",
                    "version": "v1.2.0",
                    "status": "installed",
                    "checksum": "ab" * 32,
                    "url": "https://github.com/brucedombrowski/PDFSigner/releases/latest",
                }
            ],
        }

        tex = render_template("attestation", context, registry)

        assert r"\rhead{ATT-20260118-001}" in tex
        assert r"\subsection*{PdfSigner}" in tex
        assert r"\texttt{PdfSigner.exe}" in tex
        assert r"\url{https://github.com/brucedombrowski/PDFSigner/releases/latest}" in tex
        assert "No external binaries" not in tex

    @pytest.mark.unit
    def test_attestation_without_dependencies(self, registry):
        tex = render_template("attestation", {}, registry)
        assert "No external binaries are used by this release." in tex

    @pytest.mark.unit
    def test_cui_cover_sheet_rows(self, registry):
        context = {
            "agency": "Department of Examples",
            "categories": ["PRVCY", "PROCURE"],
            "poc_name": "Jane Doe",
            "poc_phone": "555-0100",
        }

        tex = render_template("cui_cover_sheet", context, registry)

        assert "Controlled by: & Department of Examples \\\\" in tex
        assert "Categories: & PRVCY, PROCURE \\\\" in tex
        assert "POC: & Jane Doe, 555-0100 \\\\" in tex
        assert "Office:" not in tex
        assert "\n\n\\end{tabular}" not in tex


@pytest.mark.unit
def test_render_to_file(tmp_path, custom_registry):
    output = render_to_file("letter", {"closing": "Bye"}, tmp_path / "out" / "letter.tex", custom_registry)
    assert output.read_text() == "\\textbf{Team} Bye\n"


@pytest.mark.unit
def test_load_context(tmp_path):
    data = tmp_path / "cover.yaml"
    data.write_text("agency: Example\ncategories: [CTI]\n")
    assert load_context(data) == {"agency": "Example", "categories": ["CTI"]}

    (tmp_path / "empty.yaml").write_text("")
    assert load_context(tmp_path / "empty.yaml") == {}

    with pytest.raises(FileNotFoundError):
        load_context(tmp_path / "missing.yaml")
