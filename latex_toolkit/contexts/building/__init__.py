"""
Building Context

Responsibilities:
- Chooses the TeX engine for each source (pdflatex or xelatex)
- Compiles LaTeX to PDF with multiple passes
- Renders PNG previews and Word review drafts
- Cleans LaTeX auxiliary files

Owns: Compilation, previews, draft conversion
Never: Edits document sources
"""

from latex_toolkit.contexts.building.builder import (
    BuildResult,
    build_document,
    discover_tex_files,
    resolve_tex_file,
)
from latex_toolkit.contexts.building.compiler import (
    CompilationResult,
    cleanup_aux_files,
    cleanup_aux_tree,
    compile_latex,
    determine_compiler,
)

__all__ = [
    "BuildResult",
    "build_document",
    "discover_tex_files",
    "resolve_tex_file",
    "CompilationResult",
    "cleanup_aux_files",
    "cleanup_aux_tree",
    "compile_latex",
    "determine_compiler",
]
