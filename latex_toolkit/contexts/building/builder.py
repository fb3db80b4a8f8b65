"""
Document build orchestration.

Wraps compile_latex() with the steps a full build performs around it: PNG
preview, Word draft, copying the PDF to an output directory, auxiliary file
cleanup and build event logging.
"""

import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from latex_toolkit.contexts.building.compiler import (
    CompilationResult,
    cleanup_aux_files,
    compile_latex,
    determine_compiler,
)
from latex_toolkit.contexts.building.docx import convert_to_docx
from latex_toolkit.contexts.building.logger import (
    _log_debug,
    _log_info,
    log_compilation_result,
    log_compilation_start,
    setup_building_logger,
)
from latex_toolkit.contexts.building.preview import generate_preview
from latex_toolkit.utils.event_logging import log_build_event

load_dotenv()
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", "."))
KEEP_LATEX_ARTIFACTS = os.getenv("KEEP_LATEX_ARTIFACTS", "false").lower() == "true"


@dataclass
class BuildResult:
    """
    Result of a document build.

    Attributes:
        tex_file: Source that was built
        compilation: Result of the LaTeX run
        output_pdf: Final PDF location (copied to output_dir when one was given)
        previews: PNG previews that were generated
        docx_path: Word draft, when requested and pandoc succeeded
        cleaned: Auxiliary files removed after the build
    """

    tex_file: Path
    compilation: CompilationResult
    output_pdf: Optional[Path] = None
    previews: List[Path] = field(default_factory=list)
    docx_path: Optional[Path] = None
    cleaned: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.compilation.success

    @property
    def document_name(self) -> str:
        return self.tex_file.stem


def discover_tex_files(root: Path = PROJECT_ROOT) -> List[Path]:
    """All .tex files under root, sorted, skipping hidden directories."""
    root = Path(root).resolve()
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in filenames:
            if name.endswith(".tex"):
                found.append(Path(dirpath) / name)
    return sorted(found)


def resolve_tex_file(target: str, root: Path = PROJECT_ROOT) -> Path:
    """
    Resolve a build target to an existing .tex file.

    Args:
        target: Absolute path, or path relative to root; '.tex' is implied when omitted
        root: Base for relative targets

    Raises:
        ValueError: If target names a file that is not a .tex source
        FileNotFoundError: If the file does not exist
    """
    path = Path(target)
    if not path.is_absolute():
        path = Path(root) / path

    if path.suffix == "":
        path = path.with_suffix(".tex")
    elif path.suffix != ".tex":
        raise ValueError(f"Not a LaTeX source: {target}")

    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    return path.resolve()


def build_document(
    tex_file: Path,
    num_passes: int = 3,
    docx: bool = False,
    preview: bool = False,
    keep_artifacts: bool = KEEP_LATEX_ARTIFACTS,
    output_dir: Optional[Path] = None,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> BuildResult:
    """
    Build one LaTeX document.

    The PDF is always produced beside its source. When output_dir is given, a
    copy is placed there too (release builds collect documents this way).

    Args:
        tex_file: LaTeX source
        num_passes: Engine passes
        docx: Also produce a Word draft with pandoc
        preview: Also render the first page to PNG
        keep_artifacts: Keep .aux/.log/etc. after the build
        output_dir: Directory to copy the finished PDF into
        log_dir: Configure the build logger to write here (None keeps the current sinks)
        verbose: Log full compiler output

    Returns:
        BuildResult; check .success

    Raises:
        FileNotFoundError: If tex_file does not exist
        MissingToolError: If the TeX engine is not installed
    """
    tex_file = Path(tex_file).resolve()
    if not tex_file.exists():
        raise FileNotFoundError(f"File not found: {tex_file}")

    if log_dir is not None:
        setup_building_logger(log_dir, verbose=verbose)

    document_name = tex_file.stem
    compiler = determine_compiler(tex_file)

    log_compilation_start(document_name, tex_file, compiler, num_passes)
    log_build_event("build_started", document_name, "building", compiler=compiler, source_file=str(tex_file))

    start_time = time.time()
    compilation = compile_latex(
        tex_file,
        num_passes=num_passes,
        compiler=compiler,
        keep_artifacts=True,  # cleaned below, once previews and docx are done
    )
    elapsed = time.time() - start_time

    log_compilation_result(document_name, compilation, elapsed, verbose=verbose)
    result = BuildResult(tex_file=tex_file, compilation=compilation)

    if compilation.success:
        result.output_pdf = compilation.pdf_path

        if output_dir is not None:
            output_dir = Path(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            result.output_pdf = output_dir / compilation.pdf_path.name
            shutil.copy2(compilation.pdf_path, result.output_pdf)
            _log_debug(f"Copied PDF to {result.output_pdf}")

        if preview:
            result.previews = generate_preview(compilation.pdf_path)

        if docx:
            result.docx_path = convert_to_docx(tex_file)

        log_build_event(
            "build_completed",
            document_name,
            "building",
            compiler=compiler,
            compilation_time_s=round(elapsed, 2),
            warning_count=len(compilation.warnings),
            page_count=compilation.page_count,
            pdf_path=str(result.output_pdf),
        )
    else:
        log_build_event(
            "build_failed",
            document_name,
            "building",
            compiler=compiler,
            compilation_time_s=round(elapsed, 2),
            error_count=len(compilation.errors),
            errors=compilation.errors[:5],
        )

    if not keep_artifacts:
        result.cleaned = cleanup_aux_files(tex_file.parent, document_name)
        _log_info("Auxiliary files cleaned.")

    return result
