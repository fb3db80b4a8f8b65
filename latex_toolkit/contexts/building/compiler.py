"""
LaTeX Compilation Module

Compiles .tex files to PDF in place with pdflatex or xelatex.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from latex_toolkit.contexts.building.logger import _log_debug
from latex_toolkit.utils.external_tools import require_tool, run_tool
from latex_toolkit.utils.pdf_processing import page_count

load_dotenv()

DEFAULT_COMPILER = os.getenv("LATEX_COMPILER", "pdflatex")

# LaTeX intermediate files created during compilation
LATEX_ARTIFACTS = [
    ".aux",
    ".log",
    ".out",
    ".toc",
    ".fdb_latexmk",
    ".fls",
    ".synctex.gz",
    ".bbl",
    ".blg",
    ".nav",
    ".snm",
    ".vrb",
]

# Sources containing any of these need xelatex (system fonts via fontspec)
XELATEX_MARKERS = [r"\usepackage{fontspec}", "SF901-template"]


@dataclass
class CompilationResult:
    """
    Result of LaTeX compilation.

    Attributes:
        success: Whether compilation succeeded
        compiler: Engine used ('pdflatex' or 'xelatex')
        pdf_path: Path to generated PDF (None if failed)
        passes_run: Number of engine invocations actually made
        stdout: Standard output from all passes
        stderr: Standard error from all passes
        errors: List of parsed LaTeX errors
        warnings: List of parsed LaTeX warnings
        page_count: Number of pages in generated PDF (None if not available)
    """

    success: bool
    compiler: str
    pdf_path: Optional[Path] = None
    passes_run: int = 0
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    page_count: Optional[int] = None


def determine_compiler(tex_file: Path) -> str:
    """
    Pick the TeX engine for a source file.

    Returns "xelatex" when the file loads fontspec or inputs the SF901 cover
    sheet template, otherwise the default compiler (LATEX_COMPILER, pdflatex).
    """
    try:
        source = Path(tex_file).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return DEFAULT_COMPILER

    if any(marker in source for marker in XELATEX_MARKERS):
        return "xelatex"
    return DEFAULT_COMPILER


def parse_latex_log(log_content: str) -> Tuple[List[str], List[str]]:
    """
    Parse LaTeX log file for errors and warnings.

    Args:
        log_content: Content of the .log file

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # "! Error message" and, with -file-line-error, "./file.tex:12: Error message"
    error_patterns = [
        re.compile(r"^! (.+)$", re.MULTILINE),
        re.compile(r"^[^\s:]+\.tex:\d+: (.+)$", re.MULTILINE),
    ]
    for pattern in error_patterns:
        for match in pattern.finditer(log_content):
            message = match.group(1).strip()
            if message not in errors:
                errors.append(message)

    # Errors that don't always start with "!"
    for pattern in [r"File ended while scanning use of", r"Emergency stop"]:
        match = re.search(rf"({pattern}.*?)$", log_content, re.MULTILINE)
        if match and match.group(1) not in errors:
            errors.append(match.group(1))

    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"Overfull \\hbox \((.+)\)",
        r"Underfull \\hbox \((.+)\)",
    ]
    for pattern in warning_patterns:
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            warnings.append(match.group(1).strip())

    return errors, warnings


def cleanup_aux_files(directory: Path, stem: Optional[str] = None) -> List[Path]:
    """
    Remove LaTeX auxiliary files from a directory (not recursive).

    Only files belonging to a .tex source in the same directory are removed,
    so unrelated .log files (e.g. the toolkit's own logs) survive.

    Args:
        directory: Directory to clean
        stem: Only remove artifacts of this document (None = every document)

    Returns:
        Paths that were removed
    """
    directory = Path(directory)
    removed = []

    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        ext = next((ext for ext in LATEX_ARTIFACTS if path.name.endswith(ext)), None)
        if ext is None:
            continue
        owner = path.name[: -len(ext)]
        if stem is not None and owner != stem:
            continue
        if not (directory / f"{owner}.tex").exists():
            continue
        path.unlink()
        removed.append(path)

    return removed


def cleanup_aux_tree(root: Path) -> int:
    """
    Remove LaTeX auxiliary files under root, recursively.

    Hidden directories below root (.git, .dist, .venv) are left alone.

    Returns:
        Number of files removed
    """
    root = Path(root)
    count = 0

    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        count += len(cleanup_aux_files(Path(dirpath)))

    return count


def compile_latex(
    tex_file: Path,
    num_passes: int = 3,
    compiler: Optional[str] = None,
    keep_artifacts: bool = False,
    timeout: Optional[float] = None,
) -> CompilationResult:
    """
    Compile a LaTeX file to PDF in its own directory.

    Relative \\input and \\includegraphics paths resolve exactly as they do
    when the author runs the engine by hand, so the source directory is the
    working directory.

    Args:
        tex_file: Path to the .tex file to compile
        num_passes: Engine passes (default: 3 for cross-references, lastpage, TOC)
        compiler: Force an engine (default: determine_compiler())
        keep_artifacts: Keep .aux/.log/etc. next to the source
        timeout: Seconds allowed per pass

    Returns:
        CompilationResult with success status and diagnostic information

    Raises:
        FileNotFoundError: If tex_file does not exist
        MissingToolError: If the engine is not installed
    """
    tex_file = Path(tex_file).resolve()
    if not tex_file.exists():
        raise FileNotFoundError(f"File not found: {tex_file}")

    compiler = compiler or determine_compiler(tex_file)
    require_tool(compiler)

    compile_dir = tex_file.parent
    stem = tex_file.stem
    pdf_path = compile_dir / f"{stem}.pdf"
    log_file = compile_dir / f"{stem}.log"

    # A stale PDF or log would make a failed run look successful
    for stale in (pdf_path, log_file):
        if stale.exists():
            stale.unlink()

    all_stdout = []
    all_stderr = []
    passes_run = 0
    success = True

    for pass_number in range(1, num_passes + 1):
        if pass_number > 1:
            _log_debug(f"Compiling (pass {pass_number} of {num_passes})...")

        cmd = [compiler, "-interaction=nonstopmode", "-file-line-error", tex_file.name]
        result = run_tool(cmd, cwd=compile_dir, timeout=timeout)
        passes_run += 1

        all_stdout.append(result.stdout)
        all_stderr.append(result.stderr)

        if result.returncode != 0:
            success = False
            break

    errors: List[str] = []
    warnings: List[str] = []
    if log_file.exists():
        # TeX engines write their logs in latin-1
        errors, warnings = parse_latex_log(log_file.read_text(encoding="latin-1"))

    if not pdf_path.exists():
        success = False
        if not errors:
            errors.append("PDF file was not generated")
    elif not errors:
        # Engines exit non-zero on some recoverable warnings; a PDF with a clean log counts
        success = True

    if not keep_artifacts:
        cleanup_aux_files(compile_dir, stem)

    return CompilationResult(
        success=success,
        compiler=compiler,
        pdf_path=pdf_path if pdf_path.exists() else None,
        passes_run=passes_run,
        stdout="\n".join(all_stdout),
        stderr="\n".join(all_stderr),
        errors=errors,
        warnings=warnings,
        page_count=page_count(pdf_path) if pdf_path.exists() else None,
    )
