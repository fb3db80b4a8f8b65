"""
PDF merging through LaTeX's pdfpages package.

A throwaway wrapper document includes every page of each selected PDF, in
the selected order, and is compiled once with pdflatex.
"""

import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from latex_toolkit.contexts.building.compiler import compile_latex
from latex_toolkit.contexts.merging.logger import (
    _log_debug,
    _log_error,
    _log_success,
    _log_warning,
    log_merge_plan,
    setup_merging_logger,
)
from latex_toolkit.utils.event_logging import log_build_event
from latex_toolkit.utils.exceptions import MergeError
from latex_toolkit.utils.pdf_processing import page_count

MERGE_STEM = "merge_temp"
DEFAULT_OUTPUT_NAME = "merged.pdf"

# Names produced by earlier merges; never offered as merge inputs
MERGE_OUTPUT_PATTERNS = [
    re.compile(rf"^{MERGE_STEM}"),
    re.compile(r"_merged\.pdf$", re.IGNORECASE),
    re.compile(r"_merged_.*\.pdf$", re.IGNORECASE),
    re.compile(rf"^{re.escape(DEFAULT_OUTPUT_NAME)}$", re.IGNORECASE),
]


@dataclass
class MergeResult:
    """
    Result of a PDF merge.

    Attributes:
        success: Whether the merged PDF was produced
        output_path: Merged PDF (None if failed)
        inputs: Input PDFs in merge order
        page_count: Pages in the merged PDF
        expected_page_count: Sum of input page counts (None if any input was unreadable)
        errors: Compilation errors, if any
    """

    success: bool
    output_path: Optional[Path] = None
    inputs: List[Path] = field(default_factory=list)
    page_count: Optional[int] = None
    expected_page_count: Optional[int] = None
    errors: List[str] = field(default_factory=list)


def is_merge_output(filename: str) -> bool:
    """Check whether a file name looks like a temporary file or an earlier merge result."""
    return any(pattern.search(filename) for pattern in MERGE_OUTPUT_PATTERNS)


def discover_pdfs(directory: Path) -> List[Path]:
    """
    List mergeable PDFs in a directory (top level only), sorted by name.

    Raises:
        FileNotFoundError: If directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")

    return sorted(
        path
        for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() == ".pdf" and not is_merge_output(path.name)
    )


def parse_merge_order(order_input: str, available: int) -> List[int]:
    """
    Parse a merge order such as "2 1", "2,1" or "3, 1 2".

    Numbers are 1-based positions in the discovered list; the same PDF may be
    listed more than once.

    Args:
        order_input: User-entered order
        available: Number of PDFs on offer

    Returns:
        Zero-based indices in merge order

    Raises:
        ValueError: Fewer than two entries, a non-number, or a number out of range
    """
    tokens = order_input.replace(",", " ").split()

    if len(tokens) < 2:
        raise ValueError("Please specify at least 2 PDFs to merge.")

    indices = []
    for token in tokens:
        if not token.isdigit():
            raise ValueError(f"'{token}' is not a valid number.")
        number = int(token)
        if number < 1 or number > available:
            raise ValueError(f"{number} is out of range (1-{available}).")
        indices.append(number - 1)

    return indices


def output_name_options(first_stem: str, timestamp: str) -> List[str]:
    """Output names offered to the user, in menu order (1-3; 4 is a custom name)."""
    return [
        DEFAULT_OUTPUT_NAME,
        f"{first_stem}_merged.pdf",
        f"{first_stem}_merged_{timestamp}.pdf",
    ]


def resolve_output_name(
    choice: str, first_stem: str, timestamp: str, custom_name: Optional[str] = None
) -> str:
    """
    Map a menu choice to an output file name.

    Anything other than "2", "3" or "4" selects the default name, and an empty
    custom name falls back to the default too.
    """
    choice = (choice or "").strip()
    options = output_name_options(first_stem, timestamp)

    if choice == "2":
        return options[1]
    if choice == "3":
        return options[2]
    if choice == "4":
        custom_name = (custom_name or "").strip()
        if not custom_name:
            return DEFAULT_OUTPUT_NAME
        return custom_name if custom_name.lower().endswith(".pdf") else f"{custom_name}.pdf"
    return DEFAULT_OUTPUT_NAME


def build_merge_tex(pdf_names: List[str]) -> str:
    """LaTeX wrapper that includes every page of each PDF, in order."""
    lines = [
        r"\documentclass{article}",
        r"\usepackage{pdfpages}",
        r"\begin{document}",
    ]
    lines += [rf"\includepdf[pages=-]{{{name}}}" for name in pdf_names]
    lines.append(r"\end{document}")
    return "\n".join(lines) + "\n"


def merge_pdfs(
    pdf_files: List[Path],
    output_path: Path,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> MergeResult:
    """
    Merge PDFs into one document, pages in the given order.

    Inputs are copied into a scratch directory under plain names
    (input_01.pdf, ...), so spaces and TeX special characters in the original
    file names never reach the wrapper.

    Args:
        pdf_files: PDFs in merge order (repeats allowed)
        output_path: Destination of the merged PDF (overwritten if present)
        log_dir: Configure the merge logger to write here
        verbose: Echo DEBUG output to the console

    Returns:
        MergeResult

    Raises:
        ValueError: If fewer than two PDFs are given
        FileNotFoundError: If an input is missing
        MissingToolError: If pdflatex is not installed
    """
    if log_dir is not None:
        setup_merging_logger(log_dir, verbose=verbose)

    pdf_files = [Path(pdf).resolve() for pdf in pdf_files]
    if len(pdf_files) < 2:
        raise ValueError("Please specify at least 2 PDFs to merge.")
    for pdf in pdf_files:
        if not pdf.is_file():
            raise FileNotFoundError(f"File not found: {pdf}")

    output_path = Path(output_path).resolve()
    log_merge_plan(pdf_files, output_path)

    input_counts = [page_count(pdf) for pdf in pdf_files]
    expected = None if None in input_counts else sum(input_counts)

    with tempfile.TemporaryDirectory(prefix="latex_toolkit_merge_") as work:
        work_dir = Path(work)
        staged_names = []
        for i, pdf in enumerate(pdf_files, 1):
            staged = work_dir / f"input_{i:02d}.pdf"
            shutil.copy2(pdf, staged)
            staged_names.append(staged.name)

        tex_file = work_dir / f"{MERGE_STEM}.tex"
        tex_file.write_text(build_merge_tex(staged_names), encoding="utf-8")
        _log_debug(f"Wrapper written to {tex_file}")

        compilation = compile_latex(tex_file, num_passes=1, compiler="pdflatex")

        if not compilation.success:
            _log_error("PDF merge failed.")
            _log_error("Check that all input PDFs are valid and readable.")
            for err in compilation.errors[:5]:
                _log_error(f"  {err}")
            return MergeResult(success=False, inputs=pdf_files, errors=compilation.errors)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(compilation.pdf_path), output_path)

    merged_pages = page_count(output_path)
    if expected is not None and merged_pages != expected:
        _log_warning(f"Merged PDF has {merged_pages} pages, inputs have {expected} in total")

    log_build_event(
        "merge_completed",
        output_path.stem,
        "merging",
        inputs=[pdf.name for pdf in pdf_files],
        page_count=merged_pages,
    )
    _log_success(f"Done! Output: {output_path}")

    return MergeResult(
        success=True,
        output_path=output_path,
        inputs=pdf_files,
        page_count=merged_pages,
        expected_page_count=expected,
    )


def merge_or_raise(pdf_files: List[Path], output_path: Path) -> Path:
    """Merge and return the output path, raising MergeError on failure."""
    result = merge_pdfs(pdf_files, output_path)
    if not result.success:
        raise MergeError(f"PDF merge failed: {'; '.join(result.errors[:3]) or 'unknown error'}")
    return result.output_path
