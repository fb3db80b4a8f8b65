"""
Word export of LaTeX sources via pandoc.

Word copies are review drafts: every converted document carries a draft
notice at the top of its body.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from latex_toolkit.contexts.building.logger import _log_error, _log_info, _log_success, _log_warning
from latex_toolkit.utils.external_tools import INSTALL_HINTS, run_tool, tool_available

BEGIN_DOCUMENT = r"\begin{document}"
DRAFT_NOTICE = r"\begin{center}\textbf{\Large *** DRAFT - FOR REVIEW ONLY ***}\end{center}"


def insert_draft_notice(source: str) -> str:
    """Insert the draft notice right after \\begin{document} (source unchanged if absent)."""
    return source.replace(BEGIN_DOCUMENT, f"{BEGIN_DOCUMENT}\n\n{DRAFT_NOTICE}\n", 1)


def convert_to_docx(tex_file: Path, output_path: Optional[Path] = None) -> Optional[Path]:
    """
    Convert a LaTeX source to a Word draft.

    Args:
        tex_file: LaTeX source
        output_path: Destination .docx (default: beside the source)

    Returns:
        Path to the .docx, or None if pandoc is missing or the conversion failed
    """
    tex_file = Path(tex_file).resolve()
    if not tex_file.exists():
        raise FileNotFoundError(f"File not found: {tex_file}")

    if not tool_available("pandoc"):
        _log_warning(f"pandoc not found. {INSTALL_HINTS['pandoc']}")
        _log_warning("Skipping .docx generation.")
        return None

    output_path = Path(output_path).resolve() if output_path else tex_file.with_suffix(".docx")
    _log_info(f"Converting {tex_file.name} to Word...")

    source = tex_file.read_text(encoding="utf-8", errors="replace")

    # Temporary copy sits beside the source so relative \input paths still resolve
    fd, temp_name = tempfile.mkstemp(suffix=".tex", prefix=f".{tex_file.stem}_draft_", dir=tex_file.parent)
    temp_file = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(insert_draft_notice(source))

        result = run_tool(
            [
                "pandoc",
                temp_file.name,
                "-o",
                output_path,
                "--from=latex",
                "--to=docx",
                "--standalone",
            ],
            cwd=tex_file.parent,
        )
    finally:
        temp_file.unlink(missing_ok=True)

    if result.returncode != 0 or not output_path.exists():
        _log_error(f"Failed to convert {tex_file.name} to Word.")
        if result.stderr:
            _log_error(result.stderr.strip())
        return None

    _log_success(f"{output_path.name} created successfully!")
    return output_path
