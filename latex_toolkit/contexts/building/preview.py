"""PNG previews of compiled PDFs via poppler's pdftoppm."""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from latex_toolkit.contexts.building.logger import _log_debug, _log_success, _log_warning
from latex_toolkit.utils.external_tools import INSTALL_HINTS, run_tool, tool_available

load_dotenv()
PREVIEW_DPI = int(os.getenv("PREVIEW_DPI", "150"))


def generate_preview(
    pdf_path: Path,
    output_stem: Optional[Path] = None,
    dpi: int = PREVIEW_DPI,
    single_file: bool = True,
) -> List[Path]:
    """
    Render a PDF to PNG.

    With single_file=True only the first page is rendered, to <stem>.png.
    Otherwise every page is rendered, to <stem>-<page>.png.

    Args:
        pdf_path: PDF to render
        output_stem: Output path without extension (default: beside the PDF)
        dpi: Resolution in dots per inch
        single_file: Render the first page only

    Returns:
        Generated PNG paths (empty if pdftoppm is unavailable or fails)
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"File not found: {pdf_path}")

    if not tool_available("pdftoppm"):
        _log_warning("pdftoppm not found - skipping PNG generation.")
        _log_warning(INSTALL_HINTS["pdftoppm"])
        return []

    output_stem = Path(output_stem) if output_stem else pdf_path.with_suffix("")

    cmd = ["pdftoppm", "-png", "-r", str(dpi)]
    if single_file:
        cmd.append("-singlefile")
    cmd += [pdf_path, output_stem]

    result = run_tool(cmd)
    if result.returncode != 0:
        _log_warning(f"pdftoppm failed for {pdf_path.name}: {result.stderr.strip()}")
        return []

    if single_file:
        pngs = [output_stem.with_name(f"{output_stem.name}.png")]
    else:
        # pdftoppm zero-pads page numbers to the width of the page count
        pngs = sorted(output_stem.parent.glob(f"{output_stem.name}-*.png"))

    pngs = [png for png in pngs if png.exists()]
    for png in pngs:
        _log_success(f"  ✓ {png.name}")
    _log_debug(f"Rendered {len(pngs)} preview(s) at {dpi} dpi")

    return pngs
