"""
Merging context logger.

Provides logging interface for the merging context with automatic [merge] prefix.
"""

from pathlib import Path
from typing import List

from loguru import logger

from latex_toolkit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[merge]"


def setup_merging_logger(log_dir: Path, verbose: bool = False) -> Path:
    """Setup logger for the merging context."""
    return _setup_logger(
        context_name="merge",
        log_dir=log_dir,
        extra_provenance={"Merge engine": "pdflatex + pdfpages"},
        verbose=verbose,
    )


def _log_info(message: str) -> None:
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_merge_plan(pdf_files: List[Path], output_path: Path) -> None:
    """Log the merge order and destination."""
    _log_info("Merging PDFs in order:")
    for i, pdf in enumerate(pdf_files, 1):
        _log_info(f"  {i}. {pdf.name}")
    _log_info(f"Creating {output_path.name}...")
