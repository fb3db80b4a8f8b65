"""
Release context logger.

Provides logging interface for the release context with automatic [release] prefix.
"""

from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from latex_toolkit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[release]"


def setup_release_logger(log_dir: Path, dist_dir: Optional[Path] = None, verbose: bool = False) -> Path:
    """Setup logger for the release context."""
    return _setup_logger(
        context_name="release",
        log_dir=log_dir,
        extra_provenance={"Distribution directory": str(dist_dir)} if dist_dir else None,
        level_colors={"INFO": "<cyan>"},
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


def log_section_header(title: str) -> None:
    _log_info("")
    _log_info(title)
    _log_info("-" * len(title))


def log_release_summary(built: List[str], failed: List[str], skipped: Dict[str, str], dist_dir: Path) -> None:
    """Log the end-of-release report."""
    _log_info("")
    _log_info("=" * 40)
    _log_info("Release build complete")
    _log_info("=" * 40)
    _log_info(f"Output directory: {dist_dir}")
    _log_success(f"Built: {len(built)}")
    if skipped:
        _log_warning(f"Skipped: {len(skipped)}")
        for name, reason in skipped.items():
            _log_warning(f"  - {name}: {reason}")
    if failed:
        _log_error(f"Failed: {len(failed)}")
        for name in failed:
            _log_error(f"  - {name}")
