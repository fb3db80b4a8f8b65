"""
Signing context logger.

Provides logging interface for the signing context with automatic [sign] prefix.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from latex_toolkit.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[sign]"


def setup_signing_logger(log_dir: Path, method: Optional[str] = None, verbose: bool = False) -> Path:
    """Setup logger for the signing context."""
    return _setup_logger(
        context_name="sign",
        log_dir=log_dir,
        extra_provenance={"Signing method": method} if method else None,
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


def log_tool_output(tool: str, stdout: str, stderr: str) -> None:
    """Write a tool's raw output to the log at DEBUG."""
    if stdout:
        logger.opt(raw=True).debug(f"--- {tool} STDOUT ---\n{stdout}\n")
    if stderr:
        logger.opt(raw=True).debug(f"--- {tool} STDERR ---\n{stderr}\n")
