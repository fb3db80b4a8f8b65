"""
External program helpers.

Every context shells out to third-party binaries (TeX engines, poppler, pandoc,
OpenSSL, NSS tools). This module is the single place that locates them and
runs them.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from latex_toolkit.utils.exceptions import MissingToolError

TEX_HINT = (
    "Please install LaTeX (macOS: brew install --cask mactex, "
    "Ubuntu: sudo apt install texlive-latex-base, Fedora: sudo dnf install texlive-latex)."
)
POPPLER_HINT = "Install poppler (macOS: brew install poppler, Ubuntu: sudo apt install poppler-utils)."
NSS_HINT = "Install NSS tools (macOS: brew install nss, Ubuntu: sudo apt install libnss3-tools)."

INSTALL_HINTS: Dict[str, str] = {
    "pdflatex": TEX_HINT,
    "xelatex": TEX_HINT,
    "pdftoppm": POPPLER_HINT,
    "pdfsig": POPPLER_HINT,
    "pandoc": "Install pandoc (macOS: brew install pandoc, Ubuntu: sudo apt install pandoc).",
    "openssl": "Install OpenSSL (macOS: brew install openssl, Ubuntu: sudo apt install openssl).",
    "certutil": NSS_HINT,
    "pk12util": NSS_HINT,
    "pkcs11-tool": "Install OpenSC for smart card support (Ubuntu: sudo apt install opensc).",
    "java": "Install a Java runtime to use JSignPdf (http://jsignpdf.sourceforge.net/).",
    "git": "Install git to record toolkit version information.",
}


def tool_available(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None


def require_tool(name: str) -> str:
    """
    Locate a required executable.

    Args:
        name: Executable name (e.g., 'pdflatex')

    Returns:
        Absolute path to the executable

    Raises:
        MissingToolError: If the executable is not on PATH
    """
    path = shutil.which(name)
    if path is None:
        raise MissingToolError(name, INSTALL_HINTS.get(name))
    return path


def run_tool(
    cmd: Sequence[Union[str, Path]],
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Run an external program and capture its output.

    Non-zero exit codes are returned to the caller, not raised; each context
    decides what a failure means for its own tool.

    Args:
        cmd: Command and arguments
        cwd: Working directory for the process
        env: Full environment for the process (None inherits the current one)
        timeout: Seconds before the process is killed

    Returns:
        CompletedProcess with text stdout/stderr
    """
    args: List[str] = [str(part) for part in cmd]
    return subprocess.run(
        args,
        cwd=cwd,
        env=env,
        timeout=timeout,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",  # TeX and certificate tools emit latin-1 now and then
    )
