"""
Software attestation: a PDF recording the toolkit version and the version,
checksum and source of each external binary, produced with every release.
"""

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from latex_toolkit.contexts.building.compiler import compile_latex
from latex_toolkit.contexts.release.external_deps import DependencyStatus
from latex_toolkit.contexts.release.logger import _log_error, _log_info, _log_success, _log_warning
from latex_toolkit.contexts.templating.registries import TemplateRegistry
from latex_toolkit.contexts.templating.renderer import render_to_file
from latex_toolkit.utils.event_logging import log_build_event
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.external_tools import require_tool, run_tool, tool_available
from latex_toolkit.utils.timestamp import date_display, date_stamp, utc_timestamp

ATTESTATION_TEMPLATE = "attestation"
ATTESTATION_PREFIX = "software-attestation"


@dataclass
class AttestationInfo:
    """Values printed on an attestation."""

    attestation_id: str
    date: str
    date_stamp: str
    generated_at: str
    toolkit_version: str
    toolkit_commit: str
    dependencies: List[Dict[str, str]] = field(default_factory=list)

    def to_context(self) -> Dict[str, Any]:
        return {
            "attestation_id": self.attestation_id,
            "date": self.date,
            "generated_at": self.generated_at,
            "toolkit_version": self.toolkit_version,
            "toolkit_commit": self.toolkit_commit,
            "dependencies": self.dependencies,
        }


def git_version(repo_root: Path) -> Tuple[str, str]:
    """(version, commit) from git, falling back to ('dev', 'unknown')."""
    if not tool_available("git"):
        return "dev", "unknown"

    describe = run_tool(["git", "-C", repo_root, "describe", "--tags", "--always"])
    version = describe.stdout.strip() if describe.returncode == 0 and describe.stdout.strip() else "dev"

    rev = run_tool(["git", "-C", repo_root, "rev-parse", "--short", "HEAD"])
    commit = rev.stdout.strip() if rev.returncode == 0 and rev.stdout.strip() else "unknown"

    return version, commit


def collect_attestation_info(repo_root: Path, statuses: List[DependencyStatus]) -> AttestationInfo:
    """Gather toolkit version and dependency details for today's attestation."""
    _log_info("Collecting software information...")
    version, commit = git_version(repo_root)
    stamp = date_stamp()

    dependencies = []
    for status in statuses:
        dependencies.append(
            {
                "name": status.name,
                "executable": status.dependency.executable,
                "version": status.latest_version,
                "status": "installed" if status.installed else "not installed",
                "checksum": status.checksum,
                "url": status.download_url,
            }
        )
        _log_info(f"  {status.dependency.executable} {status.latest_version}")

    return AttestationInfo(
        attestation_id=f"ATT-{stamp}-001",
        date=date_display(),
        date_stamp=stamp,
        generated_at=utc_timestamp(),
        toolkit_version=version,
        toolkit_commit=commit,
        dependencies=dependencies,
    )


def _publish(pdf: Path, directory: Path, stamp: str) -> Path:
    """Copy the PDF in as software-attestation-<stamp>.pdf and point -latest.pdf at it."""
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{ATTESTATION_PREFIX}-{stamp}.pdf"
    shutil.copy2(pdf, target)

    latest = directory / f"{ATTESTATION_PREFIX}-latest.pdf"
    if latest.is_symlink() or latest.exists():
        latest.unlink()
    try:
        latest.symlink_to(target.name)
    except OSError:
        # No symlink privilege (Windows)
        shutil.copy2(target, latest)

    return target


def generate_attestation(
    info: AttestationInfo,
    output_dir: Path,
    dist_dir: Optional[Path] = None,
    registry: Optional[TemplateRegistry] = None,
) -> Path:
    """
    Render and compile the attestation PDF.

    Args:
        info: Values to print
        output_dir: Directory receiving software-attestation-YYYYMMDD.pdf
        dist_dir: Release directory; a copy goes into <dist_dir>/attestations/
        registry: Template registry (defaults to the packaged templates)

    Returns:
        Path to the attestation in output_dir

    Raises:
        MissingToolError: If pdflatex is not installed
        ToolkitError: If the attestation does not compile
    """
    require_tool("pdflatex")
    _log_info("Generating attestation document...")

    with tempfile.TemporaryDirectory(prefix="latex_toolkit_attestation_") as work:
        tex_file = render_to_file(
            ATTESTATION_TEMPLATE,
            info.to_context(),
            Path(work) / "software_attestation.tex",
            registry=registry,
        )
        # Twice, for the page count in the footer
        compilation = compile_latex(tex_file, num_passes=2, compiler="pdflatex")

        if not compilation.success:
            for err in compilation.errors[:5]:
                _log_error(f"  {err}")
            raise ToolkitError("Failed to compile attestation document")

        output_path = _publish(compilation.pdf_path, Path(output_dir), info.date_stamp)
        _log_success(f"Generated: {output_path}")

        if dist_dir is not None:
            dist_copy = _publish(compilation.pdf_path, Path(dist_dir) / "attestations", info.date_stamp)
            _log_success(f"Generated: {dist_copy}")

    log_build_event(
        "attestation_generated",
        output_path.stem,
        "release",
        attestation_id=info.attestation_id,
        toolkit_version=info.toolkit_version,
        toolkit_commit=info.toolkit_commit,
    )
    _log_info(f"Document ID: {info.attestation_id}")
    _log_info(f"Toolkit: {info.toolkit_version} ({info.toolkit_commit})")
    if not info.dependencies:
        _log_warning("No external dependencies were documented")

    return output_path
