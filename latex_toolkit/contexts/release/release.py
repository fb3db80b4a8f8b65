"""
Release builds.

Builds every document named in the release manifest, collects the PDFs in the
distribution directory, assembles merged packets and the software
attestation, then removes LaTeX auxiliary files across the project.
"""

import fnmatch
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from latex_toolkit.contexts.building.builder import build_document
from latex_toolkit.contexts.building.compiler import cleanup_aux_tree
from latex_toolkit.contexts.merging.merger import merge_pdfs
from latex_toolkit.contexts.release.attestation import collect_attestation_info, generate_attestation
from latex_toolkit.contexts.release.external_deps import (
    BIN_PATH,
    EXTERNAL_DEPS_PATH,
    DependencyStatus,
    check_external_deps,
    load_dependencies,
)
from latex_toolkit.contexts.release.logger import (
    _log_error,
    _log_info,
    _log_success,
    _log_warning,
    log_release_summary,
    log_section_header,
    setup_release_logger,
)
from latex_toolkit.utils.event_logging import log_build_event
from latex_toolkit.utils.exceptions import MissingToolError, ToolkitError
from latex_toolkit.utils.external_tools import require_tool

load_dotenv()
RELEASE_MANIFEST_PATH = Path(os.getenv("RELEASE_MANIFEST_PATH", "config/release_manifest.yaml"))


@dataclass
class ReleaseSection:
    """
    A group of documents built together.

    Attributes:
        name: Heading shown in the log
        sources: Glob patterns relative to the project root
        output: Subdirectory of the distribution directory receiving the PDFs
        in_place: Keep PDFs beside their sources instead of copying to output
        preview: Render a PNG preview of each PDF
        exclude: File name patterns to skip (e.g., '*-template.tex')
    """

    name: str
    sources: List[str]
    output: Optional[str] = None
    in_place: bool = False
    preview: bool = False
    exclude: List[str] = field(default_factory=list)


@dataclass
class ReleasePacket:
    """Several built PDFs merged into one distribution file."""

    name: str
    output: str
    inputs: List[str]


@dataclass
class ReleaseManifest:
    dist_dir: str = ".dist"
    num_passes: int = 2
    sections: List[ReleaseSection] = field(default_factory=list)
    packets: List[ReleasePacket] = field(default_factory=list)
    attestation_enabled: bool = True
    attestation_dir: str = "Attestations"


@dataclass
class ReleaseSummary:
    """
    Outcome of a release build.

    Attributes:
        dist_dir: Distribution directory
        built: Documents, packets and attestation produced (project-relative names)
        failed: Documents or packets that failed
        skipped: Steps not run, with the reason
        attestation: Attestation PDF, when generated
        dependencies: External dependency statuses collected at the start
        cleaned: Number of auxiliary files removed
    """

    dist_dir: Path
    built: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    attestation: Optional[Path] = None
    dependencies: List[DependencyStatus] = field(default_factory=list)
    cleaned: int = 0

    @property
    def success(self) -> bool:
        return not self.failed

    def dist_pdfs(self) -> List[Path]:
        """All PDFs in the distribution directory."""
        if not self.dist_dir.exists():
            return []
        return sorted(self.dist_dir.rglob("*.pdf"))


def load_release_manifest(manifest_path: Path = None) -> ReleaseManifest:
    """
    Load the release manifest.

    Args:
        manifest_path: YAML file (defaults to RELEASE_MANIFEST_PATH env variable)

    Raises:
        FileNotFoundError: If the manifest does not exist
        ValueError: If a section has no sources, or neither output nor in_place
    """
    if manifest_path is None:
        manifest_path = RELEASE_MANIFEST_PATH
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Release manifest not found: {manifest_path}")

    data = OmegaConf.to_container(OmegaConf.load(manifest_path), resolve=True) or {}

    sections = []
    for entry in data.get("sections") or []:
        section = ReleaseSection(
            name=entry.get("name", "Documents"),
            sources=list(entry.get("sources") or []),
            output=entry.get("output"),
            in_place=bool(entry.get("in_place", False)),
            preview=bool(entry.get("preview", False)),
            exclude=list(entry.get("exclude") or []),
        )
        if not section.sources:
            raise ValueError(f"Release section '{section.name}' has no sources")
        if not section.in_place and not section.output:
            raise ValueError(f"Release section '{section.name}' needs an output directory or in_place: true")
        sections.append(section)

    packets = [
        ReleasePacket(name=entry["name"], output=entry["output"], inputs=list(entry["inputs"]))
        for entry in data.get("packets") or []
    ]

    attestation = data.get("attestation") or {}
    return ReleaseManifest(
        dist_dir=data.get("dist_dir", ".dist"),
        num_passes=int(data.get("num_passes", 2)),
        sections=sections,
        packets=packets,
        attestation_enabled=bool(attestation.get("enabled", True)),
        attestation_dir=attestation.get("output_dir", "Attestations"),
    )


def resolve_section_sources(section: ReleaseSection, project_root: Path) -> List[Path]:
    """Source files matched by a section's globs, minus excluded names, in manifest order."""
    found: List[Path] = []
    for pattern in section.sources:
        for path in sorted(Path(project_root).glob(pattern)):
            if not path.is_file() or path in found:
                continue
            if any(fnmatch.fnmatch(path.name, excluded) for excluded in section.exclude):
                continue
            found.append(path)
    return found


def clean_dist(dist_dir: Path) -> None:
    """Remove the distribution directory."""
    dist_dir = Path(dist_dir)
    if dist_dir.exists():
        _log_info(f"Cleaning existing {dist_dir.name}/ directory...")
        shutil.rmtree(dist_dir)


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def _build_section(
    section: ReleaseSection, project_root: Path, dist_dir: Path, num_passes: int, summary: ReleaseSummary
) -> None:
    log_section_header(f"Building {section.name}...")
    output_dir = None if section.in_place else dist_dir / section.output

    sources = resolve_section_sources(section, project_root)
    if not sources:
        _log_warning("  No sources found")

    for tex_file in sources:
        name = _relative(tex_file, project_root)
        _log_info(f"Building: {name}")
        try:
            result = build_document(
                tex_file, num_passes=num_passes, preview=section.preview, output_dir=output_dir
            )
        except MissingToolError as e:
            _log_error(f"  Failed to build {tex_file.name}: {e}")
            summary.failed.append(name)
            continue

        if result.success:
            _log_success(f"  {tex_file.stem}.pdf ({result.compilation.compiler})")
            summary.built.append(name)
        else:
            _log_error(f"  Failed to build {tex_file.name} ({result.compilation.compiler})")
            summary.failed.append(name)


def _build_packet(packet: ReleasePacket, project_root: Path, dist_dir: Path, summary: ReleaseSummary) -> None:
    log_section_header(f"Creating {packet.name}...")
    inputs = [project_root / pdf for pdf in packet.inputs]

    missing = [pdf.name for pdf in inputs if not pdf.is_file()]
    if missing:
        _log_warning(f"  Skipping {packet.name} - not all input PDFs available ({', '.join(missing)})")
        summary.skipped[packet.name] = "not all input PDFs available"
        return

    output_path = dist_dir / packet.output
    try:
        result = merge_pdfs(inputs, output_path)
    except (ToolkitError, ValueError) as e:
        _log_error(f"  Failed to create {output_path.name}: {e}")
        summary.failed.append(packet.name)
        return

    if result.success:
        summary.built.append(_relative(output_path, project_root))
    else:
        _log_error(f"  Failed to create {output_path.name}")
        summary.failed.append(packet.name)


def build_release(
    project_root: Path,
    manifest: ReleaseManifest,
    clean_only: bool = False,
    check_deps: bool = True,
    attestation: bool = True,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> ReleaseSummary:
    """
    Build a release.

    Args:
        project_root: Root that manifest paths are relative to
        manifest: What to build
        clean_only: Remove the distribution directory and stop
        check_deps: Check external dependencies first (never blocks the build)
        attestation: Generate the software attestation (also requires it enabled in the manifest)
        log_dir: Configure the release logger to write here
        verbose: Echo DEBUG output to the console

    Returns:
        ReleaseSummary

    Raises:
        MissingToolError: If pdflatex is not installed
    """
    project_root = Path(project_root).resolve()
    dist_dir = project_root / manifest.dist_dir
    if log_dir is not None:
        setup_release_logger(log_dir, dist_dir, verbose=verbose)

    require_tool("pdflatex")
    summary = ReleaseSummary(dist_dir=dist_dir)

    if check_deps:
        try:
            dependencies = load_dependencies(project_root / EXTERNAL_DEPS_PATH)
            summary.dependencies = check_external_deps(dependencies, project_root / BIN_PATH)
        except (FileNotFoundError, ValueError) as e:
            _log_warning(f"Skipping dependency check: {e}")

    clean_dist(dist_dir)
    if clean_only:
        _log_success("Clean complete.")
        return summary

    dist_dir.mkdir(parents=True)
    for section in manifest.sections:
        _build_section(section, project_root, dist_dir, manifest.num_passes, summary)

    for packet in manifest.packets:
        _build_packet(packet, project_root, dist_dir, summary)

    if attestation and manifest.attestation_enabled:
        log_section_header("Generating Software Attestation...")
        try:
            info = collect_attestation_info(project_root, summary.dependencies)
            summary.attestation = generate_attestation(
                info, project_root / manifest.attestation_dir, dist_dir=dist_dir
            )
            summary.built.append(_relative(summary.attestation, project_root))
        except ToolkitError as e:
            _log_warning(f"  Attestation generation skipped or failed: {e}")
            summary.skipped["attestation"] = str(e)

    _log_info("")
    _log_info("Cleaning auxiliary files across repo...")
    summary.cleaned = cleanup_aux_tree(project_root)
    _log_success("Auxiliary files cleaned.")

    log_release_summary(summary.built, summary.failed, summary.skipped, dist_dir)
    for pdf in summary.dist_pdfs():
        _log_info(f"  {_relative(pdf, project_root)}")

    log_build_event(
        "release_completed",
        project_root.name,
        "release",
        built=len(summary.built),
        failed=summary.failed,
        skipped=sorted(summary.skipped),
        dist_dir=str(dist_dir),
    )
    return summary
