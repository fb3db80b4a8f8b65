"""
Release Context

Responsibilities:
- Builds every document listed in the release manifest into the distribution directory
- Assembles merged packets from built PDFs
- Tracks external binaries published on GitHub (check, download, checksum)
- Generates the software attestation

Owns: .dist/, Attestations/, .bin/
Never: Edits document sources
"""

from latex_toolkit.contexts.release.attestation import (
    AttestationInfo,
    collect_attestation_info,
    generate_attestation,
    git_version,
)
from latex_toolkit.contexts.release.external_deps import (
    DependencyStatus,
    ExternalDependency,
    check_dependency,
    check_external_deps,
    download_dependency,
    file_checksum,
    get_asset_url,
    get_github_release,
    load_dependencies,
    missing_dependencies,
)
from latex_toolkit.contexts.release.release import (
    ReleaseManifest,
    ReleasePacket,
    ReleaseSection,
    ReleaseSummary,
    build_release,
    clean_dist,
    load_release_manifest,
    resolve_section_sources,
)

__all__ = [
    "AttestationInfo",
    "collect_attestation_info",
    "generate_attestation",
    "git_version",
    "DependencyStatus",
    "ExternalDependency",
    "check_dependency",
    "check_external_deps",
    "download_dependency",
    "file_checksum",
    "get_asset_url",
    "get_github_release",
    "load_dependencies",
    "missing_dependencies",
    "ReleaseManifest",
    "ReleasePacket",
    "ReleaseSection",
    "ReleaseSummary",
    "build_release",
    "clean_dist",
    "load_release_manifest",
    "resolve_section_sources",
]
