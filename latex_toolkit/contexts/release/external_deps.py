"""
External binary dependencies published as GitHub releases.

Dependencies are declared in config/external_deps.yaml:

    dependencies:
      PdfSigner:
        github_repo: brucedombrowski/PDFSigner
        executable: PdfSigner.exe
        asset_suffix: .zip

Checking a dependency never fails the caller: when GitHub cannot be reached
the status carries fallback values instead.
"""

import hashlib
import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv
from omegaconf import OmegaConf

from latex_toolkit.contexts.release.logger import _log_info, _log_success, _log_warning
from latex_toolkit.utils.exceptions import DependencyError

load_dotenv()
EXTERNAL_DEPS_PATH = Path(os.getenv("EXTERNAL_DEPS_PATH", "config/external_deps.yaml"))
BIN_PATH = Path(os.getenv("BIN_PATH", ".bin"))
GITHUB_API_TIMEOUT = float(os.getenv("GITHUB_API_TIMEOUT", "10"))

GITHUB_API_URL = "https://api.github.com/repos/{repo}/releases/latest"
GITHUB_RELEASES_URL = "https://github.com/{repo}/releases/latest"
UNKNOWN_VERSION = "unknown"
NO_CHECKSUM = "not-available"


@dataclass
class ExternalDependency:
    name: str
    github_repo: str
    executable: str
    asset_suffix: str = ".zip"
    description: str = ""


@dataclass
class DependencyStatus:
    """
    Installed state and latest published release of a dependency.

    Attributes:
        dependency: Declared dependency
        installed: Executable present in the bin directory
        install_path: Where the executable is (or would be) installed
        latest_version: Latest release tag, or 'unknown' when GitHub is unreachable
        download_url: Release asset URL, or the releases page as fallback
        checksum: SHA-256 of the installed executable, or 'not-available'
    """

    dependency: ExternalDependency
    installed: bool
    install_path: Path
    latest_version: str = UNKNOWN_VERSION
    download_url: str = ""
    checksum: str = NO_CHECKSUM

    @property
    def name(self) -> str:
        return self.dependency.name


def load_dependencies(config_path: Path = None) -> List[ExternalDependency]:
    """
    Load declared external dependencies.

    Args:
        config_path: YAML file (defaults to EXTERNAL_DEPS_PATH env variable)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If an entry lacks github_repo or executable
    """
    if config_path is None:
        config_path = EXTERNAL_DEPS_PATH
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"External dependency list not found: {config_path}")

    data = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True) or {}

    dependencies = []
    for name, entry in (data.get("dependencies") or {}).items():
        missing = [key for key in ("github_repo", "executable") if not entry.get(key)]
        if missing:
            raise ValueError(f"Dependency '{name}' is missing: {', '.join(missing)}")
        dependencies.append(
            ExternalDependency(
                name=name,
                github_repo=entry["github_repo"],
                executable=entry["executable"],
                asset_suffix=entry.get("asset_suffix", ".zip"),
                description=entry.get("description", ""),
            )
        )
    return dependencies


def get_github_release(repo: str, timeout: float = GITHUB_API_TIMEOUT) -> Optional[Dict[str, Any]]:
    """Latest release JSON for owner/repo, or None when GitHub cannot be reached."""
    url = GITHUB_API_URL.format(repo=repo)
    try:
        response = requests.get(url, timeout=timeout, headers={"Accept": "application/vnd.github+json"})
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        _log_warning(f"Could not reach GitHub for {repo}: {exc}")
        return None


def get_asset_url(release: Dict[str, Any], suffix: str = ".zip") -> Optional[str]:
    """Download URL of the first release asset whose name ends with suffix."""
    for asset in release.get("assets") or []:
        if str(asset.get("name", "")).endswith(suffix):
            return asset.get("browser_download_url")
    return None


def file_checksum(path: Path) -> str:
    """SHA-256 hex digest of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def check_dependency(dep: ExternalDependency, bin_dir: Path = BIN_PATH) -> DependencyStatus:
    """Look up a dependency's installed state and latest release."""
    install_path = Path(bin_dir) / dep.executable
    status = DependencyStatus(
        dependency=dep,
        installed=install_path.is_file(),
        install_path=install_path,
        download_url=GITHUB_RELEASES_URL.format(repo=dep.github_repo),
    )

    release = get_github_release(dep.github_repo)
    if release is not None:
        status.latest_version = release.get("tag_name") or UNKNOWN_VERSION
        status.download_url = get_asset_url(release, dep.asset_suffix) or status.download_url

    if status.installed:
        status.checksum = file_checksum(install_path)
        _log_success(f"  {dep.executable} found (latest: {status.latest_version})")
    else:
        _log_warning(f"  {dep.executable} not installed (latest: {status.latest_version})")
        _log_warning(f"  Download: {status.download_url}")

    return status


def check_external_deps(
    dependencies: Optional[List[ExternalDependency]] = None, bin_dir: Path = BIN_PATH
) -> List[DependencyStatus]:
    """Check every declared dependency."""
    _log_info("Checking external dependencies...")
    if dependencies is None:
        dependencies = load_dependencies()
    return [check_dependency(dep, bin_dir) for dep in dependencies]


def missing_dependencies(statuses: List[DependencyStatus]) -> List[DependencyStatus]:
    return [status for status in statuses if not status.installed]


def download_dependency(dep: ExternalDependency, bin_dir: Path = BIN_PATH) -> Path:
    """
    Download and install a dependency's executable from its latest release.

    Args:
        dep: Dependency to install
        bin_dir: Install directory (created if needed)

    Returns:
        Path to the installed executable

    Raises:
        DependencyError: If GitHub is unreachable, the release has no matching
            asset, the download fails, or the archive lacks the executable
    """
    release = get_github_release(dep.github_repo)
    if release is None:
        raise DependencyError(f"Could not fetch release information for {dep.github_repo}")

    url = get_asset_url(release, dep.asset_suffix)
    if url is None:
        raise DependencyError(f"No '{dep.asset_suffix}' asset in the latest {dep.name} release")

    _log_info(f"Downloading {dep.name} {release.get('tag_name', '')} from {url}...")

    with tempfile.TemporaryDirectory(prefix="latex_toolkit_deps_") as work:
        work_dir = Path(work)
        archive = work_dir / f"{dep.name}{dep.asset_suffix}"

        try:
            response = requests.get(url, timeout=GITHUB_API_TIMEOUT * 6)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DependencyError(f"Download failed: {exc}") from exc
        archive.write_bytes(response.content)

        extract_dir = work_dir / "extracted"
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(extract_dir)
        except zipfile.BadZipFile as exc:
            raise DependencyError(f"Downloaded asset is not a valid zip archive: {exc}") from exc

        found = next(iter(sorted(extract_dir.rglob(dep.executable))), None)
        if found is None:
            raise DependencyError(f"{dep.executable} not found in downloaded archive")

        bin_dir = Path(bin_dir)
        bin_dir.mkdir(parents=True, exist_ok=True)
        target = bin_dir / dep.executable
        shutil.copy2(found, target)

    _log_success(f"Installed {target} (sha256 {file_checksum(target)})")
    return target
