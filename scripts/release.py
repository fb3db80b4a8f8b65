#!/usr/bin/env python3
"""
Release Build CLI

Builds every document in the release manifest into .dist/, merges packets,
tracks external binaries and generates the software attestation.

Commands:
    build       - Build the release (--clean only wipes .dist/)
    deps        - Check external dependencies (--download installs missing ones)
    attestation - Generate the software attestation on its own

Examples:\n

    release.py build                    # Full release

    release.py build --clean            # Remove .dist/ and stop

    release.py deps --download          # Install PdfSigner.exe into .bin/

    release.py attestation              # Attestations/software-attestation-YYYYMMDD.pdf
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from latex_toolkit.contexts.release import (
    build_release,
    check_external_deps,
    collect_attestation_info,
    download_dependency,
    generate_attestation,
    load_dependencies,
    load_release_manifest,
    missing_dependencies,
)
from latex_toolkit.contexts.release.external_deps import BIN_PATH, EXTERNAL_DEPS_PATH
from latex_toolkit.contexts.release.logger import setup_release_logger
from latex_toolkit.contexts.release.release import RELEASE_MANIFEST_PATH
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.timestamp import now

load_dotenv()
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", ".")).resolve()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(
    help="Build releases, manage external dependencies and attestations",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("build")
def build_command(
    clean: Annotated[bool, typer.Option("--clean", help="Only remove the distribution directory")] = False,
    skip_deps: Annotated[bool, typer.Option("--skip-deps", help="Skip the external dependency check")] = False,
    no_attestation: Annotated[
        bool, typer.Option("--no-attestation", help="Do not generate the software attestation")
    ] = False,
    manifest_path: Annotated[
        Optional[Path], typer.Option("--manifest", help="Release manifest (default: RELEASE_MANIFEST_PATH)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show DEBUG output")] = False,
):
    """Build all release documents into the distribution directory."""
    typer.secho("\nLaTeX Toolkit Release Build", fg=typer.colors.CYAN, bold=True)

    try:
        manifest = load_release_manifest(manifest_path or PROJECT_ROOT / RELEASE_MANIFEST_PATH)
        summary = build_release(
            PROJECT_ROOT,
            manifest,
            clean_only=clean,
            check_deps=not skip_deps,
            attestation=not no_attestation,
            log_dir=LOGS_PATH / f"release_{now()}",
            verbose=verbose,
        )
    except (ValueError, FileNotFoundError, ToolkitError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if clean:
        raise typer.Exit(code=0)

    typer.echo("")
    typer.secho(f"Built: {len(summary.built)} documents", fg=typer.colors.GREEN)
    if summary.failed:
        typer.secho(f"Failed: {len(summary.failed)} documents", fg=typer.colors.RED)
        for name in summary.failed:
            typer.secho(f"  - {name}", fg=typer.colors.RED)
    typer.echo(f"Output directory: {summary.dist_dir}/\n")

    raise typer.Exit(code=0 if summary.success else 1)


@app.command("deps")
def deps_command(
    download: Annotated[
        bool, typer.Option("--download", help="Download missing dependencies into BIN_PATH")
    ] = False,
):
    """Check external dependencies against their latest GitHub releases."""
    setup_release_logger(LOGS_PATH / f"deps_{now()}")
    bin_dir = PROJECT_ROOT / BIN_PATH

    try:
        dependencies = load_dependencies(PROJECT_ROOT / EXTERNAL_DEPS_PATH)
    except (ValueError, FileNotFoundError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    statuses = check_external_deps(dependencies, bin_dir)

    typer.echo("")
    for status in statuses:
        mark = "✓" if status.installed else "✗"
        color = typer.colors.GREEN if status.installed else typer.colors.YELLOW
        typer.secho(f"{mark} {status.name} ({status.dependency.executable})", fg=color, bold=True)
        typer.echo(f"  Latest:   {status.latest_version}")
        typer.echo(f"  URL:      {status.download_url}")
        typer.echo(f"  SHA-256:  {status.checksum}")

    missing = missing_dependencies(statuses)
    if not download:
        raise typer.Exit(code=0 if not missing else 1)

    failed = False
    for status in missing:
        try:
            path = download_dependency(status.dependency, bin_dir)
            typer.secho(f"✓ Installed {path}", fg=typer.colors.GREEN)
        except ToolkitError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
            failed = True
    raise typer.Exit(code=1 if failed else 0)


@app.command("attestation")
def attestation_command(
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Attestation directory (default: the manifest's attestation output_dir)"),
    ] = None,
    dist: Annotated[
        bool, typer.Option("--dist/--no-dist", help="Also copy into <dist_dir>/attestations/")
    ] = True,
    manifest_path: Annotated[
        Optional[Path], typer.Option("--manifest", help="Release manifest (default: RELEASE_MANIFEST_PATH)")
    ] = None,
):
    """Generate the software attestation PDF."""
    try:
        manifest = load_release_manifest(manifest_path or PROJECT_ROOT / RELEASE_MANIFEST_PATH)
    except (ValueError, FileNotFoundError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    dist_dir = PROJECT_ROOT / manifest.dist_dir
    setup_release_logger(LOGS_PATH / f"attestation_{now()}", dist_dir)
    try:
        statuses = check_external_deps(
            load_dependencies(PROJECT_ROOT / EXTERNAL_DEPS_PATH), PROJECT_ROOT / BIN_PATH
        )
        info = collect_attestation_info(PROJECT_ROOT, statuses)
        path = generate_attestation(
            info,
            PROJECT_ROOT / (output_dir or manifest.attestation_dir),
            dist_dir=dist_dir if dist else None,
        )
    except (ValueError, FileNotFoundError, ToolkitError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\n✓ Attestation generated: {path}", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Document ID: {info.attestation_id}")
    typer.echo(f"  Toolkit: {info.toolkit_version} ({info.toolkit_commit})\n")


if __name__ == "__main__":
    app()
