#!/usr/bin/env python3
"""
LaTeX Document Build CLI

Compiles LaTeX documents to PDF with automatic engine selection (pdflatex, or
xelatex for fontspec / SF901 documents).

Commands:
    build  - Build one document (prompts for a choice when no target is given)
    list   - List buildable .tex files
    events - Show recent build, merge, signing and release events

Examples:\n

    build.py build documents/DecisionMemorandum/templates/decision_memo   # Build by path

    build.py build documents/DecisionMemorandum/templates/decision_memo.tex --docx   # Also make a Word draft

    build.py build                                                        # Choose from a list

    build.py events -n 20                                                 # Recent events
"""

import json
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from latex_toolkit.contexts.building import build_document, discover_tex_files, resolve_tex_file
from latex_toolkit.utils.event_logging import get_recent_events
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.timestamp import format_timestamp, now

load_dotenv()
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", ".")).resolve()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))


def display_path(path: Path) -> str:
    """Return path relative to PROJECT_ROOT for cleaner display."""
    try:
        return str(Path(path).resolve().relative_to(PROJECT_ROOT))
    except ValueError:
        return str(path)


app = typer.Typer(
    help="Build LaTeX documents to PDF",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def choose_tex_file() -> Path:
    """List buildable sources and prompt for one."""
    tex_files = discover_tex_files(PROJECT_ROOT)
    if not tex_files:
        typer.secho("No .tex files found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho("\nAvailable .tex files:", fg=typer.colors.YELLOW)
    for i, tex_file in enumerate(tex_files, 1):
        typer.echo(f"  {i}) {display_path(tex_file)}")
    typer.echo("")

    choice = typer.prompt("Select a file to build", type=int)
    if choice < 1 or choice > len(tex_files):
        typer.secho(f"Error: {choice} is out of range (1-{len(tex_files)}).", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return tex_files[choice - 1]


@app.command("build")
def build_command(
    target: Annotated[
        Optional[str],
        typer.Argument(help="Path to a .tex file ('.tex' may be omitted); prompts when absent"),
    ] = None,
    docx: Annotated[
        bool,
        typer.Option("--docx", help="Also produce a Word (.docx) draft with pandoc"),
    ] = False,
    preview: Annotated[
        bool,
        typer.Option("--preview", help="Render the first page to PNG with pdftoppm"),
    ] = False,
    num_passes: Annotated[
        int,
        typer.Option(
            "--passes",
            "-p",
            help="Number of compiler passes (default: 3 for cross-references)",
            min=1,
            max=5,
        ),
    ] = 3,
    keep_artifacts: Annotated[
        bool,
        typer.Option("--keep-artifacts", "-k", help="Keep LaTeX artifacts (.aux, .log, etc.)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation output"),
    ] = False,
):
    """
    Build a LaTeX document to PDF.

    Examples:\n

        $ build.py build documents/MeetingAgenda/templates/meeting_agenda

        $ build.py build documents/Compliance-Marking/CUI/SF901.tex --preview

        $ build.py build documents/DecisionMemorandum/templates/decision_memo.tex --docx --verbose
    """
    try:
        tex_file = resolve_tex_file(target, PROJECT_ROOT) if target else choose_tex_file()
    except (ValueError, FileNotFoundError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\nBuilding: {display_path(tex_file)}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Passes: {num_passes}")
    typer.echo("")

    try:
        result = build_document(
            tex_file,
            num_passes=num_passes,
            docx=docx,
            preview=preview,
            keep_artifacts=keep_artifacts,
            log_dir=LOGS_PATH / f"build_{now()}",
            verbose=verbose,
        )
    except (FileNotFoundError, ToolkitError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    if result.success:
        typer.secho("✓ Build succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Compiler: {result.compilation.compiler}")
        typer.echo(f"  Warnings: {len(result.compilation.warnings)}")
        typer.echo(f"  PDF: {display_path(result.output_pdf)}")
        for png in result.previews:
            typer.echo(f"  Preview: {display_path(png)}")
        if result.docx_path:
            typer.echo(f"  Word draft: {display_path(result.docx_path)}")
    else:
        typer.secho(
            f"✗ Build failed with {len(result.compilation.errors)} errors", fg=typer.colors.RED, bold=True
        )
        for error in result.compilation.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
        if len(result.compilation.errors) > 10:
            typer.echo(f"  ... and {len(result.compilation.errors) - 10} more")
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


@app.command("list")
def list_command():
    """List buildable .tex files under the project root."""
    tex_files = discover_tex_files(PROJECT_ROOT)
    if not tex_files:
        typer.secho("No .tex files found.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    for tex_file in tex_files:
        typer.echo(display_path(tex_file))


@app.command("events")
def events_command(
    n: int = typer.Option(10, "--num", "-n", min=1, help="Number of recent events to show"),
    document: Optional[str] = typer.Option(
        None, "--document", "-d", help="Filter to events for this document (file stem)"
    ),
    event_type: Optional[str] = typer.Option(
        None, "--event-type", "-e", help="Filter to events of this type"
    ),
    compact: bool = typer.Option(
        False, "--compact", "-c", help="Print one event per line (no pretty formatting)"
    ),
):
    """
    Show the last n events from the build event log.

    Examples:\n

        $ build.py events                        # Last 10 events

        $ build.py events -e build_failed        # Last 10 failed builds

        $ build.py events -n 5 -d decision_memo  # Last 5 events for one document
    """
    events = get_recent_events(n=n, document_name=document, event_type=event_type)

    if not events:
        typer.secho("No events found", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    for event in events:
        if compact:
            typer.echo(json.dumps(event))
            continue

        when = format_timestamp(event.get("timestamp", ""), relative=True)
        typer.secho(
            f"{when:>8}  {event.get('event_type', '?'):<22} {event.get('document_name', '?')}",
            fg=typer.colors.RED if event.get("event_type", "").endswith("failed") else None,
        )
        for key, value in event.items():
            if key not in ("timestamp", "event_type", "document_name"):
                typer.echo(f"          {key}: {value}")


if __name__ == "__main__":
    app()
