#!/usr/bin/env python3
"""
PDF Merge CLI

Merges PDFs from a directory in a user-chosen order using LaTeX's pdfpages
package. Earlier merge results (merged.pdf, *_merged*.pdf) are never offered
as inputs.

Examples:\n

    merge_pdf.py                                  # Interactive, current directory

    merge_pdf.py documents/out                    # Interactive, given directory

    merge_pdf.py documents/out --order "2 1 3" --output packet.pdf
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from latex_toolkit.contexts.merging import (
    discover_pdfs,
    merge_pdfs,
    output_name_options,
    parse_merge_order,
    resolve_output_name,
)
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.pdf_processing import page_count
from latex_toolkit.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(
    add_completion=False,
    help="Merge PDFs in a chosen order",
)


def prompt_output_name(first_stem: str) -> str:
    """Offer the output name menu and return the chosen file name."""
    timestamp = now()
    options = output_name_options(first_stem, timestamp)

    typer.secho("\nOutput filename options:", fg=typer.colors.YELLOW)
    for i, option in enumerate(options, 1):
        suffix = " (default)" if i == 1 else ""
        typer.echo(f"  {i}) {option}{suffix}")
    typer.echo("  4) Custom name")
    typer.echo("")

    choice = typer.prompt("Select output name [1-4]", default="1", show_default=False)
    custom = None
    if choice.strip() == "4":
        custom = typer.prompt("Enter custom filename (without .pdf)", default="", show_default=False)
    return resolve_output_name(choice, first_stem, timestamp, custom_name=custom)


@app.command()
def main(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory containing the PDFs to merge"),
    ] = Path("."),
    order: Annotated[
        Optional[str],
        typer.Option("--order", "-o", help="Merge order as list numbers, e.g. '2 1' or '2,1'"),
    ] = None,
    output: Annotated[
        Optional[str],
        typer.Option("--output", help="Output file name, .pdf added if missing (written into DIRECTORY)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation output"),
    ] = False,
):
    """
    Merge PDFs in DIRECTORY.

    Without --order and --output, lists the PDFs and prompts for both.
    """
    try:
        pdfs = discover_pdfs(directory)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if len(pdfs) < 2:
        typer.secho(f"Error: Need at least 2 PDF files to merge. Found: {len(pdfs)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho("\nAvailable PDF files:", fg=typer.colors.YELLOW)
    for i, pdf in enumerate(pdfs, 1):
        pages = page_count(pdf)
        typer.echo(f"  {i}) {pdf.name}" + (f"  ({pages} pages)" if pages is not None else ""))
    typer.echo("")

    if order is None:
        typer.echo("Enter the numbers in the order you want them merged, e.g. '2 1' or '2,1'.")
        order = typer.prompt("Merge order")

    try:
        selected = [pdfs[i] for i in parse_merge_order(order, len(pdfs))]
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if output:
        output_name = resolve_output_name("4", selected[0].stem, now(), custom_name=output)
    else:
        output_name = prompt_output_name(selected[0].stem)
    output_path = Path(directory) / output_name

    try:
        result = merge_pdfs(selected, output_path, log_dir=LOGS_PATH / f"merge_{now()}", verbose=verbose)
    except (ValueError, FileNotFoundError, ToolkitError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    if result.success:
        typer.secho(f"✓ Merged {len(selected)} PDFs", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Output: {result.output_path}")
        typer.echo(f"  Pages: {result.page_count}")
    else:
        typer.secho("✗ PDF merge failed", fg=typer.colors.RED, bold=True)
        for error in result.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
    typer.echo("")

    raise typer.Exit(code=0 if result.success else 1)


if __name__ == "__main__":
    app()
