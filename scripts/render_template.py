#!/usr/bin/env python3
"""
Document Template CLI

Renders a Jinja2 document template (attestation, CUI cover sheet) with values
from a YAML file, optionally building the result to PDF.

Examples:\n

    render_template.py list

    render_template.py render cui_cover_sheet data.yaml -o cover.tex --build
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from latex_toolkit.contexts.building import build_document
from latex_toolkit.contexts.templating import load_context, render_to_file
from latex_toolkit.contexts.templating.logger import setup_templating_logger
from latex_toolkit.contexts.templating.renderer import get_registry
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(
    help="Render document templates to LaTeX",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("list")
def list_command():
    """List available templates and their default values."""
    registry = get_registry()
    names = registry.list_templates()
    if not names:
        typer.secho(f"No templates found in {registry.templates_base_path}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    for name in names:
        typer.secho(name, bold=True)
        for key in sorted(registry.get_defaults(name)):
            typer.echo(f"  {key}")


@app.command("render")
def render_command(
    template: Annotated[str, typer.Argument(help="Template name (see 'list')")],
    data: Annotated[
        Optional[Path], typer.Argument(help="YAML file with values overriding the template defaults")
    ] = None,
    output: Annotated[Path, typer.Option("--output", "-o", help="LaTeX file to write")] = Path("rendered.tex"),
    build: Annotated[bool, typer.Option("--build", help="Also build the rendered file to PDF")] = False,
):
    """
    Render a template to a .tex file.

    Examples:\n

        $ render_template.py render attestation -o attestation.tex

        $ render_template.py render cui_cover_sheet cover.yaml -o cover.tex --build
    """
    log_dir = LOGS_PATH / f"template_{now()}"
    setup_templating_logger(log_dir, template_name=template)

    try:
        context = load_context(data) if data else {}
        tex_file = render_to_file(template, context, output)
    except (ValueError, FileNotFoundError, ToolkitError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"✓ Rendered {template} -> {tex_file}", fg=typer.colors.GREEN, bold=True)
    if not build:
        raise typer.Exit(code=0)

    try:
        result = build_document(tex_file, log_dir=log_dir)
    except ToolkitError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if result.success:
        typer.secho(f"✓ Built {result.output_pdf}", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho(f"✗ Build failed with {len(result.compilation.errors)} errors", fg=typer.colors.RED, bold=True)
        for error in result.compilation.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
    raise typer.Exit(code=0 if result.success else 1)


if __name__ == "__main__":
    app()
