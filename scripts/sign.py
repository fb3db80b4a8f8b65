#!/usr/bin/env python3
"""
PDF Signing CLI

Signs PDFs with a smart card (PIV/CAC) or a PKCS#12 certificate, verifies
signatures, and creates self-signed test certificates.

Commands:
    sign        - Sign with a smart card (PdfSigner.exe, JSignPdf or pdfsig)
    sign-p12    - Sign with a .p12 certificate bundle
    verify      - Verify the signatures in a PDF
    list        - Show signing tools and smart card certificates
    create-cert - Create a self-signed test certificate

Examples:\n

    sign.py sign report.pdf                           # Writes report_signed.pdf

    sign.py sign-p12 signer_20260118.p12 report.pdf   # Sign with a software certificate

    sign.py verify report_signed.pdf

    sign.py create-cert --cn "Jane Doe" --org "Example Corp"
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from latex_toolkit.contexts.signing import (
    CertificateRequest,
    create_test_certificate,
    detect_signing_tools,
    list_certificates,
    sign_pdf,
    sign_with_p12,
    verify_pdf,
)
from latex_toolkit.contexts.signing.logger import setup_signing_logger
from latex_toolkit.utils.exceptions import ToolkitError
from latex_toolkit.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

app = typer.Typer(
    help="Sign PDFs and verify PDF signatures",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def report_signing(result) -> None:
    typer.echo("")
    if result.success:
        typer.secho(f"✓ Successfully signed: {result.output_path}", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho(f"✗ Signing failed ({result.method})", fg=typer.colors.RED, bold=True)
        for error in result.errors:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
    typer.echo("")
    raise typer.Exit(code=0 if result.success else 1)


@app.command("sign")
def sign_command(
    pdf: Annotated[Path, typer.Argument(help="PDF to sign")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Signed PDF (default: <name>_signed.pdf)"),
    ] = None,
    method: Annotated[
        Optional[str],
        typer.Option("--method", "-m", help="pdfsigner, jsignpdf or pdfsig (default: best available)"),
    ] = None,
    nickname: Annotated[
        Optional[str],
        typer.Option("--nickname", "-n", help="NSS certificate nickname (pdfsig only)"),
    ] = None,
    pkcs11_library: Annotated[
        Optional[Path],
        typer.Option("--pkcs11-lib", help="PKCS#11 module (JSignPdf only; default: auto-detect)"),
    ] = None,
):
    """
    Sign a PDF with a smart card certificate.

    Examples:\n

        $ sign.py sign decision_memo.pdf

        $ sign.py sign decision_memo.pdf --method pdfsig --nickname "My PIV Cert"
    """
    setup_signing_logger(LOGS_PATH / f"sign_{now()}", method=method)
    try:
        tools = detect_signing_tools()
        for note in tools.notes:
            typer.secho(f"Note: {note}", fg=typer.colors.YELLOW)
        result = sign_pdf(
            pdf, output, method=method, tools=tools, pkcs11_library=pkcs11_library, nickname=nickname
        )
    except (ValueError, FileNotFoundError, ToolkitError) as e:
        fail(str(e))
    report_signing(result)


@app.command("sign-p12")
def sign_p12_command(
    p12: Annotated[Path, typer.Argument(help="PKCS#12 certificate bundle (.p12)")],
    pdf: Annotated[Path, typer.Argument(help="PDF to sign")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Signed PDF (default: <name>_signed.pdf)"),
    ] = None,
    password: Annotated[
        Optional[str],
        typer.Option("--password", envvar="P12_PASSWORD", help="Bundle password (prompted when absent)"),
    ] = None,
):
    """
    Sign a PDF with a .p12 certificate bundle.

    Examples:\n

        $ sign.py sign-p12 signer_20260118.p12 decision_memo.pdf
    """
    setup_signing_logger(LOGS_PATH / f"sign_{now()}", method="p12")
    if password is None:
        password = typer.prompt("Password for .p12 file", hide_input=True)

    try:
        result = sign_with_p12(pdf, p12, password, output)
    except (FileNotFoundError, ToolkitError) as e:
        fail(str(e))
    report_signing(result)


@app.command("verify")
def verify_command(pdf: Annotated[Path, typer.Argument(help="PDF to verify")]):
    """Verify the signatures in a PDF."""
    try:
        result = verify_pdf(pdf)
    except (FileNotFoundError, ToolkitError) as e:
        fail(str(e))

    typer.secho(f"\nVerifying signatures in: {pdf}", fg=typer.colors.BLUE, bold=True)
    if not result.is_signed:
        typer.secho("No signatures found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)

    for sig in result.signatures:
        typer.echo(f"\nSignature #{sig.index}:")
        for label, value in (
            ("Field", sig.field_name),
            ("Signer", sig.common_name),
            ("DN", sig.distinguished_name),
            ("Signed at", sig.signing_time),
            ("Hash", sig.hash_algorithm),
            ("Signature", sig.signature_validation),
            ("Certificate", sig.certificate_validation),
        ):
            if value:
                typer.echo(f"  {label}: {value}")

    typer.echo("")
    if not result.cryptographically_verified:
        typer.secho("! pdfsig not found: signature fields listed but NOT verified", fg=typer.colors.YELLOW, bold=True)
        raise typer.Exit(code=1)
    if result.all_valid:
        typer.secho("✓ All signatures are valid", fg=typer.colors.GREEN, bold=True)
        raise typer.Exit(code=0)
    typer.secho("✗ One or more signatures are not valid", fg=typer.colors.RED, bold=True)
    raise typer.Exit(code=1)


@app.command("list")
def list_command(
    pkcs11_library: Annotated[
        Optional[Path],
        typer.Option("--pkcs11-lib", help="PKCS#11 module (default: auto-detect)"),
    ] = None,
):
    """Show available signing tools and smart card certificates."""
    tools = detect_signing_tools()

    typer.secho("\nSigning tools:", fg=typer.colors.YELLOW)
    typer.echo(f"  PdfSigner.exe: {tools.pdfsigner or 'not found'}")
    typer.echo(f"  JSignPdf:      {tools.jsignpdf_jar or 'not found'}" + ("" if tools.java else " (java not found)"))
    typer.echo(f"  pdfsig:        {'found' if tools.pdfsig else 'not found'}")
    typer.echo(f"  PKCS#11 lib:   {pkcs11_library or tools.pkcs11_library or 'not found'}")
    typer.echo(f"  Preferred:     {tools.preferred_method or 'none'}")
    for note in tools.notes:
        typer.secho(f"  Note: {note}", fg=typer.colors.YELLOW)

    try:
        certificates = list_certificates(tools, pkcs11_library)
    except ToolkitError as e:
        typer.secho(f"\nCannot list certificates: {e}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=0)

    typer.secho("\nCertificates:", fg=typer.colors.YELLOW)
    if not certificates:
        typer.echo("  No signing certificates found. Is your smart card inserted?")
    for cert in certificates:
        typer.echo(f"  - {cert.label or cert.id or '?'}: {cert.subject or ''}")
        if cert.expires:
            typer.echo(f"      Expires: {cert.expires}")
    typer.echo("")


@app.command("create-cert")
def create_cert_command(
    common_name: Annotated[str, typer.Option("--cn", prompt="Common Name (your name)")] = "Test Signer",
    organization: Annotated[str, typer.Option("--org", prompt="Organization")] = "Test Organization",
    country: Annotated[str, typer.Option("--country", prompt="Country (2-letter code)")] = "US",
    days: Annotated[int, typer.Option("--days", prompt="Certificate validity in days")] = 365,
    password: Annotated[
        str,
        typer.Option(
            "--password", prompt="Password for .p12 file", hide_input=True, confirmation_prompt=True
        ),
    ] = "",
    output_dir: Annotated[
        Path, typer.Option("--output-dir", "-d", help="Directory for the key, certificate and .p12")
    ] = Path("."),
):
    """
    Create a self-signed certificate for testing sign-p12.

    Test certificates are not trusted by PDF readers.
    """
    setup_signing_logger(LOGS_PATH / f"sign_{now()}", method="create-cert")
    try:
        request = CertificateRequest(common_name, organization, country, days)
        bundle = create_test_certificate(request, password, output_dir)
    except (ValueError, ToolkitError) as e:
        fail(str(e))

    typer.secho("\n✓ Certificate created", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Private key:   {bundle.key_path}")
    typer.echo(f"  Certificate:   {bundle.cert_path}")
    typer.echo(f"  PKCS#12 file:  {bundle.p12_path}")
    typer.echo("\nTo sign a PDF with this certificate:")
    typer.echo(f"  sign.py sign-p12 {bundle.p12_path} <your_document.pdf>\n")


if __name__ == "__main__":
    app()
