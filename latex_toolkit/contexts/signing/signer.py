"""
PDF signing.

Two routes, both delegated to external programs:
    sign_pdf:      smart card (PIV/CAC) through PdfSigner.exe, JSignPdf or pdfsig
    sign_with_p12: software certificate imported into a throwaway NSS database
"""

import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from latex_toolkit.contexts.signing.logger import (
    _log_debug,
    _log_error,
    _log_info,
    _log_success,
    log_tool_output,
)
from latex_toolkit.contexts.signing.tools import SigningTools, detect_signing_tools
from latex_toolkit.utils.event_logging import log_build_event
from latex_toolkit.utils.exceptions import MissingToolError, SigningError
from latex_toolkit.utils.external_tools import require_tool, run_tool

SIGNED_SUFFIX = "_signed"

# certutil -L rows: "<nickname>   <trust flags>", e.g. "Test Signer    u,u,u"
CERTUTIL_ROW = re.compile(r"^(.*?)\s{2,}(\S*,\S*,\S*)\s*$")


@dataclass
class SigningResult:
    """
    Result of a signing attempt.

    Attributes:
        success: Signer exited 0 and the signed PDF exists
        input_path: PDF that was signed
        output_path: Signed PDF
        method: pdfsigner, jsignpdf, pdfsig or p12
        errors: Failure descriptions
    """

    success: bool
    input_path: Path
    output_path: Path
    method: str
    errors: List[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""


def signed_output_path(pdf_path: Path) -> Path:
    """report.pdf -> report_signed.pdf, beside the input."""
    pdf_path = Path(pdf_path)
    return pdf_path.with_name(f"{pdf_path.stem}{SIGNED_SUFFIX}.pdf")


def parse_certutil_nicknames(text: str) -> List[str]:
    """Certificate nicknames from `certutil -L` output (nicknames may contain spaces)."""
    nicknames = []
    for line in text.splitlines():
        match = CERTUTIL_ROW.match(line)
        if not match:
            continue
        nickname = match.group(1).strip()
        if nickname and nickname != "Certificate Nickname":
            nicknames.append(nickname)
    return nicknames


def _finish(
    method: str, pdf_path: Path, output_path: Path, returncode: int, stdout: str, stderr: str
) -> SigningResult:
    """Turn a signer's exit status and output file into a SigningResult, with logging."""
    log_tool_output(method, stdout, stderr)
    result = SigningResult(
        success=returncode == 0 and output_path.exists(),
        input_path=pdf_path,
        output_path=output_path,
        method=method,
        stdout=stdout,
        stderr=stderr,
    )

    if result.success:
        _log_success(f"Successfully signed: {output_path}")
        log_build_event("sign_completed", pdf_path.stem, "signing", method=method, output=str(output_path))
    else:
        if returncode != 0:
            result.errors.append(f"{method} exited with code {returncode}")
        if not output_path.exists():
            result.errors.append(f"Signed PDF was not created: {output_path}")
        detail = (stderr or stdout).strip().splitlines()
        if detail:
            result.errors.append(detail[-1])
        for err in result.errors:
            _log_error(err)
        log_build_event("sign_failed", pdf_path.stem, "signing", method=method, errors=result.errors)

    return result


def sign_pdf(
    pdf_path: Path,
    output_path: Optional[Path] = None,
    method: Optional[str] = None,
    tools: Optional[SigningTools] = None,
    pkcs11_library: Optional[Path] = None,
    nickname: Optional[str] = None,
) -> SigningResult:
    """
    Sign a PDF with a smart card certificate.

    Args:
        pdf_path: PDF to sign
        output_path: Signed PDF (default: <stem>_signed.pdf beside the input)
        method: pdfsigner, jsignpdf or pdfsig (default: best available)
        tools: Detected signing tools (detected now when omitted)
        pkcs11_library: PKCS#11 module for JSignPdf (default: detected)
        nickname: NSS certificate nickname for pdfsig

    Returns:
        SigningResult

    Raises:
        FileNotFoundError: If pdf_path does not exist
        MissingToolError: If the chosen method, or any method, is unavailable
        ValueError: If method is unknown, or pdfsig is used without a nickname
    """
    pdf_path = Path(pdf_path).resolve()
    if not pdf_path.is_file():
        raise FileNotFoundError(f"File not found: {pdf_path}")

    output_path = Path(output_path).resolve() if output_path else signed_output_path(pdf_path)
    tools = tools or detect_signing_tools()
    method = method or tools.require_any()

    if method not in ("pdfsigner", "jsignpdf", "pdfsig"):
        raise ValueError(f"Unknown signing method: {method}")
    if method not in tools.available_methods:
        raise MissingToolError(method, "Run 'sign.py list' to see which signing tools were found.")

    _log_info(f"Input:  {pdf_path}")
    _log_info(f"Output: {output_path}")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if method == "pdfsigner":
        _log_info("Signing with PdfSigner.exe (select your certificate and enter your PIN)...")
        proc = run_tool([tools.pdfsigner, pdf_path, output_path])
        return _finish(method, pdf_path, output_path, proc.returncode, proc.stdout, proc.stderr)

    if method == "jsignpdf":
        library = pkcs11_library or tools.pkcs11_library
        if library is None:
            raise MissingToolError(
                "PKCS#11 library", "Install OpenSC or set PKCS11_LIBRARY to your card's module."
            )

        # JSignPdf always writes <out-directory>/<stem>_signed.pdf
        jsign_output = output_path.parent / signed_output_path(pdf_path).name
        _log_info("Signing with JSignPdf. Please enter your smart card PIN when prompted.")
        proc = run_tool(
            [
                "java", "-jar", tools.jsignpdf_jar,
                "--keystore-type", "PKCS11",
                "--keystore-file", library,
                "--out-directory", output_path.parent,
                "--out-suffix", SIGNED_SUFFIX,
                pdf_path,
            ]
        )
        if proc.returncode == 0 and jsign_output.exists() and jsign_output != output_path:
            shutil.move(str(jsign_output), output_path)
        return _finish(method, pdf_path, output_path, proc.returncode, proc.stdout, proc.stderr)

    if not nickname:
        raise ValueError("pdfsig signing needs a certificate nickname (see 'certutil -L').")

    _log_info(f"Signing with pdfsig as '{nickname}'...")
    proc = run_tool(["pdfsig", "-nick", nickname, "-add-signature", pdf_path, output_path])
    return _finish(method, pdf_path, output_path, proc.returncode, proc.stdout, proc.stderr)


def sign_with_p12(
    pdf_path: Path,
    p12_path: Path,
    password: str,
    output_path: Optional[Path] = None,
) -> SigningResult:
    """
    Sign a PDF with a PKCS#12 (.p12) certificate bundle.

    The bundle is imported into a temporary NSS database, which pdfsig then
    signs from. The database is deleted afterwards.

    Args:
        pdf_path: PDF to sign
        p12_path: Certificate bundle
        password: Bundle password
        output_path: Signed PDF (default: <stem>_signed.pdf beside the input)

    Raises:
        FileNotFoundError: If the PDF or the bundle does not exist
        MissingToolError: If certutil, pk12util or pdfsig is missing
        SigningError: If the database cannot be created or the bundle imported
    """
    pdf_path = Path(pdf_path).resolve()
    p12_path = Path(p12_path).resolve()
    for path in (pdf_path, p12_path):
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

    for tool in ("certutil", "pk12util", "pdfsig"):
        require_tool(tool)

    output_path = Path(output_path).resolve() if output_path else signed_output_path(pdf_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _log_info(f"Signing {pdf_path.name} with {p12_path.name}...")

    with tempfile.TemporaryDirectory(prefix="latex_toolkit_nss_") as work:
        nss_dir = Path(work) / "nssdb"
        nss_dir.mkdir()
        password_file = Path(work) / "p12.pass"
        password_file.write_text(password, encoding="utf-8")
        password_file.chmod(0o600)

        proc = run_tool(["certutil", "-N", "-d", nss_dir, "--empty-password"])
        if proc.returncode != 0:
            log_tool_output("certutil", proc.stdout, proc.stderr)
            raise SigningError(f"Could not create NSS database: {proc.stderr.strip()}")

        proc = run_tool(["pk12util", "-i", p12_path, "-d", nss_dir, "-w", password_file])
        if proc.returncode != 0:
            log_tool_output("pk12util", proc.stdout, proc.stderr)
            raise SigningError("Could not import certificate bundle (wrong password?)")

        proc = run_tool(["certutil", "-L", "-d", nss_dir])
        nicknames = parse_certutil_nicknames(proc.stdout)
        if not nicknames:
            raise SigningError(f"No certificate found in {p12_path.name}")
        _log_debug(f"Certificates in bundle: {nicknames}")

        proc = run_tool(
            ["pdfsig", "-nssdir", nss_dir, "-nick", nicknames[0], "-add-signature", pdf_path, output_path]
        )
        return _finish("p12", pdf_path, output_path, proc.returncode, proc.stdout, proc.stderr)
