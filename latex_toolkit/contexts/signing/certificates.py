"""
Certificates: self-signed test bundles and smart card listings.

create_test_certificate() makes a key, a self-signed X.509 certificate and a
PKCS#12 bundle with openssl, for trying out sign_with_p12() without a card.
Test certificates are not trusted by PDF readers.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from latex_toolkit.contexts.signing.logger import _log_info, _log_success, _log_warning, log_tool_output
from latex_toolkit.contexts.signing.tools import SigningTools
from latex_toolkit.utils.exceptions import MissingToolError, SigningError
from latex_toolkit.utils.external_tools import require_tool, run_tool
from latex_toolkit.utils.timestamp import date_stamp

KEY_BITS = 2048
KEY_USAGE = "keyUsage = digitalSignature, nonRepudiation"
EXTENDED_KEY_USAGE = "extendedKeyUsage = emailProtection, codeSigning"
P12_PASSWORD_ENV = "LATEX_TOOLKIT_P12_PASSWORD"

PKCS11_OBJECT = re.compile(r"^Certificate Object")
PKCS11_DETAIL = re.compile(r"^\s+(label|subject|ID):\s*(.*)$")
PDFSIGNER_ENTRY = re.compile(r"^\[(\d+)\]\s+(.*)$")
PDFSIGNER_DETAIL = re.compile(r"^\s+(Issuer|Expires|Thumbprint):\s*(.*)$")


@dataclass
class CertificateRequest:
    """Subject fields and validity of a test certificate."""

    common_name: str = "Test Signer"
    organization: str = "Test Organization"
    country: str = "US"
    days: int = 365

    def __post_init__(self):
        self.common_name = self.common_name.strip()
        self.organization = self.organization.strip()
        self.country = self.country.strip().upper()

        if not self.common_name:
            raise ValueError("Common name must not be empty.")
        if not self.organization:
            raise ValueError("Organization must not be empty.")
        if not re.fullmatch(r"[A-Z]{2}", self.country):
            raise ValueError(f"Country must be a 2-letter code, got '{self.country}'.")
        if int(self.days) < 1:
            raise ValueError(f"Validity must be at least 1 day, got {self.days}.")
        self.days = int(self.days)


@dataclass
class CertificateBundle:
    """Files written by create_test_certificate()."""

    key_path: Path
    cert_path: Path
    p12_path: Path
    common_name: str


@dataclass
class CertificateEntry:
    """A certificate on a smart card or in the Windows certificate store."""

    label: Optional[str] = None
    subject: Optional[str] = None
    id: Optional[str] = None
    issuer: Optional[str] = None
    expires: Optional[str] = None


def _escape_subject_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("/", "\\/").replace("=", "\\=")


def build_subject(request: CertificateRequest) -> str:
    """openssl -subj string, e.g. /CN=Test Signer/O=Test Organization/C=US."""
    return (
        f"/CN={_escape_subject_value(request.common_name)}"
        f"/O={_escape_subject_value(request.organization)}"
        f"/C={request.country}"
    )


def _run_openssl(args: List, step: str, env: Optional[dict] = None) -> None:
    proc = run_tool(["openssl"] + args, env=env)
    if proc.returncode != 0:
        log_tool_output("openssl", proc.stdout, proc.stderr)
        raise SigningError(f"openssl failed while {step}: {proc.stderr.strip()}")


def create_test_certificate(
    request: CertificateRequest,
    password: str,
    output_dir: Path,
    base_name: Optional[str] = None,
) -> CertificateBundle:
    """
    Create a self-signed signing certificate.

    Args:
        request: Subject fields and validity
        password: Password protecting the .p12 bundle
        output_dir: Directory for the three files
        base_name: File name stem (default: signer_YYYYMMDD)

    Returns:
        CertificateBundle with the key, certificate and .p12 paths

    Raises:
        MissingToolError: If openssl is not installed
        SigningError: If an openssl step fails
    """
    require_tool("openssl")

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    base_name = base_name or f"signer_{date_stamp()}"

    bundle = CertificateBundle(
        key_path=output_dir / f"{base_name}_key.pem",
        cert_path=output_dir / f"{base_name}_cert.pem",
        p12_path=output_dir / f"{base_name}.p12",
        common_name=request.common_name,
    )

    _log_info("Generating RSA key pair...")
    _run_openssl(["genrsa", "-out", bundle.key_path, str(KEY_BITS)], "generating the key")
    bundle.key_path.chmod(0o600)

    _log_info("Creating self-signed X.509 certificate...")
    _run_openssl(
        [
            "req", "-x509", "-new",
            "-key", bundle.key_path,
            "-out", bundle.cert_path,
            "-days", str(request.days),
            "-subj", build_subject(request),
            "-addext", KEY_USAGE,
            "-addext", EXTENDED_KEY_USAGE,
        ],
        "creating the certificate",
    )

    _log_info("Creating PKCS#12 (.p12) bundle...")
    _run_openssl(
        [
            "pkcs12", "-export",
            "-out", bundle.p12_path,
            "-inkey", bundle.key_path,
            "-in", bundle.cert_path,
            "-name", request.common_name,
            "-passout", f"env:{P12_PASSWORD_ENV}",
        ],
        "creating the PKCS#12 bundle",
        env={**os.environ, P12_PASSWORD_ENV: password},
    )
    bundle.p12_path.chmod(0o600)

    _log_success("Certificate created successfully!")
    _log_warning("Keep your private key secure! The .p12 file contains both the key and the certificate.")
    return bundle


def parse_pkcs11_certificates(text: str) -> List[CertificateEntry]:
    """Certificates from `pkcs11-tool --list-objects --type cert` output."""
    entries: List[CertificateEntry] = []
    current: Optional[CertificateEntry] = None

    for line in text.splitlines():
        if PKCS11_OBJECT.match(line):
            current = CertificateEntry()
            entries.append(current)
            continue
        detail = PKCS11_DETAIL.match(line)
        if current is not None and detail:
            key, value = detail.groups()
            value = value.strip()
            if key == "subject" and value.startswith("DN:"):
                value = value[3:].strip()
            setattr(current, key.lower(), value)

    return entries


def parse_pdfsigner_certificates(text: str) -> List[CertificateEntry]:
    """Certificates from `PdfSigner.exe --list` output."""
    entries: List[CertificateEntry] = []
    current: Optional[CertificateEntry] = None

    for line in text.splitlines():
        entry = PDFSIGNER_ENTRY.match(line)
        if entry:
            current = CertificateEntry(label=entry.group(1), subject=entry.group(2).strip())
            entries.append(current)
            continue
        detail = PDFSIGNER_DETAIL.match(line)
        if current is not None and detail:
            key, value = detail.groups()
            if key == "Thumbprint":
                current.id = value.strip()
            else:
                setattr(current, key.lower(), value.strip())

    return entries


def list_certificates(
    tools: SigningTools, pkcs11_library: Optional[Path] = None
) -> List[CertificateEntry]:
    """
    Certificates available for smart card signing.

    Uses PdfSigner.exe on Windows, pkcs11-tool elsewhere.

    Raises:
        MissingToolError: If neither lister (or no PKCS#11 library) is available
        SigningError: If the card cannot be read
    """
    if tools.pdfsigner is not None:
        proc = run_tool([tools.pdfsigner, "--list"])
        log_tool_output("PdfSigner.exe", proc.stdout, proc.stderr)
        return parse_pdfsigner_certificates(proc.stdout)

    if not tools.pkcs11_tool:
        raise MissingToolError("pkcs11-tool", "Install OpenSC for smart card support (sudo apt install opensc).")

    library = pkcs11_library or tools.pkcs11_library
    if library is None:
        raise MissingToolError("PKCS#11 library", "Install OpenSC or set PKCS11_LIBRARY to your card's module.")

    _log_info("Checking for smart card certificates...")
    proc = run_tool(["pkcs11-tool", "--module", library, "--list-objects", "--type", "cert"])
    log_tool_output("pkcs11-tool", proc.stdout, proc.stderr)
    if proc.returncode != 0:
        raise SigningError("Could not list certificates. Is your smart card inserted?")

    return parse_pkcs11_certificates(proc.stdout)
