"""
Signature verification.

pdfsig checks each embedded signature cryptographically. Without poppler,
PyPDF2 can still list signature fields, but nothing is verified.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from PyPDF2.errors import PdfReadError

from latex_toolkit.contexts.signing.logger import _log_info, _log_warning, log_tool_output
from latex_toolkit.utils.exceptions import SigningError
from latex_toolkit.utils.external_tools import run_tool, tool_available
from latex_toolkit.utils.pdf_processing import signature_fields

SIGNATURE_HEADER = re.compile(r"^Signature #(\d+):")
SIGNATURE_DETAIL = re.compile(r"^\s*-\s*(.+?):\s*(.*)$")
VALID_SIGNATURE = "Signature is Valid."

# pdfsig detail labels -> SignatureInfo attributes
PDFSIG_FIELDS = {
    "Signature Field Name": "field_name",
    "Signer Certificate Common Name": "common_name",
    "Signer full Distinguished Name": "distinguished_name",
    "Signing Time": "signing_time",
    "Signing Hash Algorithm": "hash_algorithm",
    "Signature Type": "signature_type",
    "Signature Validation": "signature_validation",
    "Certificate Validation": "certificate_validation",
}


@dataclass
class SignatureInfo:
    """One signature as reported by pdfsig (or by PyPDF2 when pdfsig is absent)."""

    index: int
    field_name: Optional[str] = None
    common_name: Optional[str] = None
    distinguished_name: Optional[str] = None
    signing_time: Optional[str] = None
    hash_algorithm: Optional[str] = None
    signature_type: Optional[str] = None
    total_document_signed: Optional[bool] = None
    signature_validation: Optional[str] = None
    certificate_validation: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.signature_validation == VALID_SIGNATURE


@dataclass
class VerificationResult:
    """
    Signatures found in a PDF.

    Attributes:
        pdf_path: Inspected PDF
        signatures: One entry per signature
        cryptographically_verified: False when only PyPDF2 field inspection was possible
        raw_output: pdfsig output, when it ran
    """

    pdf_path: Path
    signatures: List[SignatureInfo] = field(default_factory=list)
    cryptographically_verified: bool = True
    raw_output: str = ""

    @property
    def is_signed(self) -> bool:
        return len(self.signatures) > 0

    @property
    def all_valid(self) -> bool:
        return (
            self.is_signed
            and self.cryptographically_verified
            and all(sig.is_valid for sig in self.signatures)
        )


def parse_pdfsig_output(text: str) -> List[SignatureInfo]:
    """Parse `pdfsig <file>` output into one SignatureInfo per 'Signature #N:' block."""
    signatures: List[SignatureInfo] = []
    current: Optional[SignatureInfo] = None

    for line in text.splitlines():
        header = SIGNATURE_HEADER.match(line.strip())
        if header:
            current = SignatureInfo(index=int(header.group(1)))
            signatures.append(current)
            continue

        if current is None:
            continue

        stripped = line.strip()
        if stripped == "- Total document signed":
            current.total_document_signed = True
            continue
        if stripped == "- Not total document signed":
            current.total_document_signed = False
            continue

        detail = SIGNATURE_DETAIL.match(line)
        if detail and detail.group(1) in PDFSIG_FIELDS:
            setattr(current, PDFSIG_FIELDS[detail.group(1)], detail.group(2).strip())

    return signatures


def verify_pdf(pdf_path: Path) -> VerificationResult:
    """
    Verify the signatures in a PDF.

    Raises:
        FileNotFoundError: If pdf_path does not exist
        SigningError: If pdfsig is missing and PyPDF2 cannot parse the file
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.is_file():
        raise FileNotFoundError(f"File not found: {pdf_path}")

    _log_info(f"Verifying signatures in: {pdf_path}")

    if not tool_available("pdfsig"):
        _log_warning("pdfsig not found. Install poppler-utils to verify signatures.")
        _log_warning("Listing signature fields only; signatures are NOT verified.")
        try:
            fields = signature_fields(pdf_path)
        except PdfReadError as e:
            raise SigningError(f"Cannot read {pdf_path.name} as a PDF: {e}") from e

        signatures = [
            SignatureInfo(
                index=i,
                field_name=info["field_name"],
                common_name=info["signer_name"],
                signing_time=info["signing_time"],
            )
            for i, info in enumerate(fields, 1)
            if info["signed"]
        ]
        return VerificationResult(
            pdf_path=pdf_path, signatures=signatures, cryptographically_verified=False
        )

    proc = run_tool(["pdfsig", pdf_path])
    log_tool_output("pdfsig", proc.stdout, proc.stderr)
    output = proc.stdout + proc.stderr

    return VerificationResult(
        pdf_path=pdf_path,
        signatures=parse_pdfsig_output(output),
        raw_output=output,
    )
