"""
Signing Context

Responsibilities:
- Detects the signing programs and smart card modules on this machine
- Signs PDFs with a smart card or a PKCS#12 bundle
- Verifies embedded signatures
- Creates self-signed test certificates and lists card certificates

Owns: Signed PDFs (<stem>_signed.pdf), test certificate bundles
Never: Implements signature cryptography itself, modifies the unsigned input
"""

from latex_toolkit.contexts.signing.certificates import (
    CertificateBundle,
    CertificateEntry,
    CertificateRequest,
    build_subject,
    create_test_certificate,
    list_certificates,
    parse_pkcs11_certificates,
)
from latex_toolkit.contexts.signing.signer import (
    SigningResult,
    parse_certutil_nicknames,
    sign_pdf,
    sign_with_p12,
    signed_output_path,
)
from latex_toolkit.contexts.signing.tools import SigningTools, detect_signing_tools
from latex_toolkit.contexts.signing.verifier import (
    SignatureInfo,
    VerificationResult,
    parse_pdfsig_output,
    verify_pdf,
)

__all__ = [
    "CertificateBundle",
    "CertificateEntry",
    "CertificateRequest",
    "build_subject",
    "create_test_certificate",
    "list_certificates",
    "parse_pkcs11_certificates",
    "SigningResult",
    "parse_certutil_nicknames",
    "sign_pdf",
    "sign_with_p12",
    "signed_output_path",
    "SigningTools",
    "detect_signing_tools",
    "SignatureInfo",
    "VerificationResult",
    "parse_pdfsig_output",
    "verify_pdf",
]
