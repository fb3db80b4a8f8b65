"""
Integration test for software-certificate signing with real OpenSSL, NSS and poppler tools.
Tests: test certificate → sign-p12 → pdfsig verification.
"""

import shutil

import pytest

from latex_toolkit.contexts.signing import CertificateRequest, create_test_certificate, sign_with_p12, verify_pdf

REQUIRED_TOOLS = ("openssl", "certutil", "pk12util", "pdfsig")
requires_signing_tools = pytest.mark.skipif(
    any(shutil.which(tool) is None for tool in REQUIRED_TOOLS),
    reason=f"needs {', '.join(REQUIRED_TOOLS)}",
)


@pytest.mark.integration
@requires_signing_tools
def test_sign_with_test_certificate_and_verify(tmp_path, make_pdf):
    """A PDF signed with a fresh test certificate carries one signature from that signer."""
    bundle = create_test_certificate(
        CertificateRequest("Integration Signer", "Example Corp", "US", 2), "test-password", tmp_path / "certs"
    )
    pdf = make_pdf("report.pdf", pages=2)

    result = sign_with_p12(pdf, bundle.p12_path, "test-password")

    assert result.success, result.errors
    assert result.output_path == pdf.with_name("report_signed.pdf")

    verification = verify_pdf(result.output_path)
    assert verification.cryptographically_verified
    assert len(verification.signatures) == 1
    assert verification.signatures[0].common_name == "Integration Signer"
    # Self-signed: the signature matches, the issuer is simply not trusted
    assert verification.signatures[0].is_valid
