"""Unit tests for PDF signing with external signers faked."""

import subprocess
from pathlib import Path

import pytest

from latex_toolkit.contexts.signing import signer
from latex_toolkit.contexts.signing.signer import (
    parse_certutil_nicknames,
    sign_pdf,
    sign_with_p12,
    signed_output_path,
)
from latex_toolkit.contexts.signing.tools import SigningTools
from latex_toolkit.utils.event_logging import read_events
from latex_toolkit.utils.exceptions import MissingToolError, SigningError

CERTUTIL_LISTING = """
Certificate Nickname                                         Trust Attributes
                                                             SSL,S/MIME,JAR/XPI

Jane Q. Signer                                               u,u,u
"""


class FakeSigner:
    """Records commands and writes the signed PDF the way the real tools do."""

    def __init__(self, returncodes=None, certutil_listing=CERTUTIL_LISTING):
        self.calls = []
        self.returncodes = returncodes or {}
        self.certutil_listing = certutil_listing

    def __call__(self, cmd, cwd=None, env=None, timeout=None):
        cmd = [str(part) for part in cmd]
        self.calls.append(cmd)
        tool = Path(cmd[0]).name
        if tool == "certutil" and "-L" in cmd:
            tool = "certutil-list"
        code = self.returncodes.get(tool, 0)

        if code == 0:
            if tool == "pdfsig" or tool == "PdfSigner.exe":
                Path(cmd[-1]).write_bytes(b"%PDF-1.7 signed")
            elif tool == "java":
                out_dir = Path(cmd[cmd.index("--out-directory") + 1])
                source = Path(cmd[-1])
                (out_dir / f"{source.stem}_signed.pdf").write_bytes(b"%PDF-1.7 signed")

        stdout = self.certutil_listing if tool == "certutil-list" else ""
        stderr = "" if code == 0 else f"{tool}: failure"
        return subprocess.CompletedProcess(cmd, code, stdout=stdout, stderr=stderr)

    def tools_used(self):
        return [Path(cmd[0]).name for cmd in self.calls]


@pytest.fixture
def report(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4 unsigned")
    return pdf.resolve()


@pytest.fixture
def fake_signer(monkeypatch):
    fake = FakeSigner()
    monkeypatch.setattr(signer, "run_tool", fake)
    monkeypatch.setattr(signer, "require_tool", lambda name: f"/usr/bin/{name}")
    return fake


@pytest.mark.unit
def test_signed_output_path():
    assert signed_output_path(Path("/docs/report.pdf")) == Path("/docs/report_signed.pdf")


@pytest.mark.unit
def test_parse_certutil_nicknames_keeps_spaces():
    assert parse_certutil_nicknames(CERTUTIL_LISTING) == ["Jane Q. Signer"]


@pytest.mark.unit
def test_parse_certutil_nicknames_empty_database():
    header_only = "Certificate Nickname    Trust Attributes\n                        SSL,S/MIME,JAR/XPI\n"
    assert parse_certutil_nicknames(header_only) == []


@pytest.mark.unit
def test_available_methods_order():
    tools = SigningTools(
        pdfsigner=Path("PdfSigner.exe"), jsignpdf_jar=Path("JSignPdf.jar"), java=True, pdfsig=True
    )
    assert tools.available_methods == ["pdfsigner", "jsignpdf", "pdfsig"]
    assert tools.preferred_method == "pdfsigner"


@pytest.mark.unit
def test_jsignpdf_needs_java():
    tools = SigningTools(jsignpdf_jar=Path("JSignPdf.jar"), java=False, pdfsig=True)
    assert tools.available_methods == ["pdfsig"]


@pytest.mark.unit
def test_require_any_without_tools():
    with pytest.raises(MissingToolError, match="PDF signing tool"):
        SigningTools().require_any()


@pytest.mark.unit
def test_sign_pdf_with_pdfsig(report, fake_signer):
    tools = SigningTools(pdfsig=True)

    result = sign_pdf(report, tools=tools, nickname="My PIV Cert")

    assert result.success
    assert result.method == "pdfsig"
    assert result.output_path == report.with_name("report_signed.pdf")
    assert fake_signer.calls[0][:4] == ["pdfsig", "-nick", "My PIV Cert", "-add-signature"]
    assert read_events()[-1]["event_type"] == "sign_completed"


@pytest.mark.unit
def test_sign_pdf_pdfsig_requires_nickname(report, fake_signer):
    with pytest.raises(ValueError, match="nickname"):
        sign_pdf(report, tools=SigningTools(pdfsig=True))


@pytest.mark.unit
def test_sign_pdf_with_pdfsigner(report, fake_signer, tmp_path):
    exe = tmp_path / "PdfSigner.exe"
    tools = SigningTools(pdfsigner=exe, pdfsig=True)

    result = sign_pdf(report, tools=tools)

    assert result.success
    assert result.method == "pdfsigner"
    assert fake_signer.calls[0] == [str(exe), str(report), str(report.with_name("report_signed.pdf"))]


@pytest.mark.unit
def test_sign_pdf_with_jsignpdf_custom_output(report, fake_signer, tmp_path):
    library = tmp_path / "opensc-pkcs11.so"
    tools = SigningTools(jsignpdf_jar=tmp_path / "JSignPdf.jar", java=True, pkcs11_library=library)
    output = tmp_path / "out" / "final.pdf"

    result = sign_pdf(report, output, tools=tools)

    assert result.success
    assert result.output_path == output.resolve()
    assert output.exists()
    assert not (tmp_path / "out" / "report_signed.pdf").exists()
    cmd = fake_signer.calls[0]
    assert cmd[:3] == ["java", "-jar", str(tmp_path / "JSignPdf.jar")]
    assert cmd[cmd.index("--keystore-file") + 1] == str(library)


@pytest.mark.unit
def test_sign_pdf_jsignpdf_without_library(report, fake_signer, tmp_path):
    tools = SigningTools(jsignpdf_jar=tmp_path / "JSignPdf.jar", java=True)

    with pytest.raises(MissingToolError, match="PKCS#11 library"):
        sign_pdf(report, tools=tools)


@pytest.mark.unit
def test_sign_pdf_unknown_method(report):
    with pytest.raises(ValueError, match="Unknown signing method"):
        sign_pdf(report, method="stamp", tools=SigningTools(pdfsig=True))


@pytest.mark.unit
def test_sign_pdf_unavailable_method(report):
    with pytest.raises(MissingToolError):
        sign_pdf(report, method="jsignpdf", tools=SigningTools(pdfsig=True))


@pytest.mark.unit
def test_sign_pdf_failure_reported(report, monkeypatch):
    fake = FakeSigner(returncodes={"pdfsig": 2})
    monkeypatch.setattr(signer, "run_tool", fake)

    result = sign_pdf(report, tools=SigningTools(pdfsig=True), nickname="card")

    assert not result.success
    assert "pdfsig exited with code 2" in result.errors
    assert "pdfsig: failure" in result.errors
    assert read_events()[-1]["event_type"] == "sign_failed"


@pytest.mark.unit
def test_sign_pdf_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        sign_pdf(tmp_path / "missing.pdf", tools=SigningTools(pdfsig=True))


@pytest.mark.unit
def test_sign_with_p12(report, fake_signer, tmp_path):
    p12 = tmp_path / "signer.p12"
    p12.write_bytes(b"bundle")

    result = sign_with_p12(report, p12, "s3cret")

    assert result.success
    assert result.method == "p12"
    assert fake_signer.tools_used() == ["certutil", "pk12util", "certutil", "pdfsig"]
    pdfsig_cmd = fake_signer.calls[-1]
    nss_dir = fake_signer.calls[0][fake_signer.calls[0].index("-d") + 1]
    assert pdfsig_cmd == [
        "pdfsig",
        "-nssdir",
        nss_dir,
        "-nick",
        "Jane Q. Signer",
        "-add-signature",
        str(report.resolve()),
        str(result.output_path),
    ]
    # Password travels through a file, never the command line
    assert all("s3cret" not in part for cmd in fake_signer.calls for part in cmd)


@pytest.mark.unit
def test_sign_with_p12_wrong_password(report, tmp_path, monkeypatch):
    p12 = tmp_path / "signer.p12"
    p12.write_bytes(b"bundle")
    monkeypatch.setattr(signer, "run_tool", FakeSigner(returncodes={"pk12util": 19}))
    monkeypatch.setattr(signer, "require_tool", lambda name: name)

    with pytest.raises(SigningError, match="wrong password"):
        sign_with_p12(report, p12, "nope")


@pytest.mark.unit
def test_sign_with_p12_empty_bundle(report, tmp_path, monkeypatch):
    p12 = tmp_path / "signer.p12"
    p12.write_bytes(b"bundle")
    monkeypatch.setattr(signer, "run_tool", FakeSigner(certutil_listing=""))
    monkeypatch.setattr(signer, "require_tool", lambda name: name)

    with pytest.raises(SigningError, match="No certificate found"):
        sign_with_p12(report, p12, "pw")


@pytest.mark.unit
def test_sign_with_p12_missing_bundle(report, tmp_path):
    with pytest.raises(FileNotFoundError):
        sign_with_p12(report, tmp_path / "missing.p12", "pw")
