"""
Detection of the programs that can sign PDFs on this machine.

Smart-card signing goes through one of three external signers:
    pdfsigner: PdfSigner.exe (Windows certificate store, PIV/CAC)
    jsignpdf:  JSignPdf.jar over a PKCS#11 module (needs Java)
    pdfsig:    poppler's pdfsig over an NSS database
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from latex_toolkit.utils.exceptions import MissingToolError
from latex_toolkit.utils.external_tools import tool_available

load_dotenv()
BIN_PATH = Path(os.getenv("BIN_PATH", ".bin"))
PKCS11_LIBRARY = os.getenv("PKCS11_LIBRARY")

PDFSIGNER_EXECUTABLE = "PdfSigner.exe"

PKCS11_LIBRARY_LOCATIONS = [
    Path("/usr/lib/opensc-pkcs11.so"),  # Linux OpenSC
    Path("/usr/local/lib/opensc-pkcs11.so"),
    Path("/Library/OpenSC/lib/opensc-pkcs11.so"),  # macOS OpenSC
    Path("/usr/local/lib/libykcs11.dylib"),  # macOS YubiKey
    Path("/usr/lib/x86_64-linux-gnu/opensc-pkcs11.so"),  # Debian/Ubuntu
    Path("/opt/homebrew/lib/opensc-pkcs11.so"),  # macOS ARM Homebrew
]

JSIGNPDF_JAR_LOCATIONS = [
    Path("/usr/local/bin/JSignPdf.jar"),
    Path.home() / "JSignPdf" / "JSignPdf.jar",
    Path("/opt/JSignPdf/JSignPdf.jar"),
]

SIGNING_INSTALL_HELP = (
    "No signing tool found. Install one of: "
    "poppler (brew install poppler / sudo apt install poppler-utils) for pdfsig, "
    "JSignPdf (http://jsignpdf.sourceforge.net/) with Java, "
    "or PdfSigner.exe on Windows (release.py deps --download)."
)


def is_windows() -> bool:
    return sys.platform.startswith("win")


@dataclass
class SigningTools:
    """
    Signing programs found on this machine.

    Attributes:
        pdfsigner: PdfSigner.exe (Windows only)
        jsignpdf_jar: JSignPdf.jar, only usable when java is present
        java: Whether a Java runtime is on PATH
        pdfsig: Whether poppler's pdfsig is on PATH
        pkcs11_tool: Whether OpenSC's pkcs11-tool is on PATH
        pkcs11_library: PKCS#11 module for smart-card access
    """

    pdfsigner: Optional[Path] = None
    jsignpdf_jar: Optional[Path] = None
    java: bool = False
    pdfsig: bool = False
    pkcs11_tool: bool = False
    pkcs11_library: Optional[Path] = None
    notes: List[str] = field(default_factory=list)

    @property
    def available_methods(self) -> List[str]:
        """Usable signing methods, most preferred first."""
        methods = []
        if self.pdfsigner is not None:
            methods.append("pdfsigner")
        if self.jsignpdf_jar is not None and self.java:
            methods.append("jsignpdf")
        if self.pdfsig:
            methods.append("pdfsig")
        return methods

    @property
    def preferred_method(self) -> Optional[str]:
        methods = self.available_methods
        return methods[0] if methods else None

    def require_any(self) -> str:
        """
        Preferred signing method.

        Raises:
            MissingToolError: If no signing method is usable
        """
        method = self.preferred_method
        if method is None:
            raise MissingToolError("PDF signing tool", SIGNING_INSTALL_HELP)
        return method


def detect_pkcs11_library(locations: List[Path] = PKCS11_LIBRARY_LOCATIONS) -> Optional[Path]:
    """First existing PKCS#11 module; the PKCS11_LIBRARY setting wins when it exists."""
    if PKCS11_LIBRARY and Path(PKCS11_LIBRARY).is_file():
        return Path(PKCS11_LIBRARY)
    for location in locations:
        if Path(location).is_file():
            return Path(location)
    return None


def find_jsignpdf_jar(locations: List[Path] = JSIGNPDF_JAR_LOCATIONS) -> Optional[Path]:
    for location in locations:
        if Path(location).is_file():
            return Path(location)
    return None


def find_pdfsigner(bin_dir: Path = BIN_PATH) -> Optional[Path]:
    """PdfSigner.exe from the external dependency directory, Windows only."""
    if not is_windows():
        return None
    candidate = Path(bin_dir) / PDFSIGNER_EXECUTABLE
    return candidate if candidate.is_file() else None


def detect_signing_tools(bin_dir: Path = BIN_PATH) -> SigningTools:
    """Probe this machine for every supported signing program."""
    tools = SigningTools(
        pdfsigner=find_pdfsigner(bin_dir),
        jsignpdf_jar=find_jsignpdf_jar(),
        java=tool_available("java"),
        pdfsig=tool_available("pdfsig"),
        pkcs11_tool=tool_available("pkcs11-tool"),
        pkcs11_library=detect_pkcs11_library(),
    )

    if tools.jsignpdf_jar is not None and not tools.java:
        tools.notes.append("JSignPdf found but Java is not installed")
    if tools.pkcs11_library is None:
        tools.notes.append("No PKCS#11 library found automatically; set PKCS11_LIBRARY")
    if is_windows() and tools.pdfsigner is None:
        tools.notes.append(f"{PDFSIGNER_EXECUTABLE} not found in {bin_dir}")

    return tools
