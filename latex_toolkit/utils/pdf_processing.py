"""
PDF inspection helpers.

Helper functions:
    page_count: Quick page count without full extraction.
    page_sizes: Media box size of every page, in points.
    signature_fields: Signature form fields and their embedded metadata.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError


def page_count(pdf_path: Path) -> Optional[int]:
    """Get page count from PDF, or None if unreadable."""
    try:
        reader = PdfReader(str(pdf_path))
        return len(reader.pages)
    except (OSError, PdfReadError, ValueError):
        return None


def page_sizes(pdf_path: Path) -> List[Tuple[float, float]]:
    """Width and height of each page in points, in page order."""
    reader = PdfReader(str(pdf_path))
    return [
        (float(page.mediabox.width), float(page.mediabox.height)) for page in reader.pages
    ]


def _pdf_string(value) -> Optional[str]:
    """Convert a PDF name/string object to plain text (strips leading '/' of names)."""
    if value is None:
        return None
    text = str(value)
    return text[1:] if text.startswith("/") else text


def signature_fields(pdf_path: Path) -> List[Dict[str, Any]]:
    """
    List signature form fields found in a PDF.

    Purely structural: reports what the signature dictionaries claim, with no
    cryptographic check of the embedded PKCS#7 data.

    Returns:
        One dict per /Sig field with keys: field_name, signed, signer_name,
        signing_time, reason
    """
    reader = PdfReader(str(pdf_path))
    fields = reader.get_fields() or {}

    signatures = []
    for name, field in fields.items():
        if field.get("/FT") != "/Sig":
            continue

        value = field.get("/V")
        if value is not None and hasattr(value, "get_object"):
            value = value.get_object()

        signatures.append(
            {
                "field_name": name,
                "signed": bool(value),
                "signer_name": _pdf_string(value.get("/Name")) if value else None,
                "signing_time": _pdf_string(value.get("/M")) if value else None,
                "reason": _pdf_string(value.get("/Reason")) if value else None,
            }
        )

    return signatures
