"""
Merging Context

Responsibilities:
- Finds candidate PDFs in a directory
- Parses the user's merge order and output name choice
- Combines PDFs through a pdfpages wrapper document

Owns: PDF merge order, merge wrapper, merged output naming
Never: Modifies the input PDFs
"""

from latex_toolkit.contexts.merging.merger import (
    MergeResult,
    build_merge_tex,
    discover_pdfs,
    is_merge_output,
    merge_or_raise,
    merge_pdfs,
    output_name_options,
    parse_merge_order,
    resolve_output_name,
)

__all__ = [
    "MergeResult",
    "build_merge_tex",
    "discover_pdfs",
    "is_merge_output",
    "merge_or_raise",
    "merge_pdfs",
    "output_name_options",
    "parse_merge_order",
    "resolve_output_name",
]
