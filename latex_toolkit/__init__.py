"""
LaTeX Toolkit - document templates and PDF tooling

Builds LaTeX document templates (CUI cover sheets, decision memoranda, meeting
agendas, software attestations) into PDFs and post-processes the results.

Architecture:
- Building Context: LaTeX compilation, PNG previews, Word drafts
- Merging Context: Combining PDFs in a chosen order via pdfpages
- Signing Context: Smart card and software certificate signatures
- Release Context: Release builds, external dependencies, attestations
- Templating Context: Placeholder substitution into LaTeX templates
"""

__version__ = "0.1.0"
