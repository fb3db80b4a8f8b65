"""
Templating Context

Responsibilities:
- Loads Jinja2 document templates with LaTeX-safe delimiters
- Merges per-template defaults with caller-provided values
- Escapes LaTeX special characters in substituted values

Owns: Document templates (attestation, CUI cover sheet) and their defaults
Never: Compiles LaTeX (see building context)
"""

from latex_toolkit.contexts.templating.escaping import escape_latex
from latex_toolkit.contexts.templating.exceptions import TemplateRenderError
from latex_toolkit.contexts.templating.registries import TemplateRegistry
from latex_toolkit.contexts.templating.renderer import load_context, render_template, render_to_file

__all__ = [
    "escape_latex",
    "TemplateRenderError",
    "TemplateRegistry",
    "load_context",
    "render_template",
    "render_to_file",
]
