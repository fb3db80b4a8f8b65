"""
Templating Registries

Centralized registry for loading and caching document templates and their defaults.
"""

import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateNotFound
from omegaconf import OmegaConf

from latex_toolkit.contexts.templating.escaping import escape_latex

load_dotenv()
PACKAGED_TEMPLATES_PATH = Path(__file__).parent / "templates"
TEMPLATES_PATH = Path(os.getenv("TEMPLATES_PATH", str(PACKAGED_TEMPLATES_PATH)))

TEMPLATE_FILENAME = "template.tex.jinja"
DEFAULTS_FILENAME = "defaults.yaml"


class TemplateRegistry:
    """
    Registry for loading and caching Jinja2 templates for LaTeX documents.

    Templates are stored in {templates_base_path}/{template_name}/template.tex.jinja,
    optionally beside a defaults.yaml, and use custom delimiters to avoid
    conflicts with LaTeX syntax:
    - Variable: <<< var >>>
    - Block: <%% block %%>
    - Comment: <# comment #>

    Values are escaped with the `tex` filter: <<< title | tex >>>
    """

    def __init__(self, templates_base_path: Path = None):
        """
        Initialize the template registry.

        Args:
            templates_base_path: Base path for template directories. Defaults to
                                 TEMPLATES_PATH from environment
        """
        if templates_base_path is None:
            templates_base_path = TEMPLATES_PATH

        self.templates_base_path = Path(templates_base_path)
        self._cache: Dict[str, Template] = {}
        self._defaults_cache: Dict[str, Dict[str, Any]] = {}

        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_base_path)),
            # Catches silent failures
            undefined=StrictUndefined,
            # Custom delimiters to avoid LaTeX brace conflicts
            variable_start_string="<<<",
            variable_end_string=">>>",
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<#",
            comment_end_string="#>",
            # Preserve whitespace (important for LaTeX)
            trim_blocks=False,
            lstrip_blocks=False,
            keep_trailing_newline=True,
        )
        self.env.filters["tex"] = escape_latex

    def get_template(self, template_name: str) -> Template:
        """
        Get a template by name, loading and caching it if necessary.

        Raises:
            TemplateNotFound: If template file doesn't exist
            TemplateSyntaxError: If template has Jinja2 syntax errors
        """
        if template_name in self._cache:
            return self._cache[template_name]

        template_path = f"{template_name}/{TEMPLATE_FILENAME}"

        try:
            template = self.env.get_template(template_path)
        except TemplateNotFound as e:
            raise TemplateNotFound(
                f"Template not found: '{template_name}' at {self.templates_base_path / template_path}"
            ) from e

        self._cache[template_name] = template
        return template

    def get_template_path(self, template_name: str) -> Path:
        return self.templates_base_path / template_name / TEMPLATE_FILENAME

    def get_defaults(self, template_name: str) -> Dict[str, Any]:
        """
        Default context values for a template ({} when it has no defaults.yaml).

        Returns a fresh dict on every call, so callers may modify it.
        """
        if template_name not in self._defaults_cache:
            defaults_path = self.templates_base_path / template_name / DEFAULTS_FILENAME
            if defaults_path.exists():
                defaults = OmegaConf.to_container(OmegaConf.load(defaults_path), resolve=True) or {}
            else:
                defaults = {}
            self._defaults_cache[template_name] = defaults

        return OmegaConf.to_container(OmegaConf.create(self._defaults_cache[template_name]))

    def list_templates(self) -> List[str]:
        """Names of all templates under the base path, sorted."""
        if not self.templates_base_path.is_dir():
            return []
        return sorted(
            path.name
            for path in self.templates_base_path.iterdir()
            if (path / TEMPLATE_FILENAME).is_file()
        )

    def clear_cache(self):
        """Clear the template and defaults caches."""
        self._cache.clear()
        self._defaults_cache.clear()

    def is_cached(self, template_name: str) -> bool:
        return template_name in self._cache
