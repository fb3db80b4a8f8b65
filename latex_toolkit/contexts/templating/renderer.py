"""
Template rendering.

A template's defaults.yaml supplies every value the template uses; the caller's
context overrides them key by key (nested mappings merge, they are not replaced).
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import TemplateNotFound
from jinja2.exceptions import TemplateSyntaxError, UndefinedError
from omegaconf import OmegaConf

from latex_toolkit.contexts.templating.exceptions import TemplateRenderError
from latex_toolkit.contexts.templating.logger import _log_debug, _log_success
from latex_toolkit.contexts.templating.registries import TemplateRegistry

_default_registry: Optional[TemplateRegistry] = None


def get_registry() -> TemplateRegistry:
    """Shared registry over TEMPLATES_PATH."""
    global _default_registry
    if _default_registry is None:
        _default_registry = TemplateRegistry()
    return _default_registry


def load_context(yaml_path: Path) -> Dict[str, Any]:
    """
    Load template values from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the top level is not a mapping
    """
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Data file not found: {yaml_path}")

    data = OmegaConf.to_container(OmegaConf.load(yaml_path), resolve=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {yaml_path}")
    return data


def render_template(
    template_name: str,
    context: Optional[Dict[str, Any]] = None,
    registry: Optional[TemplateRegistry] = None,
) -> str:
    """
    Render a template to LaTeX source.

    Args:
        template_name: Template directory name (e.g., 'attestation')
        context: Values overriding the template's defaults
        registry: Template registry (defaults to the shared one)

    Returns:
        Rendered LaTeX

    Raises:
        ValueError: If no template has that name
        TemplateRenderError: If the template uses a value that is not provided,
            or has a syntax error
    """
    registry = registry or get_registry()

    try:
        template = registry.get_template(template_name)
    except TemplateNotFound as e:
        available = ", ".join(registry.list_templates()) or "none"
        raise ValueError(f"Unknown template '{template_name}' (available: {available})") from e
    except TemplateSyntaxError as e:
        raise TemplateRenderError(
            "Template has a syntax error",
            template_name=template_name,
            template_path=registry.get_template_path(template_name),
            original_error=e,
        ) from e

    merged = OmegaConf.merge(
        OmegaConf.create(registry.get_defaults(template_name)),
        OmegaConf.create(context or {}),
    )
    values = OmegaConf.to_container(merged, resolve=True)
    _log_debug(f"Rendering '{template_name}' with keys: {sorted(values)}")

    try:
        return template.render(**values)
    except UndefinedError as e:
        raise TemplateRenderError(
            "Template uses a value that was not provided",
            template_name=template_name,
            template_path=registry.get_template_path(template_name),
            original_error=e,
        ) from e


def render_to_file(
    template_name: str,
    context: Optional[Dict[str, Any]],
    output_path: Path,
    registry: Optional[TemplateRegistry] = None,
) -> Path:
    """Render a template and write the LaTeX source to output_path."""
    latex = render_template(template_name, context, registry)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(latex, encoding="utf-8")

    _log_success(f"Rendered '{template_name}' to {output_path}")
    return output_path
