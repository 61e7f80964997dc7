"""
Jinja2 loader for the assistant system prompt.

Every Template constant must have a matching .jinja2 file next to this
module; the check runs at import. Rendering uses StrictUndefined, so a
missing context variable raises instead of producing a blank section.
"""

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _validate_templates():
    """Validate all template constants have corresponding files. Fails fast at import."""
    for name in dir(Template):
        if not name.startswith("_"):
            template_name = getattr(Template, name)
            path = TEMPLATES_DIR / f"{template_name}.jinja2"
            if not path.exists():
                raise FileNotFoundError(f"Template missing: {path}")


_validate_templates()


@lru_cache(maxsize=1)
def _get_environment() -> Environment:
    """Create and cache the Jinja2 environment."""
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(default=False),
        trim_blocks=True,
        lstrip_blocks=True,
        # A prompt rendered with a missing variable is a bug, not an empty line
        undefined=StrictUndefined,
    )


def render(template_name: str, **context) -> str:
    """
    Render a prompt template.

    Args:
        template_name: A Template constant (file name without .jinja2)
        **context: Variables the template expects

    Raises:
        jinja2.UndefinedError: The template used a variable not passed in.
    """
    env = _get_environment()
    template = env.get_template(f"{template_name}.jinja2")
    return template.render(**context)
