"""Jinja2 templating for notification bodies.

Templates live in apps/notify/templates/ and are referenced by file name
(the .j2 extension is optional). Missing variables raise instead of
rendering as empty strings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import jinja2

TEMPLATES_DIR = Path(__file__).parent / "templates"

logger = logging.getLogger(__name__)

_JINJA_ENV = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
)


def _resolve_name(name: str) -> str:
    if (TEMPLATES_DIR / name).is_file():
        return name
    return f"{name}.j2"


def render_template(name: str, context: dict[str, Any]) -> str:
    """Render a template file with the given context.

    Raises:
        ValueError: The template is missing or references an undefined variable.
    """
    try:
        template = _JINJA_ENV.get_template(_resolve_name(name))
        return template.render(**context)
    except jinja2.TemplateNotFound as e:
        raise ValueError(f"Notification template not found: {name}") from e
    except jinja2.UndefinedError as e:
        raise ValueError(f"Template {name} could not be rendered: {e}") from e


def render_string(source: str, context: dict[str, Any]) -> str:
    """Render an inline template string."""
    try:
        return _JINJA_ENV.from_string(source).render(**context)
    except jinja2.UndefinedError as e:
        raise ValueError(f"Inline template could not be rendered: {e}") from e
