"""Read nsupdate scripts from disk, optionally through Jinja2."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .models import Document, ScriptLoadError
from .parser import parse_document

TEMPLATE_SUFFIX = ".j2"


def _render_script(path: Path, extra_context: dict[str, Any] | None = None) -> str:
    """Render a script template through Jinja2."""
    env = Environment(
        loader=FileSystemLoader(str(path.parent)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    template = env.get_template(path.name)
    context = {"env": os.environ}
    if extra_context:
        context.update(extra_context)
    return template.render(**context)


def load_script(path: Path, template_vars: dict[str, Any] | None = None) -> str:
    """Return the script text, rendering ``*.j2`` files first."""
    try:
        if path.suffix == TEMPLATE_SUFFIX:
            return _render_script(path, template_vars)
        return path.read_text(encoding="utf-8")
    except TemplateError as exc:
        raise ScriptLoadError(f"Failed to render {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ScriptLoadError(f"Failed to read {path}: {exc}") from exc


def load_document(path: Path, template_vars: dict[str, Any] | None = None) -> Document:
    """Load and parse a script in one step."""
    return parse_document(load_script(path, template_vars))
