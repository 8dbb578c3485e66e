"""Jinja2 template rendering for the Template Store.

Provides the TemplateRenderer class which loads ``.j2`` placeholder files
from a template root (the bundled ``microfed/templates/`` directory by
default) and renders them with a federation context.  Rendering itself is
pure; :meth:`TemplateRenderer.render_to_file` is the only method that writes.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from jinja2 import TemplateNotFound as JinjaTemplateNotFound
from jinja2.exceptions import TemplateError

from microfed.errors import TemplateNotFound, TemplateSyntaxError


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 placeholder templates for generated applications.

    Undefined context keys are strict errors, so a template that references a
    key the caller did not supply fails with :class:`TemplateSyntaxError`
    instead of silently rendering an empty string.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Derives federation container names
        self.env.filters["snake_case"] = _snake_case_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str | Path, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"host-app/webpack.config.js.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.

        Raises:
            TemplateNotFound: The template file does not exist.
            TemplateSyntaxError: The template cannot be parsed or references
                a value missing from *context*.
        """
        name = Path(template_path).as_posix()
        try:
            template = self.env.get_template(name)
            return template.render(**context)
        except JinjaTemplateNotFound as exc:
            raise TemplateNotFound(
                f"Template not found: {self.template_dir / name}", step="render"
            ) from exc
        except TemplateError as exc:
            raise TemplateSyntaxError(
                f"Failed to render {name}: {exc}", step="render"
            ) from exc

    def exists(self, template_path: str | Path) -> bool:
        """Return ``True`` if *template_path* is a file under the template root."""
        return (self.template_dir / template_path).is_file()

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str | Path,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output
        path.  Nothing is written if rendering fails.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``.

    Federation container names must be valid JavaScript identifiers, so dots
    are treated like hyphens.
    """
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", str(value))
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-.\s]+", "_", s2).lower()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
