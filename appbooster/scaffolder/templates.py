"""Jinja2 template rendering for generated source assets.

Bundles are copied verbatim, but a handful of files depend on the project
name and on the chosen language (the Next.js base project and the service
worker assets).  Those live as ``.j2`` templates next to this module and are
rendered through ``TemplateRenderer``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from appbooster.config import FeatureSet

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates with a project context."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template (path relative to the template directory)."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out


def build_context(features: FeatureSet) -> dict[str, Any]:
    """Template context shared by every generated asset."""
    ext = "ts" if features.use_typescript else "js"
    return {
        "project_name": features.project_name,
        "project_type": features.project_type,
        "typescript": features.use_typescript,
        "ext": ext,
        "jsx_ext": f"{ext}x",
    }


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
