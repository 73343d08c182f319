"""Progressive Web App assets.

Vite projects get a ``vite-plugin-pwa`` config, a Workbox service worker,
a registration helper and a web manifest linked from ``index.html``.
Next.js projects get a ``next-pwa`` wrapped config and the web manifest; the
``next-pwa`` package itself is installed by the dependency installer.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from appbooster.config import FeatureSet
from appbooster.scaffolder.templates import TemplateRenderer, build_context

MANIFEST_LINK = (
    '<head>\n'
    '    <link rel="manifest" href="/manifest.json">\n'
    '    <meta name="theme-color" content="#000000">'
)


class ServiceWorkerGenerator:
    """Renders the project-type specific service worker asset set."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    async def generate(self, features: FeatureSet, target_dir: Path) -> list[Path]:
        """Write the PWA assets for *features* and return the written paths."""
        ctx = build_context(features)
        if features.project_type == "vite":
            return await self._generate_vite(features, target_dir, ctx)
        return await self._generate_next(target_dir, ctx)

    async def _generate_vite(
        self, features: FeatureSet, target_dir: Path, ctx: dict
    ) -> list[Path]:
        ext = ctx["ext"]
        files = [
            ("pwa/vite.config.j2", f"vite.config.{ext}"),
            ("pwa/sw.j2", f"src/sw.{ext}"),
            ("pwa/pwa-register.j2", f"src/lib/pwa-register.{ext}"),
            ("pwa/manifest.json.j2", "public/manifest.json"),
        ]
        if features.use_typescript:
            files.append(("pwa/vite-pwa.d.ts.j2", "src/types/vite-pwa.d.ts"))

        written = [
            await self.renderer.render_to_file(template, target_dir / output, ctx)
            for template, output in files
        ]

        index_html = target_dir / "index.html"
        if index_html.exists():
            await asyncio.to_thread(link_manifest, index_html)
        return written

    async def _generate_next(self, target_dir: Path, ctx: dict) -> list[Path]:
        return [
            await self.renderer.render_to_file(
                "pwa/next.config.js.j2", target_dir / "next.config.js", ctx
            ),
            await self.renderer.render_to_file(
                "pwa/manifest.json.j2", target_dir / "public" / "manifest.json", ctx
            ),
        ]


def link_manifest(index_html: Path) -> bool:
    """Add the manifest link to ``<head>`` once; return ``True`` if the file changed."""
    html = index_html.read_text(encoding="utf-8")
    if "manifest.json" in html or "<head>" not in html:
        return False
    index_html.write_text(html.replace("<head>", MANIFEST_LINK, 1), encoding="utf-8")
    return True
