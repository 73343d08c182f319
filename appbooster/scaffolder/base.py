"""Base project creation.

Everything else composes onto the project these generators leave behind, so
any failure here is fatal.  Vite projects come from ``create-vite``; the
Next.js base is written directly, which keeps it independent of the
interactive ``create-next-app`` flow.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from appbooster.config import FeatureSet
from appbooster.scaffolder.templates import TemplateRenderer, build_context
from appbooster.utils import describe_failure, run_command, save_json

NEXT_VERSION = "^14.0.0"
REACT_VERSION = "^18.2.0"


class ScaffoldError(Exception):
    """Raised when the base project cannot be created."""


def dlx_command(package_manager: str) -> list[str]:
    """Prefix that runs a package binary without installing it."""
    return ["npx"] if package_manager == "npm" else ["pnpm", "dlx"]


class ViteGenerator:
    """Creates a React project with ``create-vite``."""

    def __init__(self, timeout: int = 300) -> None:
        self.timeout = timeout

    def command(self, features: FeatureSet, target_dir: Path) -> list[str]:
        template = "react-ts" if features.use_typescript else "react"
        destination = "." if features.in_place else target_dir.name
        return [
            *dlx_command(features.package_manager),
            "create-vite@latest",
            destination,
            "--template",
            template,
            "--force",
        ]

    async def generate(self, features: FeatureSet, target_dir: Path) -> Path:
        cmd = self.command(features, target_dir)
        cwd = target_dir if features.in_place else target_dir.parent
        returncode, _, stderr = await run_command(cmd, cwd=cwd, timeout=self.timeout)
        if returncode != 0:
            raise ScaffoldError(describe_failure(cmd, returncode, stderr))
        if not (target_dir / "package.json").exists():
            raise ScaffoldError(f"create-vite did not leave a package.json in {target_dir}")
        return target_dir


class NextGenerator:
    """Writes a minimal App Router Next.js project."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def manifest(self, features: FeatureSet, target_dir: Path) -> dict[str, Any]:
        """The ``package.json`` the Next.js base starts from."""
        dev_dependencies: dict[str, str] = {}
        if features.use_typescript:
            dev_dependencies = {
                "@types/node": "^20.1.0",
                "@types/react": "^18.2.0",
                "@types/react-dom": "^18.2.0",
                "typescript": "^5.0.0",
            }
        return {
            "name": target_dir.name,
            "version": "0.1.0",
            "private": True,
            "scripts": {
                "dev": "next dev",
                "build": "next build",
                "start": "next start",
                "lint": "next lint",
            },
            "dependencies": {
                "next": NEXT_VERSION,
                "react": REACT_VERSION,
                "react-dom": REACT_VERSION,
            },
            "devDependencies": dev_dependencies,
        }

    async def generate(self, features: FeatureSet, target_dir: Path) -> Path:
        await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)
        ctx = build_context(features)

        await save_json(self.manifest(features, target_dir), target_dir / "package.json")
        await save_json({"extends": "next/core-web-vitals"}, target_dir / ".eslintrc.json")

        files = [
            ("nextjs/next.config.js.j2", "next.config.js"),
            ("nextjs/gitignore.j2", ".gitignore"),
            ("nextjs/page.j2", f"app/page.{ctx['jsx_ext']}"),
            ("nextjs/layout.j2", f"app/layout.{ctx['jsx_ext']}"),
        ]
        if features.use_typescript:
            files += [
                ("nextjs/tsconfig.json.j2", "tsconfig.json"),
                ("nextjs/next-env.d.ts.j2", "next-env.d.ts"),
            ]
        for template_name, output_name in files:
            await self.renderer.render_to_file(template_name, target_dir / output_name, ctx)

        await asyncio.to_thread((target_dir / "public").mkdir, parents=True, exist_ok=True)
        return target_dir


async def create_base_project(
    features: FeatureSet,
    target_dir: Path,
    timeout: int = 300,
    renderer: TemplateRenderer | None = None,
) -> Path:
    """Create the base project for *features* at *target_dir*."""
    if features.project_type == "vite":
        return await ViteGenerator(timeout).generate(features, target_dir)
    return await NextGenerator(renderer).generate(features, target_dir)
