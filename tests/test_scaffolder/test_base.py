"""Unit tests for base project creation (appbooster.scaffolder.base).

Tests cover:
- dlx_command per package manager
- ViteGenerator command line and working directory
- ViteGenerator failure handling
- NextGenerator manifest and written files for ts and js
- create_base_project dispatch
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from appbooster.config import FeatureSet
from appbooster.scaffolder.base import (
    NextGenerator,
    ScaffoldError,
    ViteGenerator,
    create_base_project,
    dlx_command,
)


class TestDlxCommand:
    @pytest.mark.unit
    def test_npm(self):
        assert dlx_command("npm") == ["npx"]

    @pytest.mark.unit
    def test_pnpm(self):
        assert dlx_command("pnpm") == ["pnpm", "dlx"]


class TestViteGenerator:
    @pytest.mark.unit
    def test_command_typescript(self, tmp_project_dir: Path):
        features = FeatureSet(project_name="test-project")
        cmd = ViteGenerator().command(features, tmp_project_dir)
        assert cmd == [
            "npx", "create-vite@latest", "test-project", "--template", "react-ts", "--force",
        ]

    @pytest.mark.unit
    def test_command_javascript_in_place_with_pnpm(self, tmp_project_dir: Path):
        features = FeatureSet(language="js", package_manager="pnpm", in_place=True)
        cmd = ViteGenerator().command(features, tmp_project_dir)
        assert cmd[:3] == ["pnpm", "dlx", "create-vite@latest"]
        assert cmd[3] == "."
        assert cmd[5] == "react"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generate_runs_from_parent(self, tmp_project_dir: Path):
        async def fake_create(cmd, cwd=None, timeout=120, env=None):
            (tmp_project_dir / "package.json").write_text("{}", encoding="utf-8")
            return (0, "", "")

        mock_run = AsyncMock(side_effect=fake_create)
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            result = await ViteGenerator(timeout=42).generate(FeatureSet(), tmp_project_dir)

        assert result == tmp_project_dir
        assert mock_run.call_args.kwargs["cwd"] == tmp_project_dir.parent
        assert mock_run.call_args.kwargs["timeout"] == 42

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generate_in_place_runs_in_target(self, tmp_project_dir: Path):
        (tmp_project_dir / "package.json").write_text("{}", encoding="utf-8")
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            await ViteGenerator().generate(FeatureSet(in_place=True), tmp_project_dir)
        assert mock_run.call_args.kwargs["cwd"] == tmp_project_dir

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generate_failure_raises(self, tmp_project_dir: Path):
        mock_run = AsyncMock(return_value=(1, "", "npm ERR! 404"))
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            with pytest.raises(ScaffoldError, match="404"):
                await ViteGenerator().generate(FeatureSet(), tmp_project_dir)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generate_without_manifest_raises(self, tmp_project_dir: Path):
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            with pytest.raises(ScaffoldError, match="package.json"):
                await ViteGenerator().generate(FeatureSet(), tmp_project_dir)


class TestNextGenerator:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_typescript_project(self, tmp_project_dir: Path):
        features = FeatureSet(project_type="nextjs", project_name="test-project")
        await NextGenerator().generate(features, tmp_project_dir)

        manifest = json.loads((tmp_project_dir / "package.json").read_text(encoding="utf-8"))
        assert manifest["name"] == "test-project"
        assert manifest["dependencies"]["next"] == "^14.0.0"
        assert "typescript" in manifest["devDependencies"]
        assert manifest["scripts"]["dev"] == "next dev"

        for rel in ("app/page.tsx", "app/layout.tsx", "tsconfig.json", "next-env.d.ts",
                    "next.config.js", ".gitignore", ".eslintrc.json"):
            assert (tmp_project_dir / rel).exists(), rel
        assert (tmp_project_dir / "public").is_dir()
        assert "test-project" in (tmp_project_dir / "app" / "page.tsx").read_text(encoding="utf-8")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_javascript_project(self, tmp_project_dir: Path):
        features = FeatureSet(project_type="nextjs", language="js")
        await NextGenerator().generate(features, tmp_project_dir)

        manifest = json.loads((tmp_project_dir / "package.json").read_text(encoding="utf-8"))
        assert manifest["devDependencies"] == {}
        assert (tmp_project_dir / "app" / "page.jsx").exists()
        assert not (tmp_project_dir / "tsconfig.json").exists()
        assert "JSX.Element" not in (tmp_project_dir / "app" / "layout.jsx").read_text(encoding="utf-8")


class TestCreateBaseProject:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nextjs_does_not_spawn_processes(self, tmp_project_dir: Path):
        mock_run = AsyncMock()
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            await create_base_project(FeatureSet(project_type="nextjs"), tmp_project_dir)
        mock_run.assert_not_called()
        assert (tmp_project_dir / "package.json").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_vite_uses_create_vite(self, tmp_project_dir: Path):
        (tmp_project_dir / "package.json").write_text("{}", encoding="utf-8")
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("appbooster.scaffolder.base.run_command", mock_run):
            await create_base_project(FeatureSet(), tmp_project_dir, timeout=60)
        assert "create-vite@latest" in mock_run.call_args.args[0]
