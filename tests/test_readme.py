"""Unit tests for README generation (appbooster.readme).

Tests cover:
- Title and bootstrap sentence substitution
- Feature bullets and their order
- Badge removal for disabled features
- Directory tree entries and rendering
- Missing placeholders leave the text unchanged
- ReadmeGenerator with the shipped skeleton
"""

from __future__ import annotations

from pathlib import Path

import pytest

from appbooster.config import FeatureSet
from appbooster.readme import (
    BADGES,
    ReadmeGenerator,
    disabled_badges,
    feature_bullets,
    remove_badges,
    render_readme,
    render_tree,
    structure_entries,
    substitute_features,
    substitute_structure,
)

SKELETON = """# Project Name

[![TypeScript](https://img.shields.io/badge/TypeScript-Ready-blue?logo=typescript)](https://www.typescriptlang.org/)
[![Jest](https://img.shields.io/badge/Jest-Tested-green?logo=jest)](https://jestjs.io/)

This project was bootstrapped with create-app-booster.

## 📋 Features

- placeholder one
- placeholder two

## 📁 Project Structure

```
.
└── old/
```

## License
"""


class TestFeatureBullets:
    @pytest.mark.unit
    def test_minimal(self):
        assert feature_bullets(FeatureSet(language="js")) == ["⚡ JavaScript-based build setup"]

    @pytest.mark.unit
    def test_full_order(self):
        features = FeatureSet(
            testing=True, linting=True, git_hooks=True, ci=True, security=True,
            service_worker=True, deployment="netlify",
        )
        assert feature_bullets(features) == [
            "⚡ TypeScript-enabled build setup",
            "🧪 Jest testing environment",
            "🔍 ESLint and Prettier for code quality",
            "🔄 Git hooks with Husky",
            "👷 CI/CD GitHub workflows",
            "🛡️ Snyk security scanning",
            "📶 Offline support with a service worker",
            "🚀 Optimized for deployment on Netlify",
        ]


class TestBadges:
    @pytest.mark.unit
    def test_disabled_badges(self):
        badges = disabled_badges(FeatureSet(language="js", testing=True))
        assert BADGES["typescript"] in badges
        assert BADGES["testing"] not in badges
        assert len(badges) == 3

    @pytest.mark.unit
    def test_remove_badges_drops_whole_lines(self):
        text = remove_badges(SKELETON, [BADGES["typescript"]])
        assert "TypeScript-Ready" not in text
        assert "\n\n[![Jest]" in text


class TestStructure:
    @pytest.mark.unit
    def test_vite_typescript(self):
        entries = structure_entries(FeatureSet(linting=True, testing=True))
        assert entries == [
            "node_modules/", "public/", "src/", ".eslintrc.js", ".prettierrc",
            "jest.config.js", ".gitignore", "package.json", "README.md", "tsconfig.json",
        ]

    @pytest.mark.unit
    def test_javascript_config_per_project_type(self):
        assert structure_entries(FeatureSet(language="js"))[-1] == "vite.config.js"
        nextjs = structure_entries(FeatureSet(project_type="nextjs", language="js"))
        assert nextjs[1:3] == ["app/", "public/"]
        assert nextjs[-1] == "next.config.js"

    @pytest.mark.unit
    def test_render_tree(self):
        assert render_tree(["a/", "b"]) == ".\n├── a/\n└── b\n"


class TestSubstitution:
    @pytest.mark.unit
    def test_render_readme(self):
        features = FeatureSet(project_type="nextjs", project_name="shop", testing=True)
        text = render_readme(SKELETON, features)

        assert text.startswith("# shop\n")
        assert "This Next.js project was bootstrapped with" in text
        assert "placeholder" not in text
        assert "- 🧪 Jest testing environment\n\n## 📁 Project Structure" in text
        assert "TypeScript-Ready" in text
        assert "Jest-Tested" in text
        assert "└── old/" not in text
        assert "├── app/" in text
        assert text.endswith("## License\n")

    @pytest.mark.unit
    def test_missing_sections_are_left_alone(self):
        text = "# Something else\n\nNo placeholders here.\n"
        assert render_readme(text, FeatureSet()) == text

    @pytest.mark.unit
    def test_features_replaced_once(self):
        text = substitute_features(SKELETON, ["one"])
        assert text.count("## 📋 Features") == 1
        assert "- one\n\n## 📁" in text

    @pytest.mark.unit
    def test_structure_keeps_fence(self):
        text = substitute_structure(SKELETON, ["x"])
        assert "```\n.\n└── x\n```" in text


class TestReadmeGenerator:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_shipped_skeleton(self, tmp_project_dir: Path, shipped_bundles: Path):
        features = FeatureSet(project_name="test-project", language="js", linting=True)
        path = await ReadmeGenerator(shipped_bundles / "common" / "README.md").generate(
            features, tmp_project_dir
        )
        text = path.read_text(encoding="utf-8")
        assert text.startswith("# test-project\n")
        assert "This Vite React project was bootstrapped with" in text
        assert "TypeScript-Ready" not in text
        assert "Husky-Enabled" not in text
        assert "- 🔍 ESLint and Prettier for code quality" in text
        assert "└── vite.config.js" in text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_skeleton(self, tmp_project_dir: Path):
        generator = ReadmeGenerator(tmp_project_dir / "missing.md")
        assert await generator.generate(FeatureSet(), tmp_project_dir) is None
        assert not (tmp_project_dir / "README.md").exists()
