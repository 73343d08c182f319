"""Shared pytest fixtures for the App Booster test suite.

Provides reusable fixtures for:
- Temporary project directories
- Feature sets for the common project shapes
- A throwaway bundle root populated like the shipped one
- A fake ``run_command`` recording every invocation
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from appbooster.config import BoosterConfig, FeatureSet

BUNDLES_DIR = Path(__file__).resolve().parent.parent / "appbooster" / "bundles"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def shipped_bundles() -> Path:
    """The bundle root packaged with appbooster."""
    assert BUNDLES_DIR.is_dir(), f"Bundle root not found at {BUNDLES_DIR}"
    return BUNDLES_DIR


@pytest.fixture
def bundle_root(tmp_path: Path) -> Path:
    """A small bundle root with a predictable layout.

    Contains every common bundle, the vite linting/jest-ts/jest variants and
    the nextjs jest-ts variant, but deliberately no ``nextjs/jest``.
    """
    root = tmp_path / "bundles"
    files = {
        "common/github/.github/workflows/ci.yml": "name: CI\n",
        "common/snyk/.snyk": "version: v1.25.0\n",
        "common/linting/.prettierrc": '{"semi": true}\n',
        "common/linting/.eslintrc.js": "module.exports = { common: true };\n",
        "common/husky/.husky/.gitignore": "_\n",
        "common/jest/__mocks__/fileMock.js": "module.exports = 'stub';\n",
        "common/jest/jest.config.js": "module.exports = { common: true };\n",
        "common/deployment/vercel/vercel.json": '{"version": 2}\n',
        "vite/linting/.eslintrc.js": "module.exports = { ts: true };\n",
        "vite/linting/.eslintrc.js.non-ts": "module.exports = { ts: false };\n",
        "vite/jest-ts/jest.config.js": "module.exports = { preset: 'ts-jest' };\n",
        "vite/jest/jest.config.js": "module.exports = { js: true };\n",
        "vite/deployment/vercel/vercel.json": '{"version": 2, "rewrites": []}\n',
        "nextjs/jest-ts/jest.config.js": "module.exports = { next: true };\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Feature sets
# ---------------------------------------------------------------------------

@pytest.fixture
def vite_ts_features() -> FeatureSet:
    """Vite + TypeScript with the default toggles."""
    return FeatureSet(
        project_type="vite",
        package_manager="npm",
        language="ts",
        linting=True,
        testing=True,
        git_hooks=True,
        git_init=True,
        project_name="test-project",
    )


@pytest.fixture
def next_js_features() -> FeatureSet:
    """Next.js + JavaScript with linting and testing only."""
    return FeatureSet(
        project_type="nextjs",
        package_manager="npm",
        language="js",
        linting=True,
        testing=True,
        project_name="test-project",
    )


@pytest.fixture
def booster_config(shipped_bundles: Path) -> BoosterConfig:
    return BoosterConfig(bundles_dir=shipped_bundles, command_timeout=30, install_timeout=60)


@pytest.fixture
def vite_manifest() -> dict[str, Any]:
    """A package.json as left behind by create-vite."""
    return {
        "name": "test-project",
        "private": True,
        "version": "0.0.0",
        "type": "module",
        "scripts": {
            "dev": "vite",
            "build": "tsc && vite build",
            "preview": "vite preview",
        },
        "dependencies": {"react": "^18.2.0", "react-dom": "^18.2.0"},
        "devDependencies": {"vite": "^5.0.0", "typescript": "^5.2.2"},
    }


@pytest.fixture
def write_manifest():
    """Factory writing a manifest dict as ``package.json`` into a directory."""
    def factory(target_dir: Path, manifest: dict[str, Any]) -> Path:
        path = target_dir / "package.json"
        path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
        return path

    return factory


# ---------------------------------------------------------------------------
# Subprocess fakes
# ---------------------------------------------------------------------------

class FakeRunner:
    """Stand-in for ``run_command`` that records calls.

    ``failures`` maps a predicate over the command list to the return code
    the fake should report for matching commands.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.cwds: list[Any] = []
        self.failures: list[tuple[Any, int]] = []

    def fail_when(self, predicate, returncode: int = 1) -> None:
        self.failures.append((predicate, returncode))

    async def __call__(self, cmd, cwd=None, timeout=120, env=None):
        self.calls.append(list(cmd))
        self.cwds.append(cwd)
        for predicate, returncode in self.failures:
            if predicate(cmd):
                return (returncode, "", f"simulated failure of {cmd[0]}")
        return (0, "", "")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
