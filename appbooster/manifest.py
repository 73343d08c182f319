"""``package.json`` merging.

The base scaffold leaves a manifest behind; this module layers the
feature-driven scripts and the per-project-type descriptor on top of it.
Merging is idempotent for every key except two deliberate special cases:

* ``scripts.prepare`` equal to ``husky install`` is always stripped, because
  the git-hooks stage owns that key and re-adds it once Husky is installed.
* Script strings containing single quotes are rewritten with double quotes.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from appbooster.config import FeatureSet
from appbooster.utils import load_json, save_json

HUSKY_PREPARE = "husky install"

LINT_SCRIPTS: dict[str, str] = {
    "lint": "eslint . --ext ts,tsx,js,jsx --report-unused-disable-directives --max-warnings 0",
    "lint:fix": "eslint . --ext ts,tsx,js,jsx --fix",
}

DEFAULT_FORMAT_SCRIPT = 'prettier --write "./**/*.{js,jsx,ts,tsx,css,md,json}"'

TEST_SCRIPTS: dict[str, str] = {
    "test": "jest",
    "test:watch": "jest --watch",
    "test:coverage": "jest --coverage",
}

LINT_STAGED_CONFIG: dict[str, list[str]] = {
    "*.{js,jsx,ts,tsx}": ["eslint --fix", "prettier --write"],
    "*.{md,json}": ["prettier --write"],
}


class ManifestError(Exception):
    """Raised when the package manifest is missing or unreadable."""


class ManifestPatch(BaseModel):
    """Additions merged into ``package.json``."""

    model_config = ConfigDict(populate_by_name=True)

    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    scripts: dict[str, str] = Field(default_factory=dict)
    lint_staged: dict[str, list[str]] | None = Field(default=None, alias="lint-staged")

    @classmethod
    def load(cls, path: Path) -> "ManifestPatch":
        return cls.model_validate(load_json(path))


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def normalize_quotes(command: str) -> str:
    """Replace single quotes with double quotes in a script command."""
    return command.replace("'", '"') if "'" in command else command


def strip_husky_prepare(scripts: dict[str, str]) -> dict[str, str]:
    """Return *scripts* without a ``prepare`` entry equal to ``husky install``."""
    if scripts.get("prepare") == HUSKY_PREPARE:
        return {name: cmd for name, cmd in scripts.items() if name != "prepare"}
    return dict(scripts)


def feature_patch(features: FeatureSet) -> ManifestPatch:
    """Procedurally built additions for the selected features."""
    scripts: dict[str, str] = {}
    if features.linting:
        scripts.update(LINT_SCRIPTS)
    if features.testing:
        scripts.update(TEST_SCRIPTS)
    lint_staged = {k: list(v) for k, v in LINT_STAGED_CONFIG.items()} if features.git_hooks else None
    return ManifestPatch(scripts=scripts, lint_staged=lint_staged)


def apply_patch(manifest: dict[str, Any], patch: ManifestPatch) -> dict[str, Any]:
    """Merge *patch* into a copy of *manifest*; later writers win."""
    merged = dict(manifest)
    if patch.dependencies:
        merged["dependencies"] = {**merged.get("dependencies", {}), **patch.dependencies}
    if patch.dev_dependencies:
        merged["devDependencies"] = {
            **merged.get("devDependencies", {}),
            **patch.dev_dependencies,
        }
    scripts = {name: normalize_quotes(cmd) for name, cmd in strip_husky_prepare(patch.scripts).items()}
    if scripts:
        merged["scripts"] = {**merged.get("scripts", {}), **scripts}
    if patch.lint_staged is not None:
        merged["lint-staged"] = patch.lint_staged
    return merged


def merge_manifest(
    manifest: dict[str, Any],
    features: FeatureSet,
    descriptor: ManifestPatch | None = None,
) -> dict[str, Any]:
    """Compute the final manifest for *features*.

    Order: prepare strip, lint scripts, test scripts, lint-staged config,
    then the project-type descriptor.
    """
    merged = dict(manifest)
    merged["scripts"] = strip_husky_prepare(merged.get("scripts") or {})

    merged = apply_patch(merged, feature_patch(features))

    if features.linting:
        scripts = merged["scripts"]
        if "format" in scripts:
            scripts["format"] = normalize_quotes(scripts["format"])
        else:
            scripts["format"] = DEFAULT_FORMAT_SCRIPT

    if descriptor is not None:
        merged = apply_patch(merged, descriptor)
    return merged


# ---------------------------------------------------------------------------
# File-level merger
# ---------------------------------------------------------------------------


class ManifestMerger:
    """Reads, merges and rewrites the project's ``package.json``."""

    def __init__(self, features: FeatureSet, descriptor_path: Path | None = None) -> None:
        self.features = features
        self.descriptor_path = descriptor_path

    def load_descriptor(self) -> ManifestPatch | None:
        if self.descriptor_path is None or not self.descriptor_path.exists():
            return None
        return ManifestPatch.load(self.descriptor_path)

    async def merge(self, target_dir: Path) -> dict[str, Any]:
        """Merge into ``<target_dir>/package.json`` and return the written manifest."""
        manifest_path = target_dir / "package.json"
        if not manifest_path.exists():
            raise ManifestError(f"No package.json found in {target_dir}")
        try:
            manifest = await asyncio.to_thread(load_json, manifest_path)
        except ValueError as exc:
            raise ManifestError(f"Invalid package.json in {target_dir}: {exc}") from exc

        merged = merge_manifest(manifest, self.features, self.load_descriptor())
        await save_json(merged, manifest_path)
        return merged


async def set_script(manifest_path: Path, name: str, command: str) -> None:
    """Set a single script in an existing manifest."""
    manifest = await asyncio.to_thread(load_json, manifest_path)
    manifest["scripts"] = {**manifest.get("scripts", {}), name: command}
    await save_json(manifest, manifest_path)
