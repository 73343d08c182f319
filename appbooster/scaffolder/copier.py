"""Apply a template plan onto the target directory.

Bundles are laid down strictly in plan order, so a later bundle overwrites
any file an earlier one wrote at the same relative path.  Directories merge
recursively.  Within a single bundle every relative path is unique, which
lets the files of one bundle be copied concurrently.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path

from appbooster.config import FeatureSet
from appbooster.scaffolder.plan import BundleLookup, BundleRef, Presence, TemplatePlan


class TemplateError(Exception):
    """Raised when a required bundle cannot be applied."""

    def __init__(self, bundle: str, message: str) -> None:
        self.bundle = bundle
        super().__init__(f"Bundle {bundle}: {message}")


@dataclass(frozen=True)
class VariantOverride:
    """Copy *replacement* in place of *filename* for JavaScript projects."""

    bundle: str
    filename: str
    replacement: str


VARIANT_OVERRIDES: tuple[VariantOverride, ...] = (
    VariantOverride("vite/linting", ".eslintrc.js", ".eslintrc.js.non-ts"),
)


class TemplateCopier:
    """Copies plan bundles from the bundle root into a project directory."""

    def __init__(
        self,
        lookup: BundleLookup,
        features: FeatureSet,
        overrides: tuple[VariantOverride, ...] = VARIANT_OVERRIDES,
    ) -> None:
        self.lookup = lookup
        self.features = features
        self.overrides = overrides

    async def apply(self, plan: TemplatePlan, target_dir: str | Path) -> list[Path]:
        """Apply every bundle of *plan* in order and return the written paths."""
        target = Path(target_dir)
        written: list[Path] = []
        for bundle in plan:
            written.extend(await self.apply_bundle(bundle, target))
        return written

    async def apply_bundle(self, bundle: BundleRef, target: Path) -> list[Path]:
        """Copy one bundle; its files are written concurrently."""
        if self.lookup.lookup(bundle.name) is Presence.ABSENT:
            if bundle.optional:
                return []
            raise TemplateError(bundle.name, f"not found under {self.lookup.root}")

        source_root = self.lookup.path_for(bundle.name)
        copies = self._collect(bundle.name, source_root, target)

        await asyncio.gather(
            *(asyncio.to_thread(_copy_file, src, dest) for src, dest in copies)
        )
        return [dest for _, dest in copies]

    # -- Internals ---------------------------------------------------------

    def _collect(
        self, bundle_name: str, source_root: Path, target: Path
    ) -> list[tuple[Path, Path]]:
        """Walk *source_root*, create directories and pair sources with destinations."""
        replacements = self._active_replacements(bundle_name)
        skipped = {o.replacement for o in self.overrides if o.bundle == bundle_name}

        copies: list[tuple[Path, Path]] = []
        for source in sorted(source_root.rglob("*")):
            rel = source.relative_to(source_root)
            dest = target / rel
            if source.is_dir():
                dest.mkdir(parents=True, exist_ok=True)
                continue
            if rel.name in skipped and rel.parent == Path("."):
                continue
            replacement = replacements.get(rel.as_posix())
            copies.append((replacement or source, dest))
        return copies

    def _active_replacements(self, bundle_name: str) -> dict[str, Path]:
        """Overrides that apply to *bundle_name* for the current language."""
        if self.features.use_typescript:
            return {}
        active: dict[str, Path] = {}
        for override in self.overrides:
            if override.bundle != bundle_name:
                continue
            if self.features.project_type != override.bundle.split("/", 1)[0]:
                continue
            candidate = self.lookup.path_for(bundle_name) / override.replacement
            if candidate.is_file():
                active[override.filename] = candidate
        return active


def _copy_file(source: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy(source, dest)
