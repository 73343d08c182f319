"""Template plan construction.

A plan is the ordered list of template bundles to lay over the base project.
It is computed once, as a pure function of the ``FeatureSet`` and of which
optional bundles exist on disk, by evaluating the fixed ``PLAN_TABLE`` from
top to bottom.  Each entry contributes its common bundle followed by an
optional project-type variant, so the variant can override common files.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from appbooster.config import FeatureSet


class Presence(str, Enum):
    """Outcome of looking up an optional bundle."""

    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class BundleRef:
    """A directory of template files, relative to the bundle root."""

    name: str
    feature: str
    optional: bool = False


@dataclass(frozen=True)
class TemplatePlan:
    """Immutable, ordered sequence of bundles to apply."""

    bundles: tuple[BundleRef, ...] = ()

    def names(self) -> list[str]:
        return [bundle.name for bundle in self.bundles]

    def for_feature(self, feature: str) -> list[BundleRef]:
        return [bundle for bundle in self.bundles if bundle.feature == feature]

    def __len__(self) -> int:
        return len(self.bundles)

    def __iter__(self):
        return iter(self.bundles)


class BundleLookup:
    """Answers whether a named bundle exists under the bundle root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / name

    def lookup(self, name: str) -> Presence:
        return Presence.PRESENT if self.path_for(name).is_dir() else Presence.ABSENT


@dataclass(frozen=True)
class PlanEntry:
    """One row of the plan table.

    ``common`` and ``variant`` are format strings over ``project_type``,
    ``deployment`` and ``test_variant``.
    """

    feature: str
    applies: Callable[[FeatureSet], bool]
    common: str
    variant: str | None = None


PLAN_TABLE: tuple[PlanEntry, ...] = (
    PlanEntry("ci", lambda f: f.ci, "common/github"),
    PlanEntry("security", lambda f: f.security, "common/snyk"),
    PlanEntry("linting", lambda f: f.linting, "common/linting", "{project_type}/linting"),
    PlanEntry("git_hooks", lambda f: f.git_hooks, "common/husky"),
    PlanEntry("testing", lambda f: f.testing, "common/jest", "{project_type}/{test_variant}"),
    PlanEntry(
        "deployment",
        lambda f: f.deployment != "none",
        "common/deployment/{deployment}",
        "{project_type}/deployment/{deployment}",
    ),
)


def _format_fields(features: FeatureSet) -> dict[str, str]:
    return {
        "project_type": features.project_type,
        "deployment": features.deployment,
        "test_variant": "jest-ts" if features.use_typescript else "jest",
    }


def build_plan(
    features: FeatureSet,
    lookup: BundleLookup,
    table: tuple[PlanEntry, ...] = PLAN_TABLE,
) -> TemplatePlan:
    """Compute the ordered bundle plan for *features*.

    Common bundles are included whenever their entry applies.  Variants are
    existence-gated: an absent variant is left out without complaint, which
    is how a JavaScript project type without a plain-JS test bundle ends up
    with the common test bundle only.
    """
    fields = _format_fields(features)
    bundles: list[BundleRef] = []
    for entry in table:
        if not entry.applies(features):
            continue
        bundles.append(BundleRef(entry.common.format(**fields), entry.feature))
        if entry.variant is None:
            continue
        variant = entry.variant.format(**fields)
        if lookup.lookup(variant) is Presence.PRESENT:
            bundles.append(BundleRef(variant, entry.feature, optional=True))
    return TemplatePlan(tuple(bundles))
