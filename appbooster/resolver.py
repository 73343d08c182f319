"""Normalise raw user choices into a canonical ``FeatureSet``.

The prompt layer (or the CLI flags standing in for it) hands over loosely
typed choices: a project name, enum strings and a list of selected toggles.
This module validates them, splits the combined language option into its two
bits and resolves the requested package manager to one that is actually
installed.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field

from appbooster.config import FeatureSet
from appbooster.utils import run_command

IN_PLACE_SENTINEL = "."

_PROJECT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

LANGUAGE_OPTIONS: tuple[str, ...] = (
    "typescript",
    "javascript",
    "typescript-sw",
    "javascript-sw",
)

# Toggle identifier -> FeatureSet field.
TOGGLE_FIELDS: dict[str, str] = {
    "linting": "linting",
    "jest": "testing",
    "github": "ci",
    "snyk": "security",
    "husky": "git_hooks",
    "git": "git_init",
}

DEFAULT_TOGGLES: tuple[str, ...] = ("linting", "jest", "git", "husky")

DEFAULT_PACKAGE_MANAGER = "npm"


class FeatureValidationError(ValueError):
    """Raised for an invalid choice; the run aborts before touching the disk."""


class RawChoices(BaseModel):
    """Choices as collected from the user, before normalisation."""

    project_name: str = Field(default="my-app")
    project_type: str = Field(default="vite")
    package_manager: str = Field(default=DEFAULT_PACKAGE_MANAGER)
    language_option: str = Field(default="typescript")
    selected: list[str] = Field(default_factory=lambda: list(DEFAULT_TOGGLES))
    deployment: str = Field(default="none")


# ---------------------------------------------------------------------------
# Individual normalisation steps
# ---------------------------------------------------------------------------


def validate_project_name(name: str) -> str:
    """Return *name* if usable as a project directory, else raise.

    Letters, digits, dashes and underscores are accepted, as is ``"."`` for
    scaffolding into the current directory.
    """
    if name == IN_PLACE_SENTINEL or _PROJECT_NAME_RE.match(name):
        return name
    raise FeatureValidationError(
        f"Invalid project name {name!r}: use letters, numbers, dashes and "
        f"underscores, or '.' for the current directory."
    )


def parse_language_option(option: str) -> tuple[bool, bool]:
    """Split a combined language option into ``(use_typescript, use_service_worker)``."""
    if option not in LANGUAGE_OPTIONS:
        raise FeatureValidationError(
            f"Unknown language option {option!r}; expected one of {', '.join(LANGUAGE_OPTIONS)}"
        )
    return option.startswith("typescript"), option.endswith("-sw")


async def resolve_package_manager(requested: str) -> tuple[str, str | None]:
    """Resolve the requested package manager to one that is installed.

    Runs ``<manager> --version``.  If the binary is missing or the check
    fails the run falls back to npm.

    Returns:
        ``(actual_manager, warning)`` where *warning* is ``None`` unless a
        downgrade happened.
    """
    if requested not in ("npm", "pnpm"):
        raise FeatureValidationError(f"Unsupported package manager {requested!r}")
    if requested == DEFAULT_PACKAGE_MANAGER:
        return requested, None

    returncode, _, _ = await run_command([requested, "--version"], timeout=30)
    if returncode != 0:
        return (
            DEFAULT_PACKAGE_MANAGER,
            f"{requested} not found. Using {DEFAULT_PACKAGE_MANAGER} instead.",
        )
    return requested, None


# ---------------------------------------------------------------------------
# Full resolution
# ---------------------------------------------------------------------------


async def resolve_feature_set(
    choices: RawChoices, cwd: Path | None = None
) -> tuple[FeatureSet, list[str]]:
    """Validate *choices* and build the immutable ``FeatureSet``.

    Args:
        choices: Raw user choices.
        cwd: Directory an in-place project is named after (defaults to the
            process working directory).

    Returns:
        The feature set and any non-fatal warnings raised while resolving.
    """
    name = validate_project_name(choices.project_name)
    in_place = name == IN_PLACE_SENTINEL
    if in_place:
        name = (cwd or Path.cwd()).resolve().name

    if choices.project_type not in ("vite", "nextjs"):
        raise FeatureValidationError(f"Unknown project type {choices.project_type!r}")
    if choices.deployment not in ("none", "vercel", "netlify", "render"):
        raise FeatureValidationError(f"Unknown deployment platform {choices.deployment!r}")

    use_typescript, use_service_worker = parse_language_option(choices.language_option)

    toggles: dict[str, bool] = {field_name: False for field_name in TOGGLE_FIELDS.values()}
    for toggle in choices.selected:
        field_name = TOGGLE_FIELDS.get(toggle)
        if field_name is None:
            raise FeatureValidationError(
                f"Unknown setup option {toggle!r}; expected any of {', '.join(TOGGLE_FIELDS)}"
            )
        toggles[field_name] = True

    warnings: list[str] = []
    manager, warning = await resolve_package_manager(choices.package_manager)
    if warning:
        warnings.append(warning)

    features = FeatureSet(
        project_type=choices.project_type,
        package_manager=manager,
        language="ts" if use_typescript else "js",
        service_worker=use_service_worker,
        deployment=choices.deployment,
        project_name=name,
        in_place=in_place,
        **toggles,
    )
    return features, warnings
