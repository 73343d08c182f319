"""App Booster configuration.

Two typed models live here.  ``FeatureSet`` is the canonical, immutable record
of everything the user selected for the project being generated.
``BoosterConfig`` holds the tool's own tuneables (where bundles live, command
timeouts, provenance metadata).  Both use Pydantic v2 so they validate at
construction time and serialise to/from JSON without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ProjectType = Literal["vite", "nextjs"]
PackageManager = Literal["npm", "pnpm"]
Language = Literal["ts", "js"]
Deployment = Literal["none", "vercel", "netlify", "render"]

_DEFAULT_BUNDLES_DIR = Path(__file__).parent / "bundles"


class FeatureSet(BaseModel):
    """Canonical record of all user-selected project options.

    Created once by the resolver and read-only thereafter.  ``language`` gates
    which ts/js variant of a bundle is selected everywhere, and
    ``service_worker`` pulls in project-type specific PWA assets.
    """

    model_config = ConfigDict(frozen=True)

    project_type: ProjectType = Field(default="vite")
    package_manager: PackageManager = Field(
        default="npm", description="The manager actually used, after availability probing"
    )
    language: Language = Field(default="ts")
    service_worker: bool = False
    linting: bool = False
    testing: bool = False
    ci: bool = False
    security: bool = False
    git_hooks: bool = False
    git_init: bool = False
    deployment: Deployment = Field(default="none")
    project_name: str = Field(default="my-app", min_length=1)
    in_place: bool = Field(default=False, description="Scaffold into the current directory")

    @property
    def use_typescript(self) -> bool:
        return self.language == "ts"

    @property
    def language_label(self) -> str:
        """Long language name as recorded in provenance and summaries."""
        return "typescript" if self.use_typescript else "javascript"


class BoosterConfig(BaseModel):
    """Tool-level configuration.

    Instances are typically created once by the CLI entry point and passed
    through the pipeline inside the run context.
    """

    bundles_dir: Path = Field(default=_DEFAULT_BUNDLES_DIR)
    generator_name: str = Field(default="create-app-booster")
    generator_version: str = Field(default="1.0.0")
    provenance_file: str = Field(default=".appbooster")
    command_timeout: int = Field(
        default=300, ge=10, description="Timeout for scaffold and git commands in seconds"
    )
    install_timeout: int = Field(
        default=900, ge=30, description="Timeout for a single package-manager install in seconds"
    )

    @property
    def readme_skeleton_path(self) -> Path:
        """Path to the README skeleton shared by every project type."""
        return self.bundles_dir / "common" / "README.md"

    def descriptor_path(self, project_type: str) -> Path:
        """Path to the per-project-type ``package-additions.json`` descriptor."""
        return self.bundles_dir / project_type / "package-additions.json"

    @property
    def license_path(self) -> Path:
        """LICENSE copied into every generated project."""
        return self.bundles_dir / "LICENSE"

    @classmethod
    def from_env(cls) -> "BoosterConfig":
        """Build a ``BoosterConfig`` from environment variables.

        Recognised variables (all optional):
            BOOSTER_BUNDLES_DIR, BOOSTER_COMMAND_TIMEOUT, BOOSTER_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("BOOSTER_BUNDLES_DIR"):
            kwargs["bundles_dir"] = Path(os.environ["BOOSTER_BUNDLES_DIR"])
        if os.environ.get("BOOSTER_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["BOOSTER_COMMAND_TIMEOUT"])
        if os.environ.get("BOOSTER_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["BOOSTER_INSTALL_TIMEOUT"])
        return cls(**kwargs)
