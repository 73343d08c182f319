"""Dependency computation and installation.

``compute_install_batch`` is a pure function of the ``FeatureSet``: the same
selection always yields byte-identical specifier lists.  ``DependencyInstaller``
then runs three sequential stages:

1. install whatever the manifest already declares,
2. one bulk install of the dev dependencies,
3. one bulk install of the runtime dependencies.

A failed bulk install falls back to installing each specifier on its own.
Specifiers that still fail are reported as warnings and skipped; they never
stop the remaining specifiers or the later stages.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from appbooster.config import FeatureSet
from appbooster.utils import console, describe_failure, run_command

HOOK_TOOLS: tuple[str, ...] = ("husky@latest", "lint-staged@latest")

# Flags shared by bulk and single installs: prefer the offline cache, skip the
# audit, stay quiet.
INSTALL_FLAGS: dict[str, list[str]] = {
    "npm": ["install", "--prefer-offline", "--no-audit", "--progress=false"],
    "pnpm": ["add", "--prefer-offline", "--silent"],
}


@dataclass(frozen=True)
class InstallBatch:
    """Specifiers to install, split by manifest section."""

    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.dependencies or self.dev_dependencies)


@dataclass
class InstallReport:
    """What happened to each specifier during installation."""

    attempted: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def record_attempt(self, specs: list[str] | tuple[str, ...]) -> None:
        for spec in specs:
            if spec not in self.attempted:
                self.attempted.append(spec)

    def is_installed(self, spec: str) -> bool:
        return spec in self.installed


# ---------------------------------------------------------------------------
# Batch computation (pure)
# ---------------------------------------------------------------------------


def compute_install_batch(features: FeatureSet) -> InstallBatch:
    """Compute the dependency and dev-dependency specifiers for *features*."""
    dev: list[str] = []
    runtime: list[str] = []
    vite = features.project_type == "vite"

    if features.linting:
        dev += [
            "eslint@~8.38.0",
            "prettier@latest",
            "eslint-config-prettier@latest",
            "eslint-plugin-prettier@latest",
        ]
        if features.use_typescript:
            dev += [
                "@typescript-eslint/eslint-plugin@^6.14.0",
                "@typescript-eslint/parser@^6.14.0",
                "@typescript-eslint/utils@^6.14.0",
            ]
        if vite:
            dev += [
                "eslint-plugin-react@^7.33.2",
                "eslint-plugin-react-hooks@^4.6.0",
                "eslint-plugin-react-refresh@^0.4.5",
            ]

    if features.testing:
        dev += [
            "jest@latest",
            "@testing-library/react@latest",
            "@testing-library/jest-dom@latest",
            "@testing-library/user-event@latest",
            "identity-obj-proxy@latest",
        ]
        if features.use_typescript:
            dev += ["@types/jest@latest", "ts-jest@latest"]
        if vite:
            dev.append("jest-environment-jsdom@latest")
            if features.use_typescript:
                dev += ["@vitejs/plugin-react@latest", "vite-tsconfig-paths@latest"]

    if features.service_worker:
        if vite:
            dev += [
                "vite-plugin-pwa@latest",
                "workbox-window@latest",
                "workbox-core@latest",
                "workbox-precaching@latest",
            ]
        else:
            runtime.append("next-pwa@latest")

    if features.git_hooks:
        dev += list(HOOK_TOOLS)

    return InstallBatch(dependencies=tuple(runtime), dev_dependencies=tuple(dev))


def install_command(package_manager: str, specs: list[str] | tuple[str, ...], dev: bool) -> list[str]:
    """Command line adding *specs* with *package_manager*."""
    cmd = [package_manager, *INSTALL_FLAGS[package_manager], *specs]
    if dev:
        cmd.append("--save-dev")
    return cmd


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------

Checkpoint = Callable[[], Awaitable[None]]


async def _no_checkpoint() -> None:
    return None


class DependencyInstaller:
    """Installs an ``InstallBatch`` into a project with fallback retry.

    Args:
        target_dir: Project root containing the final ``package.json``.
        package_manager: ``npm`` or ``pnpm`` (already resolved).
        timeout: Per-command timeout in seconds.
        checkpoint: Awaited between commands so a paused or cancelled run
            stops at a clean boundary.
        on_status: Called with a short description before each command.
        on_warning: Called with every warning after it is printed.
    """

    def __init__(
        self,
        target_dir: Path,
        package_manager: str,
        timeout: int = 900,
        checkpoint: Checkpoint | None = None,
        on_status: Callable[[str], None] | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self.target_dir = target_dir
        self.package_manager = package_manager
        self.timeout = timeout
        self.checkpoint = checkpoint or _no_checkpoint
        self.on_status = on_status or (lambda _msg: None)
        self.on_warning = on_warning or (lambda _msg: None)
        self.report = InstallReport()

    async def install(self, batch: InstallBatch) -> InstallReport:
        """Run the three install stages for *batch*."""
        await self.install_declared()
        if batch.dev_dependencies:
            await self.install_batch(batch.dev_dependencies, dev=True)
        if batch.dependencies:
            await self.install_batch(batch.dependencies, dev=False)
        return self.report

    async def install_declared(self) -> bool:
        """Install whatever the manifest already declares."""
        await self.checkpoint()
        self.on_status("Installing declared dependencies...")
        cmd = [self.package_manager, "install"]
        returncode, _, stderr = await self._run(cmd)
        if returncode != 0:
            self._warn(f"Failed to install declared dependencies: {describe_failure(cmd, returncode, stderr)}")
            return False
        return True

    async def install_batch(self, specs: tuple[str, ...] | list[str], dev: bool) -> list[str]:
        """Bulk-install *specs*, retrying one by one if the bulk install fails.

        Returns:
            The specifiers that ended up installed.
        """
        kind = "dev dependencies" if dev else "dependencies"
        await self.checkpoint()
        self.on_status(f"Installing {len(specs)} {kind}...")
        self.report.record_attempt(specs)

        cmd = install_command(self.package_manager, specs, dev)
        returncode, _, stderr = await self._run(cmd)
        if returncode == 0:
            self._mark_installed(specs)
            return list(specs)

        self._warn(f"Failed to install {kind}: {describe_failure(cmd, returncode, stderr)}")
        console.print("[cyan]  Trying alternative installation method...[/cyan]")
        return await self.install_each(specs, dev)

    async def install_each(self, specs: tuple[str, ...] | list[str], dev: bool) -> list[str]:
        """Install *specs* individually; failures are warnings, never fatal."""
        installed: list[str] = []
        for spec in specs:
            await self.checkpoint()
            self.on_status(f"Installing {spec}...")
            self.report.record_attempt([spec])
            cmd = install_command(self.package_manager, [spec], dev)
            returncode, _, stderr = await self._run(cmd)
            if returncode == 0:
                self._mark_installed([spec])
                installed.append(spec)
            else:
                if spec not in self.report.failed:
                    self.report.failed.append(spec)
                self._warn(f"Failed to install {spec}: {describe_failure(cmd, returncode, stderr)}")
        return installed

    async def ensure_installed(self, specs: tuple[str, ...] | list[str], dev: bool = True) -> list[str]:
        """Individually install every spec in *specs* not yet installed by this installer."""
        missing = [spec for spec in specs if not self.report.is_installed(spec)]
        if not missing:
            return []
        return await self.install_each(missing, dev)

    # -- Internals ---------------------------------------------------------

    async def _run(self, cmd: list[str]) -> tuple[int, str, str]:
        return await run_command(cmd, cwd=self.target_dir, timeout=self.timeout)

    def _mark_installed(self, specs: tuple[str, ...] | list[str]) -> None:
        for spec in specs:
            if spec not in self.report.installed:
                self.report.installed.append(spec)
            if spec in self.report.failed:
                self.report.failed.remove(spec)

    def _warn(self, message: str) -> None:
        self.report.warnings.append(message)
        console.print(f"[bold yellow]  {message}[/bold yellow]")
        self.on_warning(message)
