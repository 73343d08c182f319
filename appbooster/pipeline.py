"""App Booster pipeline orchestrator.

Runs a fixed, ordered list of named stages against a single target
directory:

1.  plan          -- compute the template bundle plan
2.  scaffold      -- create the base Vite / Next.js project
3.  license       -- copy the bundled LICENSE into the project
4.  pwa           -- service worker assets (when selected)
5.  templates     -- apply the bundle plan
6.  manifest      -- merge package.json
7.  install       -- install dependencies (declared, dev batch, runtime batch)
8.  git-init      -- initialise the repository (when selected)
9.  git-hooks     -- Husky and lint-staged (when selected)
10. provenance    -- write the .appbooster record
11. git-commit    -- initial commit (when selected)
12. readme        -- generate README.md

Every stage declares the files it needs and a failure policy.  A fatal stage
failure stops the run; a warn-only failure is reported and the run goes on.
Nothing is rolled back.

Usage::

    python -m appbooster my-app --type vite --language typescript
    create-app-booster . --type nextjs --package-manager pnpm --features husky,git
"""

from __future__ import annotations

import argparse
import asyncio
import shutil
import sys
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from rich.panel import Panel
from rich.prompt import Confirm

from appbooster.config import BoosterConfig, FeatureSet
from appbooster.context import InterruptHandler, RunContext, UserAbort
from appbooster.installer import HOOK_TOOLS, DependencyInstaller, compute_install_batch
from appbooster.manifest import HUSKY_PREPARE, ManifestMerger, set_script
from appbooster.provenance import write_provenance
from appbooster.readme import ReadmeGenerator
from appbooster.resolver import (
    DEFAULT_TOGGLES,
    LANGUAGE_OPTIONS,
    TOGGLE_FIELDS,
    FeatureValidationError,
    RawChoices,
    resolve_feature_set,
)
from appbooster.scaffolder import (
    BundleLookup,
    ServiceWorkerGenerator,
    TemplateCopier,
    build_plan,
    create_base_project,
)
from appbooster.utils import (
    console,
    ensure_dir,
    format_duration,
    is_empty_dir,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)
from appbooster.vcs import VcsError, commit_all, husky_install, init_repository, write_pre_commit_hook

# ---------------------------------------------------------------------------
# Stage model
# ---------------------------------------------------------------------------


class FailurePolicy(str, Enum):
    """What a stage failure does to the run."""

    FATAL = "fatal"
    WARN = "warn"


StageAction = Callable[[RunContext], Awaitable[Any]]


def _always(_features: FeatureSet) -> bool:
    return True


@dataclass(frozen=True)
class Stage:
    """One sequential phase of the pipeline."""

    name: str
    description: str
    action: StageAction
    policy: FailurePolicy = FailurePolicy.FATAL
    enabled: Callable[[FeatureSet], bool] = _always
    requires: tuple[str, ...] = ()

    def missing_requirements(self, target_dir: Path) -> list[str]:
        return [rel for rel in self.requires if not (target_dir / rel).exists()]


class PipelineError(Exception):
    """Raised when a stage fails under the fatal policy."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage}: {message}")


class StageExecutor:
    """Runs stages in order, applying each stage's failure policy."""

    def __init__(self, stages: list[Stage]) -> None:
        self.stages = stages

    async def run(self, ctx: RunContext, state: dict[str, Any]) -> None:
        """Run every enabled stage; raise ``PipelineError`` on a fatal failure."""
        for index, stage in enumerate(self.stages, start=1):
            await ctx.cancel.checkpoint()

            if not stage.enabled(ctx.features):
                state["stages_skipped"].append(stage.name)
                continue

            missing = stage.missing_requirements(ctx.target_dir)
            if missing:
                message = f"missing {', '.join(missing)} in {ctx.target_dir}"
                if stage.policy is FailurePolicy.FATAL:
                    state["stages_failed"].append(stage.name)
                    raise PipelineError(stage.name, message)
                ctx.warn(f"Skipping {stage.name}: {message}")
                state["stages_skipped"].append(stage.name)
                continue

            print_stage_header(index, stage.description.rstrip("."))
            ctx.status(stage.description)
            stage_start = time.monotonic()
            try:
                result = await stage.action(ctx)
            except (UserAbort, asyncio.CancelledError):
                raise
            except Exception as exc:
                if stage.policy is FailurePolicy.WARN:
                    ctx.warn(f"{stage.description.rstrip('.')} failed: {exc}")
                    state["stages_warned"].append(stage.name)
                    continue
                state["stages_failed"].append(stage.name)
                raise PipelineError(stage.name, str(exc)) from exc

            state["results"][stage.name] = result
            state["durations"][stage.name] = round(time.monotonic() - stage_start, 3)
            state["stages_completed"].append(stage.name)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Composes a project for one ``FeatureSet`` into one target directory.

    Attributes:
        ctx: Per-run context shared by every stage.
        state: Accumulated run results, returned by :meth:`run`.
    """

    def __init__(
        self,
        features: FeatureSet,
        target_dir: Path,
        config: BoosterConfig | None = None,
        warnings: list[str] | None = None,
    ) -> None:
        self.ctx = RunContext(
            features=features,
            target_dir=Path(target_dir),
            config=config or BoosterConfig(),
            warnings=list(warnings or []),
        )
        self.lookup = BundleLookup(self.ctx.config.bundles_dir)
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "stages_completed": [],
            "stages_skipped": [],
            "stages_warned": [],
            "stages_failed": [],
            "results": {},
            "durations": {},
            "aborted": False,
            "success": False,
        }

    def stages(self) -> list[Stage]:
        """The fixed stage list, in execution order."""
        return [
            Stage("plan", "Planning templates...", self.stage_plan),
            Stage("scaffold", "Setting up project structure...", self.stage_scaffold),
            Stage(
                "license",
                "Copying LICENSE file...",
                self.stage_license,
                policy=FailurePolicy.WARN,
            ),
            Stage(
                "pwa",
                "Setting up Service Worker...",
                self.stage_service_worker,
                enabled=lambda f: f.service_worker,
            ),
            Stage("templates", "Copying configuration files...", self.stage_templates),
            Stage(
                "manifest",
                "Updating package.json...",
                self.stage_manifest,
                requires=("package.json",),
            ),
            Stage(
                "install",
                "Installing dependencies...",
                self.stage_install,
                requires=("package.json",),
            ),
            Stage(
                "git-init",
                "Initializing Git repository...",
                self.stage_git_init,
                policy=FailurePolicy.WARN,
                enabled=lambda f: f.git_init,
            ),
            Stage(
                "git-hooks",
                "Setting up Husky git hooks...",
                self.stage_git_hooks,
                policy=FailurePolicy.WARN,
                enabled=lambda f: f.git_hooks,
                requires=("package.json",),
            ),
            Stage("provenance", "Recording project settings...", self.stage_provenance),
            Stage(
                "git-commit",
                "Creating initial commit...",
                self.stage_git_commit,
                policy=FailurePolicy.WARN,
                enabled=lambda f: f.git_init,
            ),
            Stage("readme", "Generating README...", self.stage_readme),
        ]

    async def run(self) -> dict[str, Any]:
        """Execute every stage and return the final state.

        The returned state carries ``success`` and ``aborted`` flags, the
        per-stage results and every warning collected along the way.
        """
        features = self.ctx.features
        run_start = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]App Booster[/bold bright_cyan]\n"
                f"Project : {features.project_name}\n"
                f"Type    : {features.project_type} ({features.language_label})\n"
                f"Manager : {features.package_manager}\n"
                f"Target  : {self.ctx.target_dir.resolve()}",
                title="[bold]Creating your project[/bold]",
                border_style="bright_cyan",
            )
        )

        self.ctx.reporter.start("Setting up project structure...")
        try:
            await StageExecutor(self.stages()).run(self.ctx, self.state)
            self.state["success"] = True
        except PipelineError as exc:
            self.state["error"] = str(exc)
        except UserAbort:
            self.state["aborted"] = True
        except asyncio.CancelledError:
            if not self.ctx.cancel.cancelled:
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            self.state["aborted"] = True
        finally:
            self.ctx.reporter.stop()

        elapsed = time.monotonic() - run_start
        self.state["warnings"] = list(self.ctx.warnings)
        self.state["total_duration"] = format_duration(elapsed)
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()
        self._print_final_summary(elapsed)
        return self.state

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def stage_plan(self, ctx: RunContext) -> list[str]:
        plan = build_plan(ctx.features, self.lookup)
        ctx.artefacts["plan"] = plan
        return plan.names()

    async def stage_scaffold(self, ctx: RunContext) -> str:
        ensure_dir(ctx.target_dir)
        path = await create_base_project(
            ctx.features, ctx.target_dir, timeout=ctx.config.command_timeout
        )
        return str(path)

    async def stage_license(self, ctx: RunContext) -> bool:
        source = ctx.config.license_path
        if not source.is_file():
            return False
        await asyncio.to_thread(_copy_license, source, ctx.target_dir)
        return True

    async def stage_service_worker(self, ctx: RunContext) -> list[str]:
        written = await ServiceWorkerGenerator().generate(ctx.features, ctx.target_dir)
        return [str(p.relative_to(ctx.target_dir)) for p in written]

    async def stage_templates(self, ctx: RunContext) -> int:
        plan = ctx.artefacts.get("plan") or build_plan(ctx.features, self.lookup)
        written = await TemplateCopier(self.lookup, ctx.features).apply(plan, ctx.target_dir)
        return len(written)

    async def stage_manifest(self, ctx: RunContext) -> list[str]:
        merger = ManifestMerger(
            ctx.features, ctx.config.descriptor_path(ctx.features.project_type)
        )
        merged = await merger.merge(ctx.target_dir)
        return sorted(merged.get("scripts", {}))

    async def stage_install(self, ctx: RunContext) -> dict[str, Any]:
        batch = compute_install_batch(ctx.features)
        installer = self._installer(ctx)
        report = await installer.install(batch)
        ctx.artefacts["install_batch"] = batch
        return {
            "dependencies": list(batch.dependencies),
            "dev_dependencies": list(batch.dev_dependencies),
            "installed": list(report.installed),
            "failed": list(report.failed),
        }

    async def stage_git_init(self, ctx: RunContext) -> bool:
        return await init_repository(ctx.target_dir, timeout=ctx.config.command_timeout)

    async def stage_git_hooks(self, ctx: RunContext) -> str:
        installer = ctx.artefacts.get("installer") or self._installer(ctx)
        await installer.ensure_installed(HOOK_TOOLS, dev=True)

        manager = ctx.features.package_manager
        try:
            await husky_install(ctx.target_dir, manager, timeout=ctx.config.command_timeout)
        except VcsError as exc:
            ctx.warn(f"husky install failed, hooks may need a manual `husky install`: {exc}")

        await set_script(ctx.manifest_path, "prepare", HUSKY_PREPARE)
        hook = await asyncio.to_thread(write_pre_commit_hook, ctx.target_dir, manager)
        return str(hook.relative_to(ctx.target_dir))

    async def stage_provenance(self, ctx: RunContext) -> str:
        path = await write_provenance(ctx.features, ctx.config, ctx.target_dir)
        return path.name

    async def stage_git_commit(self, ctx: RunContext) -> bool:
        await commit_all(ctx.target_dir, timeout=ctx.config.command_timeout)
        return True

    async def stage_readme(self, ctx: RunContext) -> str | None:
        path = await ReadmeGenerator(ctx.config.readme_skeleton_path).generate(
            ctx.features, ctx.target_dir
        )
        return path.name if path else None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _installer(self, ctx: RunContext) -> DependencyInstaller:
        installer = DependencyInstaller(
            ctx.target_dir,
            ctx.features.package_manager,
            timeout=ctx.config.install_timeout,
            checkpoint=ctx.cancel.checkpoint,
            on_status=ctx.status,
            on_warning=ctx.warnings.append,
        )
        ctx.artefacts["installer"] = installer
        return installer

    def _print_final_summary(self, elapsed: float) -> None:
        features = self.ctx.features
        manager = features.package_manager

        if self.state["aborted"]:
            print_warning("Setup cancelled. The target directory may be partially initialized.")
            return
        if not self.state["success"]:
            print_error(f"Failed to create project: {self.state.get('error', 'unknown error')}")
            return

        print_success(
            f"Project {features.project_name} created successfully in {format_duration(elapsed)}!"
        )
        lines = []
        if features.in_place:
            lines.append("Your project is ready in the current directory!")
        else:
            lines += ["To get started:", f"  cd {self.ctx.target_dir.name}"]
        lines += ["", "Available commands:", f"  {manager} run dev", f"  {manager} run build"]
        if features.testing:
            lines.append(f"  {manager} test")
        if features.linting:
            lines += [f"  {manager} run lint", f"  {manager} run lint:fix"]
        if self.ctx.warnings:
            lines += ["", f"Completed with {len(self.ctx.warnings)} warning(s):"]
            lines += [f"  - {warning}" for warning in self.ctx.warnings]

        console.print(
            Panel(
                "\n".join(lines),
                title="[bold]Everything is set up and ready to go![/bold]",
                border_style="green" if not self.ctx.warnings else "yellow",
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-app-booster",
        description="Create Vite React or Next.js projects with linting, testing, "
        "git hooks and CI/CD pre-configured",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-app-booster my-app\n"
            "  create-app-booster my-app --type nextjs --language javascript-sw\n"
            "  create-app-booster . --package-manager pnpm --features husky,git --deploy vercel\n"
        ),
    )
    parser.add_argument(
        "project_directory",
        nargs="?",
        default="my-app",
        help="Directory to create the project in, or '.' for the current directory",
    )
    parser.add_argument("--type", dest="project_type", choices=["vite", "nextjs"], default="vite")
    parser.add_argument("--package-manager", choices=["npm", "pnpm"], default="npm")
    parser.add_argument("--language", choices=list(LANGUAGE_OPTIONS), default="typescript")
    parser.add_argument(
        "--features",
        default=",".join(DEFAULT_TOGGLES),
        help=f"Comma-separated setup options from: {', '.join(TOGGLE_FIELDS)} "
        f"(default: {','.join(DEFAULT_TOGGLES)}; pass '' for none)",
    )
    parser.add_argument(
        "--deploy", choices=["none", "vercel", "netlify", "render"], default="none"
    )
    parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument(
        "--force", action="store_true", help="Empty a non-empty target directory without asking"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")
    return parser


def _copy_license(source: Path, target_dir: Path) -> None:
    shutil.copyfile(source, target_dir / "LICENSE")


def _empty_directory(path: Path) -> None:
    for entry in path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


async def _run_with_interrupts(pipeline: Pipeline) -> dict[str, Any]:
    task = asyncio.current_task()
    if task is None:
        raise RuntimeError("The pipeline must run inside an asyncio task")
    handler = InterruptHandler(pipeline.ctx, task)
    installed = handler.install()
    try:
        return await pipeline.run()
    finally:
        if installed:
            handler.uninstall()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``create-app-booster`` / ``python -m appbooster``."""
    args = _build_parser().parse_args(argv)
    console.print("[bold blue]🚀 Welcome to App Booster! Let's set up your project.[/bold blue]")

    choices = RawChoices(
        project_name=args.project_directory,
        project_type=args.project_type,
        package_manager=args.package_manager,
        language_option=args.language,
        selected=[item.strip() for item in args.features.split(",") if item.strip()],
        deployment=args.deploy,
    )
    try:
        features, warnings = asyncio.run(resolve_feature_set(choices))
    except FeatureValidationError as exc:
        print_error(f"Error: {exc}")
        return 1
    for warning in warnings:
        print_warning(warning)

    cwd = Path.cwd()
    target_dir = cwd if features.in_place else cwd / args.project_directory

    if not features.in_place and not is_empty_dir(target_dir):
        overwrite = args.force or Confirm.ask(
            f"The directory [cyan]{args.project_directory}[/cyan] is not empty. "
            f"Do you want to overwrite it?",
            default=False,
        )
        if not overwrite:
            print_error("Operation cancelled.")
            return 0
        overwrite_target = True
    else:
        overwrite_target = False

    if not args.yes:
        print_summary_table(
            {
                "Project": features.project_name,
                "Type": features.project_type,
                "Language": features.language_label,
                "Service worker": "yes" if features.service_worker else "no",
                "Package manager": features.package_manager,
                "Setup options": args.features or "(none)",
                "Deployment": features.deployment,
            },
            title="Project settings",
        )
        if not Confirm.ask("Would you like to proceed with these settings?", default=True):
            print_error("Setup cancelled.")
            return 0

    if overwrite_target:
        _empty_directory(target_dir)

    pipeline = Pipeline(features, target_dir, BoosterConfig.from_env(), warnings)
    state = asyncio.run(_run_with_interrupts(pipeline))

    if state.get("aborted"):
        return 0
    return 0 if state.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
