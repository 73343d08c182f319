"""Version control and git hook setup.

Every failure in here is reported as ``VcsError``; the pipeline runs these
steps under a warn-only policy, so a broken git setup never fails a run.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from appbooster.scaffolder.base import dlx_command
from appbooster.utils import describe_failure, run_command

DEFAULT_GITIGNORE: tuple[str, ...] = (
    "node_modules",
    "dist",
    ".env",
    ".env.local",
    ".env.development.local",
    ".env.test.local",
    ".env.production.local",
    ".DS_Store",
    "coverage",
    ".idea",
    ".vscode",
    "*.log",
    "npm-debug.log*",
    "yarn-debug.log*",
    "yarn-error.log*",
    "pnpm-debug.log*",
)

INITIAL_COMMIT_MESSAGE = "Initial commit"


class VcsError(Exception):
    """Raised when a git or git-hook operation fails."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


async def _run_git(*args: str, cwd: Path, timeout: int = 60) -> str:
    """Run a git command and return its stdout; raise ``VcsError`` on failure."""
    cmd = ["git", *args]
    returncode, stdout, stderr = await run_command(cmd, cwd=cwd, timeout=timeout)
    if returncode != 0:
        raise VcsError(
            describe_failure(cmd, returncode, stderr),
            command=" ".join(cmd),
            stderr=stderr,
        )
    return stdout


async def init_repository(target_dir: Path, timeout: int = 60) -> bool:
    """``git init`` the project and add a default ``.gitignore`` when none exists.

    Returns:
        ``True`` if a default ``.gitignore`` was written.
    """
    await _run_git("init", cwd=target_dir, timeout=timeout)
    gitignore = target_dir / ".gitignore"
    if gitignore.exists():
        return False
    await asyncio.to_thread(gitignore.write_text, "\n".join(DEFAULT_GITIGNORE), "utf-8")
    return True


async def commit_all(
    target_dir: Path, message: str = INITIAL_COMMIT_MESSAGE, timeout: int = 60
) -> None:
    """Stage everything and create a commit."""
    await _run_git("add", ".", cwd=target_dir, timeout=timeout)
    await _run_git("commit", "-m", message, cwd=target_dir, timeout=timeout)


# ---------------------------------------------------------------------------
# Husky
# ---------------------------------------------------------------------------


def pre_commit_hook(package_manager: str) -> str:
    """Content of ``.husky/pre-commit`` running lint-staged."""
    runner = "npx" if package_manager == "npm" else "pnpm exec"
    return f'#!/usr/bin/env sh\n. "$(dirname -- "$0")/_/husky.sh"\n\n{runner} lint-staged\n'


def write_pre_commit_hook(target_dir: Path, package_manager: str) -> Path:
    """Write an executable ``.husky/pre-commit`` and return its path."""
    hook = target_dir / ".husky" / "pre-commit"
    hook.parent.mkdir(parents=True, exist_ok=True)
    hook.write_text(pre_commit_hook(package_manager), encoding="utf-8")
    hook.chmod(0o755)
    return hook


async def husky_install(target_dir: Path, package_manager: str, timeout: int = 120) -> None:
    """Run ``husky install`` through the package manager's runner."""
    cmd = [*dlx_command(package_manager), "husky", "install"]
    returncode, _, stderr = await run_command(cmd, cwd=target_dir, timeout=timeout)
    if returncode != 0:
        raise VcsError(describe_failure(cmd, returncode, stderr), command=" ".join(cmd), stderr=stderr)
