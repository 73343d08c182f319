"""Per-run state threaded through the pipeline.

A ``RunContext`` carries everything a stage needs besides its own inputs: the
resolved ``FeatureSet``, the target directory, the tool configuration, a
cancellation token, a pausable progress reporter and the list of non-fatal
warnings collected so far.  Nothing here is process-global, so several runs
can coexist (the test-suite relies on that).
"""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.progress import Progress, TaskID
from rich.prompt import Confirm

from appbooster.config import BoosterConfig, FeatureSet
from appbooster.utils import console, create_progress, print_success, print_warning


class UserAbort(Exception):
    """Raised when the user confirms an interrupt; no further stages run."""


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class CancellationToken:
    """Cooperative pause/cancel signal checked by long-running steps.

    Steps call :meth:`checkpoint` between units of work.  While the token is
    paused the checkpoint blocks; once cancelled it raises ``UserAbort``.
    """

    def __init__(self) -> None:
        self._running = asyncio.Event()
        self._running.set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    def pause(self) -> None:
        self._running.clear()

    def resume(self) -> None:
        self._running.set()

    def cancel(self) -> None:
        self._cancelled = True
        # Wake any waiter so it can observe the cancellation.
        self._running.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise UserAbort("Setup cancelled by user")

    async def checkpoint(self) -> None:
        """Wait while paused, then raise ``UserAbort`` if cancelled."""
        await self._running.wait()
        self.raise_if_cancelled()


# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------


class ProgressReporter:
    """A single spinner line that can be paused while the user is prompted."""

    def __init__(self, progress: Progress | None = None) -> None:
        self._progress = progress or create_progress()
        self._task: TaskID | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self, description: str) -> None:
        if self._task is None:
            self._task = self._progress.add_task(description, total=None)
        else:
            self._progress.update(self._task, description=description)
        if not self._active:
            self._progress.start()
            self._active = True

    def update(self, description: str) -> None:
        if self._task is None:
            self.start(description)
            return
        self._progress.update(self._task, description=description)

    def pause(self) -> None:
        if self._active:
            self._progress.stop()

    def resume(self) -> None:
        if self._active:
            self._progress.start()

    def stop(self) -> None:
        if self._active:
            self._progress.stop()
            self._active = False


# ---------------------------------------------------------------------------
# Run context
# ---------------------------------------------------------------------------


@dataclass
class RunContext:
    """State owned by a single scaffolding run."""

    features: FeatureSet
    target_dir: Path
    config: BoosterConfig = field(default_factory=BoosterConfig)
    reporter: ProgressReporter = field(default_factory=ProgressReporter)
    cancel: CancellationToken = field(default_factory=CancellationToken)
    warnings: list[str] = field(default_factory=list)
    artefacts: dict[str, Any] = field(default_factory=dict)

    @property
    def manifest_path(self) -> Path:
        return self.target_dir / "package.json"

    def warn(self, message: str) -> None:
        """Record a non-fatal problem and show it to the user."""
        self.warnings.append(message)
        print_warning(f"  {message}")

    def status(self, description: str) -> None:
        self.reporter.update(description)


# ---------------------------------------------------------------------------
# Interrupt handling
# ---------------------------------------------------------------------------


class InterruptHandler:
    """Turns SIGINT into a pause -> confirm -> cancel-or-resume dialogue.

    On confirmation the token is cancelled and the running pipeline task is
    cancelled too, so a step blocked on a subprocess stops immediately.
    """

    def __init__(self, ctx: RunContext, task: asyncio.Task[Any]) -> None:
        self.ctx = ctx
        self.task = task
        self._prompting = False
        self._handler_task: asyncio.Task[bool] | None = None

    def install(self) -> bool:
        """Register the handler on the running loop; ``False`` where unsupported."""
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self._on_signal)
        except (NotImplementedError, RuntimeError):
            return False
        return True

    def uninstall(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    def _on_signal(self) -> None:
        if self._prompting:
            return
        self._handler_task = asyncio.ensure_future(self.handle())

    async def handle(self) -> bool:
        """Run the confirmation dialogue; return ``True`` if the run was cancelled."""
        self._prompting = True
        self.ctx.reporter.pause()
        self.ctx.cancel.pause()
        console.print()
        try:
            confirm_exit = await asyncio.to_thread(
                Confirm.ask, "Are you sure you want to exit?", default=True
            )
        except (EOFError, KeyboardInterrupt):
            confirm_exit = True
        finally:
            self._prompting = False

        if confirm_exit:
            console.print("[yellow]Setup cancelled. Goodbye![/yellow]")
            self.ctx.cancel.cancel()
            self.task.cancel()
            return True

        print_success("Continuing setup...")
        self.ctx.cancel.resume()
        self.ctx.reporter.resume()
        return False
