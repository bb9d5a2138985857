from __future__ import annotations

import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .core import ExecutionPlan, Recipe, TaskRegistry, resolve
from .errors import CommandFailed
from .logging import get_logger
from .platforms import WINDOWS
from .utils import shell_join


DEFAULT_SHELL: Tuple[str, ...] = ("sh", "-cu")
DEFAULT_WINDOWS_SHELL: Tuple[str, ...] = ("powershell.exe", "-NoLogo", "-Command")

log = get_logger("booktask.runner")

# subprocess.run compatible: (argv, cwd=..., env=...) -> object with .returncode
CommandRunner = Callable[..., "subprocess.CompletedProcess"]


def shell_for(host: Optional[str], shell: Sequence[str], windows_shell: Sequence[str]) -> Tuple[str, ...]:
    return tuple(windows_shell if host == WINDOWS else shell)


def split_prefix(line: str) -> Tuple[str, bool, bool]:
    """Strip leading ``@`` (quiet) and ``-`` (ignore errors) markers, in any order.

    Returns (command, quiet, ignore_errors).
    """
    quiet = ignore_errors = False
    command = line.strip()
    while command[:1] in ("@", "-"):
        if command[0] == "@":
            if quiet:
                break
            quiet = True
        else:
            if ignore_errors:
                break
            ignore_errors = True
        command = command[1:].lstrip()
    return command, quiet, ignore_errors


class Executor:
    """Runs recipes one command at a time through a shell, stopping at the first failure."""

    def __init__(
        self,
        shell: Sequence[str] = DEFAULT_SHELL,
        base_dir: Path | None = None,
        args: Sequence[str] = (),
        dry_run: bool = False,
        runner: CommandRunner = subprocess.run,
        echo: Callable[[str], None] | None = None,
    ):
        self.shell = tuple(shell)
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.args = list(args)
        self.dry_run = dry_run
        self.runner = runner
        self.echo = echo

    def _workdir(self, recipe: Recipe) -> Path:
        if recipe.workdir:
            return self.base_dir / recipe.workdir
        return self.base_dir

    def _env(self) -> dict:
        env = os.environ.copy()
        env["BOOKTASK_ARGS"] = shell_join(self.args)
        return env

    def run(self, task_name: str, recipe: Recipe) -> None:
        step_log = get_logger(f"booktask.{task_name}")
        cwd = self._workdir(recipe)
        for line in recipe.commands:
            command, quiet, ignore_errors = split_prefix(line)
            if not command:
                continue
            if self.dry_run:
                if self.echo:
                    self.echo(command)
                continue
            if quiet:
                step_log.debug("$ %s", command)
            else:
                step_log.info("$ %s", command)
            try:
                proc = self.runner([*self.shell, command], cwd=str(cwd), env=self._env())
                returncode = proc.returncode
            except (OSError, ValueError) as e:
                # Shell missing, workdir absent or a NUL byte in the command: no exit status
                step_log.error("Could not start %s: %s", self.shell[0], e)
                returncode = None
            if returncode == 0:
                continue
            if ignore_errors:
                step_log.warning("Ignoring failure (%s): %s", returncode, command)
                continue
            raise CommandFailed(task_name, command, returncode)

    def run_plan(self, plan: ExecutionPlan) -> None:
        for entry in plan:
            log.info("Run: %s", entry.name)
            if self.dry_run and self.echo:
                self.echo(f"# {entry.name}")
            self.run(entry.name, entry.recipe)


class RunState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Invocation:
    """One request: resolve a task, then execute its plan. Not reusable."""

    def __init__(self, registry: TaskRegistry, host: Optional[str], executor: Executor):
        self.registry = registry
        self.host = host
        self.executor = executor
        self.state = RunState.IDLE
        self.plan: ExecutionPlan | None = None
        self.history: List[RunState] = [self.state]

    def _enter(self, state: RunState) -> None:
        self.state = state
        self.history.append(state)
        log.debug("Invocation state: %s", state.value)

    def run(self, name: str) -> ExecutionPlan:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Invocation already {self.state.value}")
        try:
            self._enter(RunState.RESOLVING)
            self.plan = resolve(self.registry, name, self.host)
            log.info("Selected steps: %s", " → ".join(self.plan.names()) or "(none)")
            self._enter(RunState.EXECUTING)
            self.executor.run_plan(self.plan)
        except Exception:  # noqa: BLE001
            self._enter(RunState.FAILED)
            raise
        self._enter(RunState.SUCCEEDED)
        return self.plan
