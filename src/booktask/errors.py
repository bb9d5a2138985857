"""Errors raised while loading, resolving and running tasks.

The core raises these; only the CLI turns them into messages and exit codes.
"""

from __future__ import annotations

from typing import Sequence


class TaskError(Exception):
    """Base class for every booktask failure."""

    exit_code = 1


class ConfigError(TaskError):
    pass


class UnknownTask(TaskError):
    def __init__(self, name: str, required_by: str | None = None):
        self.name = name
        self.required_by = required_by
        msg = f"Unknown task: {name}"
        if required_by:
            msg += f" (required by {required_by})"
        super().__init__(msg)


class NoMatchingVariant(TaskError):
    def __init__(self, name: str, host: str | None):
        self.name = name
        self.host = host
        super().__init__(
            f"Task {name!r} has no variant for platform {host or 'unrecognized'}"
        )


class AmbiguousVariant(TaskError):
    def __init__(self, name: str, host: str | None, count: int):
        self.name = name
        self.host = host
        self.count = count
        super().__init__(
            f"Task {name!r} has {count} variants matching platform "
            f"{host or 'unrecognized'}"
        )


class DependencyCycle(TaskError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__("Dependency cycle: " + " -> ".join(self.cycle))


class CommandFailed(TaskError):
    def __init__(self, task: str, command: str, returncode: int | None):
        self.task = task
        self.command = command
        self.returncode = returncode
        status = "unknown status" if returncode is None else f"exit code {returncode}"
        super().__init__(f"Task {task!r} failed with {status}: {command}")

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        rc = self.returncode
        if rc is None or rc == 0:
            return 1
        if rc < 0:
            # Killed by signal N, reported the way POSIX shells do
            return 128 + (-rc)
        return rc
