from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .errors import (
    AmbiguousVariant,
    DependencyCycle,
    NoMatchingVariant,
    UnknownTask,
)
from .logging import get_logger
from .platforms import PlatformTag


log = get_logger("booktask.resolver")


@dataclass(frozen=True)
class Recipe:
    commands: Tuple[str, ...] = ()
    # Relative to the config file's directory; applies to every command
    workdir: Optional[str] = None


@dataclass(frozen=True)
class Variant:
    recipe: Recipe = field(default_factory=Recipe)
    platform: PlatformTag = PlatformTag.ANY
    deps: Tuple[str, ...] = ()
    then: Tuple[str, ...] = ()
    doc: Optional[str] = None

    @property
    def is_aggregate(self) -> bool:
        """No commands of its own, only other tasks to run."""
        return not self.recipe.commands and bool(self.deps or self.then)


@dataclass
class Task:
    name: str
    doc: Optional[str] = None
    variants: List[Variant] = field(default_factory=list)

    @property
    def description(self) -> str:
        if self.doc:
            return self.doc
        for v in self.variants:
            if v.doc:
                return v.doc
        return ""

    @property
    def platforms(self) -> List[str]:
        return [v.platform.value for v in self.variants]


class TaskRegistry:
    """Task name to declared variants, in declaration order."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def register(self, name: str, variant: Variant, doc: str | None = None) -> Task:
        task = self._tasks.get(name)
        if task is None:
            task = Task(name=name)
            self._tasks[name] = task
        if doc and not task.doc:
            task.doc = doc
        task.variants.append(variant)
        return task

    def lookup(self, name: str, required_by: str | None = None) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTask(name, required_by=required_by) from None

    def names(self) -> List[str]:
        return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)


def select_variant(task: Task, host: Optional[str]) -> Variant:
    matching = [v for v in task.variants if v.platform.matches(host)]
    if not matching:
        raise NoMatchingVariant(task.name, host)
    if len(matching) > 1:
        raise AmbiguousVariant(task.name, host, len(matching))
    return matching[0]


@dataclass(frozen=True)
class PlanEntry:
    name: str
    variant: Variant

    @property
    def recipe(self) -> Recipe:
        return self.variant.recipe


@dataclass
class ExecutionPlan:
    target: str
    host: Optional[str]
    entries: List[PlanEntry] = field(default_factory=list)

    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def resolve(registry: TaskRegistry, name: str, host: Optional[str]) -> ExecutionPlan:
    """Expand ``name`` and its prerequisites into a linear execution plan.

    Depth-first: each prerequisite (and its own prerequisites) is planned before
    the task that requires it, in declared order. A task reached from several
    branches is planned once. Follow-up tasks (``then``) are planned after the
    task's own entry. Every lookup and variant selection happens here, so
    configuration errors surface before anything runs.
    """
    plan = ExecutionPlan(target=name, host=host)
    planned: set[str] = set()
    path: List[str] = []

    def visit(task_name: str, required_by: str | None) -> None:
        if task_name in planned:
            return
        if task_name in path:
            raise DependencyCycle(path[path.index(task_name):] + [task_name])
        task = registry.lookup(task_name, required_by=required_by)
        variant = select_variant(task, host)
        path.append(task_name)
        for dep in variant.deps:
            visit(dep, task_name)
        if not variant.is_aggregate:
            plan.entries.append(PlanEntry(name=task_name, variant=variant))
        # Marked before follow-ups so a follow-up requiring this task does not re-run it
        planned.add(task_name)
        for follow in variant.then:
            visit(follow, task_name)
        path.pop()

    visit(name, None)
    log.debug("Plan for %s: %s", name, " → ".join(plan.names()))
    return plan
