"""Declarative task runner for building and serving the book and its wasm demos.

Provides the task registry, platform-aware variant selection, dependency
resolution into a linear plan, a fail-fast shell executor, and a Typer CLI.
"""

from .core import ExecutionPlan, Recipe, Task, TaskRegistry, Variant, resolve, select_variant
from .config import load_project
from .runner import Executor, Invocation

__all__ = [
    "ExecutionPlan",
    "Recipe",
    "Task",
    "TaskRegistry",
    "Variant",
    "resolve",
    "select_variant",
    "load_project",
    "Executor",
    "Invocation",
]
