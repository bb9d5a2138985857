"""Load ``booktasks.yaml`` into a task registry and shell settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .core import Recipe, TaskRegistry, Variant
from .errors import ConfigError
from .logging import get_logger
from .platforms import parse_tag
from .runner import DEFAULT_SHELL, DEFAULT_WINDOWS_SHELL, shell_for
from .utils import _get, as_str_list


CONFIG_FILENAMES = ("booktasks.yaml", "booktasks.yml")

VARIANT_KEYS = {"run", "deps", "then", "workdir", "platform", "doc"}
TASK_KEYS = VARIANT_KEYS | {"variants"}

log = get_logger("booktask.config")


@dataclass(frozen=True)
class Settings:
    shell: Tuple[str, ...] = DEFAULT_SHELL
    windows_shell: Tuple[str, ...] = DEFAULT_WINDOWS_SHELL

    def shell_for(self, host: Optional[str]) -> Tuple[str, ...]:
        return shell_for(host, self.shell, self.windows_shell)


@dataclass(frozen=True)
class Project:
    path: Path
    registry: TaskRegistry
    settings: Settings

    @property
    def base_dir(self) -> Path:
        return self.path.parent


def find_config(start: str | Path | None = None) -> Path:
    """Look for a config file in ``start`` and then each parent directory."""
    here = Path(start or Path.cwd()).resolve()
    for directory in [here, *here.parents]:
        for filename in CONFIG_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    raise ConfigError(
        f"No {' or '.join(CONFIG_FILENAMES)} found in {here} or any parent directory"
    )


def load_config(path: str | Path) -> dict:
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {p}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: top level must be a mapping")
    return data


def _parse_variant(task_name: str, spec: dict) -> Variant:
    unknown = set(spec) - VARIANT_KEYS
    if unknown:
        raise ConfigError(
            f"Task {task_name!r}: unknown keys {', '.join(sorted(unknown))}"
        )
    try:
        platform = parse_tag(spec.get("platform"))
    except ValueError as e:
        raise ConfigError(f"Task {task_name!r}: {e}") from None
    workdir = spec.get("workdir")
    if workdir is not None and not isinstance(workdir, str):
        raise ConfigError(f"Task {task_name!r}: workdir must be a string")
    doc = spec.get("doc")
    return Variant(
        recipe=Recipe(
            commands=tuple(as_str_list(spec.get("run"), f"{task_name}.run")),
            workdir=workdir,
        ),
        platform=platform,
        deps=tuple(as_str_list(spec.get("deps"), f"{task_name}.deps")),
        then=tuple(as_str_list(spec.get("then"), f"{task_name}.then")),
        doc=str(doc) if doc is not None else None,
    )


def build_registry(tasks: dict) -> TaskRegistry:
    if not isinstance(tasks, dict):
        raise ConfigError("'tasks' must be a mapping of task name to definition")
    registry = TaskRegistry()
    for name, spec in tasks.items():
        name = str(name)
        # Shorthand: a bare command or list of commands
        if spec is None or isinstance(spec, (str, list)):
            registry.register(name, _parse_variant(name, {"run": spec}))
            continue
        if not isinstance(spec, dict):
            raise ConfigError(f"Task {name!r}: expected a mapping, got {spec!r}")
        unknown = set(spec) - TASK_KEYS
        if unknown:
            raise ConfigError(f"Task {name!r}: unknown keys {', '.join(sorted(unknown))}")
        if "variants" not in spec:
            variant = _parse_variant(name, {k: v for k, v in spec.items() if k != "doc"})
            registry.register(name, variant, doc=spec.get("doc"))
            continue
        if set(spec) - {"variants", "doc"}:
            raise ConfigError(
                f"Task {name!r}: with 'variants', only 'doc' may be set at task level"
            )
        variants = spec["variants"]
        if not isinstance(variants, list) or not variants:
            raise ConfigError(f"Task {name!r}: 'variants' must be a non-empty list")
        for item in variants:
            if not isinstance(item, dict):
                raise ConfigError(f"Task {name!r}: each variant must be a mapping")
            registry.register(name, _parse_variant(name, item), doc=spec.get("doc"))
    return registry


def build_settings(data: dict) -> Settings:
    raw = _get(data, "settings", default={})
    if not isinstance(raw, dict):
        raise ConfigError("'settings' must be a mapping")
    unknown = set(raw) - {"shell", "windows-shell"}
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
    shell = as_str_list(raw.get("shell"), "settings.shell") or list(DEFAULT_SHELL)
    windows_shell = as_str_list(
        raw.get("windows-shell"), "settings.windows-shell"
    ) or list(DEFAULT_WINDOWS_SHELL)
    return Settings(shell=tuple(shell), windows_shell=tuple(windows_shell))


def load_project(path: str | Path | None = None) -> Project:
    """Parse a config file (or the nearest one found upwards) into a Project."""
    config_path = Path(path).resolve() if path else find_config()
    data = load_config(config_path)
    if "tasks" not in data:
        raise ConfigError(f"{config_path}: missing 'tasks' section")
    registry = build_registry(data["tasks"])
    settings = build_settings(data)
    log.debug("Loaded %d tasks from %s", len(registry), config_path)
    return Project(path=config_path, registry=registry, settings=settings)
