from __future__ import annotations

from pathlib import Path

import pytest

from booktask.config import build_registry, build_settings, find_config, load_project
from booktask.errors import ConfigError
from booktask.platforms import PlatformTag
from booktask.runner import DEFAULT_SHELL, DEFAULT_WINDOWS_SHELL


def test_shorthand_forms() -> None:
    registry = build_registry({"build": "mdbook build", "init": ["a", "b"], "noop": None})
    assert registry.lookup("build").variants[0].recipe.commands == ("mdbook build",)
    assert registry.lookup("init").variants[0].recipe.commands == ("a", "b")
    assert registry.lookup("noop").variants[0].recipe.commands == ()
    assert registry.lookup("build").variants[0].platform is PlatformTag.ANY


def test_mapping_form() -> None:
    registry = build_registry(
        {
            "build-all": {
                "doc": "Build the book with demos",
                "deps": ["build-demo", "build"],
                "then": "copy-demos",
            }
        }
    )
    task = registry.lookup("build-all")
    assert task.description == "Build the book with demos"
    (v,) = task.variants
    assert v.deps == ("build-demo", "build")
    assert v.then == ("copy-demos",)
    assert v.is_aggregate


def test_variants_form() -> None:
    registry = build_registry(
        {
            "build-demo": {
                "doc": "Build the hello demo",
                "variants": [
                    {"platform": "windows", "workdir": "demos/hello", "run": "trunk build"},
                    {"platform": "unix", "workdir": "demos/hello", "run": ["trunk build"]},
                ],
            }
        }
    )
    task = registry.lookup("build-demo")
    assert [v.platform for v in task.variants] == [PlatformTag.WINDOWS, PlatformTag.UNIX]
    assert all(v.recipe.workdir == "demos/hello" for v in task.variants)


@pytest.mark.parametrize(
    "tasks",
    [
        {"x": {"run": "a", "bogus": 1}},
        {"x": {"run": "a", "platform": "linux"}},
        {"x": {"run": ["a", 3]}},
        {"x": {"run": "a", "variants": [{"run": "b"}]}},
        {"x": {"variants": []}},
        {"x": {"variants": ["a"]}},
        {"x": {"workdir": ["a"]}},
        {"x": 42},
        ["x"],
    ],
)
def test_malformed_tasks(tasks) -> None:
    with pytest.raises(ConfigError):
        build_registry(tasks)


def test_settings_defaults_and_overrides() -> None:
    defaults = build_settings({})
    assert defaults.shell == DEFAULT_SHELL
    assert defaults.windows_shell == DEFAULT_WINDOWS_SHELL
    custom = build_settings({"settings": {"shell": ["bash", "-c"], "windows-shell": "pwsh"}})
    assert custom.shell_for("unix") == ("bash", "-c")
    assert custom.shell_for("windows") == ("pwsh",)
    with pytest.raises(ConfigError):
        build_settings({"settings": {"shel": ["bash"]}})


def test_find_config_searches_parents(tmp_path: Path, write_config, monkeypatch) -> None:
    path = write_config({"tasks": {"build": "mdbook build"}})
    nested = tmp_path / "demos" / "hello"
    nested.mkdir(parents=True)
    assert find_config(nested) == path.resolve()
    monkeypatch.chdir(nested)
    project = load_project()
    assert project.path == path.resolve()
    assert project.base_dir == tmp_path.resolve()
    assert "build" in project.registry


def test_find_config_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        find_config(tmp_path)


def test_load_project_errors(tmp_path: Path, write_config) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_project(tmp_path / "nope.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("tasks: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_project(bad)
    with pytest.raises(ConfigError, match="missing 'tasks'"):
        load_project(write_config({"settings": {}}))
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_project(scalar)
