"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import yaml

from booktask.core import Recipe, TaskRegistry, Variant
from booktask.platforms import PlatformTag

REPO_ROOT = Path(__file__).resolve().parents[1]
BOOK_CONFIG = REPO_ROOT / "booktasks.yaml"


class FakeRunner:
    """Stands in for subprocess.run; exit codes are looked up by command text."""

    def __init__(self, codes: dict[str, int] | None = None, default: int = 0):
        self.codes = codes or {}
        self.default = default
        self.calls: list[SimpleNamespace] = []

    def __call__(self, argv, cwd=None, env=None):
        self.calls.append(SimpleNamespace(argv=list(argv), cwd=cwd, env=env))
        return SimpleNamespace(returncode=self.codes.get(argv[-1], self.default))

    @property
    def commands(self) -> list[str]:
        return [c.argv[-1] for c in self.calls]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def write_config(tmp_path: Path):
    def _write(data: dict, name: str = "booktasks.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


def variant(*commands: str, platform: str = "any", deps=(), then=(), workdir=None) -> Variant:
    return Variant(
        recipe=Recipe(commands=tuple(commands), workdir=workdir),
        platform=PlatformTag(platform),
        deps=tuple(deps),
        then=tuple(then),
    )


def make_registry(spec: dict[str, list[Variant] | Variant]) -> TaskRegistry:
    registry = TaskRegistry()
    for name, variants in spec.items():
        if isinstance(variants, Variant):
            variants = [variants]
        for v in variants:
            registry.register(name, v)
    return registry
