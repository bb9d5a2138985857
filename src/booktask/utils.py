from __future__ import annotations

"""Small helpers for reading loosely-typed config values."""

import shlex
from typing import Dict, List, Sequence

from .errors import ConfigError


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def as_str_list(value, what: str) -> List[str]:
    """Accept a single string or a list of strings; anything else is a config error."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigError(f"{what}: expected string, got {item!r}")
            out.append(item)
        return out
    raise ConfigError(f"{what}: expected string or list of strings, got {value!r}")


def shell_join(args: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in args)
