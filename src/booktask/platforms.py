"""Host platform detection and the platform tags variants are declared with."""

from __future__ import annotations

import os
from enum import Enum
from typing import Optional


class PlatformTag(str, Enum):
    ANY = "any"
    WINDOWS = "windows"
    UNIX = "unix"

    def matches(self, host: Optional[str]) -> bool:
        if self is PlatformTag.ANY:
            return True
        return host == self.value


WINDOWS = PlatformTag.WINDOWS.value
UNIX = PlatformTag.UNIX.value

_HOST_ALIASES = {
    "windows": WINDOWS,
    "win32": WINDOWS,
    "nt": WINDOWS,
    "unix": UNIX,
    "posix": UNIX,
    "linux": UNIX,
    "darwin": UNIX,
    "macos": UNIX,
}


def detect_host() -> Optional[str]:
    """Return ``"windows"``, ``"unix"`` or None for an unrecognized host."""
    if os.name == "nt":
        return WINDOWS
    if os.name == "posix":
        return UNIX
    return None


def parse_host(value: str) -> str:
    key = value.strip().lower()
    if key not in _HOST_ALIASES:
        raise ValueError(
            f"Unknown platform {value!r}; expected one of: "
            + ", ".join(sorted(_HOST_ALIASES))
        )
    return _HOST_ALIASES[key]


def parse_tag(value: Optional[str]) -> PlatformTag:
    if value is None:
        return PlatformTag.ANY
    try:
        return PlatformTag(str(value).strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown platform tag {value!r}; expected any, windows or unix"
        ) from None
