"""Project version model.

Versions follow ``X.Y.Z`` with an optional ``.devN`` candidate suffix.
bumpversion performs the real bump; ``Version.bump`` only previews it for
``relflow version``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from relflow.core.structured import get_str, get_table

__all__ = [
    "BUMP_PARTS",
    "BumpPart",
    "PreReleaseKind",
    "Version",
    "current_version_string",
    "parse_version",
]

PreReleaseKind = Literal["none", "candidate"]
BumpPart = Literal["release", "patch", "minor", "major", "candidate"]

BUMP_PARTS: tuple[BumpPart, ...] = ("release", "patch", "minor", "major", "candidate")

_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:\.dev(0|[1-9]\d*))?$"
)


@dataclass(frozen=True, slots=True)
class Version:
    """A version such as ``1.4.0`` or the candidate ``1.4.1.dev2``."""

    major: int
    minor: int
    patch: int
    pre_release: PreReleaseKind = "none"
    counter: int = 0

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release == "candidate":
            return f"{base}.dev{self.counter}"
        return base

    @property
    def is_final(self) -> bool:
        return self.pre_release == "none"

    def bump(self, part: BumpPart) -> Version:
        match part:
            case "release":
                if self.is_final:
                    raise ValueError(f"{self} is already a final release")
                return Version(self.major, self.minor, self.patch)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1, "candidate", 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0, "candidate", 0)
            case "major":
                return Version(self.major + 1, 0, 0, "candidate", 0)
            case "candidate":
                return Version(self.major, self.minor, self.patch, "candidate", self.counter + 1)
            case _:
                raise AssertionError(f"unexpected bump part: {part}")


def parse_version(text: str) -> Version | None:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    major, minor, patch = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if m.group(4) is None:
        return Version(major, minor, patch)
    return Version(major, minor, patch, "candidate", int(m.group(4)))


def current_version_string(pyproject: Mapping[str, object]) -> str | None:
    """Read the version the bump tool tracks from parsed pyproject.toml.

    ``[tool.bumpversion].current_version`` wins over ``[project].version``.
    """
    tool = get_table(pyproject, "tool") or {}
    bumpversion = get_table(tool, "bumpversion") or {}
    current = get_str(bumpversion, "current_version")
    if current is not None:
        return current
    project = get_table(pyproject, "project") or {}
    return get_str(project, "version")
