"""Project detection and paths.

A project is the root directory of the Python package being released. It is
identified by the presence of a ``pyproject.toml`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "PROJECT_ROOT_ENV",
    "Project",
    "ProjectError",
    "detect_project",
    "find_project_upward",
    "is_project_root",
]

PROJECT_ROOT_ENV = "RELFLOW_PROJECT_ROOT"


@dataclass(frozen=True)
class ProjectError:
    """Error when the project root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A detected project checkout.

    The root contains:
    - pyproject.toml (required, also holds [tool.relflow] settings)
    - the changelog, docs/ and the package sources
    - build/, dist/ and other generated artifacts (gitignored)
    """

    root: Path

    @property
    def pyproject_path(self) -> Path:
        return self.root / "pyproject.toml"

    @property
    def state_dir(self) -> Path:
        """Path to relflow state directory (.relflow/), used for lock files."""
        return self.root / ".relflow"

    def __str__(self) -> str:
        return str(self.root)


def is_project_root(path: Path) -> bool:
    return (path / "pyproject.toml").is_file()


def find_project_upward(start: Path) -> Path | None:
    """Search upward from start for a directory holding pyproject.toml."""
    for parent in (start, *start.parents):
        if is_project_root(parent):
            return parent
    return None


def detect_project(
    *,
    start_dir: Path | None = None,
    env_var: str = PROJECT_ROOT_ENV,
) -> Result[Project, ProjectError]:
    """Detect the project root directory.

    Detection order:
    1. RELFLOW_PROJECT_ROOT environment variable (if set it must be valid)
    2. Search upward from start_dir (or cwd) for pyproject.toml
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${env_var} is set to '{env_value}' but it has no pyproject.toml",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_project_upward(search_start)
    if found is None:
        return Err(
            ProjectError(
                message="Could not find project (pyproject.toml not found)",
                searched_from=search_start,
            )
        )
    return Ok(Project(root=found))
