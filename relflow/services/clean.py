"""Removal of build, bytecode, docs, coverage and test artifacts.

Each cleaner returns the paths it removed. Nothing is removed outside the
project root.
"""

from __future__ import annotations

import os
import shutil
import stat
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from relflow.core.config import DocsConfig
from relflow.core.result import Err, Ok, Result

__all__ = [
    "CleanError",
    "clean_build",
    "clean_coverage",
    "clean_docs",
    "clean_pyc",
    "clean_test",
]

type CleanResult = Result[list[Path], CleanError]


@dataclass(frozen=True, slots=True)
class CleanError:
    path: Path
    message: str


def _remove_readonly(_func: Callable[[str], object], path: str, exc: BaseException) -> None:
    """Handle read-only files on Windows."""
    if isinstance(exc, PermissionError):
        os.chmod(path, stat.S_IWRITE)
        os.unlink(path)
    else:
        raise exc


def _skip_hidden_vcs(path: Path, root: Path) -> bool:
    rel = path.relative_to(root)
    return bool(rel.parts) and rel.parts[0] in {".git", ".hg", ".tox", ".venv"}


def _remove(paths: Iterable[Path]) -> CleanResult:
    removed: list[Path] = []
    for path in paths:
        if not path.exists() and not path.is_symlink():
            continue
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path, onexc=_remove_readonly)
            else:
                path.unlink()
        except OSError as e:
            return Err(CleanError(path=path, message=str(e)))
        removed.append(path)
    return Ok(removed)


def _find(root: Path, patterns: Iterable[str]) -> list[Path]:
    found: list[Path] = []
    for pattern in patterns:
        for path in sorted(root.rglob(pattern)):
            if _skip_hidden_vcs(path, root):
                continue
            # Skip matches inside a directory already scheduled for removal
            if any(parent in found for parent in path.parents):
                continue
            found.append(path)
    return found


def clean_build(root: Path) -> CleanResult:
    """build/, dist/, .eggs/ and egg metadata."""
    targets = [root / "build", root / "dist", root / ".eggs"]
    targets += _find(root, ["*.egg-info", "*.egg"])
    return _remove(targets)


def clean_pyc(root: Path) -> CleanResult:
    """Bytecode, editor backups and __pycache__ directories."""
    return _remove(_find(root, ["__pycache__", "*.pyc", "*.pyo", "*~"]))


def clean_docs(root: Path, docs: DocsConfig) -> CleanResult:
    """Generated API pages and the rendered docs."""
    api_dir = root / docs.api
    targets = sorted(api_dir.glob("*.rst")) if api_dir.is_dir() else []
    targets.append(root / docs.build)
    return _remove(targets)


def clean_coverage(root: Path) -> CleanResult:
    targets = [root / ".coverage", root / "htmlcov"]
    targets += sorted(root.glob(".coverage.*"))
    return _remove(targets)


def clean_test(root: Path) -> CleanResult:
    return _remove([root / ".tox", root / ".pytest_cache"])
