"""Version bump controller.

The bump tool (bumpversion by default) owns the version arithmetic and the
tagging; git owns branches. This module only fixes the order in which they
are called for each of the five bump operations:

- release:   release branch (created from trunk if absent), no-ff merge of
             trunk, tagged bump, push with tags
- patch:     trunk, merge of the release branch, untagged bump, push
- minor:     untagged bump on the current branch
- major:     untagged bump on the current branch
- candidate: untagged bump on the current branch

Failures from either collaborator are returned unchanged and stop the
sequence.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relflow.core.config import GitConfig
from relflow.core.result import Err, Ok, Result
from relflow.git.repository import GitError
from relflow.platform.process import ProcessError, run_silent
from relflow.release.version import BumpPart

__all__ = [
    "BumpError",
    "BumpTool",
    "BumpVersionTool",
    "VersionBumpController",
    "VersionControl",
]

type BumpError = GitError | ProcessError


class BumpTool(Protocol):
    def bump(self, part: BumpPart, *, tag: bool) -> Result[None, ProcessError]: ...


class VersionControl(Protocol):
    def checkout(self, branch: str) -> Result[None, GitError]: ...

    def checkout_or_create(
        self, branch: str, start_point: str | None = None
    ) -> Result[None, GitError]: ...

    def merge(
        self, branch: str, *, no_ff: bool = False, message: str | None = None
    ) -> Result[None, GitError]: ...

    def push(
        self, remote: str | None = None, branch: str | None = None, *, tags: bool = False
    ) -> Result[None, GitError]: ...


class BumpVersionTool:
    """Runs the configured bump command (``bumpversion <part>``)."""

    def __init__(self, command: Sequence[str], cwd: Path) -> None:
        self.command = tuple(command)
        self.cwd = cwd

    def argv(self, part: BumpPart, *, tag: bool) -> list[str]:
        return [*self.command, "--tag" if tag else "--no-tag", part]

    def bump(self, part: BumpPart, *, tag: bool) -> Result[None, ProcessError]:
        return run_silent(self.argv(part, tag=tag), cwd=self.cwd)


@dataclass(frozen=True, slots=True)
class VersionBumpController:
    vcs: VersionControl
    tool: BumpTool
    git: GitConfig

    def bump_release(self) -> Result[None, BumpError]:
        """Merge trunk into the release branch and tag the final version."""
        trunk = self.git.trunk
        branch = self.git.release_branch
        steps = (
            lambda: self.vcs.checkout_or_create(branch, trunk),
            lambda: self.vcs.merge(
                trunk,
                no_ff=True,
                message=f"relflow release-tag: Merge branch '{trunk}' into {branch}",
            ),
            lambda: self.tool.bump("release", tag=True),
            lambda: self.vcs.push(self.git.remote, branch, tags=True),
        )
        return _sequence(steps)

    def bump_patch(self) -> Result[None, BumpError]:
        """Bring the release back into trunk and open the next patch."""
        steps = (
            lambda: self.vcs.checkout(self.git.trunk),
            lambda: self.vcs.merge(self.git.release_branch),
            lambda: self.tool.bump("patch", tag=False),
            lambda: self.vcs.push(),
        )
        return _sequence(steps)

    def bump_minor(self) -> Result[None, BumpError]:
        return self.tool.bump("minor", tag=False)

    def bump_major(self) -> Result[None, BumpError]:
        return self.tool.bump("major", tag=False)

    def bump_candidate(self) -> Result[None, BumpError]:
        return self.tool.bump("candidate", tag=False)


def _sequence(steps: Sequence[Callable[[], Result[None, BumpError]]]) -> Result[None, BumpError]:
    for step in steps:
        result = step()
        if isinstance(result, Err):
            return result
    return Ok(None)
