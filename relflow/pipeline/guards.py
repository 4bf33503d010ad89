"""Precondition guards evaluated before a task's action.

Guards read externally mutable state (the checked-out branch, the changelog
diff) through injected ports and never cache it: each evaluation queries the
source again. Conjunctions short-circuit on the first failing guard, in
declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import GitError
from relflow.pipeline.errors import GuardFailure, MissingChangelogError, WrongBranchError

__all__ = [
    "AllOf",
    "BranchGuard",
    "BranchSource",
    "ChangelogGuard",
    "ChangelogSource",
    "Guard",
    "GuardResult",
    "all_of",
]

type GuardResult = Result[None, GuardFailure | GitError]


class BranchSource(Protocol):
    def current_branch(self) -> str | None: ...


class ChangelogSource(Protocol):
    def changed_lines(self, path: str, ref: str) -> Result[int, GitError]: ...


class Guard(Protocol):
    @property
    def name(self) -> str: ...

    def evaluate(self) -> GuardResult: ...


@dataclass(frozen=True, slots=True)
class BranchGuard:
    """Passes only when the current branch equals ``expected``."""

    source: BranchSource
    expected: str

    @property
    def name(self) -> str:
        return f"on branch {self.expected}"

    def evaluate(self) -> GuardResult:
        actual = self.source.current_branch()
        if actual != self.expected:
            return Err(WrongBranchError(actual=actual, expected=self.expected))
        return Ok(None)


@dataclass(frozen=True, slots=True)
class ChangelogGuard:
    """Passes only when ``path`` differs from its copy on ``ref``.

    A failing diff (unknown ref, no remote) is reported as the git error, not
    as a missing changelog.
    """

    source: ChangelogSource
    path: str
    ref: str

    @property
    def name(self) -> str:
        return f"{self.path} updated since {self.ref}"

    def evaluate(self) -> GuardResult:
        diff = self.source.changed_lines(self.path, self.ref)
        if isinstance(diff, Err):
            return diff
        if diff.value == 0:
            return Err(MissingChangelogError(path=self.path, ref=self.ref))
        return Ok(None)


@dataclass(frozen=True, slots=True)
class AllOf:
    """Conjunction of guards, evaluated in order until one fails."""

    guards: tuple[Guard, ...]

    @property
    def name(self) -> str:
        return " and ".join(g.name for g in self.guards)

    def evaluate(self) -> GuardResult:
        for guard in self.guards:
            result = guard.evaluate()
            if isinstance(result, Err):
                return result
        return Ok(None)


def all_of(*guards: Guard) -> AllOf:
    return AllOf(guards=tuple(guards))
