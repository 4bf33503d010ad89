"""Failure taxonomy of the release pipeline.

Every failure is terminal for the current invocation; nothing is retried.
Guard failures and cycles are detected before any side effect of the failing
branch runs. ``ExternalToolFailure`` can happen after earlier steps already
had effects (a partial publish, a pushed tag); those are not undone.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CycleError",
    "DockerStateError",
    "ExternalToolFailure",
    "GuardFailure",
    "InvalidConfigError",
    "MissingChangelogError",
    "PipelineError",
    "UnknownTaskError",
    "WrongBranchError",
]


@dataclass(frozen=True, slots=True)
class WrongBranchError:
    """The checked-out branch is not the one a release must be made from.

    ``actual`` is None when HEAD is detached or the branch cannot be read.
    """

    actual: str | None
    expected: str

    @property
    def message(self) -> str:
        on = self.actual or "detached HEAD"
        return f"Please make the release from {self.expected} branch (currently on {on})"

    @property
    def hint(self) -> str | None:
        return f"git checkout {self.expected}"


@dataclass(frozen=True, slots=True)
class MissingChangelogError:
    """The changelog does not differ from its copy on the release reference."""

    path: str
    ref: str

    @property
    def message(self) -> str:
        return f"Please insert the release notes in {self.path} before releasing"

    @property
    def hint(self) -> str | None:
        return f"{self.path} is identical to {self.ref}"


@dataclass(frozen=True, slots=True)
class CycleError:
    """The prerequisite relation loops back onto ``task``.

    Attributes:
        task: The task reached while already in progress.
        path: The chain of tasks that closes the cycle, ending with ``task``.
    """

    task: str
    path: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        chain = " -> ".join(self.path) if self.path else self.task
        return f"prerequisite cycle detected at '{self.task}': {chain}"

    @property
    def hint(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class UnknownTaskError:
    task: str
    available: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return f"unknown task: {self.task}"

    @property
    def hint(self) -> str | None:
        if not self.available:
            return None
        return "run 'relflow tasks' to list available tasks"


@dataclass(frozen=True, slots=True)
class ExternalToolFailure:
    """A collaborator (git, pytest, twine, docker, ...) reported failure.

    Attributes:
        task: Name of the task whose action failed.
        exit_status: The collaborator's exit status (-1 if it never started).
        command: The command line that failed, when known.
        detail: Error output from the collaborator, when captured.
    """

    task: str
    exit_status: int
    command: str = ""
    detail: str = ""

    @property
    def message(self) -> str:
        what = f" ({self.command})" if self.command else ""
        return f"task '{self.task}' failed{what} with exit status {self.exit_status}"

    @property
    def hint(self) -> str | None:
        return self.detail or None


@dataclass(frozen=True, slots=True)
class DockerStateError:
    """An image operation was requested in a state that does not allow it."""

    operation: str
    current_state: str

    @property
    def message(self) -> str:
        return f"cannot {self.operation} image: image is {self.current_state}"

    @property
    def hint(self) -> str | None:
        match self.current_state:
            case "absent":
                return "run 'relflow image-build' or 'relflow image-load' first"
            case "building":
                return "another build of this image is in progress"
            case "running":
                return "run 'relflow image-stop' first"
        return None


@dataclass(frozen=True, slots=True)
class InvalidConfigError:
    message: str

    @property
    def hint(self) -> str | None:
        return "check the [tool.relflow] table in pyproject.toml"


type GuardFailure = WrongBranchError | MissingChangelogError

type PipelineError = (
    WrongBranchError
    | MissingChangelogError
    | CycleError
    | UnknownTaskError
    | ExternalToolFailure
    | DockerStateError
    | InvalidConfigError
)
