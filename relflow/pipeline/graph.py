"""Static task graph and its sequential executor.

A task has a name, an ordered list of prerequisite task names, an optional
guard and an optional action. ``Executor.run(name)`` resolves the full
prerequisite closure depth-first, then runs each task exactly once, every
task after all of its prerequisites. Resolution finishes before anything
runs, so an unknown task or a cycle aborts with zero actions performed.

Execution is strictly sequential and fail-fast: the first failing guard or
action stops the run, and completed actions are not rolled back.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import GitError
from relflow.output.console import ConsoleProtocol
from relflow.pipeline.errors import CycleError, ExternalToolFailure, PipelineError, UnknownTaskError
from relflow.pipeline.guards import Guard
from relflow.platform.process import ProcessError

__all__ = [
    "Action",
    "ActionError",
    "Executor",
    "ResolveError",
    "Task",
    "TaskGraph",
]

type ActionError = PipelineError | ProcessError | GitError
type Action = Callable[[], Result[None, ActionError]]
type ResolveError = CycleError | UnknownTaskError


@dataclass(frozen=True, slots=True)
class Task:
    """A named unit of work.

    Attributes:
        name: Unique task name, also the CLI subcommand.
        prerequisites: Tasks that must run first, in this order.
        action: Work performed once the guard passes; None for pure
            aggregates such as ``clean``.
        guard: Precondition checked right before the action.
        help: One-line description.
    """

    name: str
    prerequisites: tuple[str, ...] = ()
    action: Action | None = None
    guard: Guard | None = None
    help: str = ""


class TaskGraph:
    """Immutable registry of tasks keyed by name."""

    def __init__(self, tasks: Iterable[Task]) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            if task.name in self._tasks:
                raise ValueError(f"duplicate task: {task.name}")
            self._tasks[task.name] = task

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._tasks)

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def resolve(self, name: str) -> Result[tuple[Task, ...], ResolveError]:
        """Return the execution order for ``name``, ending with ``name`` itself.

        Shared prerequisites appear once, at the earliest point any branch
        of the closure demands them.
        """
        order: list[Task] = []
        done: set[str] = set()
        in_progress: list[str] = []

        def visit(current: str) -> ResolveError | None:
            if current in done:
                return None
            if current in in_progress:
                start = in_progress.index(current)
                return CycleError(task=current, path=(*in_progress[start:], current))
            task = self._tasks.get(current)
            if task is None:
                return UnknownTaskError(task=current, available=self.names)

            in_progress.append(current)
            for prerequisite in task.prerequisites:
                error = visit(prerequisite)
                if error is not None:
                    return error
            in_progress.pop()

            done.add(current)
            order.append(task)
            return None

        error = visit(name)
        if error is not None:
            return Err(error)
        return Ok(tuple(order))

    def validate(self) -> Result[None, ResolveError]:
        """Check that every prerequisite exists and no task reaches itself."""
        for name in self._tasks:
            result = self.resolve(name)
            if isinstance(result, Err):
                return result
        return Ok(None)


class Executor:
    """Runs tasks of a graph one at a time, reporting through a console.

    The executor holds no per-run state, so an action may itself call
    ``run`` (the release commands do).
    """

    def __init__(self, graph: TaskGraph, console: ConsoleProtocol) -> None:
        self.graph = graph
        self.console = console

    def plan(self, name: str) -> Result[tuple[str, ...], ResolveError]:
        """Names of the tasks ``run(name)`` would execute, in order."""
        return self.graph.resolve(name).map(lambda tasks: tuple(t.name for t in tasks))

    def run(self, name: str) -> Result[tuple[str, ...], PipelineError]:
        """Run ``name`` and its prerequisite closure.

        Returns:
            Ok(names of the executed tasks) or the first failure.
        """
        resolved = self.graph.resolve(name)
        if isinstance(resolved, Err):
            return resolved

        executed: list[str] = []
        for task in resolved.value:
            self.console.step(task.name)

            if task.guard is not None:
                verdict = task.guard.evaluate()
                if isinstance(verdict, Err):
                    return Err(_as_pipeline_error(task.name, verdict.error))
                self.console.success(task.guard.name)

            if task.action is not None:
                outcome = task.action()
                if isinstance(outcome, Err):
                    return Err(_as_pipeline_error(task.name, outcome.error))

            executed.append(task.name)

        return Ok(tuple(executed))


def _as_pipeline_error(task: str, error: ActionError) -> PipelineError:
    match error:
        case ProcessError(command=command, returncode=rc, stderr=stderr):
            return ExternalToolFailure(
                task=task, exit_status=rc, command=" ".join(command), detail=stderr.strip()
            )
        case GitError(command=command, message=message, returncode=rc):
            return ExternalToolFailure(
                task=task, exit_status=rc, command=f"git {command}", detail=message
            )
        case _:
            return error
