"""Composite release commands.

Each command is a fixed sequence of task runs; the first failure aborts the
rest. Already-published artifacts are not retracted when a later step fails.

``release-minor`` and ``release-major`` run ``release`` as their last step.
That nesting lives in ``SEQUENCES``, outside the task graph, so the graph
stays acyclic and every step is a fresh task run with fresh guard
evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from relflow.core.result import Err, Ok, Result
from relflow.pipeline.errors import PipelineError

__all__ = [
    "BUMP_CANDIDATE",
    "BUMP_MAJOR",
    "BUMP_MINOR",
    "BUMP_PATCH",
    "BUMP_RELEASE",
    "CHECK_HISTORY",
    "CHECK_MASTER",
    "CHECK_RELEASE",
    "PUBLISH",
    "RELEASE",
    "RELEASE_CANDIDATE",
    "RELEASE_MAJOR",
    "RELEASE_MINOR",
    "SEQUENCES",
    "ReleaseOrchestrator",
    "TaskRunner",
]

CHECK_MASTER = "check-master"
CHECK_HISTORY = "check-history"
CHECK_RELEASE = "check-release"
BUMP_RELEASE = "bump-release"
BUMP_PATCH = "bump-patch"
BUMP_MINOR = "bump-minor"
BUMP_MAJOR = "bump-major"
BUMP_CANDIDATE = "bump-candidate"
PUBLISH = "publish"

RELEASE = "release"
RELEASE_CANDIDATE = "release-candidate"
RELEASE_MINOR = "release-minor"
RELEASE_MAJOR = "release-major"

# Steps of each composite command; a step naming another composite runs it
SEQUENCES: dict[str, tuple[str, ...]] = {
    RELEASE: (CHECK_RELEASE, BUMP_RELEASE, PUBLISH, BUMP_PATCH),
    RELEASE_CANDIDATE: (CHECK_MASTER, PUBLISH, BUMP_CANDIDATE),
    RELEASE_MINOR: (CHECK_RELEASE, BUMP_MINOR, RELEASE),
    RELEASE_MAJOR: (CHECK_RELEASE, BUMP_MAJOR, RELEASE),
}


class TaskRunner(Protocol):
    def run(self, name: str) -> Result[tuple[str, ...], PipelineError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseOrchestrator:
    runner: TaskRunner

    def release(self) -> Result[None, PipelineError]:
        """check-release, bump-release, publish, bump-patch."""
        return self.execute(RELEASE)

    def release_candidate(self) -> Result[None, PipelineError]:
        """check-master, publish, bump-candidate."""
        return self.execute(RELEASE_CANDIDATE)

    def release_minor(self) -> Result[None, PipelineError]:
        """check-release, bump-minor, then the full release."""
        return self.execute(RELEASE_MINOR)

    def release_major(self) -> Result[None, PipelineError]:
        """check-release, bump-major, then the full release."""
        return self.execute(RELEASE_MAJOR)

    def execute(self, command: str) -> Result[None, PipelineError]:
        for step in SEQUENCES[command]:
            if step in SEQUENCES:
                result = self.execute(step)
            else:
                result = self.runner.run(step)
            if isinstance(result, Err):
                return result
        return Ok(None)

    @staticmethod
    def steps(command: str) -> tuple[str, ...]:
        """Task runs of ``command`` in order, with nested commands expanded."""
        expanded: list[str] = []
        for step in SEQUENCES[command]:
            expanded.extend(ReleaseOrchestrator.steps(step) if step in SEQUENCES else (step,))
        return tuple(expanded)
