"""Task graph, guards and the sequential executor."""

from relflow.pipeline.errors import (
    CycleError,
    DockerStateError,
    ExternalToolFailure,
    GuardFailure,
    InvalidConfigError,
    MissingChangelogError,
    PipelineError,
    UnknownTaskError,
    WrongBranchError,
)
from relflow.pipeline.graph import Action, Executor, Task, TaskGraph
from relflow.pipeline.guards import (
    AllOf,
    BranchGuard,
    BranchSource,
    ChangelogGuard,
    ChangelogSource,
    Guard,
    all_of,
)

__all__ = [
    # errors
    "CycleError",
    "DockerStateError",
    "ExternalToolFailure",
    "GuardFailure",
    "InvalidConfigError",
    "MissingChangelogError",
    "PipelineError",
    "UnknownTaskError",
    "WrongBranchError",
    # graph
    "Action",
    "Executor",
    "Task",
    "TaskGraph",
    # guards
    "AllOf",
    "BranchGuard",
    "BranchSource",
    "ChangelogGuard",
    "ChangelogSource",
    "Guard",
    "all_of",
]
