"""Error presentation utilities.

Centralized pipeline error formatting and exit code mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.errors import ErrorCode
from relflow.output.console import Style
from relflow.pipeline.errors import (
    CycleError,
    DockerStateError,
    ExternalToolFailure,
    InvalidConfigError,
    MissingChangelogError,
    PipelineError,
    UnknownTaskError,
    WrongBranchError,
)

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

__all__ = ["pipeline_error_exit_code", "print_pipeline_error"]


def print_pipeline_error(error: PipelineError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    match error:
        case ExternalToolFailure(detail=detail) if detail:
            for line in detail.splitlines()[-10:]:
                console.print(f"  {line}", Style.DIM)
        case _:
            if error.hint:
                console.print(f"hint: {error.hint}", Style.DIM)


def pipeline_error_exit_code(error: PipelineError) -> int:
    """Exit status for a failed run.

    A failing tool's own positive status is propagated unchanged.
    """
    match error:
        case UnknownTaskError():
            return int(ErrorCode.USER_ERROR)
        case WrongBranchError() | MissingChangelogError():
            return int(ErrorCode.GUARD_ERROR)
        case DockerStateError():
            return int(ErrorCode.STATE_ERROR)
        case CycleError():
            return int(ErrorCode.GRAPH_ERROR)
        case InvalidConfigError():
            return int(ErrorCode.ENV_ERROR)
        case ExternalToolFailure(exit_status=status) if status > 0:
            return status
        case ExternalToolFailure():
            return int(ErrorCode.TOOL_ERROR)
    return int(ErrorCode.TOOL_ERROR)
