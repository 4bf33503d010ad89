"""Process exit codes.

Every command maps its failure onto one of these codes. Tool failures are
the exception: they exit with the failing tool's own status so that callers
(CI scripts, make wrappers) see what the tool reported.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for relflow commands.

    - 0: Success
    - 1: User error (unknown task, bad arguments)
    - 2: Environment error (no project found, invalid configuration)
    - 3: Guard error (wrong branch, changelog not updated)
    - 4: State error (image not in the state an operation needs)
    - 5: Graph error (prerequisite cycle)
    - 6: Tool error (a tool failed without reporting a usable status)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    GUARD_ERROR = 3
    STATE_ERROR = 4
    GRAPH_ERROR = 5
    TOOL_ERROR = 6
