"""Subprocess execution with Result-based error handling.

This is the only module that talks to ``subprocess``. Two flavours:

- ``run`` captures output, for queries (current branch, diff, inspect).
- ``run_silent`` streams output to the terminal, for the long-running tools
  a task delegates to (pytest, twine, docker build).

Calls block until the child exits; there is no timeout.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_silent"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it could not start).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _merged_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    if env is None:
        return None
    merged = os.environ.copy()
    merged.update(env)
    return merged


def _spawn(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None,
    *,
    capture: bool,
) -> Result[str, ProcessError]:
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            env=_merged_env(env),
            capture_output=capture,
            text=True,
            check=False,
        )
    except OSError as e:
        # The executable is missing or not runnable
        return Err(ProcessError(command=argv, returncode=-1, stdout="", stderr=str(e)))

    stdout = proc.stdout or ""
    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=argv,
                returncode=proc.returncode,
                stdout=stdout,
                stderr=proc.stderr or "",
            )
        )
    return Ok(stdout)


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Extra environment variables, layered over the current env.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    return _spawn(cmd, cwd, env, capture=True)


def run_silent(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command letting its output stream to the terminal.

    The ProcessError of a failed call carries no output.
    """
    return _spawn(cmd, cwd, env, capture=False).map(lambda _: None)
