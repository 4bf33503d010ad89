"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from relflow.core.result import Err, Result
from relflow.output.console import ConsoleProtocol
from relflow.output.errors import pipeline_error_exit_code, print_pipeline_error
from relflow.pipeline.errors import PipelineError


def exit_on_error[T](result: Result[T, PipelineError], console: ConsoleProtocol) -> T:
    """Return the value of ``result``, or report the error and exit.

    The exit status comes from ``pipeline_error_exit_code``.
    """
    if isinstance(result, Err):
        print_pipeline_error(result.error, console)
        exit_with_code(pipeline_error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)
