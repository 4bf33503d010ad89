"""Commands that describe the task graph without running it."""

from __future__ import annotations

import typer

from relflow.cli.catalog import TASKS, build_pipeline
from relflow.cli.commands._helpers import exit_on_error
from relflow.cli.context import build_context
from relflow.output.console import RichConsole, Style


def tasks() -> None:
    """List every task with its prerequisites."""
    console = RichConsole()
    width = max(len(spec.name) for spec in TASKS)
    for spec in TASKS:
        console.print(f"{spec.name:<{width}}  {spec.help}")
        if spec.prerequisites:
            console.print(f"{'':<{width}}  requires: {', '.join(spec.prerequisites)}", Style.DIM)


def plan(task: str = typer.Argument(..., help="Task to resolve")) -> None:
    """Print the order in which TASK and its prerequisites would run."""
    ctx = build_context()
    pipeline = build_pipeline(ctx)
    order = exit_on_error(pipeline.plan(task), ctx.console)
    for index, name in enumerate(order, start=1):
        ctx.console.print(f"{index:>2}. {name}")
