"""One subcommand per catalog task."""

from __future__ import annotations

from collections.abc import Callable

import typer

from relflow.cli.catalog import TASKS, TaskSpec, build_pipeline
from relflow.cli.commands._helpers import exit_on_error
from relflow.cli.context import build_context


def task_command(spec: TaskSpec) -> Callable[[], None]:
    name = spec.name

    def command() -> None:
        ctx = build_context()
        pipeline = build_pipeline(ctx)
        exit_on_error(pipeline.run(name), ctx.console)
        ctx.console.success(name)

    command.__name__ = name.replace("-", "_")
    command.__doc__ = spec.help
    return command


def register_tasks(app: typer.Typer) -> None:
    for spec in TASKS:
        app.command(spec.name, help=spec.help, rich_help_panel="Tasks")(task_command(spec))
