from __future__ import annotations

import typer

from relflow.cli.context import build_context
from relflow.core.config import read_pyproject
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.output.console import Style
from relflow.release.version import BUMP_PARTS, current_version_string, parse_version


def version() -> None:
    """Show the current version and what each bump would produce."""
    ctx = build_context()
    console = ctx.console

    data = read_pyproject(ctx.project.pyproject_path)
    if isinstance(data, Err):
        console.error(data.error.message)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    try:
        current_str = current_version_string(data.value)
    except TypeError as e:
        console.error(f"invalid version entry: {e}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    if current_str is None:
        console.error("no version found in [tool.bumpversion] or [project]")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    current = parse_version(current_str)
    if current is None:
        console.print(f"current: {current_str}")
        console.warning("version format not recognised; no bump preview")
        return

    console.print(f"current: {current}")
    for part in BUMP_PARTS:
        try:
            console.print(f"  bump-{part:<10} -> {current.bump(part)}", Style.DIM)
        except ValueError as e:
            console.print(f"  bump-{part:<10} -> ({e})", Style.DIM)
