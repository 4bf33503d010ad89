"""Install, lint, test, docs and packaging tool invocations.

These are pass-throughs: each method builds the command line for an
external tool from the project configuration and runs it with output
streamed to the terminal. Multi-command methods stop at the first failing
command.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from relflow.core.config import Config
from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError, run_silent

__all__ = ["DevTools"]

type Command = Sequence[str]


class DevTools:
    def __init__(
        self,
        root: Path,
        config: Config,
        *,
        python: str = sys.executable,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.root = root
        self.config = config
        self.python = python
        self.environ = os.environ if environ is None else environ

    # Commands

    def install_commands(
        self, extra: str | None = None, *, editable: bool = False
    ) -> list[Command]:
        target = f".[{extra}]" if extra else "."
        cmd = [self.python, "-m", "pip", "install"]
        if editable:
            cmd.append("-e")
        return [[*cmd, target]]

    def lint_commands(self) -> list[Command]:
        targets = [self.config.package, self.config.tests]
        return [
            ["flake8", *targets],
            ["isort", "--check-only", *targets],
        ]

    def fix_lint_commands(self) -> list[Command]:
        commands: list[Command] = []
        for target in (self.config.package, self.config.tests):
            commands += [
                [
                    "autoflake",
                    "--in-place",
                    "--recursive",
                    "--remove-all-unused-imports",
                    "--remove-unused-variables",
                    target,
                ],
                ["autopep8", "--in-place", "--recursive", "--aggressive", target],
                ["isort", "--atomic", target],
            ]
        return commands

    def test_commands(self) -> list[Command]:
        cmd = [self.python, "-m", "pytest"]
        sandbox = self.environ.get(self.config.test.sandbox_env)
        if sandbox:
            cmd.append(f"--basetemp={sandbox}")
        cmd.append(f"--cov={self.config.package}")
        return [cmd]

    def test_all_commands(self) -> list[Command]:
        return [["tox", "-r"]]

    def coverage_commands(self) -> list[Command]:
        return [
            ["coverage", "run", "--source", self.config.package, "-m", "pytest"],
            ["coverage", "report", "-m"],
            ["coverage", "html"],
        ]

    def docs_commands(self) -> list[Command]:
        docs = self.config.docs
        return [
            ["sphinx-apidoc", "--separate", "--no-toc", "-o", docs.api, self.config.package],
            ["make", "-C", docs.source, "html"],
        ]

    def dist_commands(self) -> list[Command]:
        return [[self.python, "-m", "build", "--sdist", "--wheel"]]

    def publish_commands(self, *, test: bool = False) -> list[Command]:
        cmd = ["twine", "upload"]
        if test:
            cmd += ["--repository-url", self.config.publish.test_repository_url]
        artifacts = sorted(str(p.relative_to(self.root)) for p in (self.root / "dist").glob("*"))
        # twine reports the missing artifacts itself
        return [[*cmd, *(artifacts or ["dist/*"])]]

    @property
    def docs_index(self) -> Path:
        return self.root / self.config.docs.build / "html" / "index.html"

    # Execution

    def install(
        self, extra: str | None = None, *, editable: bool = False
    ) -> Result[None, ProcessError]:
        return self.run_all(self.install_commands(extra, editable=editable))

    def lint(self) -> Result[None, ProcessError]:
        return self.run_all(self.lint_commands())

    def fix_lint(self) -> Result[None, ProcessError]:
        return self.run_all(self.fix_lint_commands())

    def test(self) -> Result[None, ProcessError]:
        return self.run_all(self.test_commands())

    def test_all(self) -> Result[None, ProcessError]:
        return self.run_all(self.test_all_commands())

    def coverage(self) -> Result[None, ProcessError]:
        return self.run_all(self.coverage_commands())

    def docs(self) -> Result[None, ProcessError]:
        return self.run_all(self.docs_commands())

    def dist(self) -> Result[None, ProcessError]:
        return self.run_all(self.dist_commands())

    def publish(self, *, test: bool = False) -> Result[None, ProcessError]:
        return self.run_all(self.publish_commands(test=test))

    def run_all(self, commands: Sequence[Command]) -> Result[None, ProcessError]:
        for cmd in commands:
            result = run_silent(cmd, cwd=self.root)
            if isinstance(result, Err):
                return result
        return Ok(None)
