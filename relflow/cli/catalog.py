"""The static task catalog and its wiring to collaborators.

``TASKS`` names every task, its prerequisites and help text; the CLI
registers one subcommand per entry. ``ProjectPipeline`` binds each entry to
its guard and action for one project and owns the executor that runs them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import typer

from relflow.cli.context import CLIContext
from relflow.core.config import Config
from relflow.core.result import Err, Ok, Result
from relflow.git.repository import Repository
from relflow.image.docker import DockerCli
from relflow.image.lifecycle import ImageError, ImageLifecycle
from relflow.output.console import ConsoleProtocol, Style
from relflow.pipeline.errors import ExternalToolFailure, PipelineError
from relflow.pipeline.graph import Action, ActionError, Executor, Task, TaskGraph
from relflow.pipeline.guards import (
    BranchGuard,
    BranchSource,
    ChangelogGuard,
    ChangelogSource,
    Guard,
    all_of,
)
from relflow.release.bump import BumpVersionTool, VersionBumpController, VersionControl
from relflow.release.orchestrator import (
    BUMP_CANDIDATE,
    BUMP_MAJOR,
    BUMP_MINOR,
    BUMP_PATCH,
    BUMP_RELEASE,
    CHECK_HISTORY,
    CHECK_MASTER,
    CHECK_RELEASE,
    PUBLISH,
    RELEASE,
    RELEASE_CANDIDATE,
    RELEASE_MAJOR,
    RELEASE_MINOR,
    SEQUENCES,
    ReleaseOrchestrator,
)
from relflow.services import clean
from relflow.services.clean import CleanError
from relflow.services.devtools import DevTools

__all__ = ["TASKS", "ProjectPipeline", "TaskDependencies", "TaskSpec", "build_pipeline"]


@dataclass(frozen=True, slots=True)
class TaskSpec:
    name: str
    help: str
    prerequisites: tuple[str, ...] = ()


_CLEAN_BUILD = ("clean-build", "clean-pyc")

TASKS: tuple[TaskSpec, ...] = (
    # clean
    TaskSpec("clean-build", "remove build artifacts"),
    TaskSpec("clean-pyc", "remove Python file artifacts"),
    TaskSpec("clean-docs", "remove previously built docs"),
    TaskSpec("clean-coverage", "remove coverage artifacts"),
    TaskSpec("clean-test", "remove test artifacts"),
    TaskSpec(
        "clean",
        "remove all build, test, coverage, docs and Python artifacts",
        ("clean-build", "clean-pyc", "clean-test", "clean-coverage", "clean-docs"),
    ),
    # install
    TaskSpec("install", "install the package to the active Python's site-packages", _CLEAN_BUILD),
    TaskSpec("install-test", "install the package and test dependencies", _CLEAN_BUILD),
    TaskSpec(
        "install-develop",
        "install the package in editable mode and dependencies for development",
        _CLEAN_BUILD,
    ),
    # lint
    TaskSpec("lint", "check style with flake8 and isort"),
    TaskSpec("fix-lint", "fix lint issues using autoflake, autopep8, and isort"),
    # test
    TaskSpec("test", "run tests quickly with the default Python"),
    TaskSpec("test-all", "run tests on every Python version with tox"),
    TaskSpec("coverage", "check code coverage quickly with the default Python"),
    # docs
    TaskSpec("docs", "generate Sphinx HTML documentation, including API docs", ("clean-docs",)),
    TaskSpec("view-docs", "view docs in browser", ("docs",)),
    # packaging
    TaskSpec("dist", "build source and wheel package", ("clean",)),
    TaskSpec(PUBLISH, "package and upload a release", ("dist",)),
    TaskSpec("test-publish", "package and upload a release on TestPyPI", ("dist",)),
    # guards
    TaskSpec(CHECK_MASTER, "check that the trunk branch is checked out"),
    TaskSpec(CHECK_HISTORY, "check that the changelog has been modified"),
    TaskSpec(CHECK_RELEASE, "check that the release can be made"),
    # bumps
    TaskSpec(BUMP_RELEASE, "merge trunk into the release branch and bump to the final release"),
    TaskSpec(BUMP_PATCH, "merge the release branch into trunk and bump the patch"),
    TaskSpec(BUMP_MINOR, "bump to the next minor, skipping the release"),
    TaskSpec(BUMP_MAJOR, "bump to the next major, skipping the release"),
    TaskSpec(BUMP_CANDIDATE, "bump to the next release candidate"),
    # releases
    TaskSpec(RELEASE, "check, tag, publish and reopen trunk for the next patch"),
    TaskSpec(RELEASE_CANDIDATE, "publish a release candidate from trunk"),
    TaskSpec(RELEASE_MINOR, "bump the minor version and make a release"),
    TaskSpec(RELEASE_MAJOR, "bump the major version and make a release"),
    # image
    TaskSpec("image-clean", "remove the environment image"),
    TaskSpec("image-build", "build the environment image"),
    TaskSpec("image-save", "save the environment image to its archive file"),
    TaskSpec("image-load", "load the environment image from its archive file"),
    TaskSpec("image-run", "run the environment image in editable mode"),
    TaskSpec("image-start", "start the environment image as a daemon"),
    TaskSpec("image-stop", "stop the environment image daemon"),
    TaskSpec("image-push", "push the environment image to its registry aliases"),
)


class ProjectRepository(BranchSource, ChangelogSource, VersionControl, Protocol):
    """Everything the pipeline asks of version control."""


@dataclass(frozen=True, slots=True)
class TaskDependencies:
    root: Path
    config: Config
    repo: ProjectRepository
    devtools: DevTools
    bumps: VersionBumpController
    image: ImageLifecycle
    launch: Callable[[str], object]


class ProjectPipeline:
    """Executor over the catalog, plus the release orchestrator driving it."""

    def __init__(self, deps: TaskDependencies, console: ConsoleProtocol) -> None:
        self.deps = deps
        self.console = console
        self.orchestrator = ReleaseOrchestrator(runner=self)
        self.graph = TaskGraph(self._tasks())
        self.executor = Executor(self.graph, console)

    def run(self, name: str) -> Result[tuple[str, ...], PipelineError]:
        return self.executor.run(name)

    def plan(self, name: str) -> Result[tuple[str, ...], PipelineError]:
        """Resolve ``name``; a release command lists the plan of each of its steps."""
        if name not in SEQUENCES:
            return self.executor.plan(name)
        order: list[str] = []
        for step in self.orchestrator.steps(name):
            result = self.executor.plan(step)
            if isinstance(result, Err):
                return result
            order.extend(result.value)
        return Ok(tuple(order))

    def _tasks(self) -> list[Task]:
        bindings = self._bindings()
        guards = self._guards()
        tasks: list[Task] = []
        for spec in TASKS:
            tasks.append(
                Task(
                    name=spec.name,
                    prerequisites=spec.prerequisites,
                    action=bindings.get(spec.name),
                    guard=guards.get(spec.name),
                    help=spec.help,
                )
            )
        return tasks

    def _guards(self) -> dict[str, Guard]:
        cfg = self.deps.config
        on_trunk = BranchGuard(self.deps.repo, cfg.git.trunk)
        changelog = ChangelogGuard(self.deps.repo, cfg.changelog.path, cfg.changelog.ref)
        return {
            CHECK_MASTER: on_trunk,
            CHECK_HISTORY: changelog,
            CHECK_RELEASE: all_of(on_trunk, changelog),
        }

    def _bindings(self) -> dict[str, Action]:
        deps = self.deps
        root = deps.root
        tools = deps.devtools
        bumps = deps.bumps
        image = deps.image
        release = self.orchestrator

        return {
            "clean-build": self._clean("clean-build", lambda: clean.clean_build(root)),
            "clean-pyc": self._clean("clean-pyc", lambda: clean.clean_pyc(root)),
            "clean-docs": self._clean(
                "clean-docs", lambda: clean.clean_docs(root, deps.config.docs)
            ),
            "clean-coverage": self._clean("clean-coverage", lambda: clean.clean_coverage(root)),
            "clean-test": self._clean("clean-test", lambda: clean.clean_test(root)),
            "install": lambda: tools.install(),
            "install-test": lambda: tools.install("test"),
            "install-develop": lambda: tools.install("dev", editable=True),
            "lint": tools.lint,
            "fix-lint": tools.fix_lint,
            "test": tools.test,
            "test-all": tools.test_all,
            "coverage": self._then_open(tools.coverage, lambda: root / "htmlcov" / "index.html"),
            "docs": tools.docs,
            "view-docs": self._open(lambda: tools.docs_index),
            "dist": tools.dist,
            PUBLISH: lambda: tools.publish(),
            "test-publish": lambda: tools.publish(test=True),
            BUMP_RELEASE: bumps.bump_release,
            BUMP_PATCH: bumps.bump_patch,
            BUMP_MINOR: bumps.bump_minor,
            BUMP_MAJOR: bumps.bump_major,
            BUMP_CANDIDATE: bumps.bump_candidate,
            RELEASE: release.release,
            RELEASE_CANDIDATE: release.release_candidate,
            RELEASE_MINOR: release.release_minor,
            RELEASE_MAJOR: release.release_major,
            "image-clean": self._image(image.clean),
            "image-build": self._image(image.build),
            "image-save": self._image(image.save),
            "image-load": self._image(image.load),
            "image-run": self._image(image.run),
            "image-start": self._image(image.start),
            "image-stop": self._image(image.stop),
            "image-push": self._image(image.push),
        }

    def _clean(self, name: str, fn: Callable[[], Result[list[Path], CleanError]]) -> Action:
        def action() -> Result[None, ActionError]:
            match fn():
                case Err(CleanError(path=path, message=message)):
                    return Err(
                        ExternalToolFailure(
                            task=name, exit_status=1, command=f"remove {path}", detail=message
                        )
                    )
                case Ok(removed):
                    for path in removed:
                        self.console.print(f"removed {path}", Style.DIM)
            return Ok(None)

        return action

    def _image(self, fn: Callable[[], Result[None, ImageError]]) -> Action:
        def action() -> Result[None, ActionError]:
            result = fn()
            if isinstance(result, Err):
                return result
            self.console.print(f"image: {self.deps.image.state}", Style.DIM)
            return Ok(None)

        return action

    def _open(self, target: Callable[[], Path]) -> Action:
        def action() -> Result[None, ActionError]:
            self.deps.launch(str(target()))
            return Ok(None)

        return action

    def _then_open(
        self, fn: Callable[[], Result[None, ActionError]], target: Callable[[], Path]
    ) -> Action:
        opener = self._open(target)

        def action() -> Result[None, ActionError]:
            result = fn()
            if isinstance(result, Err):
                return result
            return opener()

        return action


def build_pipeline(ctx: CLIContext) -> ProjectPipeline:
    """Wire the catalog to the real git, docker and tool collaborators."""
    root = ctx.project.root
    config = ctx.config
    repo = Repository(root)
    deps = TaskDependencies(
        root=root,
        config=config,
        repo=repo,
        devtools=DevTools(root, config),
        bumps=VersionBumpController(
            vcs=repo,
            tool=BumpVersionTool(config.bump_command, cwd=root),
            git=config.git,
        ),
        image=ImageLifecycle(
            DockerCli(cwd=root),
            config.image,
            root=root,
            lock_dir=ctx.project.state_dir,
        ),
        launch=typer.launch,
    )
    return ProjectPipeline(deps, ctx.console)
