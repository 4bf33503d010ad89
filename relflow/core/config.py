"""Typed configuration loading.

Settings live in the ``[tool.relflow]`` table of the project's
pyproject.toml. Every key is optional; defaults reproduce the conventional
layout (master trunk, stable release branch, HISTORY.md changelog, a
``<package>-jupyter`` image).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "ChangelogConfig",
    "Config",
    "ConfigError",
    "DocsConfig",
    "GitConfig",
    "ImageConfig",
    "PublishConfig",
    "TestConfig",
    "DEFAULT_IMAGE_PORT",
    "load_config",
    "read_pyproject",
]

DEFAULT_IMAGE_PORT = 8888
DEFAULT_TEST_REPOSITORY_URL = "https://test.pypi.org/legacy/"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitConfig:
    trunk: str = "master"
    release_branch: str = "stable"
    remote: str = "origin"


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    """Release notes file and the reference it is diffed against."""

    path: str = "HISTORY.md"
    ref: str = "origin/stable"


@dataclass(frozen=True, slots=True)
class DocsConfig:
    source: str = "docs"
    api: str = "docs/api"
    build: str = "docs/_build"


@dataclass(frozen=True, slots=True)
class ImageConfig:
    """Identity of the interactive environment image.

    Attributes:
        tag: Local image tag, also used as the container name.
        aliases: Remote registry tags the image is pushed under.
        port: Port exposed by the interactive service.
        archive: File name used by save/load, relative to the project root.
        mount: Path inside the container where the project is mounted.
        context: Build context, relative to the project root.
    """

    tag: str
    archive: str
    mount: str
    aliases: tuple[str, ...] = ()
    port: int = DEFAULT_IMAGE_PORT
    context: str = "."


@dataclass(frozen=True, slots=True)
class TestConfig:
    # Name of the variable holding the pytest sandbox directory
    sandbox_env: str = "ENVTMPDIR"


@dataclass(frozen=True, slots=True)
class PublishConfig:
    test_repository_url: str = DEFAULT_TEST_REPOSITORY_URL


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    package: str
    image: ImageConfig
    tests: str = "tests"
    git: GitConfig = field(default_factory=GitConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    docs: DocsConfig = field(default_factory=DocsConfig)
    test: TestConfig = field(default_factory=TestConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    bump_command: tuple[str, ...] = ("bumpversion",)

    @classmethod
    def for_package(cls, package: str) -> Config:
        """Default configuration for ``package``."""
        return cls.from_dict({}, package=package)

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, package: str) -> Config:
        """Create Config from the ``[tool.relflow]`` table.

        Args:
            data: The parsed table (may be empty).
            package: Fallback import package name, from ``[project].name``.
        """
        package = get_str(data, "package") or package
        git_t: StrDict = get_table(data, "git") or {}
        changelog_t: StrDict = get_table(data, "changelog") or {}
        docs_t: StrDict = get_table(data, "docs") or {}
        image_t: StrDict = get_table(data, "image") or {}
        test_t: StrDict = get_table(data, "test") or {}
        publish_t: StrDict = get_table(data, "publish") or {}

        git = GitConfig(
            trunk=get_str(git_t, "trunk") or "master",
            release_branch=get_str(git_t, "release_branch") or "stable",
            remote=get_str(git_t, "remote") or "origin",
        )
        tag = get_str(image_t, "tag") or f"{package}-jupyter"

        bump_command = get_str_list(data, "bump_command") or ["bumpversion"]

        return cls(
            package=package,
            tests=get_str(data, "tests") or "tests",
            git=git,
            changelog=ChangelogConfig(
                path=get_str(changelog_t, "path") or "HISTORY.md",
                ref=get_str(changelog_t, "ref") or f"{git.remote}/{git.release_branch}",
            ),
            docs=DocsConfig(
                source=get_str(docs_t, "source") or "docs",
                api=get_str(docs_t, "api") or "docs/api",
                build=get_str(docs_t, "build") or "docs/_build",
            ),
            image=ImageConfig(
                tag=tag,
                archive=get_str(image_t, "archive") or f"{tag}.tar",
                mount=get_str(image_t, "mount") or f"/{package}",
                aliases=tuple(get_str_list(image_t, "aliases") or ()),
                port=get_int(image_t, "port") or DEFAULT_IMAGE_PORT,
                context=get_str(image_t, "context") or ".",
            ),
            test=TestConfig(sandbox_env=get_str(test_t, "sandbox_env") or "ENVTMPDIR"),
            publish=PublishConfig(
                test_repository_url=get_str(publish_t, "test_repository_url")
                or DEFAULT_TEST_REPOSITORY_URL,
            ),
            bump_command=tuple(bump_command),
        )


def read_pyproject(path: Path) -> Result[StrDict, ConfigError]:
    """Parse pyproject.toml, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def _package_from_project_name(data: Mapping[str, object]) -> str | None:
    project = get_table(data, "project") or {}
    name = get_str(project, "name")
    if name is None:
        return None
    return name.replace("-", "_").replace(".", "_").lower()


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load relflow configuration from a pyproject.toml file.

    Args:
        path: Path to pyproject.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = read_pyproject(path)
    if isinstance(result, Err):
        return result
    data = result.value

    try:
        tool = get_table(data, "tool") or {}
        settings = get_table(tool, "relflow") or {}
        package = get_str(settings, "package") or _package_from_project_name(data)
        if package is None:
            return Err(
                ConfigError(
                    "Cannot determine package name: set [project].name or [tool.relflow].package",
                    path=path,
                )
            )
        return Ok(Config.from_dict(settings, package=package))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
