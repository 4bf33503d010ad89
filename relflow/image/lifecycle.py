"""Interactive environment image lifecycle.

States and transitions::

    absent --build--> built --save--> archived
    archived --load--> built
    built --start--> running --stop--> built
    built --run--> (foreground session) --> built
    any --clean--> absent

The image itself lives in the local docker daemon. The lifecycle observes
its state once, on first use, and then tracks the transitions it performs.
A build holds a lock file naming its process for its duration; while it
exists the observed state is ``building`` and every other operation is
refused. A lock left by a process that has exited is discarded.
"""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from relflow.core.config import ImageConfig
from relflow.core.result import Err, Ok, Result
from relflow.pipeline.errors import DockerStateError, InvalidConfigError
from relflow.platform.process import ProcessError

__all__ = ["DockerClient", "ImageError", "ImageLifecycle", "ImageState"]

type ImageError = DockerStateError | InvalidConfigError | ProcessError


class ImageState(StrEnum):
    ABSENT = "absent"
    BUILDING = "building"
    BUILT = "built"
    ARCHIVED = "archived"
    RUNNING = "running"


# States that imply the image exists locally
_PRESENT = frozenset({ImageState.BUILT, ImageState.RUNNING})


class DockerClient(Protocol):
    def image_exists(self, tag: str) -> bool: ...

    def container_running(self, name: str) -> bool: ...

    def build(self, tag: str, context: str) -> Result[None, ProcessError]: ...

    def save(self, tag: str, archive: Path) -> Result[None, ProcessError]: ...

    def load(self, archive: Path) -> Result[None, ProcessError]: ...

    def run(
        self, tag: str, *, name: str, port: int, volume: str, detach: bool
    ) -> Result[None, ProcessError]: ...

    def stop(self, name: str) -> Result[None, ProcessError]: ...

    def tag(self, source: str, target: str) -> Result[None, ProcessError]: ...

    def push(self, ref: str) -> Result[None, ProcessError]: ...

    def remove(self, tag: str) -> Result[None, ProcessError]: ...


class ImageLifecycle:
    """Build, archive, load, run and publish the project image.

    Args:
        docker: Docker collaborator.
        config: Image identity (tag, aliases, port, archive name).
        root: Project root; mounted into the container and base for the archive.
        lock_dir: Directory holding the build lock file.
    """

    def __init__(
        self,
        docker: DockerClient,
        config: ImageConfig,
        root: Path,
        lock_dir: Path,
    ) -> None:
        self.docker = docker
        self.config = config
        self.root = root
        self.lock_path = lock_dir / f"{config.tag}.build.lock"
        self._state: ImageState | None = None

    @property
    def archive_path(self) -> Path:
        return self.root / self.config.archive

    @property
    def state(self) -> ImageState:
        if self._state is None:
            self._state = self.observe()
        return self._state

    def observe(self) -> ImageState:
        """Query the current state from the lock file and the docker daemon.

        A lock whose owner process has exited is stale: it is removed and
        the daemon is queried as if no build had started.
        """
        if self.lock_path.exists():
            if _lock_owner_alive(self.lock_path):
                return ImageState.BUILDING
            self.lock_path.unlink(missing_ok=True)
        if self.docker.container_running(self.config.tag):
            return ImageState.RUNNING
        if self.docker.image_exists(self.config.tag):
            return ImageState.BUILT
        if self.archive_path.exists():
            return ImageState.ARCHIVED
        return ImageState.ABSENT

    def build(self) -> Result[None, ImageError]:
        if self.state == ImageState.BUILDING:
            return Err(DockerStateError("build", self.state))

        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.lock_path, "x", encoding="utf-8") as handle:
                handle.write(str(os.getpid()))
        except FileExistsError:
            return Err(DockerStateError("build", ImageState.BUILDING))

        try:
            result = self.docker.build(self.config.tag, self.config.context)
        finally:
            self.lock_path.unlink(missing_ok=True)

        if isinstance(result, Err):
            return result
        self._state = ImageState.BUILT
        return Ok(None)

    def save(self) -> Result[None, ImageError]:
        if not self._has_image():
            return Err(DockerStateError("save", self.state))
        result = self.docker.save(self.config.tag, self.archive_path)
        if isinstance(result, Err):
            return result
        # A running container is unaffected by writing the archive
        if self.state != ImageState.RUNNING:
            self._state = ImageState.ARCHIVED
        return Ok(None)

    def load(self) -> Result[None, ImageError]:
        if self.state == ImageState.BUILDING or not self.archive_path.exists():
            return Err(DockerStateError("load", self.state))
        result = self.docker.load(self.archive_path)
        if isinstance(result, Err):
            return result
        if self.state != ImageState.RUNNING:
            self._state = ImageState.BUILT
        return Ok(None)

    def run(self) -> Result[None, ImageError]:
        """Run the image in the foreground; returns when the session ends."""
        return self._launch("run", detach=False)

    def start(self) -> Result[None, ImageError]:
        """Run the image as a daemon."""
        return self._launch("start", detach=True)

    def stop(self) -> Result[None, ImageError]:
        refused = self._require("stop", {ImageState.RUNNING})
        if refused is not None:
            return Err(refused)
        result = self.docker.stop(self.config.tag)
        if isinstance(result, Err):
            return result
        self._state = ImageState.BUILT
        return Ok(None)

    def push(self) -> Result[None, ImageError]:
        """Tag the local image under every alias and push each one."""
        if not self.config.aliases:
            return Err(InvalidConfigError("no registry aliases configured for image push"))
        if not self._has_image():
            return Err(DockerStateError("push", self.state))
        source = f"{self.config.tag}:latest"
        for alias in self.config.aliases:
            tagged = self.docker.tag(source, alias)
            if isinstance(tagged, Err):
                return tagged
            pushed = self.docker.push(alias)
            if isinstance(pushed, Err):
                return pushed
        return Ok(None)

    def clean(self) -> Result[None, ImageError]:
        """Force-remove the local image."""
        if self.state == ImageState.BUILDING:
            return Err(DockerStateError("clean", self.state))
        result = self.docker.remove(self.config.tag)
        if isinstance(result, Err):
            return result
        self._state = ImageState.ABSENT
        return Ok(None)

    def _launch(self, operation: str, *, detach: bool) -> Result[None, ImageError]:
        refused = self._require(operation, {ImageState.BUILT})
        if refused is not None:
            return Err(refused)
        result = self.docker.run(
            self.config.tag,
            name=self.config.tag,
            port=self.config.port,
            volume=f"{self.root}:{self.config.mount}",
            detach=detach,
        )
        if isinstance(result, Err):
            return result
        self._state = ImageState.RUNNING if detach else ImageState.BUILT
        return Ok(None)

    def _has_image(self) -> bool:
        # An archive on disk says nothing about the daemon, so ask it
        if self.state == ImageState.ARCHIVED:
            return self.docker.image_exists(self.config.tag)
        return self.state in _PRESENT

    def _require(
        self, operation: str, allowed: set[ImageState]
    ) -> DockerStateError | None:
        if self.state not in allowed:
            return DockerStateError(operation, self.state)
        return None


def _lock_owner_alive(lock_path: Path) -> bool:
    """Whether the process that wrote the build lock still exists."""
    try:
        pid = int(lock_path.read_text(encoding="utf-8").strip())
    except FileNotFoundError:
        return False
    except ValueError:
        # Unreadable owner; the writer may not have flushed its pid yet
        return True
    if os.name == "nt":
        # os.kill terminates the target on Windows; keep the lock
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by another user
        return True
    return True
