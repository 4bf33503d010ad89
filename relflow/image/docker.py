"""Docker CLI adapter used by the image lifecycle."""

from __future__ import annotations

from pathlib import Path

from relflow.core.result import Ok, Result
from relflow.platform.process import ProcessError, run, run_silent

__all__ = ["DockerCli"]


class DockerCli:
    """Thin wrapper over the ``docker`` executable.

    Queries capture output; operations stream it to the terminal.
    """

    def __init__(self, cwd: Path, executable: str = "docker") -> None:
        self.cwd = cwd
        self.executable = executable

    def image_exists(self, tag: str) -> bool:
        result = run([self.executable, "image", "inspect", tag], cwd=self.cwd)
        return isinstance(result, Ok)

    def container_running(self, name: str) -> bool:
        result = run(
            [self.executable, "ps", "--quiet", "--filter", f"name=^/{name}$"],
            cwd=self.cwd,
        )
        return isinstance(result, Ok) and result.value.strip() != ""

    def build(self, tag: str, context: str) -> Result[None, ProcessError]:
        return self._op("build", "-t", tag, context)

    def save(self, tag: str, archive: Path) -> Result[None, ProcessError]:
        return self._op("save", "--output", str(archive), tag)

    def load(self, archive: Path) -> Result[None, ProcessError]:
        return self._op("load", "--input", str(archive))

    def run(
        self,
        tag: str,
        *,
        name: str,
        port: int,
        volume: str,
        detach: bool,
    ) -> Result[None, ProcessError]:
        args = ["run", "--rm"]
        if detach:
            args.append("-d")
        args += ["-v", volume, "-ti", f"-p{port}:{port}", "--name", name, tag]
        return self._op(*args)

    def stop(self, name: str) -> Result[None, ProcessError]:
        return self._op("stop", name)

    def tag(self, source: str, target: str) -> Result[None, ProcessError]:
        return self._op("tag", source, target)

    def push(self, ref: str) -> Result[None, ProcessError]:
        return self._op("push", ref)

    def remove(self, tag: str) -> Result[None, ProcessError]:
        return self._op("rmi", "-f", tag)

    def _op(self, *args: str) -> Result[None, ProcessError]:
        return run_silent([self.executable, *args], cwd=self.cwd)
