"""Tests for relflow.image.lifecycle."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from relflow.core.config import ImageConfig
from relflow.core.result import Err, Ok
from relflow.image.lifecycle import ImageLifecycle, ImageState
from relflow.pipeline.errors import DockerStateError, InvalidConfigError
from relflow.platform.process import ProcessError
from relflow.test.fakes import FakeDocker

_CONFIG = ImageConfig(
    tag="greenguard-jupyter",
    archive="greenguard-jupyter.tar",
    mount="/greenguard",
    aliases=("mlbazaar/greenguard:jupyter",),
)


def _lifecycle(tmp_path: Path, docker: FakeDocker | None = None) -> ImageLifecycle:
    return ImageLifecycle(
        docker or FakeDocker(),
        _CONFIG,
        root=tmp_path,
        lock_dir=tmp_path / ".relflow",
    )


class TestObserve:
    def test_absent(self, tmp_path: Path) -> None:
        assert _lifecycle(tmp_path).state == ImageState.ABSENT

    def test_built(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        assert _lifecycle(tmp_path, docker).state == ImageState.BUILT

    def test_running(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"}, running={"greenguard-jupyter"})
        assert _lifecycle(tmp_path, docker).state == ImageState.RUNNING

    def test_archived_without_image(self, tmp_path: Path) -> None:
        (tmp_path / "greenguard-jupyter.tar").write_bytes(b"x")
        assert _lifecycle(tmp_path).state == ImageState.ARCHIVED

    def test_building_while_lock_held(self, tmp_path: Path) -> None:
        lock = tmp_path / ".relflow" / "greenguard-jupyter.build.lock"
        lock.parent.mkdir()
        lock.write_text(str(os.getpid()))
        assert _lifecycle(tmp_path).state == ImageState.BUILDING

    def test_lock_of_exited_build_is_discarded(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)
        lifecycle.lock_path.parent.mkdir()
        lifecycle.lock_path.write_text("4242")

        with patch("relflow.image.lifecycle.os.kill", side_effect=ProcessLookupError):
            assert lifecycle.state == ImageState.BUILT

        assert not lifecycle.lock_path.exists()

    def test_lock_owned_by_other_user_is_kept(self, tmp_path: Path) -> None:
        lifecycle = _lifecycle(tmp_path)
        lifecycle.lock_path.parent.mkdir()
        lifecycle.lock_path.write_text("1")

        with patch("relflow.image.lifecycle.os.kill", side_effect=PermissionError):
            assert lifecycle.state == ImageState.BUILDING

        assert lifecycle.lock_path.exists()


class TestTransitions:
    def test_save_requires_image(self, tmp_path: Path) -> None:
        lifecycle = _lifecycle(tmp_path)

        assert lifecycle.save() == Err(DockerStateError("save", ImageState.ABSENT))

    def test_build_then_save_archives(self, tmp_path: Path) -> None:
        docker = FakeDocker()
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.save() == Err(DockerStateError("save", "absent"))
        assert lifecycle.build() == Ok(None)
        assert lifecycle.state == ImageState.BUILT
        assert lifecycle.save() == Ok(None)
        assert lifecycle.state == ImageState.ARCHIVED
        assert docker.log == [
            "docker build -t greenguard-jupyter .",
            "docker save --output greenguard-jupyter.tar greenguard-jupyter",
        ]

    def test_build_releases_lock(self, tmp_path: Path) -> None:
        lifecycle = _lifecycle(tmp_path)

        lifecycle.build()

        assert not lifecycle.lock_path.exists()

    def test_build_releases_lock_on_failure(self, tmp_path: Path) -> None:
        lifecycle = _lifecycle(tmp_path, FakeDocker(fail={"build"}))

        result = lifecycle.build()

        assert isinstance(result, Err)
        assert isinstance(result.error, ProcessError)
        assert not lifecycle.lock_path.exists()
        assert lifecycle.state == ImageState.ABSENT

    def test_build_refused_mid_build(self, tmp_path: Path) -> None:
        docker = FakeDocker()
        lifecycle = _lifecycle(tmp_path, docker)
        lifecycle.lock_path.parent.mkdir()
        lifecycle.lock_path.write_text(str(os.getpid()))

        assert lifecycle.build() == Err(DockerStateError("build", ImageState.BUILDING))
        assert docker.log == []

    def test_build_and_clean_after_interrupted_build(self, tmp_path: Path) -> None:
        docker = FakeDocker()
        lifecycle = _lifecycle(tmp_path, docker)
        lifecycle.lock_path.parent.mkdir()
        lifecycle.lock_path.write_text("4242")

        with patch("relflow.image.lifecycle.os.kill", side_effect=ProcessLookupError):
            assert lifecycle.build() == Ok(None)
            assert _lifecycle(tmp_path, docker).clean() == Ok(None)

        assert docker.log[0] == "docker build -t greenguard-jupyter ."
        assert not lifecycle.lock_path.exists()

    def test_save_with_stale_archive_and_no_image(self, tmp_path: Path) -> None:
        (tmp_path / "greenguard-jupyter.tar").write_bytes(b"x")
        lifecycle = _lifecycle(tmp_path)

        assert lifecycle.save() == Err(DockerStateError("save", ImageState.ARCHIVED))

    def test_load_from_archive(self, tmp_path: Path) -> None:
        (tmp_path / "greenguard-jupyter.tar").write_bytes(b"x")
        docker = FakeDocker()
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.load() == Ok(None)
        assert lifecycle.state == ImageState.BUILT
        assert docker.log == ["docker load --input greenguard-jupyter.tar"]

    def test_load_without_archive(self, tmp_path: Path) -> None:
        assert _lifecycle(tmp_path).load() == Err(DockerStateError("load", ImageState.ABSENT))

    def test_start_then_stop(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.start() == Ok(None)
        assert lifecycle.state == ImageState.RUNNING
        assert lifecycle.stop() == Ok(None)
        assert lifecycle.state == ImageState.BUILT
        assert docker.log[0] == (
            "docker run -d -p8888:8888 --name greenguard-jupyter greenguard-jupyter"
        )

    def test_save_while_running_keeps_container(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.start() == Ok(None)
        assert lifecycle.save() == Ok(None)
        assert lifecycle.state == ImageState.RUNNING
        assert lifecycle.stop() == Ok(None)
        assert lifecycle.state == ImageState.BUILT

    def test_load_while_running_keeps_container(self, tmp_path: Path) -> None:
        (tmp_path / "greenguard-jupyter.tar").write_bytes(b"x")
        docker = FakeDocker(images={"greenguard-jupyter"}, running={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.load() == Ok(None)
        assert lifecycle.state == ImageState.RUNNING
        assert lifecycle.stop() == Ok(None)

    def test_run_is_foreground(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.run() == Ok(None)
        assert lifecycle.state == ImageState.BUILT
        assert docker.log == ["docker run -p8888:8888 --name greenguard-jupyter greenguard-jupyter"]

    def test_run_requires_built(self, tmp_path: Path) -> None:
        assert _lifecycle(tmp_path).run() == Err(DockerStateError("run", ImageState.ABSENT))

    def test_start_refused_while_running(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"}, running={"greenguard-jupyter"})

        result = _lifecycle(tmp_path, docker).start()

        assert result == Err(DockerStateError("start", ImageState.RUNNING))

    def test_stop_requires_running(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        assert _lifecycle(tmp_path, docker).stop() == Err(
            DockerStateError("stop", ImageState.BUILT)
        )

    def test_push_tags_and_pushes_aliases(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})

        assert _lifecycle(tmp_path, docker).push() == Ok(None)
        assert docker.log == [
            "docker tag greenguard-jupyter:latest mlbazaar/greenguard:jupyter",
            "docker push mlbazaar/greenguard:jupyter",
        ]

    def test_push_after_save(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        lifecycle.save()

        assert lifecycle.push() == Ok(None)

    def test_push_requires_image(self, tmp_path: Path) -> None:
        assert _lifecycle(tmp_path).push() == Err(DockerStateError("push", ImageState.ABSENT))

    def test_push_without_aliases(self, tmp_path: Path) -> None:
        lifecycle = ImageLifecycle(
            FakeDocker(images={"x"}),
            ImageConfig(tag="x", archive="x.tar", mount="/x"),
            root=tmp_path,
            lock_dir=tmp_path,
        )

        result = lifecycle.push()

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidConfigError)

    def test_clean_removes_image(self, tmp_path: Path) -> None:
        docker = FakeDocker(images={"greenguard-jupyter"})
        lifecycle = _lifecycle(tmp_path, docker)

        assert lifecycle.clean() == Ok(None)
        assert lifecycle.state == ImageState.ABSENT
        assert docker.images == set()
