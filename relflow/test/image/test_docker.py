"""Tests for relflow.image.docker."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from relflow.core.result import Err, Ok
from relflow.image.docker import DockerCli
from relflow.platform.process import ProcessError


class TestQueries:
    def test_image_exists(self, tmp_path: Path) -> None:
        with patch("relflow.image.docker.run", return_value=Ok("[{}]")) as mock_run:
            assert DockerCli(tmp_path).image_exists("demo") is True
        mock_run.assert_called_once_with(["docker", "image", "inspect", "demo"], cwd=tmp_path)

    def test_image_missing(self, tmp_path: Path) -> None:
        error = ProcessError(("docker", "image", "inspect", "demo"), 1, "", "No such image")
        with patch("relflow.image.docker.run", return_value=Err(error)):
            assert DockerCli(tmp_path).image_exists("demo") is False

    def test_container_running(self, tmp_path: Path) -> None:
        with patch("relflow.image.docker.run", return_value=Ok("3f2a1b\n")):
            assert DockerCli(tmp_path).container_running("demo") is True
        with patch("relflow.image.docker.run", return_value=Ok("")):
            assert DockerCli(tmp_path).container_running("demo") is False


class TestOperations:
    def test_run_detached_command_line(self, tmp_path: Path) -> None:
        with patch("relflow.image.docker.run_silent", return_value=Ok(None)) as mock_run:
            DockerCli(tmp_path).run(
                "demo", name="demo", port=8888, volume="/src:/demo", detach=True
            )

        mock_run.assert_called_once_with(
            [
                "docker", "run", "--rm", "-d", "-v", "/src:/demo", "-ti",
                "-p8888:8888", "--name", "demo", "demo",
            ],
            cwd=tmp_path,
        )

    def test_save_and_load(self, tmp_path: Path) -> None:
        archive = tmp_path / "demo.tar"
        with patch("relflow.image.docker.run_silent", return_value=Ok(None)) as mock_run:
            cli = DockerCli(tmp_path)
            cli.save("demo", archive)
            cli.load(archive)

        assert mock_run.call_args_list[0].args[0] == [
            "docker", "save", "--output", str(archive), "demo",
        ]
        assert mock_run.call_args_list[1].args[0] == ["docker", "load", "--input", str(archive)]

    def test_remove_forces(self, tmp_path: Path) -> None:
        with patch("relflow.image.docker.run_silent", return_value=Ok(None)) as mock_run:
            DockerCli(tmp_path).remove("demo")
        assert mock_run.call_args.args[0] == ["docker", "rmi", "-f", "demo"]
