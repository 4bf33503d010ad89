"""Tests for relflow.services.devtools."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from relflow.core.config import Config
from relflow.core.result import Err, Ok
from relflow.platform.process import ProcessError
from relflow.services.devtools import DevTools


def _tools(tmp_path: Path, **environ: str) -> DevTools:
    return DevTools(tmp_path, Config.for_package("greenguard"), python="py", environ=environ)


class TestCommands:
    def test_install_develop(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).install_commands("dev", editable=True) == [
            ["py", "-m", "pip", "install", "-e", ".[dev]"]
        ]

    def test_install_plain(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).install_commands() == [["py", "-m", "pip", "install", "."]]

    def test_lint_covers_package_and_tests(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).lint_commands() == [
            ["flake8", "greenguard", "tests"],
            ["isort", "--check-only", "greenguard", "tests"],
        ]

    def test_fix_lint_runs_three_tools_per_target(self, tmp_path: Path) -> None:
        commands = _tools(tmp_path).fix_lint_commands()

        assert [cmd[0] for cmd in commands] == [
            "autoflake", "autopep8", "isort", "autoflake", "autopep8", "isort",
        ]
        assert commands[0][-1] == "greenguard"
        assert commands[3][-1] == "tests"

    def test_pytest_without_sandbox(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).test_commands() == [
            ["py", "-m", "pytest", "--cov=greenguard"]
        ]

    def test_pytest_uses_sandbox_dir(self, tmp_path: Path) -> None:
        tools = _tools(tmp_path, ENVTMPDIR="/tmp/sandbox")

        assert tools.test_commands() == [
            ["py", "-m", "pytest", "--basetemp=/tmp/sandbox", "--cov=greenguard"]
        ]

    def test_docs_generates_api_then_html(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).docs_commands() == [
            ["sphinx-apidoc", "--separate", "--no-toc", "-o", "docs/api", "greenguard"],
            ["make", "-C", "docs", "html"],
        ]

    def test_publish_lists_dist_files(self, tmp_path: Path) -> None:
        (tmp_path / "dist").mkdir()
        (tmp_path / "dist" / "greenguard-0.1.0.tar.gz").write_text("")
        (tmp_path / "dist" / "greenguard-0.1.0-py3-none-any.whl").write_text("")

        assert _tools(tmp_path).publish_commands() == [
            [
                "twine",
                "upload",
                "dist/greenguard-0.1.0-py3-none-any.whl",
                "dist/greenguard-0.1.0.tar.gz",
            ]
        ]

    def test_test_publish_targets_test_index(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).publish_commands(test=True) == [
            ["twine", "upload", "--repository-url", "https://test.pypi.org/legacy/", "dist/*"]
        ]

    def test_docs_index(self, tmp_path: Path) -> None:
        assert _tools(tmp_path).docs_index == tmp_path / "docs" / "_build" / "html" / "index.html"


class TestRunAll:
    def test_stops_at_first_failure(self, tmp_path: Path) -> None:
        error = ProcessError(("flake8",), 1, "", "")
        with patch(
            "relflow.services.devtools.run_silent", side_effect=[Err(error), Ok(None)]
        ) as mock_run:
            result = _tools(tmp_path).lint()

        assert result == Err(error)
        assert mock_run.call_count == 1

    def test_runs_in_project_root(self, tmp_path: Path) -> None:
        with patch("relflow.services.devtools.run_silent", return_value=Ok(None)) as mock_run:
            assert _tools(tmp_path).test_all() == Ok(None)

        mock_run.assert_called_once_with(["tox", "-r"], cwd=tmp_path)
