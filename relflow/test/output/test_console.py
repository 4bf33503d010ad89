"""Tests for relflow.output.console module."""

from __future__ import annotations

import pytest

from relflow.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


def _public_methods(cls: type) -> set[str]:
    return {
        name
        for name, member in vars(cls).items()
        if callable(member) and not name.startswith("_")
    }


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.STEP) == "step"


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("broken")
        console.warning("careful")
        assert console.messages == ["OK done", "error: broken", "warning: careful"]
        assert console.has_error()

    def test_steps(self) -> None:
        console = MockConsole()
        console.step("clean")
        console.print("removed build")
        console.step("dist")
        assert console.steps == ["clean", "dist"]

    def test_find(self) -> None:
        console = MockConsole()
        console.print("image: built")
        console.print("removed dist")
        assert [o.message for o in console.find("image")] == ["image: built"]


class TestRichConsole:
    def test_writes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.step("publish")
        console.success("on branch master")

        out = capsys.readouterr().out
        assert "> publish" in out
        assert "OK on branch master" in out

    def test_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).error("boom")

        captured = capsys.readouterr()
        assert "error: boom" in captured.err
        assert captured.out == ""


def test_backends_offer_exactly_the_protocol() -> None:
    protocol = _public_methods(ConsoleProtocol)

    assert _public_methods(RichConsole) == protocol
    assert _public_methods(MockConsole) - {"find", "has_error"} == protocol
