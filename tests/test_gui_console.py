from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wireflip import gui
from wireflip.models import FlipbookOptions
from wireflip.workbook import sample_sheets, write_workbook


def _console(tmp_path: Path, inputs: List[str] | None = None) -> tuple[gui.FlipbookConsole, List[str]]:
    output: List[str] = []
    responses = iter(inputs or [])

    def fake_input(prompt: str) -> str:
        try:
            return next(responses)
        except StopIteration:
            raise EOFError from None

    console = gui.FlipbookConsole(
        options=FlipbookOptions(output_dir=tmp_path),
        input_fn=fake_input,
        output_fn=output.append,
    )
    return console, output


def test_navigation_commands(tmp_path: Path) -> None:
    console, output = _console(tmp_path)
    assert console.execute("n") is True
    assert console.state.current_point == "B"
    console.execute("p")
    console.execute("prev")
    assert console.state.current_point == "K"
    console.execute("goto c")
    assert console.state.current_point == "C"
    console.execute("goto Z")
    assert console.state.current_point == "C"
    assert any("Unknown point" in line for line in output)


def test_mode_commands(tmp_path: Path) -> None:
    console, output = _console(tmp_path)
    console.execute("raw")
    console.execute("auto")
    assert console.state.use_smoothed is False
    assert console.state.lock_axes is False
    console.execute("smooth")
    console.execute("lock")
    assert console.state.use_smoothed is True
    assert console.state.lock_axes is True
    assert any("Axes: Locked" in line for line in output)


def test_unknown_and_blank_commands(tmp_path: Path) -> None:
    console, output = _console(tmp_path)
    assert console.execute("") is True
    assert console.execute("bogus") is True
    assert output[-1].startswith("Unknown command")
    assert console.execute("quit") is False


def test_load_and_export(tmp_path: Path) -> None:
    workbook_path = write_workbook(sample_sheets(steps=6), tmp_path / "data.xlsx")
    console, output = _console(tmp_path)
    console.execute(f'load "{workbook_path}"')
    assert console.state.loaded is True
    assert len(console.state.current_series) == 6
    console.execute(f"export {tmp_path / 'png'}")
    assert (tmp_path / "png" / "flipbook_A.png").exists()
    console.execute(f"html {tmp_path / 'page.html'}")
    assert (tmp_path / "page.html").exists()


def test_load_missing_workbook_reports_error(tmp_path: Path) -> None:
    console, output = _console(tmp_path)
    assert console.load(tmp_path / "missing.xlsx") is False
    assert any("not found" in line for line in output)
    assert console.state.loaded is False


def test_tests_command_prints_summary(tmp_path: Path) -> None:
    console, output = _console(tmp_path)
    console.execute("tests")
    assert output[-1].strip() == "4/4 passed"


def test_launch_runs_until_end_of_input(tmp_path: Path) -> None:
    console, output = _console(tmp_path, ["n", "n"])
    console.launch()
    assert console.state.current_point == "C"
    assert output[-1] == "Closing flipbook console."


def test_launch_stops_on_quit(tmp_path: Path) -> None:
    console, output = _console(tmp_path, ["quit", "n"])
    console.launch()
    assert console.state.current_point == "A"


def test_gui_main_invokes_launch(monkeypatch: pytest.MonkeyPatch) -> None:
    called: dict[str, bool] = {}

    class DummyConsole(gui.FlipbookConsole):
        def launch(self) -> None:  # pragma: no cover - invoked via main
            called["launch"] = True

    monkeypatch.setattr(gui, "FlipbookConsole", DummyConsole)
    assert gui.main([]) == 0
    assert called.get("launch") is True
