from __future__ import annotations

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg", force=True)

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wireflip import cli, viewer


@pytest.fixture
def sample_workbook(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> Path:
    path = tmp_path / "sample.xlsx"
    assert cli.main(["sample", str(path), "--steps", "5"]) == 0
    capsys.readouterr()
    return path


def test_sample_writes_workbook(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["sample", str(tmp_path / "out"), "--steps", "4"])
    assert exit_code == 0
    assert (tmp_path / "out.xlsx").exists()
    assert "Wrote sample workbook" in capsys.readouterr().out


def test_summary_prints_counts_and_domains(sample_workbook: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["summary", str(sample_workbook)]) == 0
    out = capsys.readouterr().out
    assert "Rows per point (smoothed):" in out
    assert "  A: 5" in out
    assert "  K: 5" in out
    assert "  disp: [" in out


def test_summary_uses_environment_workbook(
    sample_workbook: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("WIREFLIP_WORKBOOK", str(sample_workbook))
    assert cli.main(["summary", "--raw"]) == 0
    assert "Rows per point (raw):" in capsys.readouterr().out


def test_summary_missing_workbook_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["summary", str(tmp_path / "missing.xlsx")])
    assert "not found" in str(excinfo.value)


def test_export_all_png(sample_workbook: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output = tmp_path / "charts"
    assert cli.main(["export", str(sample_workbook), "--output", str(output), "--all"]) == 0
    assert len(list(output.glob("flipbook_*.png"))) == 11
    assert capsys.readouterr().out.count("Saved") == 11


def test_export_single_point_html(sample_workbook: Path, tmp_path: Path) -> None:
    output = tmp_path / "html"
    exit_code = cli.main(
        ["export", str(sample_workbook), "--output", str(output), "--point", "c", "--format", "html", "--raw"]
    )
    assert exit_code == 0
    assert (output / "flipbook_C.html").exists()


def test_export_rejects_unknown_point(sample_workbook: Path, tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["export", str(sample_workbook), "--output", str(tmp_path), "--point", "Z"])
    assert excinfo.value.code == 2


def test_selftest_exit_code(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    assert cli.main(["selftest"]) == 0
    assert "4/4 passed" in capsys.readouterr().out

    def failing(state=None):
        from wireflip.selftest import SelfTestResult

        return [SelfTestResult("broken", False, "boom")]

    monkeypatch.setattr(cli, "run_self_tests", failing)
    assert cli.main(["selftest"]) == 1
    assert "✗ broken: boom" in capsys.readouterr().out


def test_view_opens_viewer(sample_workbook: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    shown: dict[str, object] = {}

    def fake_show(self: viewer.FlipbookViewer) -> None:
        shown["point"] = self.state.current_point
        shown["locked"] = self.state.lock_axes

    monkeypatch.setattr(viewer.FlipbookViewer, "show", fake_show)
    assert cli.main(["view", str(sample_workbook), "--point", "d", "--auto-axes"]) == 0
    assert shown == {"point": "D", "locked": False}


def test_console_command_launches(sample_workbook: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from wireflip import gui

    launched: dict[str, Path] = {}

    def fake_launch(self: gui.FlipbookConsole) -> None:
        launched["workbook"] = self.options.workbook

    monkeypatch.setattr(gui.FlipbookConsole, "launch", fake_launch)
    assert cli.main(["console", str(sample_workbook)]) == 0
    assert launched["workbook"] == sample_workbook.resolve()
