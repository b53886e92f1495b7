"""Text-driven flipbook console.

Mirrors the window viewer for terminals and scripted sessions: the same
state object, the same navigation and toggles, domains printed instead of
drawn.
"""

from __future__ import annotations

import argparse
import logging
import shlex
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from .models import METRICS, Domain, ExportError, FlipbookOptions, WorkbookReadError
from .selftest import run_self_tests
from .state import FlipbookState
from .workbook import read_workbook, resolve_workbook_path

__all__ = ["FlipbookConsole", "main"]

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  n / next            next point (wraps)
  p / prev            previous point (wraps)
  goto <P>            jump to point P
  smooth | raw        choose smoothed or raw series
  lock | auto         global (locked) or per-point axes
  load <path>         load a workbook
  export [dir]        write flipbook_<P>.png
  html [path]         write flipbook_<P>.html
  tests               run the self-tests
  status              show the current view
  help                show this text
  quit                leave the console"""


def _format_domain(domain: Domain) -> str:
    return f"[{domain.low:.4g}, {domain.high:.4g}]"


class FlipbookConsole:
    """Very small command loop over a :class:`FlipbookState`."""

    def __init__(
        self,
        state: FlipbookState | None = None,
        *,
        options: FlipbookOptions | None = None,
        input_fn: Optional[Callable[[str], str]] = None,
        output_fn: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.options = options or FlipbookOptions()
        self.state = state or FlipbookState.from_options(self.options)
        self._input = input_fn or input
        self._output = output_fn or print
        self._commands: Dict[str, Callable[[Sequence[str]], None]] = {
            "n": lambda args: self._step(1),
            "next": lambda args: self._step(1),
            "p": lambda args: self._step(-1),
            "prev": lambda args: self._step(-1),
            "goto": self._goto,
            "smooth": lambda args: self._set_smoothed(True),
            "raw": lambda args: self._set_smoothed(False),
            "lock": lambda args: self._set_locked(True),
            "auto": lambda args: self._set_locked(False),
            "load": self._load,
            "export": self._export_png,
            "html": self._export_html,
            "tests": lambda args: self._run_tests(),
            "status": lambda args: self.print_status(),
            "help": lambda args: self._output(HELP_TEXT),
        }

    def launch(self) -> None:
        """Run the interactive loop until ``quit`` or end of input."""
        self._output("=== Wire Motion Flipbook ===")
        if self.options.workbook is not None:
            self.load(self.options.workbook)
        self.print_status()
        while True:
            try:
                line = self._input("flipbook> ")
            except (EOFError, KeyboardInterrupt):
                self._output("")
                break
            if not self.execute(line):
                break
        self._output("Closing flipbook console.")

    def execute(self, line: str) -> bool:
        """Run one command line; returns ``False`` when the session should end."""
        try:
            parts = shlex.split(line or "")
        except ValueError as exc:
            self._output(f"  ! {exc}")
            return True
        if not parts:
            return True
        command, args = parts[0].lower(), parts[1:]
        if command in {"quit", "exit", "q"}:
            return False
        handler = self._commands.get(command)
        if handler is None:
            self._output("Unknown command. Type 'help' for options.")
            return True
        handler(args)
        return True

    def load(self, path: Path) -> bool:
        try:
            sheets = read_workbook(path)
        except WorkbookReadError as exc:
            logger.warning("%s", exc)
            self._output(f"  ! {exc}")
            return False
        self.state.load_workbook(sheets)
        self._output(f"Loaded {Path(path).name}.")
        return True

    def print_status(self) -> None:
        state = self.state
        mode = "Smoothed" if state.use_smoothed else "Raw"
        axes = "Locked" if state.lock_axes else "Auto"
        self._output(
            f"Point {state.current_point} ({state.current_index + 1}/{len(state.points)}) | {mode} | "
            f"Axes: {axes} | {len(state.current_series)} row(s)"
        )
        self._output(f"  {state.status_message}")
        domains = state.domains
        self._output(f"  {'time':<6} {'Time (s)':<40} {_format_domain(domains.x)}")
        for metric in METRICS:
            self._output(f"  {metric.key:<6} {metric.title:<40} {_format_domain(domains.for_metric(metric.key))}")

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    def _step(self, delta: int) -> None:
        self.state.advance(delta)
        self.print_status()

    def _goto(self, args: Sequence[str]) -> None:
        if not args:
            self._output("  ! Usage: goto <point>")
            return
        try:
            self.state.select_point(args[0].upper())
        except ValueError as exc:
            self._output(f"  ! {exc}")
            return
        self.print_status()

    def _set_smoothed(self, flag: bool) -> None:
        self.state.set_smoothed(flag)
        self.print_status()

    def _set_locked(self, flag: bool) -> None:
        self.state.set_locked(flag)
        self.print_status()

    def _load(self, args: Sequence[str]) -> None:
        path = resolve_workbook_path(args[0] if args else None)
        if self.load(path):
            self.print_status()

    def _export_png(self, args: Sequence[str]) -> None:
        from .mpl_charts import export_png

        directory = Path(args[0]) if args else self.options.output_dir
        try:
            path = export_png(self.state, directory, dpi=self.options.dpi)
        except ExportError as exc:
            logger.warning("%s", exc)
            self._output(f"  ! PNG export failed: {exc}")
            return
        self._output(f"Saved {path}")

    def _export_html(self, args: Sequence[str]) -> None:
        from .plotly_charts import export_html

        target = Path(args[0]) if args else self.options.output_dir
        try:
            path = export_html(self.state, target)
        except ExportError as exc:
            logger.warning("%s", exc)
            self._output(f"  ! HTML export failed: {exc}")
            return
        self._output(f"Saved {path}")

    def _run_tests(self) -> None:
        results = run_self_tests(self.state)
        for result in results:
            self._output(f"  {result.describe()}")
        passed = sum(1 for result in results if result.ok)
        self._output(f"  {passed}/{len(results)} passed")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m wireflip.gui",
        description="Interactive console flipbook for per-point motion metrics.",
    )
    parser.add_argument("workbook", nargs="?", type=Path, help="Workbook to load on start (optional).")
    parser.add_argument("--output", type=Path, default=Path("."), help="Directory for exported files.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for launching the console flipbook."""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    options = FlipbookOptions(workbook=args.workbook, output_dir=args.output)
    FlipbookConsole(options=options).launch()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
