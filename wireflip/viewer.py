"""Interactive Matplotlib window for flipping through points.

Key bindings are connected while the viewer is mounted and disconnected when
it is unmounted or its window closes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .models import ExportError, WorkbookReadError
from .mpl_charts import DEFAULT_DPI, build_figure, export_png, figure_size_inches
from .selftest import run_self_tests
from .state import FlipbookState
from .workbook import read_workbook

__all__ = ["FlipbookViewer"]

logger = logging.getLogger(__name__)

KEY_HELP = "←/→ flip points  s raw/smoothed  l lock axes  f full screen  e export PNG  t self-tests"


class FlipbookViewer:
    """Matplotlib front end driving a :class:`FlipbookState`."""

    def __init__(
        self,
        state: FlipbookState,
        figure: Figure | None = None,
        *,
        dpi: int = DEFAULT_DPI,
        export_dir: Path = Path("."),
    ) -> None:
        self.state = state
        self.figure = figure
        self.dpi = dpi
        self.export_dir = Path(export_dir)
        self.notice: Optional[str] = None
        self._connections: List[int] = []
        self._actions: Dict[str, Callable[[], None]] = {
            "left": lambda: self.state.advance(-1),
            "right": lambda: self.state.advance(1),
            "s": lambda: self.state.set_smoothed(not self.state.use_smoothed),
            "l": lambda: self.state.set_locked(not self.state.lock_axes),
            "f": self._toggle_full_screen,
            "e": self._export,
            "t": self._run_self_tests,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return bool(self._connections)

    def mount(self) -> None:
        if self.mounted:
            return
        if self.figure is None:
            self.figure = plt.figure(figsize=figure_size_inches(self.dpi), dpi=self.dpi)
        canvas = self.figure.canvas
        manager = getattr(canvas, "manager", None)
        default_handler = getattr(manager, "key_press_handler_id", None)
        if default_handler is not None:
            # Matplotlib's own bindings use the same keys (arrows, s, l, f).
            canvas.mpl_disconnect(default_handler)
            manager.key_press_handler_id = None
        self._connections = [
            canvas.mpl_connect("key_press_event", self.on_key),
            canvas.mpl_connect("close_event", self.on_close),
        ]
        self.redraw()

    def unmount(self) -> None:
        if self.figure is None:
            return
        for cid in self._connections:
            self.figure.canvas.mpl_disconnect(cid)
        self._connections = []

    def __enter__(self) -> "FlipbookViewer":
        self.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    def show(self) -> None:
        """Mount, block in the GUI event loop, and unmount when the window closes."""
        with self:
            plt.show()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_key(self, event) -> None:
        self.handle_key(getattr(event, "key", None))

    def on_close(self, event) -> None:
        self.unmount()

    def handle_key(self, key: Optional[str]) -> bool:
        action = self._actions.get(key or "")
        if action is None:
            return False
        self.notice = None
        action()
        self.redraw()
        return True

    def load(self, path: Path) -> bool:
        """Load a workbook into the state; a read failure becomes a notice."""
        try:
            sheets = read_workbook(path)
        except WorkbookReadError as exc:
            logger.warning("%s", exc)
            self.notice = str(exc)
            self.redraw()
            return False
        self.state.load_workbook(sheets)
        self.notice = None
        self.redraw()
        return True

    def redraw(self) -> None:
        if self.figure is None:
            return
        build_figure(self.state, self.figure, dpi=self.dpi, notice=self.notice or KEY_HELP)
        self.figure.canvas.draw_idle()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _toggle_full_screen(self) -> None:
        self.state.toggle_full_screen()
        manager = getattr(self.figure.canvas, "manager", None) if self.figure is not None else None
        if manager is not None:
            manager.full_screen_toggle()

    def _export(self) -> None:
        try:
            path = export_png(self.state, self.export_dir, dpi=self.dpi)
        except ExportError as exc:
            logger.warning("%s", exc)
            self.notice = f"PNG export failed: {exc}"
            return
        self.notice = f"Saved {path.name}"

    def _run_self_tests(self) -> None:
        results = run_self_tests(self.state)
        failed = [result.name for result in results if not result.ok]
        if failed:
            self.notice = f"Self-tests failed: {', '.join(failed)}"
        else:
            self.notice = f"Self-tests: {len(results)}/{len(results)} passed"
