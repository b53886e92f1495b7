"""Matplotlib renderer for the flipbook panels.

Every figure uses the same pixel layout: fixed panel size, fixed margins and
no tight-layout pass. Combined with the locked domains this keeps the charts
of every point directly comparable and exported images reproducible.
Exports go through :class:`matplotlib.figure.Figure` without pyplot, so they
work under any backend.
"""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import FormatStrFormatter

from .models import METRICS, Domain, ExportError, MetricDefinition, SeriesRow
from .state import FlipbookState, PanelSeries

__all__ = [
    "PANEL_WIDTH",
    "PANEL_HEIGHT",
    "build_figure",
    "draw_metric_panel",
    "export_all_png",
    "export_png",
    "figure_size_inches",
    "render_flipbook_png",
]

logger = logging.getLogger(__name__)

PANEL_WIDTH = 1200  # px, full panel width
PANEL_HEIGHT = 220  # px per metric panel
PANEL_GAP = 24  # px between panels
HEADER_HEIGHT = 36  # px above the first panel
FOOTER_HEIGHT = 12  # px below the last panel
AXES_MARGIN = {"top": 40, "right": 24, "bottom": 40, "left": 72}  # px inside each panel
DEFAULT_DPI = 100

LINE_WIDTH = 1.8
GRID_DASHES = (0, (3, 3))
REFERENCE_DASHES = (0, (4, 4))
REFERENCE_COLOR = "#888888"
NOTICE_COLOR = "#C0504D"
HEADER_COLOR = "#404040"


def figure_size_px(panel_count: int = len(METRICS)) -> Tuple[int, int]:
    height = HEADER_HEIGHT + FOOTER_HEIGHT + panel_count * PANEL_HEIGHT + max(panel_count - 1, 0) * PANEL_GAP
    return PANEL_WIDTH, height


def figure_size_inches(dpi: int = DEFAULT_DPI, panel_count: int = len(METRICS)) -> Tuple[float, float]:
    width, height = figure_size_px(panel_count)
    return width / dpi, height / dpi


def panel_rect(index: int, panel_count: int = len(METRICS)) -> Tuple[float, float, float, float]:
    """Axes rectangle of panel *index* in figure coordinates."""
    width_px, height_px = figure_size_px(panel_count)
    panel_top = HEADER_HEIGHT + index * (PANEL_HEIGHT + PANEL_GAP)
    left = AXES_MARGIN["left"]
    axes_width = PANEL_WIDTH - AXES_MARGIN["left"] - AXES_MARGIN["right"]
    axes_height = PANEL_HEIGHT - AXES_MARGIN["top"] - AXES_MARGIN["bottom"]
    bottom = height_px - (panel_top + PANEL_HEIGHT - AXES_MARGIN["bottom"])
    return (left / width_px, bottom / height_px, axes_width / width_px, axes_height / height_px)


def _as_float(value: Optional[float]) -> float:
    return np.nan if value is None else value


def _column(rows: Sequence[SeriesRow], key: str) -> np.ndarray:
    return np.array([_as_float(row.get(key)) for row in rows], dtype=float)


def draw_metric_panel(
    ax: Axes,
    rows: Sequence[SeriesRow],
    metric: MetricDefinition,
    x_domain: Domain,
    y_domain: Domain,
    series: Sequence[PanelSeries],
    *,
    point: str = "",
) -> None:
    """Draw one metric panel onto *ax* using the supplied axis domains."""
    times = np.array([_as_float(row.t_k) for row in rows], dtype=float)
    for key, label, color in series:
        # Missing samples are NaN, which leaves a gap in the line.
        ax.plot(times, _column(rows, key), color=color, linewidth=LINE_WIDTH, label=label)
    ax.axhline(0.0, color=REFERENCE_COLOR, linestyle=REFERENCE_DASHES, linewidth=1.0)
    ax.grid(linestyle=GRID_DASHES, linewidth=0.6, alpha=0.7)
    ax.set_xlim(x_domain.low, x_domain.high)
    ax.set_ylim(y_domain.low, y_domain.high)
    ax.xaxis.set_major_formatter(FormatStrFormatter("%.3f"))
    ax.tick_params(labelsize=8)
    ax.set_xlabel("Time (s)", fontsize=9)
    ax.set_ylabel(metric.y_label, fontsize=9)
    title = f"Point {point}: {metric.title}" if point else metric.title
    ax.set_title(title, fontsize=10, fontweight="bold", loc="left")
    handles, labels = ax.get_legend_handles_labels()
    if handles:
        ax.legend(
            handles,
            labels,
            loc="lower right",
            bbox_to_anchor=(1.0, 1.0),
            ncol=len(handles),
            frameon=False,
            fontsize=8,
            borderaxespad=0.2,
        )


def build_figure(
    state: FlipbookState,
    figure: Figure | None = None,
    *,
    dpi: int = DEFAULT_DPI,
    notice: Optional[str] = None,
) -> Figure:
    """Lay out all metric panels for the state's current point.

    When *figure* is given it is cleared and reused, which is how the
    interactive viewer redraws after each key press.
    """
    if figure is None:
        figure = Figure(figsize=figure_size_inches(dpi), dpi=dpi)
    else:
        figure.clear()

    height_px = figure_size_px()[1]
    mode = "Smoothed" if state.use_smoothed else "Raw"
    axes_mode = "Locked" if state.lock_axes else "Auto"
    header = f"Point {state.current_point}   |   {mode}   |   Axes: {axes_mode}   |   {state.status_message}"
    figure.text(AXES_MARGIN["left"] / PANEL_WIDTH, 1 - 12 / height_px, header, fontsize=9, color=HEADER_COLOR, va="top")
    if notice:
        figure.text(
            1 - AXES_MARGIN["right"] / PANEL_WIDTH,
            1 - 12 / height_px,
            notice,
            fontsize=9,
            color=NOTICE_COLOR,
            ha="right",
            va="top",
        )

    domains = state.domains
    rows = state.current_series
    for index, metric in enumerate(METRICS):
        ax = figure.add_axes(panel_rect(index))
        draw_metric_panel(
            ax,
            rows,
            metric,
            domains.x,
            domains.for_metric(metric.key),
            state.panel_series(metric),
            point=state.current_point,
        )
    return figure


def render_flipbook_png(state: FlipbookState, *, dpi: int = DEFAULT_DPI) -> bytes:
    """Render the current point's panels as PNG bytes."""
    return _figure_to_png(build_figure(state, dpi=dpi))


def export_png(state: FlipbookState, directory: Path, *, dpi: int = DEFAULT_DPI) -> Path:
    """Write ``flipbook_{point}.png`` into *directory* and return its path."""
    target = Path(directory).expanduser() / f"flipbook_{state.current_point}.png"
    try:
        data = render_flipbook_png(state, dpi=dpi)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except (OSError, ValueError, RuntimeError) as exc:
        raise ExportError(f"Unable to export PNG to {target}: {exc}") from exc
    logger.info("Exported %s", target)
    return target.resolve()


def export_all_png(state: FlipbookState, directory: Path, *, dpi: int = DEFAULT_DPI) -> List[Path]:
    """Export every point in order, restoring the current point afterwards."""
    original = state.current_point
    written: List[Path] = []
    try:
        for point in state.points:
            state.select_point(point)
            written.append(export_png(state, directory, dpi=dpi))
    finally:
        state.select_point(original)
    return written


def _figure_to_png(fig: Figure) -> bytes:
    buffer = BytesIO()
    # No bbox_inches="tight": the pixel size must not depend on the content.
    fig.savefig(buffer, format="png", dpi=fig.dpi)
    buffer.seek(0)
    return buffer.getvalue()

