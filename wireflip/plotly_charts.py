"""Plotly rendering of the flipbook panels for standalone HTML pages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .models import METRICS, ExportError
from .state import FlipbookState

__all__ = ["build_plotly_figure", "export_html"]

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 1200
PANEL_HEIGHT = 220
PANEL_SPACING = 0.06


def _column(rows, key: str) -> List[Optional[float]]:
    return [row.get(key) for row in rows]


def build_plotly_figure(state: FlipbookState) -> go.Figure:
    """Stack the four metric panels of the current point in one Plotly figure."""
    rows = state.current_series
    domains = state.domains
    fig = make_subplots(
        rows=len(METRICS),
        cols=1,
        subplot_titles=[f"Point {state.current_point}: {metric.title}" for metric in METRICS],
        vertical_spacing=PANEL_SPACING,
    )
    times = [row.t_k for row in rows]
    for index, metric in enumerate(METRICS, start=1):
        for key, label, color in state.panel_series(metric):
            fig.add_trace(
                go.Scatter(
                    x=times,
                    y=_column(rows, key),
                    mode="lines",
                    line={"color": color, "width": 1.8},
                    name=label,
                    legendgroup=metric.key,
                    connectgaps=False,
                ),
                row=index,
                col=1,
            )
        fig.add_hline(y=0, line={"color": "#888888", "dash": "dash", "width": 1}, row=index, col=1)
        y_domain = domains.for_metric(metric.key)
        fig.update_yaxes(title_text=metric.y_label, range=[y_domain.low, y_domain.high], row=index, col=1)
        fig.update_xaxes(
            title_text="Time (s)",
            range=[domains.x.low, domains.x.high],
            tickformat=".3f",
            row=index,
            col=1,
        )
    fig.update_layout(
        template="plotly_white",
        width=DEFAULT_WIDTH,
        height=PANEL_HEIGHT * len(METRICS) + 120,
        margin={"l": 72, "r": 24, "t": 60, "b": 40},
        title={"text": state.status_message, "x": 0.01, "font": {"size": 12}},
        legend={"orientation": "h", "y": 1.04, "x": 1.0, "xanchor": "right"},
        showlegend=True,
    )
    return fig


def export_html(state: FlipbookState, path: Path) -> Path:
    """Write the current point's panels as a self-contained HTML page."""
    target = Path(path).expanduser()
    if target.suffix.lower() != ".html":
        target = target / f"flipbook_{state.current_point}.html"
    try:
        fig = build_plotly_figure(state)
        target.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(target), include_plotlyjs=True, full_html=True)
    except (OSError, ValueError) as exc:
        raise ExportError(f"Unable to export HTML to {target}: {exc}") from exc
    logger.info("Exported %s", target)
    return target.resolve()
