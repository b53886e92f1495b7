from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

POINTS: Tuple[str, ...] = ("A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K")

TIME_KEY = "t_k"
ALT_TIME_KEY = "t"
POINT_KEY = "Point"

WORKBOOK_ENV_VAR = "WIREFLIP_WORKBOOK"
DEFAULT_WORKBOOK_NAME = "processed_intermediate_data.xlsx"

# Fixed colour per series label, shared by every chart.
SERIES_COLORS: Dict[str, str] = {
    "Push": "#1f77b4",
    "Slice": "#ff7f0e",
    "Push/s": "#2ca02c",
    "Slice/s": "#d62728",
    "θ": "#9467bd",
    "ratio": "#8c564b",
}
DEFAULT_COLORS: Tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
)


def series_color(label: str, index: int = 0) -> str:
    """Return the fixed colour for *label*, cycling the defaults for unknown labels."""
    color = SERIES_COLORS.get(label)
    if color:
        return color
    return DEFAULT_COLORS[index % len(DEFAULT_COLORS)]


@dataclass(frozen=True)
class SeriesDefinition:
    """One plotted line: a raw/smoothed key pair sharing a display label."""

    key_raw: str
    key_smooth: str
    label: str

    def key_for(self, use_smoothed: bool) -> str:
        return self.key_smooth if use_smoothed else self.key_raw


@dataclass(frozen=True)
class MetricDefinition:
    """A charted quantity and the series drawn in its panel."""

    key: str
    title: str
    y_label: str
    series: Tuple[SeriesDefinition, ...]

    def active_keys(self, use_smoothed: bool) -> Tuple[str, ...]:
        return tuple(item.key_for(use_smoothed) for item in self.series)


METRICS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        key="disp",
        title="Push/Slice per step",
        y_label="Displacement (mm)",
        series=(
            SeriesDefinition("push_mm", "push_mm_smooth", "Push"),
            SeriesDefinition("slice_mm", "slice_mm_smooth", "Slice"),
        ),
    ),
    MetricDefinition(
        key="vel",
        title="Push/Slice per second",
        y_label="Velocity (mm/s)",
        series=(
            SeriesDefinition("push_mm_s", "push_mm_s_smooth", "Push/s"),
            SeriesDefinition("slice_mm_s", "slice_mm_s_smooth", "Slice/s"),
        ),
    ),
    MetricDefinition(
        key="theta",
        title="Angle between motion and wire tangent",
        y_label="Angle θ (deg)",
        series=(SeriesDefinition("theta_deg", "theta_deg_smooth", "θ"),),
    ),
    MetricDefinition(
        key="ratio",
        title="Slide-Push Ratio",
        y_label="Slide-Push Ratio",
        series=(SeriesDefinition("ratio", "ratio_smooth", "ratio"),),
    ),
)

METRIC_KEYS: Tuple[str, ...] = tuple(metric.key for metric in METRICS)

RECOGNIZED_FIELDS: frozenset[str] = frozenset(
    key
    for metric in METRICS
    for item in metric.series
    for key in (item.key_raw, item.key_smooth)
)


def metric_by_key(key: str) -> MetricDefinition:
    for metric in METRICS:
        if metric.key == key:
            return metric
    raise KeyError(f"Unknown metric '{key}'.")


@dataclass(frozen=True)
class SeriesRow:
    """One time sample for one point.

    ``values`` only holds the fields named by a series definition; anything
    else found on the source record is kept in ``extras`` and never charted.
    A field that is absent reads as missing (``None``), never as zero.
    """

    t_k: Optional[float] = None
    values: Mapping[str, Optional[float]] = field(default_factory=dict)
    extras: Mapping[str, Optional[float]] = field(default_factory=dict)

    def get(self, key: str) -> Optional[float]:
        if key == TIME_KEY:
            return self.t_k
        if key in self.values:
            return self.values[key]
        return self.extras.get(key)

    def sort_time(self) -> float:
        return self.t_k if self.t_k is not None else 0.0


PointSeriesStore = Dict[str, List[SeriesRow]]


class Domain(NamedTuple):
    """Closed axis interval ``[low, high]``."""

    low: float
    high: float


@dataclass(frozen=True)
class DomainSet:
    """Time domain plus one y domain per metric key."""

    x: Domain
    y: Mapping[str, Domain]

    def for_metric(self, key: str) -> Domain:
        return self.y[key]


@dataclass
class FlipbookOptions:
    """User-facing configuration for a flipbook session."""

    workbook: Path | None = None
    output_dir: Path = Path(".")
    start_point: str = POINTS[0]
    use_smoothed: bool = True
    lock_axes: bool = True
    dpi: int = 100

    def __post_init__(self) -> None:
        if self.workbook is not None:
            self.workbook = Path(self.workbook).expanduser().resolve()
        self.output_dir = Path(self.output_dir).expanduser().resolve()
        point = str(self.start_point or "").strip().upper()
        self.start_point = point if point in POINTS else POINTS[0]
        self.use_smoothed = bool(self.use_smoothed)
        self.lock_axes = bool(self.lock_axes)
        try:
            dpi = int(self.dpi)
        except (TypeError, ValueError):
            dpi = 100
        self.dpi = min(max(dpi, 50), 300)


class FlipbookError(Exception):
    """Failure reported to the user instead of propagating out of a view."""


class WorkbookReadError(FlipbookError):
    """The workbook could not be opened or parsed."""


class ExportError(FlipbookError):
    """A chart export could not be produced or written."""
