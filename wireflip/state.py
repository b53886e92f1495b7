from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .domains import compute_global_domain_set, compute_local_domains
from .models import (
    POINTS,
    DomainSet,
    FlipbookOptions,
    MetricDefinition,
    PointSeriesStore,
    SeriesRow,
    series_color,
)
from .resolver import SheetMapping, resolve_point_series

__all__ = ["FlipbookState", "PanelSeries"]

logger = logging.getLogger(__name__)

PanelSeries = Tuple[str, str, str]

WAITING_MESSAGE = "Waiting for workbook upload…"
LOCKED_MESSAGE = "Workbook loaded. Domains locked per metric."
AUTO_MESSAGE = "Workbook loaded. Axes follow the current point."


@dataclass
class FlipbookState:
    """In-memory state of one flipbook view.

    Mutate only through the methods below; each one finishes by refreshing
    the derived domains, so ``domains`` always matches the current store,
    point and flags.
    """

    points: Tuple[str, ...] = POINTS
    current_point: str = POINTS[0]
    use_smoothed: bool = True
    lock_axes: bool = True
    full_screen: bool = False
    store: PointSeriesStore = field(default_factory=dict)

    global_domains: DomainSet = field(init=False, repr=False)
    local_domains: DomainSet = field(init=False, repr=False)
    loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.points = tuple(self.points)
        if not self.points:
            raise ValueError("A flipbook needs at least one point.")
        if self.current_point not in self.points:
            self.current_point = self.points[0]
        self.store = dict(self.store)
        self.loaded = bool(self.store)
        self._refresh()

    @classmethod
    def from_options(cls, options: FlipbookOptions) -> "FlipbookState":
        return cls(
            current_point=options.start_point,
            use_smoothed=options.use_smoothed,
            lock_axes=options.lock_axes,
        )

    # ------------------------------------------------------------------
    # Navigation and flags
    # ------------------------------------------------------------------

    @property
    def current_index(self) -> int:
        return self.points.index(self.current_point)

    def advance(self, delta: int) -> str:
        """Move *delta* points forward (negative moves back), wrapping around."""
        index = (self.current_index + int(delta)) % len(self.points)
        self.current_point = self.points[index]
        self._refresh()
        return self.current_point

    def select_point(self, point: str) -> str:
        if point not in self.points:
            raise ValueError(f"Unknown point '{point}'. Expected one of: {', '.join(self.points)}.")
        self.current_point = point
        self._refresh()
        return self.current_point

    def set_smoothed(self, flag: bool) -> None:
        self.use_smoothed = bool(flag)
        self._refresh()

    def set_locked(self, flag: bool) -> None:
        self.lock_axes = bool(flag)
        self._refresh()

    def set_full_screen(self, flag: bool) -> None:
        self.full_screen = bool(flag)

    def toggle_full_screen(self) -> bool:
        self.set_full_screen(not self.full_screen)
        return self.full_screen

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load_workbook(self, sheets: SheetMapping) -> None:
        """Replace the point series store with one resolved from *sheets*.

        The new store is built completely before it is swapped in. The
        current point and the smoothed/locked flags are left as they are.
        """
        store = resolve_point_series(sheets, self.points)
        self.store = store
        self.loaded = True
        total = sum(len(rows) for rows in store.values())
        empty = [point for point, rows in store.items() if not rows]
        logger.info("Loaded %d row(s) across %d point(s)", total, len(store) - len(empty))
        if empty:
            logger.debug("Points without rows: %s", ", ".join(empty))
        self._refresh()

    @property
    def current_series(self) -> List[SeriesRow]:
        return self.store.get(self.current_point, [])

    def row_counts(self) -> Dict[str, int]:
        return {point: len(self.store.get(point, [])) for point in self.points}

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def _refresh(self) -> None:
        self.global_domains = compute_global_domain_set(self.store, self.use_smoothed)
        self.local_domains = compute_local_domains(self.current_series, self.use_smoothed)

    @property
    def domains(self) -> DomainSet:
        """Domains the panels should use for the current lock mode."""
        return self.global_domains if self.lock_axes else self.local_domains

    def panel_series(self, metric: MetricDefinition) -> List[PanelSeries]:
        """``(field key, display label, colour)`` for each line of *metric*."""
        suffix = " (smoothed)" if self.use_smoothed else " (raw)"
        return [
            (item.key_for(self.use_smoothed), item.label + suffix, series_color(item.label, index))
            for index, item in enumerate(metric.series)
        ]

    @property
    def status_message(self) -> str:
        if not self.loaded:
            return WAITING_MESSAGE
        return LOCKED_MESSAGE if self.lock_axes else AUTO_MESSAGE
