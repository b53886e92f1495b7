"""On-demand sanity checks runnable from the viewer, console or CLI.

Each check runs in isolation: an exception raised inside one check is turned
into a failed result and the remaining checks still run.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .domains import compute_global_domains, compute_local_domains
from .models import METRIC_KEYS, METRICS, SERIES_COLORS, Domain, SeriesRow
from .state import FlipbookState

__all__ = ["SelfTestResult", "run_self_tests"]

logger = logging.getLogger(__name__)

COLOR_LABELS: Tuple[str, ...] = ("Push", "Slice", "Push/s", "Slice/s", "θ", "ratio")


class SelfTestFailure(Exception):
    """Raised by a check whose condition does not hold."""


@dataclass(frozen=True)
class SelfTestResult:
    name: str
    ok: bool
    detail: Optional[str] = None

    def describe(self) -> str:
        mark = "✓" if self.ok else "✗"
        text = f"{mark} {self.name}"
        if self.detail:
            text += f": {self.detail}"
        return text


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SelfTestFailure(message)


def _is_valid(domain: Domain) -> bool:
    return math.isfinite(domain.low) and math.isfinite(domain.high) and domain.low < domain.high


def _check_empty_domains(state: FlipbookState) -> None:
    local = compute_local_domains([], True)
    _require(_is_valid(local.x), "x domain invalid")
    for key in METRIC_KEYS:
        _require(key in local.y, f"{key} domain missing")
        _require(_is_valid(local.y[key]), f"{key} domain invalid")


def _check_global_aggregation(state: FlipbookState) -> None:
    row_a = SeriesRow(
        t_k=0.0,
        values={"push_mm": 0.0, "slice_mm": 1.0, "push_mm_s": 0.0, "slice_mm_s": 2.0, "theta_deg": 10.0, "ratio": 0.5},
    )
    row_b = SeriesRow(
        t_k=1.0,
        values={"push_mm": 5.0, "slice_mm": -1.0, "push_mm_s": 3.0, "slice_mm_s": -2.0, "theta_deg": -20.0, "ratio": 2.0},
    )
    domains = compute_global_domains({"A": [row_a], "B": [row_b]}, False)
    for metric in METRICS:
        _require(metric.key in domains, f"{metric.key} domain missing")
        values = [row.get(key) for row in (row_a, row_b) for key in metric.active_keys(False)]
        low, high = domains[metric.key]
        _require(low < min(values) and high > max(values), f"{metric.key} domain not spanning data")


def _check_current_series(state: FlipbookState) -> None:
    _require(isinstance(state.current_series, list), "current point series not ready")


def _check_color_mapping(state: FlipbookState) -> None:
    colors = [SERIES_COLORS.get(label) for label in COLOR_LABELS]
    _require(None not in colors, "label without a colour")
    _require(len(set(colors)) == len(COLOR_LABELS), "duplicate colors detected")


CHECKS: Tuple[Tuple[str, Callable[[FlipbookState], None]], ...] = (
    ("Empty data → finite domains", _check_empty_domains),
    ("Global domains aggregate across points", _check_global_aggregation),
    ("Current point series is a list", _check_current_series),
    ("Series color mapping stable", _check_color_mapping),
)


def run_self_tests(state: FlipbookState | None = None) -> List[SelfTestResult]:
    """Run every check against *state* (a fresh state when omitted)."""
    target = state if state is not None else FlipbookState()
    results: List[SelfTestResult] = []
    for name, check in CHECKS:
        try:
            check(target)
        except Exception as exc:
            logger.warning("Self-test '%s' failed: %s", name, exc)
            results.append(SelfTestResult(name, False, str(exc) or type(exc).__name__))
        else:
            results.append(SelfTestResult(name, True))
    return results
