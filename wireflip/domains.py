"""Axis-range computation for the flipbook panels.

Every panel of every point must be drawn on comparable axes, so the ranges
computed here are always finite and strictly wider than zero. Global domains
aggregate all points; local domains cover one point's rows. Both share the
same scan, fallback and padding rules.
"""

from __future__ import annotations

import math
import sys
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence

import numpy as np

from .models import METRICS, Domain, DomainSet, MetricDefinition, SeriesRow

__all__ = [
    "VALUE_FALLBACK",
    "TIME_FALLBACK",
    "compute_global_domains",
    "compute_global_domain_set",
    "compute_global_x_domain",
    "compute_local_domains",
    "padded_domain",
]

VALUE_FALLBACK = Domain(-1.0, 1.0)
VALUE_PAD_RATIO = 0.05
VALUE_MIN_PAD = 1.0

TIME_FALLBACK = Domain(0.0, 1.0)
TIME_PAD_RATIO = 0.02
TIME_MIN_PAD = 0.01

_FLOAT_MAX = sys.float_info.max


def padded_domain(
    values: Iterable[Optional[float]],
    *,
    fallback: Domain,
    pad_ratio: float,
    min_pad: float,
) -> Domain:
    """Return the padded ``[min, max]`` of the finite entries in *values*.

    With no finite entry the fallback interval stands in for the data and,
    carrying no real spread, gets the fixed *min_pad* on each side. A zero
    span is padded by *min_pad* too.
    """
    array = np.fromiter((np.nan if v is None else v for v in values), dtype=float)
    finite = array[np.isfinite(array)]
    if finite.size == 0:
        lo, hi = fallback
        return Domain(lo - min_pad, hi + min_pad)

    lo = float(finite.min())
    hi = float(finite.max())
    span = hi - lo
    pad = span * pad_ratio if math.isfinite(span) else math.inf
    if pad == 0:
        pad = min_pad
    low = lo - pad
    high = hi + pad
    if math.isfinite(low) and math.isfinite(high) and low < lo and high > hi:
        return Domain(low, high)

    # Magnitudes too large for an absolute pad: scale it with the values.
    pad = max(abs(lo), abs(hi), min_pad) * pad_ratio
    low = max(lo - pad, -_FLOAT_MAX)
    high = min(hi + pad, _FLOAT_MAX)
    return Domain(low, high)


def _metric_values(
    row_groups: Iterable[Sequence[SeriesRow]],
    metric: MetricDefinition,
    use_smoothed: bool,
) -> Iterator[Optional[float]]:
    keys = metric.active_keys(use_smoothed)
    for rows in row_groups:
        for row in rows:
            for key in keys:
                yield row.get(key)


def _time_values(row_groups: Iterable[Sequence[SeriesRow]]) -> Iterator[Optional[float]]:
    for rows in row_groups:
        for row in rows:
            yield row.t_k


def _value_domain(values: Iterable[Optional[float]]) -> Domain:
    return padded_domain(values, fallback=VALUE_FALLBACK, pad_ratio=VALUE_PAD_RATIO, min_pad=VALUE_MIN_PAD)


def _time_domain(values: Iterable[Optional[float]]) -> Domain:
    return padded_domain(values, fallback=TIME_FALLBACK, pad_ratio=TIME_PAD_RATIO, min_pad=TIME_MIN_PAD)


def compute_global_domains(
    store: Mapping[str, Sequence[SeriesRow]],
    use_smoothed: bool,
) -> Dict[str, Domain]:
    """Per-metric y domains aggregated across every point in *store*."""
    groups = list(store.values())
    return {metric.key: _value_domain(_metric_values(groups, metric, use_smoothed)) for metric in METRICS}


def compute_global_x_domain(store: Mapping[str, Sequence[SeriesRow]]) -> Domain:
    return _time_domain(_time_values(store.values()))


def compute_global_domain_set(
    store: Mapping[str, Sequence[SeriesRow]],
    use_smoothed: bool,
) -> DomainSet:
    return DomainSet(x=compute_global_x_domain(store), y=compute_global_domains(store, use_smoothed))


def compute_local_domains(rows: Sequence[SeriesRow], use_smoothed: bool) -> DomainSet:
    """Domains scoped to a single row sequence, shaped like the global set."""
    groups = [rows]
    y = {metric.key: _value_domain(_metric_values(groups, metric, use_smoothed)) for metric in METRICS}
    return DomainSet(x=_time_domain(_time_values(groups)), y=y)
