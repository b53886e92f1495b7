from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wireflip.domains import (
    compute_global_domain_set,
    compute_global_domains,
    compute_global_x_domain,
    compute_local_domains,
    padded_domain,
)
from wireflip.models import METRIC_KEYS, Domain, SeriesRow


def _two_point_store() -> dict[str, list[SeriesRow]]:
    row_a = SeriesRow(
        t_k=0.0,
        values={"push_mm": 0.0, "slice_mm": 1.0, "push_mm_s": 0.0, "slice_mm_s": 2.0, "theta_deg": 10.0, "ratio": 0.5},
    )
    row_b = SeriesRow(
        t_k=1.0,
        values={"push_mm": 5.0, "slice_mm": -1.0, "push_mm_s": 3.0, "slice_mm_s": -2.0, "theta_deg": -20.0, "ratio": 2.0},
    )
    return {"A": [row_a], "B": [row_b]}


def _assert_valid(domain: Domain) -> None:
    assert math.isfinite(domain.low)
    assert math.isfinite(domain.high)
    assert domain.low < domain.high


def test_empty_local_domains_use_padded_fallback() -> None:
    domains = compute_local_domains([], True)
    assert domains.x == pytest.approx((-0.01, 1.01))
    for key in METRIC_KEYS:
        assert domains.for_metric(key) == pytest.approx((-2.0, 2.0))


def test_empty_global_domains_match_local_fallback() -> None:
    domains = compute_global_domain_set({}, False)
    assert domains.x == pytest.approx((-0.01, 1.01))
    assert set(domains.y) == set(METRIC_KEYS)


def test_global_domains_aggregate_across_points() -> None:
    domains = compute_global_domains(_two_point_store(), False)
    assert set(domains) == set(METRIC_KEYS)
    disp = domains["disp"]
    assert disp.low < 0 and disp.high > 5
    assert disp == pytest.approx((-1.3, 5.3))
    assert domains["theta"] == pytest.approx((-21.5, 11.5))


def test_global_x_domain_pads_two_percent() -> None:
    assert compute_global_x_domain(_two_point_store()) == pytest.approx((-0.02, 1.02))


def test_smoothed_flag_selects_smoothed_keys() -> None:
    store = {"A": [SeriesRow(t_k=0.0, values={"push_mm": 100.0, "push_mm_smooth": 1.0})]}
    assert compute_global_domains(store, True)["disp"] == pytest.approx((0.0, 2.0))
    assert compute_global_domains(store, False)["disp"] == pytest.approx((99.0, 101.0))


def test_local_domains_cover_only_given_rows() -> None:
    store = _two_point_store()
    local = compute_local_domains(store["B"], False)
    assert local.x == pytest.approx((0.99, 1.01))
    assert local.for_metric("disp") == pytest.approx((-1.3, 5.3))
    assert local.for_metric("ratio") == pytest.approx((1.0, 3.0))


def test_missing_values_are_ignored() -> None:
    rows = [SeriesRow(t_k=None, values={"ratio": None}), SeriesRow(t_k=2.0, values={"ratio": 4.0})]
    local = compute_local_domains(rows, False)
    assert local.for_metric("ratio") == pytest.approx((3.0, 5.0))
    assert local.x == pytest.approx((1.99, 2.01))


def test_single_time_value_is_padded() -> None:
    rows = [SeriesRow(t_k=3.5)]
    assert compute_local_domains(rows, True).x == pytest.approx((3.49, 3.51))


@pytest.mark.parametrize(
    "values",
    [
        [1e308, -1e308],
        [1e20],
        [1.7976931348623157e308],
        [-1.7976931348623157e308, 0.0],
        [5e-324],
        [None, float("nan"), float("inf")],
    ],
)
def test_padded_domain_is_finite_and_non_degenerate(values: list) -> None:
    domain = padded_domain(values, fallback=Domain(-1.0, 1.0), pad_ratio=0.05, min_pad=1.0)
    _assert_valid(domain)


def test_padded_domain_keeps_margin_around_large_values() -> None:
    domain = padded_domain([1e20], fallback=Domain(-1.0, 1.0), pad_ratio=0.05, min_pad=1.0)
    assert domain.low < 1e20 < domain.high


def test_padded_domain_contains_data_with_margin() -> None:
    values = [0.5, -3.25, 12.0, 7.0]
    domain = padded_domain(values, fallback=Domain(-1.0, 1.0), pad_ratio=0.05, min_pad=1.0)
    assert domain.low < min(values)
    assert domain.high > max(values)
