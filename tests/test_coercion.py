from __future__ import annotations

import math
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wireflip.coercion import coerce_field, is_time_field, number_or_none


@pytest.mark.parametrize(
    "value, expected",
    [
        (3, 3.0),
        (-2.5, -2.5),
        ("  3.5 ", 3.5),
        ("1e3", 1000.0),
        (np.float64(2.0), 2.0),
        (np.int32(7), 7.0),
        (Decimal("1.5"), 1.5),
        (True, 1.0),
        (False, 0.0),
    ],
)
def test_number_or_none_accepts_numeric_values(value: object, expected: float) -> None:
    assert number_or_none(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "   ",
        "abc",
        "1,5",
        "nan",
        "inf",
        "-Infinity",
        float("nan"),
        float("inf"),
        np.nan,
        pd.NA,
        pd.NaT,
        datetime(2024, 1, 1),
        date(2024, 1, 1),
        [1, 2],
        {"a": 1},
        10**400,
    ],
)
def test_number_or_none_rejects_missing_and_non_numeric(value: object) -> None:
    assert number_or_none(value) is None


def test_number_or_none_never_returns_non_finite() -> None:
    samples = [1, "2", float("inf"), "-inf", np.float64("nan"), "7.25", None, 1e308 * 10]
    for sample in samples:
        result = number_or_none(sample)
        assert result is None or math.isfinite(result)


def test_is_time_field_matches_suffix_case_insensitively() -> None:
    assert is_time_field("t_k")
    assert is_time_field("T_K")
    assert is_time_field("step_t_k")
    assert not is_time_field("t")
    assert not is_time_field("t_k_smooth")
    assert not is_time_field("push_mm")


def test_coerce_field_uses_same_rule_for_time_fields() -> None:
    assert coerce_field("t_k", "0.125") == 0.125
    assert coerce_field("push_mm", "0.125") == 0.125
    assert coerce_field("t_k", "") is None
