"""Scalar coercion for spreadsheet cells.

Spreadsheet columns routinely contain blanks, text notes and error values, so
nothing here raises: anything that is not a finite number becomes ``None``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

import numpy as np
import pandas as pd

from .models import TIME_KEY

__all__ = [
    "coerce_field",
    "is_time_field",
    "number_or_none",
]

_TIME_FIELD_RE = re.compile(rf"{TIME_KEY}$", re.IGNORECASE)
_TEMPORAL_TYPES = (datetime, date, time, timedelta, np.datetime64, np.timedelta64)


def number_or_none(value: Any) -> Optional[float]:
    """Return *value* as a finite float, or ``None`` when it is missing or not numeric."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, _TEMPORAL_TYPES):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        if not pd.api.types.is_scalar(value):
            return None
        if pd.isna(value):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
    if not math.isfinite(number):
        return None
    return number


def is_time_field(key: str) -> bool:
    return bool(_TIME_FIELD_RE.search(str(key)))


def coerce_field(key: str, value: Any) -> Optional[float]:
    """Coerce one record field.

    Time fields are already in seconds, so *key* does not change the rule;
    no unit conversion happens here.
    """
    return number_or_none(value)
