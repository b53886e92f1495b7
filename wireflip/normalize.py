from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .coercion import coerce_field, number_or_none
from .models import ALT_TIME_KEY, RECOGNIZED_FIELDS, TIME_KEY, SeriesRow

__all__ = ["normalize_row", "normalize_rows"]


def normalize_row(record: Mapping[str, Any]) -> SeriesRow:
    """Convert one raw sheet record into a :class:`SeriesRow`.

    Every field is coerced under its own name. Only the exact ``t_k`` column
    sets the time; when it is missing or blank the alternate ``t`` column is
    used instead, since some sheet shapes label time that way.
    """
    t_k: Optional[float] = None
    values: Dict[str, Optional[float]] = {}
    extras: Dict[str, Optional[float]] = {}

    for raw_key, raw_value in record.items():
        key = str(raw_key)
        coerced = coerce_field(key, raw_value)
        if key == TIME_KEY:
            t_k = coerced
        elif key in RECOGNIZED_FIELDS:
            values[key] = coerced
        else:
            extras[key] = coerced

    if t_k is None and record.get(ALT_TIME_KEY) is not None:
        t_k = number_or_none(record[ALT_TIME_KEY])

    return SeriesRow(t_k=t_k, values=values, extras=extras)


def normalize_rows(records: Iterable[Mapping[str, Any]]) -> List[SeriesRow]:
    return [normalize_row(record) for record in records]
