from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from .models import POINT_KEY, POINTS, PointSeriesStore, SeriesRow
from .normalize import normalize_rows

__all__ = [
    "COMBINED_SHEET",
    "point_sheet_name",
    "resolve_point_series",
    "sort_rows",
]

logger = logging.getLogger(__name__)

COMBINED_SHEET = "per_step_all"

SheetMapping = Mapping[str, Sequence[Mapping[str, Any]]]


def point_sheet_name(point: str) -> str:
    """Name of the per-point sheet holding pre-smoothed per-step rows."""
    return f"per_step_{point}_smooth"


def sort_rows(rows: List[SeriesRow]) -> List[SeriesRow]:
    # Missing time sorts as zero and can interleave with real t=0 samples.
    return sorted(rows, key=SeriesRow.sort_time)


def resolve_point_series(sheets: SheetMapping, points: Sequence[str] = POINTS) -> PointSeriesStore:
    """Build the time-ordered series for every point.

    A per-point sheet takes precedence; otherwise the combined sheet is
    filtered on its ``Point`` column. Points found in neither source get an
    empty list. The returned mapping is new, so callers can swap it in as a
    whole.
    """
    combined = sheets.get(COMBINED_SHEET)
    store: Dict[str, List[SeriesRow]] = {}
    for point in points:
        point_rows = sheets.get(point_sheet_name(point))
        if point_rows is not None:
            store[point] = sort_rows(normalize_rows(point_rows))
            continue
        if combined is not None:
            matches = [record for record in combined if record.get(POINT_KEY) == point]
            logger.debug("Point %s: %d row(s) taken from '%s'", point, len(matches), COMBINED_SHEET)
            store[point] = sort_rows(normalize_rows(matches))
            continue
        logger.debug("Point %s: no source sheet found", point)
        store[point] = []
    return store
