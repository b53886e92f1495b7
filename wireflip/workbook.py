"""Workbook access: sheet records in, sheet records out."""

from __future__ import annotations

import logging
import os
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from openpyxl import Workbook

from .models import (
    DEFAULT_WORKBOOK_NAME,
    POINT_KEY,
    POINTS,
    TIME_KEY,
    WORKBOOK_ENV_VAR,
    WorkbookReadError,
)
from .resolver import COMBINED_SHEET, point_sheet_name

__all__ = [
    "WorkbookReadError",
    "read_workbook",
    "resolve_workbook_path",
    "sample_sheets",
    "write_workbook",
]

logger = logging.getLogger(__name__)

WorkbookSource = Union[str, Path, bytes, bytearray, BinaryIO]
SheetRecords = Dict[str, List[Dict[str, Any]]]


def resolve_workbook_path(path: Optional[Path | str] = None) -> Path:
    """Return the workbook to load: explicit path, then environment, then the default name."""
    if path is not None and str(path).strip():
        return Path(path).expanduser().resolve()
    env_value = os.environ.get(WORKBOOK_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return (Path.cwd() / DEFAULT_WORKBOOK_NAME).resolve()


def read_workbook(source: WorkbookSource) -> SheetRecords:
    """Split a workbook into ``{sheet name: [record, ...]}``.

    Blank cells become ``None`` and every header of a sheet is present on
    each of its records.
    """
    if isinstance(source, (str, Path)):
        path = Path(source).expanduser()
        if not path.exists():
            raise WorkbookReadError(f"Workbook not found: {path}")
        if path.is_dir():
            raise WorkbookReadError(f"Workbook path is a directory, expected a file: {path}")
        handle: Any = path
        label = str(path)
    elif isinstance(source, (bytes, bytearray)):
        handle = BytesIO(bytes(source))
        label = "<bytes>"
    else:
        handle = source
        label = getattr(source, "name", "<stream>")

    try:
        frames = pd.read_excel(handle, sheet_name=None, engine="openpyxl", dtype=object)
    except Exception as exc:
        raise WorkbookReadError(f"Unable to read workbook {label}: {exc}") from exc

    sheets: SheetRecords = {}
    for name, frame in frames.items():
        clean = frame.astype(object).where(pd.notna(frame), None)
        sheets[str(name)] = clean.to_dict(orient="records")
    logger.info("Read %d sheet(s) from %s", len(sheets), label)
    return sheets


def write_workbook(sheets: Mapping[str, Sequence[Mapping[str, Any]]], path: Path) -> Path:
    """Write sheet records to *path*; headers follow first appearance order."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, records in sheets.items():
        sheet = workbook.create_sheet(title=str(name)[:31])
        headers: List[str] = []
        for record in records:
            for key in record:
                if key not in headers:
                    headers.append(key)
        sheet.append(headers)
        for record in records:
            sheet.append([record.get(key) for key in headers])
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    return path.resolve()


def sample_sheets(
    points: Sequence[str] = POINTS,
    *,
    steps: int = 60,
    dt: float = 0.04,
    per_point_sheets: int = 6,
    seed: int = 0,
) -> SheetRecords:
    """Synthetic per-step data laid out like the processing pipeline's output.

    The first *per_point_sheets* points get their own smoothed sheet; every
    point also appears in the combined sheet, so both lookup paths are used.
    """
    rng = np.random.default_rng(seed)
    combined: List[Dict[str, Any]] = []
    sheets: SheetRecords = {}
    times = np.arange(max(int(steps), 1)) * dt
    for index, point in enumerate(points):
        phase = index * 0.35
        amplitude = 1.0 + 0.15 * index
        push = amplitude * np.sin(2 * np.pi * times / (times[-1] + dt) + phase)
        slice_ = 0.6 * amplitude * np.cos(2 * np.pi * times / (times[-1] + dt) + phase)
        theta = np.degrees(np.arctan2(slice_, push))
        ratio = np.abs(slice_) / (np.abs(push) + 0.1)
        smooth = {
            "push_mm": push,
            "slice_mm": slice_,
            "push_mm_s": push / dt,
            "slice_mm_s": slice_ / dt,
            "theta_deg": theta,
            "ratio": ratio,
        }
        rows: List[Dict[str, Any]] = []
        for step, t_value in enumerate(times):
            record: Dict[str, Any] = {POINT_KEY: point, "step": step, TIME_KEY: round(float(t_value), 6)}
            for key, series in smooth.items():
                noise = rng.normal(0.0, 0.05 * (np.std(series) or 1.0))
                record[key] = round(float(series[step] + noise), 6)
                record[f"{key}_smooth"] = round(float(series[step]), 6)
            rows.append(record)
        combined.extend(rows)
        if index < per_point_sheets:
            sheets[point_sheet_name(point)] = [dict(row) for row in rows]
    sheets[COMBINED_SHEET] = combined
    return sheets
