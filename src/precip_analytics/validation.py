# src/precip_analytics/validation.py
# Continuity gate for hourly precipitation series, plus gap diagnostics.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .errors import DiscontinuousSeries, MissingValue, UnorderedOrDuplicateTimestamp
from .utils import ensure_directory_exists

logger = logging.getLogger(__name__)

HOUR = pd.Timedelta(hours=1)

_GAP_COLUMNS = ["start_time", "end_time", "gap_hours", "missing_count"]

# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def require_columns(df: pd.DataFrame, *columns: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"DataFrame must have column(s): {missing}")


def coerce_timestamps(values: pd.Series) -> pd.Series:
    """
    pd.to_datetime with unparsable values as NaT. Strings carrying different
    UTC offsets (local time written across a DST change) are parsed as UTC
    instants instead of failing.
    """
    try:
        t = pd.to_datetime(values, errors="coerce")
    except ValueError:
        t = None
    if t is None or not pd.api.types.is_datetime64_any_dtype(t):
        t = pd.to_datetime(values, errors="coerce", utc=True)
    return t


def parse_timestamps(df: pd.DataFrame, time_col: str = "Datetime") -> pd.Series:
    """Parse df[time_col] to datetimes (positional index). Unparsable values raise ValueError."""
    require_columns(df, time_col)
    t = coerce_timestamps(df[time_col]).reset_index(drop=True)
    bad = t.isna() & df[time_col].reset_index(drop=True).notna()
    if bad.any():
        first = int(np.flatnonzero(bad.to_numpy())[0])
        raise ValueError(f"Unparsable timestamp {df[time_col].iloc[first]!r} at row {first}")
    if t.isna().any():
        first = int(np.flatnonzero(t.isna().to_numpy())[0])
        raise ValueError(f"Null timestamp in '{time_col}' at row {first}")
    return t

# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

def validate_hourly_series(
    df: pd.DataFrame,
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
) -> pd.DataFrame:
    """
    Confirm that df is a gap-free, duplicate-free, complete hourly series.

    Checks run in order and stop at the first failure:
      1. timestamps strictly increasing      -> UnorderedOrDuplicateTimestamp
      2. consecutive rows exactly 1 h apart  -> DiscontinuousSeries
      3. no null precipitation               -> MissingValue

    Nothing is repaired. Returns df itself on success.
    """
    require_columns(df, time_col, precip_col)
    t = parse_timestamps(df, time_col)

    if len(t) > 1:
        steps = t.diff()

        unordered = (steps <= pd.Timedelta(0)).to_numpy()
        if unordered.any():
            pos = int(np.flatnonzero(unordered)[0])
            raise UnorderedOrDuplicateTimestamp(t.iloc[pos], pos, t.iloc[pos - 1])

        off_step = (steps != HOUR).to_numpy(copy=True)
        off_step[0] = False
        if off_step.any():
            pos = int(np.flatnonzero(off_step)[0])
            raise DiscontinuousSeries(t.iloc[pos - 1], pos - 1, steps.iloc[pos])

    precip = pd.to_numeric(df[precip_col], errors="coerce").reset_index(drop=True)
    missing = precip.isna().to_numpy()
    if missing.any():
        raise MissingValue(list(t[missing]), column=precip_col)

    if (precip < 0).any():
        pos = int(np.flatnonzero((precip < 0).to_numpy())[0])
        raise ValueError(f"Negative precipitation {precip.iloc[pos]} at {t.iloc[pos]}")

    logger.debug("Validated hourly series: %d rows from %s", len(t), t.iloc[0] if len(t) else None)
    return df

# ---------------------------------------------------------------------------
# Diagnostics (never raise on bad data)
# ---------------------------------------------------------------------------

def summarize_gaps(df: pd.DataFrame, time_col: str = "Datetime") -> pd.DataFrame:
    """
    Return a table of gaps with columns:
      start_time, end_time, gap_hours, missing_count
    """
    if time_col not in df.columns:
        return pd.DataFrame(columns=_GAP_COLUMNS)
    t = coerce_timestamps(df[time_col]).dropna()
    t = t.drop_duplicates().sort_values().reset_index(drop=True)
    if len(t) < 2:
        return pd.DataFrame(columns=_GAP_COLUMNS)

    gap_h = t.diff() / HOUR
    rows = []
    for i in gap_h.index[gap_h > 1]:
        rows.append({
            "start_time": t.iloc[i - 1],
            "end_time": t.iloc[i],
            "gap_hours": float(gap_h.iloc[i]),
            "missing_count": max(0, int(np.ceil(gap_h.iloc[i])) - 1),
        })
    return pd.DataFrame(rows, columns=_GAP_COLUMNS)


def write_continuity_report_txt(
    df: pd.DataFrame,
    out_path: Union[str, Path],
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
) -> Path:
    """
    Write a TXT report with:
      - period dates
      - expected vs observed hours in the period
      - total missing hours and percentage
      - duplicate timestamps and null precipitation counts
      - a per-gap listing
    """
    out_path = Path(out_path)
    ensure_directory_exists(out_path.parent)

    if time_col not in df.columns:
        out_path.write_text(f"No '{time_col}' column available.\n", encoding="utf-8")
        return out_path

    t_all = coerce_timestamps(df[time_col])
    n_unparsable = int(t_all.isna().sum())
    t_sorted = t_all.dropna().sort_values().reset_index(drop=True)
    if t_sorted.empty:
        out_path.write_text("No valid timestamps found.\n", encoding="utf-8")
        return out_path

    p0 = pd.Timestamp(period_start) if period_start else t_sorted.iloc[0]
    p1 = pd.Timestamp(period_end) if period_end else t_sorted.iloc[-1]
    if p0.tzinfo is None and t_sorted.dt.tz is not None:
        p0, p1 = p0.tz_localize(t_sorted.dt.tz), p1.tz_localize(t_sorted.dt.tz)

    in_period = t_sorted[(t_sorted >= p0) & (t_sorted <= p1)]
    unique = in_period.drop_duplicates()
    expected = int((p1 - p0) // HOUR) + 1
    observed = int(unique.size)
    missing = max(expected - observed, 0)
    pct = (missing / expected * 100.0) if expected > 0 else 0.0
    n_dupes = int(in_period.size - unique.size)
    n_null = int(pd.to_numeric(df[precip_col], errors="coerce").isna().sum()) if precip_col in df.columns else 0

    gaps = summarize_gaps(df, time_col)

    with open(out_path, "w", encoding="utf-8") as f:
        f.write("=== Hourly Continuity Report ===\n")
        f.write(f"Period: {p0}  ->  {p1}\n")
        f.write(f"Expected hours in period: {expected}\n")
        f.write(f"Observed unique hours: {observed}\n")
        f.write(f"Missing hours in period: {missing}\n")
        f.write(f"Missing percentage (period): {pct:.3f}%\n")
        f.write(f"Duplicate timestamps: {n_dupes}\n")
        f.write(f"Unparsable timestamps: {n_unparsable}\n")
        f.write(f"Null '{precip_col}' values: {n_null}\n")
        f.write("\n--- Gaps (start, end, gap_hours, missing_count) ---\n")
        if gaps.empty:
            f.write("No gaps detected.\n")
        else:
            for _, r in gaps.iterrows():
                f.write(f"{r['start_time']}, {r['end_time']}, {r['gap_hours']:g} h, miss={int(r['missing_count'])}\n")

    return out_path
