#!/usr/bin/env python3
# src/precip_analytics/events.py
# Wet/dry event segmentation of an hourly series and per-event summaries.

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import List

import numpy as np
import pandas as pd

from .validation import HOUR, parse_timestamps, require_columns

logger = logging.getLogger(__name__)

WET = "Wet"
DRY = "Dry"

EVENT_ID_COL = "event_id"
EVENT_TYPE_COL = "event_type"

# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EventSummary:
    event_id: int
    event_type: str
    start_time: pd.Timestamp
    end_time: pd.Timestamp
    duration_hours: float
    total_depth: float
    peak_intensity: float
    mean_intensity: float
    n_hours: int
    station: str = ""

# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def classify_hours(precip: pd.Series, wet_threshold: float = 0.0) -> np.ndarray:
    """Per-hour "Wet"/"Dry" labels; an hour is Wet only when precip > wet_threshold."""
    values = pd.to_numeric(precip, errors="coerce").to_numpy(dtype=float)
    return np.where(values > float(wet_threshold), WET, DRY).astype(object)


def _run_ids(types: np.ndarray) -> np.ndarray:
    """1-based id that increments whenever the type differs from the previous hour."""
    if types.size == 0:
        return np.zeros(0, dtype=int)
    starts = np.empty(types.size, dtype=bool)
    starts[0] = True
    starts[1:] = types[1:] != types[:-1]
    return np.cumsum(starts)


def segment_events(
    df: pd.DataFrame,
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    wet_threshold: float = 0.0,
) -> pd.DataFrame:
    """
    Split a validated hourly series into maximal runs of Wet or Dry hours.

    Returns a copy of df with `event_id` (1, 2, ... in time order) and
    `event_type`. Consecutive events always alternate type. The first and last
    events are taken as they appear, even if the real storm or dry spell
    extends past the series boundary.
    """
    require_columns(df, time_col, precip_col)
    work = df.copy()
    types = classify_hours(work[precip_col], wet_threshold)
    work[EVENT_ID_COL] = _run_ids(types)
    work[EVENT_TYPE_COL] = types

    n_events = int(work[EVENT_ID_COL].max()) if len(work) else 0
    logger.debug("Segmented %d hours into %d events", len(work), n_events)
    return work


def merge_short_dry_gaps(
    segmented: pd.DataFrame,
    max_gap_hours: int,
) -> pd.DataFrame:
    """
    Absorb Dry events of at most `max_gap_hours` hours that sit between two Wet
    events, so the surrounding storms become one Wet event. Ids are renumbered
    from 1. Dry events at either end of the series are never absorbed.
    """
    require_columns(segmented, EVENT_ID_COL, EVENT_TYPE_COL)
    if max_gap_hours < 0:
        raise ValueError(f"max_gap_hours must be >= 0, got {max_gap_hours}")

    work = segmented.copy()
    if work.empty or max_gap_hours == 0:
        return work

    runs = work.groupby(EVENT_ID_COL, sort=True)[EVENT_TYPE_COL].agg(["first", "size"])
    first_id, last_id = runs.index[0], runs.index[-1]
    absorbed = runs.index[
        (runs["first"] == DRY)
        & (runs["size"] <= int(max_gap_hours))
        & (runs.index != first_id)
        & (runs.index != last_id)
    ]

    types = work[EVENT_TYPE_COL].to_numpy(dtype=object, copy=True)
    types[work[EVENT_ID_COL].isin(absorbed).to_numpy()] = WET
    work[EVENT_TYPE_COL] = types
    work[EVENT_ID_COL] = _run_ids(types)

    if len(absorbed):
        logger.info(f"Merged {len(absorbed)} dry gap(s) of <= {max_gap_hours} h into surrounding storms")
    return work

# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def summarize_events(
    segmented: pd.DataFrame,
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    station: str = "",
) -> List[EventSummary]:
    """
    Reduce each event of a segmentation to one EventSummary, ordered by start time.
    Dry events are included alongside wet ones.
    """
    require_columns(segmented, time_col, precip_col, EVENT_ID_COL, EVENT_TYPE_COL)
    work = pd.DataFrame({
        "t": parse_timestamps(segmented, time_col),
        "p": pd.to_numeric(segmented[precip_col], errors="coerce").to_numpy(dtype=float),
        "id": segmented[EVENT_ID_COL].to_numpy(),
        "type": segmented[EVENT_TYPE_COL].to_numpy(),
    })

    events: List[EventSummary] = []
    for eid, block in work.groupby("id", sort=True):
        start = block["t"].min()
        end = block["t"].max()
        duration_h = (end - start) / HOUR + 1.0
        total = float(block["p"].sum())
        event_types = block["type"].unique()
        if len(event_types) != 1:
            raise ValueError(f"Event {eid} mixes types {list(event_types)}")
        events.append(EventSummary(
            event_id=int(eid),
            event_type=str(event_types[0]),
            start_time=start,
            end_time=end,
            duration_hours=float(duration_h),
            total_depth=total,
            peak_intensity=float(block["p"].max()),
            mean_intensity=total / duration_h,
            n_hours=int(len(block)),
            station=station,
        ))

    events.sort(key=lambda ev: ev.start_time)
    return events


def events_to_frame(events: List[EventSummary]) -> pd.DataFrame:
    """One row per event, columns in EventSummary field order."""
    columns = [f.name for f in fields(EventSummary)]
    return pd.DataFrame([asdict(ev) for ev in events], columns=columns)


def filter_events(events: List[EventSummary], event_type: str) -> List[EventSummary]:
    return [ev for ev in events if ev.event_type == event_type]
