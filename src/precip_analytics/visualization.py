# src/precip_analytics/visualization.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.dates as mdates

from .events import EVENT_ID_COL, EVENT_TYPE_COL, WET, EventSummary
from .utils import ensure_directory_exists

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _label_for(station: Optional[str], event_id: Optional[int]) -> str:
    if station and event_id is not None:
        return f"{station} - Event {event_id}"
    if event_id is not None:
        return f"Event {event_id}"
    if station:
        return station
    return "All Data"


def _safe_name(label: str) -> str:
    return "".join(c if c.isalnum() or c in "._-" else "_" for c in label)


def plot_file_name(label: str) -> str:
    return f"hyetograph_{_safe_name(label)}.png"

# ---------------------------------------------------------------------
# Hyetograph
# ---------------------------------------------------------------------

def plot_hyetograph(
    segmented: pd.DataFrame,
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    antecedent: Optional[pd.Series] = None,
    events: Optional[List[EventSummary]] = None,
    station: Optional[str] = None,
    event_id: Optional[int] = None,
    save_dir: Optional[Union[str, Path]] = None,
    dpi: int = 150,
) -> Optional[Path]:
    """
    Plot hourly depth as bars, shade Wet events, and optionally overlay an
    antecedent series on a secondary axis. With event_id, only that event's
    hours are drawn. Returns the PNG path when save_dir is given.
    """
    try:
        df = segmented
        if event_id is not None:
            df = df[df[EVENT_ID_COL] == event_id]
        if df.empty:
            logger.info("No rows to plot hyetograph.")
            return None

        label = _label_for(station, event_id)
        t = pd.to_datetime(df[time_col])
        naive = t.dt.tz_localize(None) if t.dt.tz is not None else t
        x = mdates.date2num(naive.to_numpy())
        width = 1.0 / 24.0

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.bar(x, df[precip_col].to_numpy(dtype=float), width=width, align="edge", color="tab:blue")

        if events is None and EVENT_TYPE_COL in df.columns:
            wet_rows = df[df[EVENT_TYPE_COL] == WET]
            spans = [(g[time_col].min(), g[time_col].max()) for _, g in wet_rows.groupby(EVENT_ID_COL)]
        else:
            spans = [(ev.start_time, ev.end_time) for ev in (events or []) if ev.event_type == WET]
        for start, end in spans:
            s, e = pd.Timestamp(start), pd.Timestamp(end) + pd.Timedelta(hours=1)
            if s.tzinfo is not None:
                s, e = s.tz_localize(None), e.tz_localize(None)
            ax.axvspan(mdates.date2num(s), mdates.date2num(e), color="tab:blue", alpha=0.12, lw=0)

        if antecedent is not None:
            ax2 = ax.twinx()
            ax2.plot(x, antecedent.loc[df.index].to_numpy(dtype=float), color="tab:orange", lw=1.2)
            ax2.set_ylabel(str(antecedent.name or "Antecedent"))

        ax.xaxis_date()
        ax.xaxis.set_major_locator(mdates.AutoDateLocator(minticks=3, maxticks=10))
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%b %d %H:%M"))
        fig.autofmt_xdate()

        ax.set_title(f"Hyetograph - {label}")
        ax.set_xlabel("Time")
        ax.set_ylabel(f"{precip_col} per hour")
        fig.tight_layout()

        out: Optional[Path] = None
        if save_dir:
            ensure_directory_exists(save_dir)
            out = Path(save_dir) / plot_file_name(label)
            fig.savefig(out, dpi=dpi)
            logger.info(f"Saved hyetograph to {out}")

        plt.close(fig)
        return out
    except Exception:
        logger.error("Error in plot_hyetograph", exc_info=True)
        return None
