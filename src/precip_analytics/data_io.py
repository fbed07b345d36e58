# src/precip_analytics/data_io.py
# CSV/JSON boundary: load hourly and sample tables, write outputs atomically.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Union

import pandas as pd

from .events import EVENT_ID_COL, WET, EventSummary, events_to_frame
from .utils import ensure_directory_exists
from .validation import coerce_timestamps

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _coerce_datetime(df: pd.DataFrame, time_col: str, tz: Optional[str] = None) -> pd.DataFrame:
    """
    Parse the timestamp column and optionally localize/convert to tz.
    Unparsable values become NaT so the validator can report them.
    """
    if time_col not in df.columns:
        return df
    dt = coerce_timestamps(df[time_col])
    if tz:
        # If naive, localize; if already tz-aware, convert
        if getattr(dt.dt, "tz", None) is None:
            dt = dt.dt.tz_localize(tz)
        else:
            dt = dt.dt.tz_convert(tz)
    df[time_col] = dt
    return df


def _safe_write_csv(df: pd.DataFrame, dest: Union[str, Path], safe: bool = True) -> Path:
    dest = Path(dest)
    ensure_directory_exists(dest.parent)
    if safe:
        tmp = dest.with_suffix(dest.suffix + ".tmp")
        df.to_csv(tmp, index=False)
        tmp.replace(dest)
    else:
        df.to_csv(dest, index=False)
    return dest

# ------------------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------------------

def load_table(
    csv_file_path: Union[str, Path],
    *,
    time_col: str = "Datetime",
    required_columns: Optional[Set[str]] = None,
    tz: Optional[str] = None,
) -> pd.DataFrame:
    """
    Load a CSV table and parse its timestamp column.

    Parameters:
    - csv_file_path: path to the input CSV file.
    - time_col: timestamp column to parse.
    - required_columns: set of required column names; error if any are missing.
    - tz: optional timezone to localize/convert the timestamp column.

    Rows are kept in file order; nothing is sorted, deduplicated or dropped.
    """
    csv_path = Path(csv_file_path).resolve()
    if not csv_path.exists():
        logging.error(f"CSV file does not exist: {csv_path}")
        raise FileNotFoundError(f"CSV file does not exist: {csv_path}")

    df = pd.read_csv(csv_path)

    required = set(required_columns or set()) | {time_col}
    missing_columns = required - set(df.columns)
    if missing_columns:
        logging.error(f"Missing required columns in {csv_path.name}: {sorted(missing_columns)}")
        raise ValueError(f"Missing required columns: {sorted(missing_columns)}")

    df = _coerce_datetime(df, time_col, tz)
    logging.info(f"Loaded {len(df)} rows from {csv_path}")
    return df


def load_hourly_series(
    csv_file_path: Union[str, Path],
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    tz: Optional[str] = None,
) -> pd.DataFrame:
    """Load an hourly precipitation table (timestamp + depth columns)."""
    df = load_table(csv_file_path, time_col=time_col, required_columns={precip_col}, tz=tz)
    df[precip_col] = pd.to_numeric(df[precip_col], errors="coerce")
    return df

# ------------------------------------------------------------------------------
# Saving
# ------------------------------------------------------------------------------

def save_dataframe(df: pd.DataFrame, out_path: Union[str, Path], safe_write: bool = True) -> Path:
    out = _safe_write_csv(df, out_path, safe=safe_write)
    logging.info(f"Saved {len(df)} rows: {out}")
    return out


def extract_and_save_events(
    segmented: pd.DataFrame,
    events: Iterable[EventSummary],
    output_dir: Union[str, Path],
    filename_pattern: str = "event_{id}.csv",
    event_type: Optional[str] = WET,
    safe_write: bool = True,
) -> List[Path]:
    """Write the hourly rows of each event (Wet only by default) to its own CSV."""
    ensure_directory_exists(output_dir)
    written: List[Path] = []
    for ev in events:
        if event_type is not None and ev.event_type != event_type:
            continue
        ev_df = segmented[segmented[EVENT_ID_COL] == ev.event_id]
        out = Path(output_dir) / filename_pattern.format(id=ev.event_id, type=ev.event_type)
        _safe_write_csv(ev_df, out, safe=safe_write)
        written.append(out)
    logging.info(f"Saved {len(written)} event CSV(s) to {output_dir}")
    return written


def write_event_summary_csv(events: List[EventSummary], out_path: Union[str, Path], safe_write: bool = True) -> Path:
    out = _safe_write_csv(events_to_frame(events), out_path, safe=safe_write)
    logging.info(f"Event summary CSV saved: {out}")
    return out


def write_manifest_json(
    station: str,
    events: List[EventSummary],
    paths: Dict[str, Any],
    out_path: Union[str, Path],
    extra: Optional[Dict[str, Any]] = None,
) -> Path:
    counts = {t: sum(1 for ev in events if ev.event_type == t) for t in sorted({ev.event_type for ev in events})}
    payload = {
        "station": station,
        "n_events": len(events),
        "events_by_type": counts,
        "paths": {k: _jsonable_path(v) for k, v in paths.items()},
    }
    if extra:
        payload.update(extra)
    out_path = Path(out_path)
    ensure_directory_exists(out_path.parent)
    tmp = out_path.with_suffix(out_path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
    tmp.replace(out_path)
    logging.info(f"Manifest JSON saved: {out_path}")
    return out_path


def _jsonable_path(v: Any) -> Any:
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, (list, tuple)):
        return [_jsonable_path(x) for x in v]
    return v


__all__ = [
    "load_table",
    "load_hourly_series",
    "save_dataframe",
    "extract_and_save_events",
    "write_event_summary_csv",
    "write_manifest_json",
]
