# src/precip_analytics/weather.py
# Wet/dry weather labels from antecedent precipitation, joined onto sample datasets.

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .antecedent import Reducer, antecedent_precipitation, check_window, reducer_name
from .validation import coerce_timestamps, parse_timestamps, require_columns, validate_hourly_series

logger = logging.getLogger(__name__)

WET = "Wet"
DRY = "Dry"

# ---------------------------------------------------------------------------
# Window configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AntecedentWindow:
    """One antecedent column to append: window shape, reducer, wet threshold and naming."""

    period: int
    delay: int = 0
    threshold: float = 0.1
    reducer: str = "sum"
    column_prefix: str = "ARF"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AntecedentWindow":
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"Unknown antecedent window keys: {sorted(unknown)}")
        if "period" not in raw:
            raise ValueError("Antecedent window needs a 'period'")
        window = cls(
            period=raw["period"],
            delay=raw.get("delay", 0),
            threshold=float(raw.get("threshold", 0.1)),
            reducer=str(raw.get("reducer", "sum")),
            column_prefix=str(raw.get("column_prefix", "ARF")),
        )
        check_window(window.period, window.delay)
        reducer_name(window.reducer)
        return window

    @property
    def value_column(self) -> str:
        return f"{self.column_prefix}{self.period}"

    @property
    def weather_column(self) -> str:
        return f"{self.value_column}_Weather"


@dataclass
class JoinCoverage:
    """How many target rows received a defined antecedent value."""

    n_rows: int
    n_matched: int
    n_unmatched: int
    n_undefined: int
    n_unparsable: int = 0

    @property
    def n_missing(self) -> int:
        return self.n_rows - self.n_matched

    @property
    def coverage(self) -> float:
        return self.n_matched / self.n_rows if self.n_rows else 1.0

    @property
    def complete(self) -> bool:
        return self.n_missing == 0

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_weather(aggregate: pd.Series, threshold: float) -> pd.Series:
    """
    Label each value "Wet" (aggregate >= threshold) or "Dry".
    NaN aggregates give a missing label, never "Dry".
    """
    values = pd.to_numeric(aggregate, errors="coerce")
    labels = pd.Series(
        np.where(values.to_numpy(dtype=float) >= float(threshold), WET, DRY),
        index=values.index,
        dtype=object,
        name="Weather",
    )
    labels[values.isna().to_numpy()] = None
    return labels

# ---------------------------------------------------------------------------
# Appending to a target dataset
# ---------------------------------------------------------------------------

def _align_timezone(stamps: pd.Series, hours: pd.Series) -> pd.Series:
    target_tz = stamps.dt.tz
    series_tz = hours.dt.tz
    if (target_tz is None) != (series_tz is None):
        raise ValueError(
            f"Timezone mismatch: target timestamps tz={target_tz}, hourly series tz={series_tz}"
        )
    if target_tz is not None and str(target_tz) != str(series_tz):
        return stamps.dt.tz_convert(series_tz)
    return stamps


def _floor_to_hour(stamps: pd.Series) -> pd.Series:
    """Start of each stamp's hour, computed on the instant so DST-ambiguous hours keep their fold."""
    return (
        stamps
        - pd.to_timedelta(stamps.dt.minute, unit="m")
        - pd.to_timedelta(stamps.dt.second, unit="s")
        - pd.to_timedelta(stamps.dt.microsecond, unit="us")
        - pd.to_timedelta(stamps.dt.nanosecond, unit="ns")
    )


def append_weather(
    target: pd.DataFrame,
    hourly: pd.DataFrame,
    period: int,
    delay: int = 0,
    threshold: float = 0.1,
    column_prefix: str = "ARF",
    *,
    reducer: Reducer = "sum",
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    target_time_col: Optional[str] = None,
) -> Tuple[pd.DataFrame, JoinCoverage]:
    """
    Add antecedent precipitation and its Wet/Dry label to a copy of `target`.

    Each target timestamp is floored to its hour and looked up in the hourly
    series. New columns are f"{column_prefix}{period}" and
    f"{column_prefix}{period}_Weather". Rows whose hour is absent from the
    series, or whose antecedent is undefined, get missing values in both
    columns; the returned JoinCoverage counts them.
    """
    target_time_col = target_time_col or time_col
    require_columns(target, target_time_col)
    validate_hourly_series(hourly, time_col=time_col, precip_col=precip_col)

    hours = parse_timestamps(hourly, time_col)
    antecedent = antecedent_precipitation(hourly, period, delay, reducer, precip_col=precip_col)
    lookup = pd.Series(antecedent.to_numpy(), index=pd.DatetimeIndex(hours))

    stamps = coerce_timestamps(target[target_time_col])
    stamps = _align_timezone(stamps, hours)
    floored = _floor_to_hour(stamps)

    found = floored.isin(lookup.index).to_numpy()
    values = pd.Series(lookup.reindex(pd.DatetimeIndex(floored)).to_numpy(), index=target.index)

    value_col = f"{column_prefix}{period}"
    out = target.copy()
    out[value_col] = values.to_numpy()
    out[f"{value_col}_Weather"] = classify_weather(values, threshold).to_numpy()

    defined = values.notna().to_numpy()
    coverage = JoinCoverage(
        n_rows=len(target),
        n_matched=int(defined.sum()),
        n_unmatched=int((~found & stamps.notna().to_numpy()).sum()),
        n_undefined=int((found & ~defined).sum()),
        n_unparsable=int(stamps.isna().sum()),
    )
    if not coverage.complete:
        logger.warning(
            "%s: %d/%d rows without antecedent value (no matching hour=%d, undefined=%d, bad timestamp=%d)",
            value_col, coverage.n_missing, coverage.n_rows,
            coverage.n_unmatched, coverage.n_undefined, coverage.n_unparsable,
        )
    return out, coverage


def append_weather_windows(
    target: pd.DataFrame,
    hourly: pd.DataFrame,
    windows: Iterable[AntecedentWindow],
    *,
    time_col: str = "Datetime",
    precip_col: str = "Precip",
    target_time_col: Optional[str] = None,
) -> Tuple[pd.DataFrame, Dict[str, JoinCoverage]]:
    """Apply several AntecedentWindow configurations in order."""
    out = target.copy()
    report: Dict[str, JoinCoverage] = {}
    applied: List[str] = []
    for w in windows:
        if w.value_column in applied:
            raise ValueError(f"Two windows produce the column '{w.value_column}'")
        out, report[w.value_column] = append_weather(
            out,
            hourly,
            w.period,
            w.delay,
            w.threshold,
            w.column_prefix,
            reducer=w.reducer,
            time_col=time_col,
            precip_col=precip_col,
            target_time_col=target_time_col,
        )
        applied.append(w.value_column)
    return out, report
