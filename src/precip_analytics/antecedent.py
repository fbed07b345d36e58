# src/precip_analytics/antecedent.py
# Trailing-window (antecedent) precipitation statistics on a validated hourly series.

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .errors import InvalidWindowParameters
from .validation import require_columns

logger = logging.getLogger(__name__)

Reducer = Union[str, Callable[[np.ndarray], float]]

NAMED_REDUCERS = ("sum", "max", "min", "mean", "median", "std", "var")

# ---------------------------------------------------------------------------
# Parameter checks
# ---------------------------------------------------------------------------

def _check_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidWindowParameters(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidWindowParameters(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def check_window(period: int, delay: int = 0) -> Tuple[int, int]:
    """Return (period, delay) as ints; period must be >= 1 and delay >= 0."""
    return _check_int("period", period, 1), _check_int("delay", delay, 0)


def reducer_name(reducer: Reducer) -> str:
    if callable(reducer):
        return getattr(reducer, "__name__", "custom")
    if isinstance(reducer, str) and reducer.lower() in NAMED_REDUCERS:
        return reducer.lower()
    raise InvalidWindowParameters(
        f"Unknown reducer {reducer!r}; use one of {NAMED_REDUCERS} or a callable"
    )

# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def antecedent_precipitation(
    df: pd.DataFrame,
    period: int,
    delay: int = 0,
    reducer: Reducer = "sum",
    *,
    precip_col: str = "Precip",
) -> pd.Series:
    """
    Reduce the precipitation of the `period` hours ending `delay` hours before each row.

    Row i covers rows [i - delay - period + 1, i - delay]. Rows without enough
    history are NaN, so the first period + delay - 1 values are always NaN.
    The result shares df's index and is named "<reducer>_<period>h".

    df must already have passed validate_hourly_series.
    """
    period, delay = check_window(period, delay)
    name = reducer_name(reducer)
    require_columns(df, precip_col)

    values = pd.to_numeric(df[precip_col], errors="coerce").astype(float)
    window = values.rolling(window=period, min_periods=period)
    if callable(reducer):
        out = window.apply(reducer, raw=True)
    elif name == "sum":
        # Summed per window, not as a running total, so values sitting exactly
        # on a Wet threshold are not pushed below it by accumulated rounding.
        out = window.apply(np.sum, raw=True)
    elif name in ("std", "var"):
        # Population statistics: a one-hour window is defined (0.0).
        out = getattr(window, name)(ddof=0)
    else:
        out = getattr(window, name)()

    out = out.shift(delay)
    out.name = f"{name}_{period}h"
    logger.debug("Antecedent %s: period=%d delay=%d defined=%d/%d",
                 name, period, delay, int(out.notna().sum()), len(out))
    return out


def add_antecedent_column(
    df: pd.DataFrame,
    period: int,
    delay: int = 0,
    reducer: Reducer = "sum",
    *,
    precip_col: str = "Precip",
    column: Optional[str] = None,
) -> pd.DataFrame:
    """Return a copy of df with the antecedent series appended as `column`."""
    out = df.copy()
    series = antecedent_precipitation(df, period, delay, reducer, precip_col=precip_col)
    out[column or series.name] = series
    return out
