# src/precip_analytics/errors.py
# Exception types raised by the hourly-series analytics.

from __future__ import annotations

from typing import List, Optional

import pandas as pd


class PrecipAnalyticsError(ValueError):
    """Base class for every failure raised by precip_analytics."""


# ---------------------------------------------------------------------------
# Continuity validation
# ---------------------------------------------------------------------------

class SeriesValidationError(PrecipAnalyticsError):
    """An hourly series failed one of the continuity checks."""


class UnorderedOrDuplicateTimestamp(SeriesValidationError):
    def __init__(self, timestamp: pd.Timestamp, position: int, previous: pd.Timestamp):
        self.timestamp = timestamp
        self.position = position
        self.previous = previous
        kind = "duplicate" if timestamp == previous else "out-of-order"
        super().__init__(
            f"{kind} timestamp {timestamp} at row {position} (previous row: {previous})"
        )


class DiscontinuousSeries(SeriesValidationError):
    def __init__(self, timestamp: pd.Timestamp, position: int, gap: pd.Timedelta):
        self.timestamp = timestamp
        self.position = position
        self.gap = gap
        self.gap_hours = gap / pd.Timedelta(hours=1)
        super().__init__(
            f"series is not hourly after {timestamp} (row {position}): "
            f"next timestamp is {gap} later ({self.gap_hours:g} h)"
        )


class MissingValue(SeriesValidationError):
    def __init__(self, timestamps: List[pd.Timestamp], column: Optional[str] = None):
        self.timestamps = list(timestamps)
        self.column = column
        shown = ", ".join(str(t) for t in self.timestamps[:5])
        more = f" (+{len(self.timestamps) - 5} more)" if len(self.timestamps) > 5 else ""
        super().__init__(
            f"{len(self.timestamps)} missing value(s) in '{column}': {shown}{more}"
        )


# ---------------------------------------------------------------------------
# Windowed aggregation
# ---------------------------------------------------------------------------

class InvalidWindowParameters(PrecipAnalyticsError):
    """period must be a positive int, delay a non-negative int, reducer known."""
