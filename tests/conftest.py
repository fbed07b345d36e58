"""Shared pytest fixtures for precip_analytics tests."""

import logging

import pandas as pd
import pytest


def hourly_frame(values, start="2024-01-01 00:00", tz=None, time_col="Datetime", precip_col="Precip"):
    """Continuous hourly frame with one row per value."""
    t = pd.date_range(start, periods=len(values), freq="h", tz=tz)
    return pd.DataFrame({time_col: t, precip_col: [float(v) for v in values]})


@pytest.fixture
def make_hourly():
    """Factory for continuous hourly series."""
    return hourly_frame


@pytest.fixture
def storm_series():
    """Hourly series with two storms split by dry hours."""
    return hourly_frame([0, 0, 1, 2, 0, 0, 0, 3, 0])


@pytest.fixture
def ramp_series():
    """Hourly precipitation 1..5."""
    return hourly_frame([1, 2, 3, 4, 5])


@pytest.fixture
def restore_root_logging():
    """Put the root logger back the way it was after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
