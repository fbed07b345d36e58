"""Tests for the hourly continuity validator and gap diagnostics."""

import numpy as np
import pandas as pd
import pytest

from precip_analytics.errors import (
    DiscontinuousSeries,
    MissingValue,
    SeriesValidationError,
    UnorderedOrDuplicateTimestamp,
)
from precip_analytics.validation import (
    summarize_gaps,
    validate_hourly_series,
    write_continuity_report_txt,
)


class TestValidateHourlySeries:
    """Checks run in order: ordering, hourly step, completeness."""

    def test_clean_series_passes(self, make_hourly):
        df = make_hourly([0, 1, 2, 0])
        assert validate_hourly_series(df) is df

    def test_empty_and_single_row_pass(self, make_hourly):
        validate_hourly_series(make_hourly([]))
        validate_hourly_series(make_hourly([0.4]))

    def test_duplicate_timestamp(self, make_hourly):
        df = make_hourly([0, 1, 2, 3])
        df.loc[2, "Datetime"] = df.loc[1, "Datetime"]

        with pytest.raises(UnorderedOrDuplicateTimestamp) as exc:
            validate_hourly_series(df)

        assert exc.value.position == 2
        assert exc.value.timestamp == pd.Timestamp("2024-01-01 01:00")
        assert "duplicate" in str(exc.value)

    def test_out_of_order_timestamp(self, make_hourly):
        df = make_hourly([0, 1, 2, 3]).iloc[[0, 2, 1, 3]].reset_index(drop=True)

        with pytest.raises(UnorderedOrDuplicateTimestamp) as exc:
            validate_hourly_series(df)

        assert exc.value.position == 2
        assert "out-of-order" in str(exc.value)

    def test_gap_reports_location_and_size(self, make_hourly):
        df = make_hourly([0, 1, 2, 3, 4, 5]).drop(index=[2, 3]).reset_index(drop=True)

        with pytest.raises(DiscontinuousSeries) as exc:
            validate_hourly_series(df)

        assert exc.value.timestamp == pd.Timestamp("2024-01-01 01:00")
        assert exc.value.gap_hours == pytest.approx(3.0)

    def test_sub_hourly_step_is_discontinuous(self):
        df = pd.DataFrame({
            "Datetime": pd.date_range("2024-01-01", periods=4, freq="30min"),
            "Precip": [0.0, 0.1, 0.0, 0.0],
        })
        with pytest.raises(DiscontinuousSeries):
            validate_hourly_series(df)

    def test_local_clock_daylight_saving_jump_is_a_gap(self):
        stamps = pd.to_datetime(["2024-03-10 00:00", "2024-03-10 01:00", "2024-03-10 03:00"])
        df = pd.DataFrame({"Datetime": stamps, "Precip": [0.0, 0.0, 0.0]})
        with pytest.raises(DiscontinuousSeries):
            validate_hourly_series(df)

    def test_missing_value_lists_timestamps(self, make_hourly):
        df = make_hourly([0, 1, 2, 3])
        df.loc[[1, 3], "Precip"] = np.nan

        with pytest.raises(MissingValue) as exc:
            validate_hourly_series(df)

        assert exc.value.timestamps == [
            pd.Timestamp("2024-01-01 01:00"),
            pd.Timestamp("2024-01-01 03:00"),
        ]
        assert exc.value.column == "Precip"

    def test_ordering_checked_before_nulls(self, make_hourly):
        df = make_hourly([0, 1, 2])
        df.loc[2, "Datetime"] = df.loc[1, "Datetime"]
        df.loc[0, "Precip"] = np.nan
        with pytest.raises(UnorderedOrDuplicateTimestamp):
            validate_hourly_series(df)

    def test_failures_share_a_base_class(self, make_hourly):
        df = make_hourly([0, 1, 2, 3]).drop(index=[1]).reset_index(drop=True)
        with pytest.raises(SeriesValidationError):
            validate_hourly_series(df)

    def test_input_not_repaired(self, make_hourly):
        df = make_hourly([0, 1, 2, 3])
        df.loc[1, "Precip"] = np.nan
        before = df.copy()
        with pytest.raises(MissingValue):
            validate_hourly_series(df)
        pd.testing.assert_frame_equal(df, before)

    def test_missing_column(self, make_hourly):
        with pytest.raises(ValueError, match="Precip"):
            validate_hourly_series(make_hourly([0, 1]).drop(columns="Precip"))

    def test_unparsable_timestamp(self):
        df = pd.DataFrame({"Datetime": ["2024-01-01 00:00", "garbage"], "Precip": [0.0, 0.0]})
        with pytest.raises(ValueError, match="Unparsable"):
            validate_hourly_series(df)

    def test_negative_precipitation(self, make_hourly):
        with pytest.raises(ValueError, match="Negative"):
            validate_hourly_series(make_hourly([0, -0.5, 1]))

    def test_custom_column_names(self, make_hourly):
        df = make_hourly([0, 1], time_col="time", precip_col="rain_in")
        validate_hourly_series(df, time_col="time", precip_col="rain_in")

    def test_timezone_aware_series(self, make_hourly):
        validate_hourly_series(make_hourly([0, 1, 0], tz="UTC"))

    def test_offset_strings_across_daylight_saving_change(self):
        df = pd.DataFrame({
            "Datetime": [
                "2023-11-05T00:00-04:00",
                "2023-11-05T01:00-04:00",
                "2023-11-05T01:00-05:00",
                "2023-11-05T02:00-05:00",
            ],
            "Precip": [0.0, 0.2, 0.4, 0.0],
        })
        assert validate_hourly_series(df) is df

    def test_offset_strings_with_missing_hour(self):
        df = pd.DataFrame({
            "Datetime": ["2023-11-05T01:00-04:00", "2023-11-05T02:00-05:00"],
            "Precip": [0.0, 0.0],
        })
        with pytest.raises(DiscontinuousSeries) as exc:
            validate_hourly_series(df)
        assert exc.value.gap_hours == 2


class TestGapDiagnostics:
    """Non-raising reports used to explain a rejected series."""

    def test_summarize_gaps(self, make_hourly):
        df = make_hourly(range(10)).drop(index=[2, 3, 7]).reset_index(drop=True)

        gaps = summarize_gaps(df)

        assert list(gaps["missing_count"]) == [2, 1]
        assert list(gaps["gap_hours"]) == [3.0, 2.0]
        assert gaps["start_time"].iloc[0] == pd.Timestamp("2024-01-01 01:00")

    def test_summarize_gaps_clean(self, make_hourly):
        assert summarize_gaps(make_hourly([0, 1, 2])).empty

    def test_continuity_report(self, make_hourly, tmp_path):
        df = make_hourly(range(6)).drop(index=[2, 3]).reset_index(drop=True)
        df = pd.concat([df, df.iloc[[0]]], ignore_index=True)
        df.loc[1, "Precip"] = np.nan

        out = write_continuity_report_txt(df, tmp_path / "report.txt")

        text = out.read_text(encoding="utf-8")
        assert "Expected hours in period: 6" in text
        assert "Missing hours in period: 2" in text
        assert "Duplicate timestamps: 1" in text
        assert "Null 'Precip' values: 1" in text
        assert "miss=2" in text

    def test_continuity_report_without_time_column(self, tmp_path):
        out = write_continuity_report_txt(pd.DataFrame({"x": [1]}), tmp_path / "r.txt")
        assert "No 'Datetime' column" in out.read_text(encoding="utf-8")
