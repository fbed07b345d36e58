"""Smoke tests for the hyetograph plot."""

from precip_analytics.antecedent import antecedent_precipitation
from precip_analytics.events import segment_events, summarize_events
from precip_analytics.visualization import plot_file_name, plot_hyetograph


def test_saves_png(storm_series, tmp_path):
    seg = segment_events(storm_series)

    out = plot_hyetograph(
        seg,
        antecedent=antecedent_precipitation(storm_series, period=3),
        events=summarize_events(seg),
        station="gauge 1",
        save_dir=tmp_path,
    )

    assert out == tmp_path / "hyetograph_gauge_1.png"
    assert out.stat().st_size > 0


def test_single_event(storm_series, tmp_path):
    out = plot_hyetograph(segment_events(storm_series), event_id=2, save_dir=tmp_path)
    assert out.name == plot_file_name("Event 2")


def test_without_save_dir(storm_series):
    assert plot_hyetograph(segment_events(storm_series)) is None


def test_empty_frame(make_hourly, tmp_path):
    assert plot_hyetograph(segment_events(make_hourly([])), save_dir=tmp_path) is None
    assert list(tmp_path.iterdir()) == []
