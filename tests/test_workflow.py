"""End-to-end tests for the config-driven station workflow."""

import json

import pandas as pd
import pytest
import yaml

from precip_analytics.utils import load_config
from precip_workflows.event import process_station_events
from precip_workflows.master_workflow import main, run_master_workflow
from precip_workflows.weather import process_station_weather

PATTERN = [0, 0, 0.2, 1.4, 0.6, 0, 0, 0, 0, 0, 0.1, 0]


@pytest.fixture
def workspace(tmp_path, make_hourly, restore_root_logging):
    """Config + station CSVs: 'good' (with samples), 'gappy' (missing hours), 'absent' (no file)."""
    hourly_dir = tmp_path / "data" / "hourly"
    samples_dir = tmp_path / "data" / "samples"
    hourly_dir.mkdir(parents=True)
    samples_dir.mkdir(parents=True)

    good = make_hourly(PATTERN * 4)
    good.to_csv(hourly_dir / "good.csv", index=False)

    gappy = make_hourly(PATTERN).drop(index=[5, 6]).reset_index(drop=True)
    gappy.to_csv(hourly_dir / "gappy.csv", index=False)

    pd.DataFrame({
        "SampleID": ["a", "b", "c"],
        "Datetime": ["2024-01-01 04:25", "2024-01-01 01:05", "2024-01-05 09:00"],
    }).to_csv(samples_dir / "good.csv", index=False)

    cfg = {
        "paths": {"base_dir": str(tmp_path)},
        "run": {"stations": ["good", "gappy", "absent"]},
        "antecedent": {"windows": [{"period": 3, "threshold": 1.0, "column_prefix": "ARF"}]},
        "events": {"outputs": {"save_wet_event_csvs": True}},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return tmp_path, config_path


class TestEventStage:

    def test_outputs_written(self, workspace):
        root, config_path = workspace
        cfg = load_config(config_path)

        result = process_station_events("good", cfg)

        out_dir = root / "data" / "processed" / "good"
        assert result["status"] == "ok"
        for name in ("continuity_report.txt", "segmented_hourly.csv", "event_summary.csv", "manifest.json"):
            assert (out_dir / name).exists()
        assert len(list((out_dir / "events").glob("event_*.csv"))) == 8

        seg = pd.read_csv(out_dir / "segmented_hourly.csv")
        assert {"event_id", "event_type", "ARF3", "ARF3_Weather"} <= set(seg.columns)
        assert seg["ARF3"].isna().sum() == 2

        summary = pd.read_csv(out_dir / "event_summary.csv")
        assert summary["total_depth"].sum() == pytest.approx(sum(PATTERN) * 4)

        manifest = json.loads((out_dir / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["events_by_type"]["Wet"] == 8
        assert manifest["n_hours"] == 48

    def test_invalid_series_blocks_downstream(self, workspace):
        root, config_path = workspace
        cfg = load_config(config_path)

        result = process_station_events("gappy", cfg)

        out_dir = root / "data" / "processed" / "gappy"
        assert result["status"] == "invalid"
        assert "not hourly" in result["error"]
        assert (out_dir / "continuity_report.txt").exists()
        assert not (out_dir / "segmented_hourly.csv").exists()

    def test_merge_gap_option(self, workspace):
        _, config_path = workspace
        cfg = load_config(config_path)
        cfg["events"]["merge_if_gap_hours"] = 3

        result = process_station_events("good", cfg)

        wet = [ev for ev in result["events"] if ev.event_type == "Wet"]
        assert len(wet) == 5

    def test_missing_station_skipped(self, workspace):
        _, config_path = workspace
        assert process_station_events("absent", load_config(config_path))["status"] == "skipped"

    def test_hyetograph_when_enabled(self, workspace):
        root, config_path = workspace
        cfg = load_config(config_path)
        cfg["visualization"]["enabled"] = True

        result = process_station_events("good", cfg)

        assert len(result["plots"]) == 1
        assert result["plots"][0].exists()
        assert result["plots"][0].parent == root / "plots" / "good"


class TestWeatherStage:

    def test_samples_annotated(self, workspace):
        root, config_path = workspace

        result = process_station_weather("good", load_config(config_path))

        assert result["status"] == "ok"
        cov = result["coverage"]["ARF3"]
        assert (cov.n_rows, cov.n_matched, cov.n_unmatched, cov.n_undefined) == (3, 1, 1, 1)

        out = pd.read_csv(root / "data" / "processed" / "good" / "samples_with_weather.csv")
        assert out["ARF3"].iloc[0] == pytest.approx(0.2 + 1.4 + 0.6)
        assert out["ARF3_Weather"].iloc[0] == "Wet"
        assert out["ARF3"].iloc[1:].isna().all()

    def test_invalid_hourly_reported(self, workspace):
        root, config_path = workspace
        (root / "data" / "samples" / "gappy.csv").write_text(
            "Datetime\n2024-01-01 03:00\n", encoding="utf-8"
        )
        result = process_station_weather("gappy", load_config(config_path))
        assert result["status"] == "invalid"

    def test_no_samples_skipped(self, workspace):
        _, config_path = workspace
        assert process_station_weather("gappy", load_config(config_path))["status"] == "skipped"


class TestMasterWorkflow:

    def test_statuses_per_station(self, workspace):
        root, config_path = workspace

        results = run_master_workflow(str(config_path))

        assert results["good"]["status"] == "ok"
        assert results["good"]["weather"]["status"] == "ok"
        assert results["gappy"]["status"] == "invalid"
        assert results["gappy"]["weather"]["status"] == "blocked"
        assert results["absent"]["status"] == "skipped"
        assert (root / "logs" / "master_workflow.log").exists()

    def test_station_override(self, workspace):
        _, config_path = workspace
        results = run_master_workflow(str(config_path), stations=["good"])
        assert list(results) == ["good"]

    def test_parallel_workers(self, workspace):
        _, config_path = workspace
        results = run_master_workflow(str(config_path), stations=["good", "gappy"], workers=2)
        assert results["good"]["status"] == "ok"
        assert results["gappy"]["status"] == "invalid"

    def test_cli_exit_codes(self, workspace, tmp_path):
        _, config_path = workspace
        assert main(["--config", str(config_path), "--station", "good"]) == 0
        assert main(["--config", str(config_path)]) == 1
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 2
