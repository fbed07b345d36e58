# src/precip_workflows/event.py

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from precip_analytics.antecedent import antecedent_precipitation
from precip_analytics.data_io import (
    extract_and_save_events,
    load_hourly_series,
    save_dataframe,
    write_event_summary_csv,
    write_manifest_json,
)
from precip_analytics.errors import SeriesValidationError
from precip_analytics.events import merge_short_dry_gaps, segment_events, summarize_events
from precip_analytics.utils import configure_logging_from_config, ensure_directory_exists, load_config, resolve_path
from precip_analytics.validation import validate_hourly_series, write_continuity_report_txt
from precip_analytics.weather import AntecedentWindow, classify_weather

# ------------------------------------------------------------------------------
# Config adapters
# ------------------------------------------------------------------------------

def station_paths(cfg: Dict[str, Any], station: str) -> Dict[str, Path]:
    return {
        "hourly_csv": resolve_path(cfg, "input_dir") / f"{station}.csv",
        "samples_csv": resolve_path(cfg, "samples_dir") / f"{station}.csv",
        "output_dir": resolve_path(cfg, "output_dir") / station,
        "plots_dir": resolve_path(cfg, "plots_dir") / station,
    }


def antecedent_windows(cfg: Dict[str, Any]) -> List[AntecedentWindow]:
    raw = (cfg.get("antecedent", {}) or {}).get("windows") or []
    return [AntecedentWindow.from_dict(w) for w in raw]


def load_station_hourly(cfg: Dict[str, Any], station: str) -> Optional[pd.DataFrame]:
    """Read <input_dir>/<station>.csv, or None (with a warning) when it is absent."""
    series_cfg = cfg.get("series", {}) or {}
    csv_path = station_paths(cfg, station)["hourly_csv"]
    if not csv_path.exists():
        logging.warning(f"[{station}] Hourly CSV not found: {csv_path}. Skipping.")
        return None
    return load_hourly_series(
        csv_path,
        time_col=series_cfg.get("time_col", "Datetime"),
        precip_col=series_cfg.get("precip_col", "Precip"),
        tz=(cfg.get("run", {}) or {}).get("timezone"),
    )

# ------------------------------------------------------------------------------
# Per-station runner
# ------------------------------------------------------------------------------

def process_station_events(
    station: str,
    cfg: Dict[str, Any],
    hourly: Optional[pd.DataFrame] = None,
) -> Dict[str, Any]:
    """
    Validate, segment and summarize one station's hourly series and write outputs.
    A failed continuity check stops the station here (status "invalid").
    """
    series_cfg = cfg.get("series", {}) or {}
    ev_cfg = cfg.get("events", {}) or {}
    io_cfg = cfg.get("io", {}) or {}
    time_col = series_cfg.get("time_col", "Datetime")
    precip_col = series_cfg.get("precip_col", "Precip")
    safe_write = bool(io_cfg.get("safe_writes", True))

    paths = station_paths(cfg, station)
    out_dir = ensure_directory_exists(paths["output_dir"])
    result: Dict[str, Any] = {"station": station, "status": "skipped", "events": []}

    if hourly is None:
        hourly = load_station_hourly(cfg, station)
    if hourly is None:
        return result

    report = write_continuity_report_txt(
        hourly, out_dir / "continuity_report.txt", time_col=time_col, precip_col=precip_col
    )
    result["continuity_report"] = report

    try:
        validate_hourly_series(hourly, time_col=time_col, precip_col=precip_col)
    except SeriesValidationError as e:
        logging.error(f"[{station}] Hourly series rejected: {e} (see {report})")
        result.update(status="invalid", error=str(e))
        return result

    segmented = segment_events(
        hourly,
        time_col=time_col,
        precip_col=precip_col,
        wet_threshold=float(ev_cfg.get("wet_threshold", 0.0)),
    )
    merge_gap = ev_cfg.get("merge_if_gap_hours")
    if merge_gap not in (None, "", 0):
        segmented = merge_short_dry_gaps(segmented, int(merge_gap))

    for w in antecedent_windows(cfg):
        values = antecedent_precipitation(hourly, w.period, w.delay, w.reducer, precip_col=precip_col)
        segmented[w.value_column] = values
        segmented[w.weather_column] = classify_weather(values, w.threshold)

    events = summarize_events(segmented, time_col=time_col, precip_col=precip_col, station=station)

    segmented_path = save_dataframe(segmented, out_dir / "segmented_hourly.csv", safe_write=safe_write)
    summary_path = write_event_summary_csv(events, out_dir / "event_summary.csv", safe_write=safe_write)

    out_flags = ev_cfg.get("outputs", {}) or {}
    event_csvs: List[Path] = []
    if out_flags.get("save_wet_event_csvs", False):
        pattern = (io_cfg.get("filename_patterns", {}) or {}).get("event_csv", "event_{id}.csv")
        event_csvs = extract_and_save_events(
            segmented, events, out_dir / "events", filename_pattern=pattern, safe_write=safe_write
        )

    plots: List[Path] = []
    viz_cfg = cfg.get("visualization", {}) or {}
    if viz_cfg.get("enabled", False):
        from precip_analytics.visualization import plot_hyetograph

        first = next(iter(antecedent_windows(cfg)), None)
        png = plot_hyetograph(
            segmented,
            time_col=time_col,
            precip_col=precip_col,
            antecedent=segmented[first.value_column] if first else None,
            events=events,
            station=station,
            save_dir=paths["plots_dir"],
            dpi=int(viz_cfg.get("dpi", 150)),
        )
        if png:
            plots.append(png)

    result.update(
        status="ok",
        events=events,
        segmented_csv=segmented_path,
        summary_csv=summary_path,
        event_csvs=event_csvs,
        plots=plots,
    )

    if out_flags.get("save_manifest", True):
        result["manifest_json"] = write_manifest_json(
            station=station,
            events=events,
            paths={
                "continuity_report": report,
                "segmented": segmented_path,
                "summary": summary_path,
                "event_csvs": event_csvs,
                "plots": plots,
            },
            out_path=out_dir / "manifest.json",
            extra={"n_hours": int(len(segmented))},
        )

    logging.info(f"[{station}] Events found: {len(events)} "
                 f"(wet={sum(ev.event_type == 'Wet' for ev in events)})")
    return result

# ------------------------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------------------------

def event_main(config_path: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Event stage for each station listed in config.run.stations.
    Inputs:
      <input_dir>/<station>.csv
    Outputs (per station, under <output_dir>/<station>/):
      - continuity_report.txt
      - segmented_hourly.csv
      - event_summary.csv
      - events/event_*.csv (optional)
      - manifest.json
    """
    cfg = load_config(config_path)
    log_file = configure_logging_from_config(cfg, "event.log")
    logging.info("Starting event_main.")

    results: Dict[str, Dict[str, Any]] = {}
    for station in cfg["run"].get("stations") or []:
        try:
            results[station] = process_station_events(station, cfg)
        except Exception as e:
            logging.error(f"[{station}] Unhandled exception in station processing: {e}", exc_info=True)
            results[station] = {"station": station, "status": "failed", "error": str(e)}

    logging.info(f"Event stage completed. Log saved to {log_file}")
    return results


if __name__ == "__main__":
    try:
        event_main(sys.argv[1] if len(sys.argv) > 1 else None)
    except Exception:
        logging.exception("Fatal error in event_main.")
        sys.exit(1)
