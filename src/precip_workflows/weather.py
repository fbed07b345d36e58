# src/precip_workflows/weather.py

import logging
import sys
from typing import Any, Dict, Optional

import pandas as pd

from precip_analytics.data_io import load_table, save_dataframe
from precip_analytics.errors import SeriesValidationError
from precip_analytics.utils import configure_logging_from_config, ensure_directory_exists, load_config
from precip_analytics.weather import append_weather_windows

from precip_workflows.event import antecedent_windows, load_station_hourly, station_paths

# ------------------------------------------------------------------------------
# Per-station runner
# ------------------------------------------------------------------------------

def process_station_weather(
    station: str,
    cfg: Dict[str, Any],
    hourly: Optional[pd.DataFrame] = None,
) -> Dict[str, Any]:
    """
    Append antecedent precipitation and Wet/Dry labels to <samples_dir>/<station>.csv.
    Partial join coverage is logged, never fatal.
    """
    series_cfg = cfg.get("series", {}) or {}
    time_col = series_cfg.get("time_col", "Datetime")
    precip_col = series_cfg.get("precip_col", "Precip")
    sample_time_col = series_cfg.get("sample_time_col", time_col)
    safe_write = bool((cfg.get("io", {}) or {}).get("safe_writes", True))

    paths = station_paths(cfg, station)
    result: Dict[str, Any] = {"station": station, "status": "skipped", "coverage": {}}

    if not paths["samples_csv"].exists():
        logging.info(f"[{station}] No sample dataset at {paths['samples_csv']}; weather stage skipped.")
        return result

    windows = antecedent_windows(cfg)
    if not windows:
        logging.warning(f"[{station}] No antecedent windows configured; weather stage skipped.")
        return result

    if hourly is None:
        hourly = load_station_hourly(cfg, station)
    if hourly is None:
        return result

    samples = load_table(
        paths["samples_csv"],
        time_col=sample_time_col,
        tz=(cfg.get("run", {}) or {}).get("timezone"),
    )

    try:
        annotated, coverage = append_weather_windows(
            samples,
            hourly,
            windows,
            time_col=time_col,
            precip_col=precip_col,
            target_time_col=sample_time_col,
        )
    except SeriesValidationError as e:
        logging.error(f"[{station}] Hourly series rejected, samples not annotated: {e}")
        result.update(status="invalid", error=str(e))
        return result

    out_dir = ensure_directory_exists(paths["output_dir"])
    out_csv = save_dataframe(annotated, out_dir / "samples_with_weather.csv", safe_write=safe_write)

    for column, cov in coverage.items():
        logging.info(
            f"[{station}] {column}: {cov.n_matched}/{cov.n_rows} samples annotated "
            f"({cov.coverage:.1%} coverage)"
        )

    result.update(status="ok", samples_csv=out_csv, coverage=coverage)
    return result

# ------------------------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------------------------

def weather_main(config_path: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Weather stage for each station listed in config.run.stations.
    Inputs:
      <input_dir>/<station>.csv, <samples_dir>/<station>.csv
    Output:
      <output_dir>/<station>/samples_with_weather.csv
    """
    cfg = load_config(config_path)
    configure_logging_from_config(cfg, "weather.log")
    logging.info("Starting weather_main.")

    results: Dict[str, Dict[str, Any]] = {}
    for station in cfg["run"].get("stations") or []:
        try:
            results[station] = process_station_weather(station, cfg)
        except Exception as e:
            logging.error(f"[{station}] Unhandled exception in weather stage: {e}", exc_info=True)
            results[station] = {"station": station, "status": "failed", "error": str(e)}

    logging.info("Weather stage completed.")
    return results


if __name__ == "__main__":
    try:
        weather_main(sys.argv[1] if len(sys.argv) > 1 else None)
    except Exception:
        logging.exception("Fatal error in weather_main.")
        sys.exit(1)
