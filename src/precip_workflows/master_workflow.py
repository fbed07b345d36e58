#!/usr/bin/env python3
# src/precip_workflows/master_workflow.py

import argparse
import logging
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from precip_analytics.utils import configure_logging_from_config, load_config

from precip_workflows.event import load_station_hourly, process_station_events
from precip_workflows.weather import process_station_weather

# ── Per-station pipeline ─────────────────────────────────────────────────────
def run_station(station: str, cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Event stage then weather stage for one station; the hourly CSV is read once."""
    hourly = load_station_hourly(cfg, station)
    if hourly is None:
        return {"station": station, "status": "skipped", "events": {"status": "skipped"}, "weather": {"status": "skipped"}}

    ev = process_station_events(station, cfg, hourly=hourly)
    if ev["status"] != "ok":
        logging.warning(f"[{station}] Weather stage blocked by event stage status '{ev['status']}'.")
        return {"station": station, "status": ev["status"], "events": ev, "weather": {"status": "blocked"}}

    wx = process_station_weather(station, cfg, hourly=hourly)
    status = "ok" if wx["status"] in ("ok", "skipped") else wx["status"]
    return {"station": station, "status": status, "events": ev, "weather": wx}


def _run_station_safe(station: str, cfg: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return run_station(station, cfg)
    except Exception as e:
        logging.error(f"[{station}] Unhandled exception in station pipeline: {e}", exc_info=True)
        return {"station": station, "status": "failed", "error": str(e)}

# ── Orchestrator ─────────────────────────────────────────────────────────────
def run_master_workflow(
    config_path: Optional[str] = None,
    stations: Optional[List[str]] = None,
    workers: Optional[int] = None,
    enable_visualization: bool = False,
) -> Dict[str, Dict[str, Any]]:
    cfg = load_config(config_path)
    if enable_visualization:
        cfg["visualization"]["enabled"] = True
    configure_logging_from_config(cfg, "master_workflow.log")
    logging.info("Master Workflow Started")

    stations = list(stations or cfg["run"].get("stations") or [])
    if not stations:
        logging.warning("No stations configured (run.stations); nothing to do.")
        return {}

    n_workers = int(workers if workers is not None else cfg["run"].get("workers", 1) or 1)
    results: Dict[str, Dict[str, Any]] = {}

    if n_workers > 1 and len(stations) > 1:
        with ProcessPoolExecutor(max_workers=n_workers) as ex:
            futs = {ex.submit(_run_station_safe, s, cfg): s for s in stations}
            for fut in tqdm(as_completed(futs), total=len(futs), desc="Stations", unit="station"):
                station = futs[fut]
                try:
                    results[station] = fut.result()
                except Exception as e:
                    logging.error(f"[{station}] Worker failed: {e}", exc_info=True)
                    results[station] = {"station": station, "status": "failed", "error": str(e)}
    else:
        for station in tqdm(stations, desc="Stations", unit="station", disable=len(stations) < 2):
            results[station] = _run_station_safe(station, cfg)

    by_status: Dict[str, int] = {}
    for r in results.values():
        by_status[r["status"]] = by_status.get(r["status"], 0) + 1
    logging.info(f"Master Workflow Completed: {by_status}")
    return results

# ── CLI ──────────────────────────────────────────────────────────────────────
def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run the hourly precipitation event/weather workflow")
    ap.add_argument("--config", default=None, help="YAML config (default: config/config.yaml)")
    ap.add_argument("--station", action="append", dest="stations",
                    help="Station to process (repeatable; default: run.stations)")
    ap.add_argument("--workers", type=int, default=None, help="Parallel station workers")
    ap.add_argument("--enable-visualization", action="store_true")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        results = run_master_workflow(
            config_path=args.config,
            stations=args.stations,
            workers=args.workers,
            enable_visualization=args.enable_visualization,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    failed = [s for s, r in results.items() if r["status"] not in ("ok", "skipped")]
    if failed:
        print(f"Workflow finished with problems in: {', '.join(sorted(failed))}")
        return 1
    print("Workflow completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
