# utils.py
"""
Utility functions for the precipitation analytics:
  - Directory management
  - Logging configuration
  - Config loading with sane defaults
"""

from __future__ import annotations

import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


# ------------------------------------------------------------------------------
# Paths / directories
# ------------------------------------------------------------------------------

def get_base_path() -> Path:
    """
    Returns the project base path (two levels up from src/precip_analytics/utils.py).
    """
    return Path(__file__).resolve().parents[2]


def ensure_directory_exists(path: Union[str, Path]) -> Path:
    """
    Create a directory (and parents) if it doesn't exist. Returns the resolved Path.
    """
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p.resolve()


def resolve_path(cfg: Dict[str, Any], key: str) -> Path:
    """Resolve cfg.paths[key] against cfg.paths.base_dir when it is relative."""
    paths = cfg.get("paths", {}) or {}
    p = Path(paths.get(key, key))
    if p.is_absolute():
        return p
    return Path(paths.get("base_dir", get_base_path())) / p


# ------------------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------------------

def setup_initial_logging(level: int = logging.INFO) -> None:
    """
    Simple console logging, useful very early in startup.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s:%(levelname)s:%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def configure_logging(
    log_file_path: Union[str, Path],
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    log_level: int = logging.INFO
) -> None:
    """
    Configure logging with a rotating file handler + console handler.
    """
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(log_level)

    log_file_path = Path(log_file_path)
    ensure_directory_exists(log_file_path.parent)

    file_handler = RotatingFileHandler(
        filename=str(log_file_path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(name)s:%(message)s"))

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)


def configure_logging_from_config(cfg: Dict[str, Any], log_name: str) -> Path:
    """Rotating log under paths.logs_dir, level and rotation taken from cfg.logging."""
    log_cfg = cfg.get("logging", {}) or {}
    rotation = log_cfg.get("rotation", {}) or {}
    log_file = resolve_path(cfg, "logs_dir") / log_name
    configure_logging(
        log_file_path=log_file,
        max_bytes=int(rotation.get("max_mb", 10)) * 1024 * 1024,
        backup_count=int(rotation.get("backup_count", 5)),
        log_level=getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO),
    )
    return log_file


# ------------------------------------------------------------------------------
# Config loading (with robust defaults)
# ------------------------------------------------------------------------------

def apply_config_defaults(cfg: Dict[str, Any], base_path: Optional[Path] = None) -> Dict[str, Any]:
    """Fill every block the pipeline reads so the rest of the code can rely on keys existing."""
    base_path = base_path or get_base_path()

    cfg.setdefault("paths", {})
    paths = cfg["paths"]
    paths.setdefault("base_dir", str(base_path))
    paths.setdefault("input_dir", "data/hourly")
    paths.setdefault("samples_dir", "data/samples")
    paths.setdefault("output_dir", "data/processed")
    paths.setdefault("plots_dir", "plots")
    paths.setdefault("logs_dir", "logs")

    cfg.setdefault("run", {})
    cfg["run"].setdefault("stations", [])
    cfg["run"].setdefault("timezone", None)
    cfg["run"].setdefault("workers", 1)

    cfg.setdefault("series", {})
    cfg["series"].setdefault("time_col", "Datetime")
    cfg["series"].setdefault("precip_col", "Precip")
    cfg["series"].setdefault("sample_time_col", "Datetime")

    cfg.setdefault("events", {})
    ev = cfg["events"]
    ev.setdefault("wet_threshold", 0.0)
    ev.setdefault("merge_if_gap_hours", None)
    ev.setdefault("outputs", {})
    ev["outputs"].setdefault("save_wet_event_csvs", False)
    ev["outputs"].setdefault("save_manifest", True)

    cfg.setdefault("antecedent", {})
    cfg["antecedent"].setdefault("windows", [
        {"period": 72, "delay": 0, "reducer": "sum", "threshold": 0.1, "column_prefix": "ARF"},
    ])

    cfg.setdefault("visualization", {})
    cfg["visualization"].setdefault("enabled", False)
    cfg["visualization"].setdefault("dpi", 150)

    cfg.setdefault("io", {})
    cfg["io"].setdefault("safe_writes", True)
    cfg["io"].setdefault("filename_patterns", {})
    cfg["io"]["filename_patterns"].setdefault("event_csv", "event_{id}.csv")

    cfg.setdefault("logging", {})
    cfg["logging"].setdefault("level", "INFO")
    cfg["logging"].setdefault("rotation", {"max_mb": 10, "backup_count": 5})
    return cfg


def load_config(config_file_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load YAML config and provide defaults for every block
    (paths/run/series/events/antecedent/visualization/io/logging).
    """
    base_path = get_base_path()
    config_path = Path(config_file_path) if config_file_path else (base_path / "config" / "config.yaml")
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        cfg: Dict[str, Any] = yaml.safe_load(f) or {}

    return apply_config_defaults(cfg, base_path)
