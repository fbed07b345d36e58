# precip_analytics/__init__.py

# ---- Errors -------------------------------------------------------------------
from .errors import (
    PrecipAnalyticsError,
    SeriesValidationError,
    UnorderedOrDuplicateTimestamp,
    DiscontinuousSeries,
    MissingValue,
    InvalidWindowParameters,
)

# ---- Continuity validation ----------------------------------------------------
from .validation import (
    validate_hourly_series,
    summarize_gaps,
    write_continuity_report_txt,
)

# ---- Antecedent precipitation -------------------------------------------------
from .antecedent import (
    antecedent_precipitation,
    add_antecedent_column,
)

# ---- Weather classification ---------------------------------------------------
from .weather import (
    AntecedentWindow,
    JoinCoverage,
    classify_weather,
    append_weather,
    append_weather_windows,
)

# ---- Events -------------------------------------------------------------------
from .events import (
    EventSummary,
    segment_events,
    merge_short_dry_gaps,
    summarize_events,
    events_to_frame,
    filter_events,
)

# ---- I/O ----------------------------------------------------------------------
from .data_io import (
    load_table,
    load_hourly_series,
    save_dataframe,
    extract_and_save_events,
    write_event_summary_csv,
    write_manifest_json,
)

# ---- Utilities / infrastructure ----------------------------------------------
from .utils import (
    setup_initial_logging,
    configure_logging,
    load_config,
    ensure_directory_exists,
)

__all__ = [
    # errors
    "PrecipAnalyticsError",
    "SeriesValidationError",
    "UnorderedOrDuplicateTimestamp",
    "DiscontinuousSeries",
    "MissingValue",
    "InvalidWindowParameters",

    # validation
    "validate_hourly_series",
    "summarize_gaps",
    "write_continuity_report_txt",

    # antecedent
    "antecedent_precipitation",
    "add_antecedent_column",

    # weather
    "AntecedentWindow",
    "JoinCoverage",
    "classify_weather",
    "append_weather",
    "append_weather_windows",

    # events
    "EventSummary",
    "segment_events",
    "merge_short_dry_gaps",
    "summarize_events",
    "events_to_frame",
    "filter_events",

    # io
    "load_table",
    "load_hourly_series",
    "save_dataframe",
    "extract_and_save_events",
    "write_event_summary_csv",
    "write_manifest_json",

    # utils / infra
    "setup_initial_logging",
    "configure_logging",
    "load_config",
    "ensure_directory_exists",
]

__version__ = "0.1.0"
