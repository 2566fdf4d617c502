"""Core utilities for the treatment coverage project."""

from .logging import configure_logging, logger, ProgressReporter
from .io import setup_logging, read_any_geo, frame_size_mb, resolve_column, require_columns, fill_placeholders
from .normalization import (
    SQ_METRES_PER_UNIT,
    to_square_metres,
    from_square_metres,
    normalize_flag,
    clean_county_label,
    short_county_name,
)

__all__ = [
    "configure_logging",
    "logger",
    "ProgressReporter",
    "setup_logging",
    "read_any_geo",
    "frame_size_mb",
    "resolve_column",
    "require_columns",
    "fill_placeholders",
    "SQ_METRES_PER_UNIT",
    "to_square_metres",
    "from_square_metres",
    "normalize_flag",
    "clean_county_label",
    "short_county_name",
]
