"""High-level orchestration of a coverage run."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from .core import fill_placeholders, setup_logging, logger
from .data import run_pipeline, write_outputs


PIPELINE_OPTIONS = (
    "target_crs",
    "id_col",
    "flag_col",
    "duplicate_flag",
    "category_col",
    "date_col",
    "area_col",
    "area_unit",
    "county_name_col",
    "income_col",
    "locator",
)


def build_coverage(args: argparse.Namespace) -> dict[str, Any]:
    setup_logging(args.verbose)
    options = {name: getattr(args, name) for name in PIPELINE_OPTIONS}
    result = run_pipeline(
        args.treatments,
        args.counties,
        region=args.region,
        region_col=args.region_col,
        layer=args.layer,
        counties_layer=args.counties_layer,
        year=args.year,
        **options,
    )
    out_dir = fill_placeholders(args.out_dir, args.region, args.year)
    written = write_outputs(result, Path(out_dir))

    quality = result["metadata"]["data_quality"]
    if quality["unattributed"]:
        logger.warning(
            "%d treatments fell outside every county; see %s",
            quality["unattributed"],
            written.get("unattributed_table"),
        )
    logger.info("Wrote %s", written["coverage"])
    return result
