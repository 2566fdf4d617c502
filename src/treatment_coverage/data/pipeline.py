"""Pipeline orchestration: clean, normalise, attribute and aggregate."""

from __future__ import annotations

import gc
import json
import math
import numbers
from pathlib import Path
from typing import Any

import geopandas as gpd
import numpy as np
import pandas as pd

from ..core import ProgressReporter, fill_placeholders, frame_size_mb, logger, read_any_geo, resolve_column
from .aggregation import aggregate_coverage
from .cleaning import DUPLICATE_DROP, drop_flagged_duplicates, error_flag_counts, subset_region
from .geometry import TREATED_AREA, normalize_geometries, with_treated_area
from .spatial import attribute_counties, prepare_counties, unattributed_records
from .summary import category_counts, income_coverage_correlation, treatments_by_year
from .tables import coverage_table, unattributed_table


DEFAULT_TARGET_CRS = "EPSG:5070"

OUTPUT_FILES = {
    "coverage": "county_coverage.csv",
    "unattributed": "unattributed_treatments.geojson",
    "unattributed_table": "unattributed_treatments.csv",
    "error_flags": "error_flags.csv",
    "categories": "category_counts.csv",
    "years": "treatments_by_year.csv",
    "metadata": "metadata.json",
}


def coverage_from_frames(
    treatments: gpd.GeoDataFrame,
    counties_raw: gpd.GeoDataFrame,
    *,
    target_crs: Any = DEFAULT_TARGET_CRS,
    id_col: str = "unique_id",
    flag_col: str = "error",
    duplicate_flag: str = DUPLICATE_DROP,
    category_col: str = "twig_category",
    date_col: str = "treatment_date",
    area_col: str | None = None,
    area_unit: str = "m2",
    county_name_col: str = "NAME",
    income_col: str = "estimate",
    locator: str = "strtree",
) -> dict[str, Any]:
    """Run the four stages over in-memory treatment and county frames."""
    with ProgressReporter(6, label="Coverage pipeline") as progress:
        flags = error_flag_counts(treatments, flag_col)
        cleaned = drop_flagged_duplicates(treatments, flag_col, duplicate_flag)
        progress.step("Dropped duplicate-flagged records")

        normalized = normalize_geometries(cleaned, target_crs)
        normalized = with_treated_area(normalized, area_col, area_unit)
        progress.step("Normalised treatment geometries")

        counties = prepare_counties(counties_raw, target_crs, county_name_col, income_col)
        progress.step("Prepared county boundaries")

        attributed = attribute_counties(normalized, counties, locator=locator)
        unattributed = unattributed_records(attributed)
        progress.step("Attributed treatments to counties")

        coverage = aggregate_coverage(attributed)
        progress.step("Aggregated county coverage")

        categories = category_counts(attributed, category_col)
        years = treatments_by_year(attributed, date_col, category_col, by_category=True)
        correlation = income_coverage_correlation(coverage)
        progress.step("Summarised treatments")

    id_name = resolve_column(attributed, id_col)
    duplicate_ids = int(attributed[id_name].duplicated().sum()) if id_name else 0
    if duplicate_ids:
        logger.warning("%d records share a %s with another record", duplicate_ids, id_name)
    elif id_name is None:
        logger.info("No %r column; records are identified by position", id_col)

    data_quality = {
        "records_in": int(len(treatments)),
        "records_clean": int(len(cleaned)),
        "duplicates_dropped": int(len(treatments) - len(cleaned)),
        "duplicate_ids": duplicate_ids,
        "empty_geometries": int(normalized.geometry.is_empty.sum() + normalized.geometry.isna().sum()),
        "attributed": int(len(attributed) - len(unattributed)),
        "unattributed": int(len(unattributed)),
        "counties": int(len(counties)),
        "counties_with_treatments": int(len(coverage)),
        "counties_over_full_coverage": int((coverage["coverage_ratio"] > 1.0).sum()),
    }
    logger.info("Income/coverage correlation across %d counties: %.3f", len(coverage), correlation)

    return {
        "attributed": attributed,
        "unattributed": unattributed,
        "counties": counties,
        "coverage": coverage,
        "error_flags": flags,
        "categories": categories,
        "years": years,
        "metadata": {
            "target_crs": str(target_crs),
            "id_col": id_name,
            "income_coverage_correlation": correlation,
            "total_treated_area_m2": float(attributed[TREATED_AREA].sum()),
            "data_quality": data_quality,
        },
    }


def run_pipeline(
    treatments_path: str | Path,
    counties_path: str | Path,
    *,
    region: str | None = None,
    region_col: str = "state",
    layer: str | None = "treatment_index",
    counties_layer: str | None = None,
    year: int | None = None,
    **options: Any,
) -> dict[str, Any]:
    """Load the treatment index and county incomes from disk and run the pipeline.

    ``{region}`` and ``{year}`` placeholders in either path are filled in, so
    one configuration covers every state and survey year.
    """
    treatments_path = fill_placeholders(treatments_path, region, year)
    counties_path = fill_placeholders(counties_path, region, year)
    logger.info("Loading treatments from %s", treatments_path)
    treatments = read_any_geo(treatments_path, layer=layer)
    logger.info("Loaded %d treatment records (%.1f MB)", len(treatments), frame_size_mb(treatments))
    if region:
        subset = subset_region(treatments, region, region_col)
        # keep peak memory at one superset plus one subset
        del treatments
        gc.collect()
        treatments = subset

    counties_raw = read_any_geo(counties_path, layer=counties_layer)
    logger.info("Loaded %d county boundaries from %s", len(counties_raw), counties_path)

    result = coverage_from_frames(treatments, counties_raw, **options)
    result["metadata"].update({
        "treatments_path": str(treatments_path),
        "counties_path": str(counties_path),
        "region": region,
        "year": year,
    })
    return result


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _sanitize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (np.ndarray, pd.Series, pd.Index)):
        return [_sanitize_value(v) for v in value.tolist()]
    if isinstance(value, (list, tuple, set)):
        return [_sanitize_value(v) for v in list(value)]
    if isinstance(value, dict):
        return {k: _sanitize_value(v) for k, v in value.items()}
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, (np.bool_, bool)):
        return bool(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if math.isnan(float(value)):
            return None
        return float(value)
    return value


def write_outputs(result: dict[str, Any], out_dir: str | Path) -> dict[str, Path]:
    """Write the coverage tables, diagnostics and metadata under ``out_dir``."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Writing outputs to %s", out_dir)
    written: dict[str, Path] = {}

    def _csv(key: str, frame: pd.DataFrame) -> None:
        path = out_dir / OUTPUT_FILES[key]
        frame.to_csv(path, index=False)
        written[key] = path

    _csv("coverage", coverage_table(result["coverage"]))
    _csv("error_flags", result["error_flags"])
    _csv("categories", result["categories"])
    _csv("years", result["years"])

    unattributed = result["unattributed"]
    _csv("unattributed_table", unattributed_table(unattributed, result["metadata"].get("id_col")))
    if unattributed.empty:
        logger.info("No unattributed treatments; skipping %s", OUTPUT_FILES["unattributed"])
    else:
        path = out_dir / OUTPUT_FILES["unattributed"]
        unattributed.to_crs(epsg=4326).to_file(path, driver="GeoJSON")
        written["unattributed"] = path

    path = out_dir / OUTPUT_FILES["metadata"]
    _write_json(path, _sanitize_value(result["metadata"]))
    written["metadata"] = path
    return written
