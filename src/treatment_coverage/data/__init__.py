"""Data processing for the treatment coverage pipeline."""

from .pipeline import (
    DEFAULT_TARGET_CRS,
    OUTPUT_FILES,
    coverage_from_frames,
    run_pipeline,
    write_outputs,
)
from .cleaning import DUPLICATE_DROP, subset_region, error_flag_counts, drop_flagged_duplicates
from .geometry import (
    TREATED_AREA,
    polygon_parts,
    repair_geometry,
    normalize_geometries,
    representative_point,
    representative_points,
    with_treated_area,
)
from .spatial import (
    COUNTY_FIELDS,
    LinearLocator,
    StrTreeLocator,
    make_locator,
    prepare_counties,
    attribute_counties,
    unattributed_records,
)
from .aggregation import AggregateInconsistencyError, aggregate_coverage
from .summary import (
    category_counts,
    uncategorized_records,
    treatments_by_year,
    category_subset,
    income_coverage_correlation,
)
from .tables import coverage_table, unattributed_table

__all__ = [
    "DEFAULT_TARGET_CRS",
    "OUTPUT_FILES",
    "coverage_from_frames",
    "run_pipeline",
    "write_outputs",
    "DUPLICATE_DROP",
    "subset_region",
    "error_flag_counts",
    "drop_flagged_duplicates",
    "TREATED_AREA",
    "polygon_parts",
    "repair_geometry",
    "normalize_geometries",
    "representative_point",
    "representative_points",
    "with_treated_area",
    "COUNTY_FIELDS",
    "LinearLocator",
    "StrTreeLocator",
    "make_locator",
    "prepare_counties",
    "attribute_counties",
    "unattributed_records",
    "AggregateInconsistencyError",
    "aggregate_coverage",
    "category_counts",
    "uncategorized_records",
    "treatments_by_year",
    "category_subset",
    "income_coverage_correlation",
    "coverage_table",
    "unattributed_table",
]
