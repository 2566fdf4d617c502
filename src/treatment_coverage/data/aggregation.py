"""Per-county treated area and coverage ratio."""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..core import logger, require_columns
from .geometry import TREATED_AREA


COVERAGE_COLUMNS = [
    "county",
    "treatments",
    TREATED_AREA,
    "county_area_m2",
    "county_income",
    "coverage_ratio",
]


class AggregateInconsistencyError(RuntimeError):
    """Records attributed to one county disagree on that county's area or income."""

    def __init__(self, conflicts: dict[str, list[str]]) -> None:
        self.conflicts = conflicts
        detail = "; ".join(f"{county}: {', '.join(cols)}" for county, cols in sorted(conflicts.items()))
        super().__init__(f"Inconsistent county attributes within groups ({detail})")


def _distinct(values: pd.Series) -> int:
    return int(values.nunique(dropna=False))


def aggregate_coverage(attributed: pd.DataFrame) -> pd.DataFrame:
    """One row per attributed county with summed treated area and coverage ratio.

    Unattributed records are ignored here. Raises
    :class:`AggregateInconsistencyError` when members of a county group carry
    different ``county_area_m2`` or ``county_income`` values. Ratios above 1.0
    (overlapping treatments) are kept as-is.
    """
    require_columns(attributed, {"county", "county_area_m2", "county_income", TREATED_AREA}, "Attributed records", exact=True)
    df = pd.DataFrame(attributed)
    df = df[df["county"].notna()]
    if df.empty:
        return pd.DataFrame({col: pd.Series(dtype="object" if col == "county" else "float64") for col in COVERAGE_COLUMNS})

    grouped = df.groupby("county", sort=True)
    conflicts: dict[str, list[str]] = {}
    for col in ("county_area_m2", "county_income"):
        distinct = grouped[col].agg(_distinct)
        for county in distinct[distinct > 1].index:
            conflicts.setdefault(str(county), []).append(col)
    if conflicts:
        raise AggregateInconsistencyError(conflicts)

    agg = grouped.agg(
        treatments=(TREATED_AREA, "size"),
        treated_area=(TREATED_AREA, "sum"),
        county_area_m2=("county_area_m2", "first"),
        county_income=("county_income", "first"),
    ).reset_index()
    agg = agg.rename(columns={"treated_area": TREATED_AREA})
    # "first" skips NaN; a NaN income is only reachable when the whole group is NaN
    agg["county_income"] = agg["county_income"].astype(float)

    zero_area = agg["county_area_m2"] <= 0
    if zero_area.any():
        logger.warning("Counties with zero boundary area have no coverage ratio: %s", agg.loc[zero_area, "county"].tolist())
    agg["coverage_ratio"] = np.where(
        zero_area,
        np.nan,
        agg[TREATED_AREA] / agg["county_area_m2"].where(~zero_area, 1.0),
    )
    over = agg["coverage_ratio"] > 1.0
    if over.any():
        logger.info(
            "%d counties have coverage above 1.0 (overlapping treatments): %s",
            int(over.sum()),
            agg.loc[over, "county"].tolist(),
        )
    agg["treatments"] = agg["treatments"].astype(int)
    return agg[COVERAGE_COLUMNS]
