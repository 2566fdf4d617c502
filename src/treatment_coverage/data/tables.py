"""Table builders for the coverage outputs."""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..core import from_square_metres, short_county_name
from .geometry import TREATED_AREA


def coverage_table(coverage: pd.DataFrame) -> pd.DataFrame:
    tbl = coverage.copy()
    tbl["county_label"] = tbl["county"].map(short_county_name)
    tbl["treated_acres"] = from_square_metres(tbl[TREATED_AREA], "acres").round(1)
    tbl["county_acres"] = from_square_metres(tbl["county_area_m2"], "acres").round(1)
    tbl["coverage_pct"] = (tbl["coverage_ratio"] * 100).round(2)
    return tbl[[
        "county",
        "county_label",
        "treatments",
        "treated_acres",
        "county_acres",
        "county_income",
        "coverage_ratio",
        "coverage_pct",
    ]].sort_values(["coverage_ratio", "county"], ascending=[False, True], na_position="last")


def unattributed_table(unattributed: pd.DataFrame, id_col: str | None = None) -> pd.DataFrame:
    tbl = pd.DataFrame(unattributed.drop(columns=[unattributed.geometry.name], errors="ignore"))
    keep = [c for c in (id_col, TREATED_AREA) if c and c in tbl.columns]
    tbl = tbl[keep].copy() if keep else tbl
    if TREATED_AREA in tbl.columns:
        tbl["treated_acres"] = np.round(from_square_metres(tbl[TREATED_AREA], "acres"), 2)
    return tbl.reset_index(drop=True)
