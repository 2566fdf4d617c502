"""Exploratory summaries of the cleaned treatment records."""

from __future__ import annotations

import geopandas as gpd
import numpy as np
import pandas as pd

from ..core import logger, resolve_column
from .geometry import normalize_geometries


UNKNOWN_CATEGORY = "(Unknown)"


def _attributes(df: pd.DataFrame) -> pd.DataFrame:
    if isinstance(df, gpd.GeoDataFrame):
        return pd.DataFrame(df.drop(columns=df.geometry.name))
    return df.copy()


def _treatment_years(df: pd.DataFrame, date_col: str) -> pd.Series:
    col = resolve_column(df, date_col)
    if col is None:
        return pd.Series(pd.NA, index=df.index, dtype="Int64")
    dates = pd.to_datetime(df[col], errors="coerce")
    return dates.dt.year.astype("Int64")


def category_counts(df: pd.DataFrame, category_col: str = "twig_category") -> pd.DataFrame:
    """Records per category; records without one are counted under ``(Unknown)``."""
    col = resolve_column(df, category_col)
    if col is None:
        if df.empty:
            return pd.DataFrame({"category": pd.Series(dtype="object"), "n": pd.Series(dtype="int64")})
        return pd.DataFrame({"category": [UNKNOWN_CATEGORY], "n": [len(df)]})
    cats = df[col].astype("object").where(df[col].notna(), UNKNOWN_CATEGORY)
    out = cats.value_counts().rename_axis("category").reset_index(name="n")
    return out.sort_values(["n", "category"], ascending=[False, True]).reset_index(drop=True)


def uncategorized_records(df: pd.DataFrame, category_col: str = "twig_category") -> pd.DataFrame:
    col = resolve_column(df, category_col)
    if col is None:
        return _attributes(df)
    return _attributes(df.loc[df[col].isna()])


def treatments_by_year(
    df: pd.DataFrame,
    date_col: str = "treatment_date",
    category_col: str = "twig_category",
    by_category: bool = False,
) -> pd.DataFrame:
    frame = pd.DataFrame({"treatment_year": _treatment_years(df, date_col)}, index=df.index)
    keys = ["treatment_year"]
    if by_category:
        col = resolve_column(df, category_col)
        frame["category"] = df[col] if col is not None else None
        frame["category"] = frame["category"].astype("object").where(frame["category"].notna(), UNKNOWN_CATEGORY)
        keys.append("category")
    counts = frame.groupby(keys, dropna=False).size().rename("n").reset_index()
    return counts.sort_values(keys, na_position="last").reset_index(drop=True)


def category_subset(
    gdf: gpd.GeoDataFrame,
    category: str,
    target_crs: object,
    category_col: str = "twig_category",
    date_col: str = "treatment_date",
) -> gpd.GeoDataFrame:
    """Records of one category (e.g. "Planned Ignition") with a ``year`` column and repaired geometry."""
    col = resolve_column(gdf, category_col)
    if col is None:
        logger.warning("No %r column; category subset for %r is empty", category_col, category)
        subset = gdf.iloc[0:0].copy()
    else:
        subset = gdf.loc[gdf[col] == category].copy()
    subset["year"] = _treatment_years(subset, date_col)
    return normalize_geometries(subset, target_crs)


def income_coverage_correlation(coverage: pd.DataFrame) -> float:
    """Pearson correlation between county income and coverage ratio."""
    pairs = coverage[["county_income", "coverage_ratio"]].astype(float).dropna()
    if len(pairs) < 2:
        return float("nan")
    if pairs["county_income"].nunique() < 2 or pairs["coverage_ratio"].nunique() < 2:
        return float("nan")
    return float(np.corrcoef(pairs["county_income"], pairs["coverage_ratio"])[0, 1])
