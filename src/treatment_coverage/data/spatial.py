"""County attribution of treatment records by point-in-polygon lookup."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
from pyproj import CRS
from shapely.geometry import Point, base as shapely_base
from shapely.strtree import STRtree

from ..core import clean_county_label, logger, require_columns, resolve_column
from .geometry import normalize_geometries, representative_points


COUNTY_FIELDS = ("county", "county_area_m2", "county_income")


class LinearLocator:
    """All-pairs containment test; fine for a state's worth of counties."""

    def __init__(self, geoms: Iterable[Optional[shapely_base.BaseGeometry]]) -> None:
        self._geoms = list(geoms)

    def matches(self, point: Point) -> List[int]:
        return [
            idx
            for idx, geom in enumerate(self._geoms)
            if geom is not None and not geom.is_empty and geom.intersects(point)
        ]


class StrTreeLocator:
    """Same contract as :class:`LinearLocator`, backed by an STR-packed R-tree."""

    def __init__(self, geoms: Iterable[Optional[shapely_base.BaseGeometry]]) -> None:
        self._geoms = list(geoms)
        self._tree = STRtree(self._geoms)

    def matches(self, point: Point) -> List[int]:
        hits = self._tree.query(point, predicate="intersects")
        return sorted(int(idx) for idx in np.asarray(hits).ravel())


LOCATORS = {
    "linear": LinearLocator,
    "strtree": StrTreeLocator,
}


def make_locator(kind: str, geoms: Iterable[Optional[shapely_base.BaseGeometry]]):
    try:
        cls = LOCATORS[str(kind).lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown locator {kind!r}; expected one of {sorted(LOCATORS)}") from exc
    return cls(geoms)


def prepare_counties(
    counties_raw: gpd.GeoDataFrame,
    target_crs: Any,
    name_col: str = "NAME",
    income_col: str = "estimate",
) -> gpd.GeoDataFrame:
    """Build the county frame (name, income, boundary area) in the working CRS."""
    require_columns(counties_raw, {name_col}, "County dataset")
    raw = counties_raw.reset_index(drop=True)
    names = raw[resolve_column(raw, name_col)].map(clean_county_label)
    unnamed = names.isna()
    if unnamed.any():
        # records inside an unnamed county stay unattributed
        logger.warning("Dropping %d county boundaries with no name", int(unnamed.sum()))
        raw = raw.loc[~unnamed].reset_index(drop=True)
        names = names.loc[~unnamed].reset_index(drop=True)
    income_name = resolve_column(raw, income_col)
    if income_name is None:
        logger.warning("County dataset has no %r column; incomes will be null", income_col)
        income = pd.Series(np.nan, index=raw.index, dtype=float)
    else:
        income = pd.to_numeric(raw[income_name], errors="coerce").astype(float)

    counties = gpd.GeoDataFrame(
        {"county": names, "county_income": income},
        geometry=raw.geometry,
    )
    counties = normalize_geometries(counties, target_crs)
    counties["county_area_m2"] = counties.geometry.area.astype(float)

    dupes = counties["county"].dropna()
    dupes = sorted(dupes[dupes.duplicated()].unique())
    if dupes:
        logger.warning("County names are not unique: %s", dupes)
    missing_income = int(counties["county_income"].isna().sum())
    if missing_income:
        logger.info("%d of %d counties have no income estimate", missing_income, len(counties))
    return counties[["county", "county_area_m2", "county_income", counties.geometry.name]]


def attribute_counties(
    treatments: gpd.GeoDataFrame,
    counties: gpd.GeoDataFrame,
    locator: str = "strtree",
) -> gpd.GeoDataFrame:
    """Attach county name, area and income to each treatment record.

    The record's representative point is tested against every county polygon
    with boundary-inclusive ``intersects``. When several counties match, the
    first in ``counties`` order wins. Records matching no county keep null
    county fields. Row count, index and order are preserved.
    """
    require_columns(counties, set(COUNTY_FIELDS), "County frame", exact=True)
    if treatments.crs is None or counties.crs is None or not CRS.from_user_input(treatments.crs).equals(counties.crs):
        raise ValueError(
            f"Treatments ({treatments.crs}) and counties ({counties.crs}) must share a CRS before attribution"
        )

    names = counties["county"].to_numpy(dtype=object)
    areas = counties["county_area_m2"].to_numpy(dtype=float)
    incomes = counties["county_income"].to_numpy(dtype=float)
    finder = make_locator(locator, counties.geometry)

    positions: List[Optional[int]] = []
    multi_ids: List[Any] = []
    for idx, point in representative_points(treatments).items():
        if point is None:
            positions.append(None)
            continue
        hits = finder.matches(point)
        if len(hits) > 1:
            multi_ids.append(idx)
        positions.append(hits[0] if hits else None)

    out = treatments.copy()
    out["county"] = pd.Series([None if p is None else names[p] for p in positions], index=out.index, dtype=object)
    out["county_area_m2"] = pd.Series([np.nan if p is None else areas[p] for p in positions], index=out.index, dtype=float)
    out["county_income"] = pd.Series([np.nan if p is None else incomes[p] for p in positions], index=out.index, dtype=float)

    unmatched = sum(p is None for p in positions)
    logger.info(
        "Attributed %d of %d treatments to counties; %d unattributed",
        len(positions) - unmatched,
        len(positions),
        unmatched,
    )
    if multi_ids:
        logger.warning(
            "%d treatments fall in more than one county; kept the first match (sample: %s)",
            len(multi_ids),
            multi_ids[:10],
        )
    return out


def unattributed_records(attributed: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Records whose representative point fell outside every county."""
    return attributed.loc[attributed["county"].isna()].copy()
