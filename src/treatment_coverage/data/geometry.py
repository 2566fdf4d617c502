"""Geometry repair, reprojection and representative points."""

from __future__ import annotations

from typing import Any, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from pyproj import CRS
from shapely.geometry import GeometryCollection, MultiPolygon, Point, Polygon, base as shapely_base

from ..core import logger, resolve_column, to_square_metres


TREATED_AREA = "treated_area_m2"


def _is_missing(geom: Any) -> bool:
    if geom is None:
        return True
    if isinstance(geom, float) and np.isnan(geom):
        return True
    return geom.is_empty


def polygon_parts(geom: Optional[shapely_base.BaseGeometry]) -> List[Polygon]:
    """Non-empty polygon parts of ``geom`` in input order; lines and points are ignored."""
    if _is_missing(geom):
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        parts: List[Polygon] = []
        for sub in geom.geoms:
            parts.extend(polygon_parts(sub))
        return parts
    return []


def repair_geometry(geom: Optional[shapely_base.BaseGeometry]) -> shapely_base.BaseGeometry:
    """Return a valid polygonal geometry, or an empty polygon if none can be recovered."""
    if _is_missing(geom):
        return Polygon()
    if geom.is_valid:
        return geom
    parts = polygon_parts(shapely.make_valid(geom))
    if not parts:
        return Polygon()
    return parts[0] if len(parts) == 1 else MultiPolygon(parts)


def projected_crs(target_crs: Any) -> CRS:
    crs = CRS.from_user_input(target_crs)
    if crs.is_geographic:
        raise ValueError(f"Working CRS must be projected so areas are in metres (got {crs.to_string()})")
    return crs


def normalize_geometries(gdf: gpd.GeoDataFrame, target_crs: Any) -> gpd.GeoDataFrame:
    """Repair invalid geometries and reproject into ``target_crs``.

    Valid geometries already in ``target_crs`` pass through untouched, so the
    operation is idempotent.
    """
    if gdf.crs is None:
        raise ValueError("Cannot reproject a dataset without a CRS")
    target = projected_crs(target_crs)
    out = gdf.copy()
    geom_col = out.geometry.name
    original = out.geometry
    invalid = ~original.isna() & ~original.is_empty & ~original.is_valid
    repaired = gpd.GeoSeries([repair_geometry(g) for g in original], index=out.index, crs=out.crs)
    out[geom_col] = repaired
    if int(invalid.sum()):
        emptied = int((invalid & repaired.is_empty).sum())
        logger.info("Repaired %d invalid geometries (%d could not be recovered)", int(invalid.sum()), emptied)
    missing = int(original.isna().sum())
    if missing:
        logger.info("%d records have no geometry and will not attribute", missing)
    if not CRS.from_user_input(out.crs).equals(target):
        logger.debug("Reprojecting %d geometries from %s to %s", len(out), out.crs, target.to_string())
        out = out.to_crs(target)
    return out


def representative_point(geom: Optional[shapely_base.BaseGeometry]) -> Optional[Point]:
    """Centroid of the polygon, or of its largest part when multi-part."""
    parts = polygon_parts(geom)
    if not parts:
        return None
    # max() keeps the first of equal areas
    largest = max(parts, key=lambda p: p.area)
    return largest.centroid


def representative_points(gdf: gpd.GeoDataFrame) -> gpd.GeoSeries:
    return gpd.GeoSeries([representative_point(g) for g in gdf.geometry], index=gdf.index, crs=gdf.crs)


def with_treated_area(
    gdf: gpd.GeoDataFrame,
    area_col: str | None = None,
    area_unit: str = "m2",
) -> gpd.GeoDataFrame:
    """Add ``treated_area_m2`` from an attribute column or from the projected geometry."""
    out = gdf.copy()
    col = resolve_column(out, area_col)
    if col is None:
        if area_col:
            logger.warning("Area column %r not found; deriving treated area from geometry", area_col)
        out[TREATED_AREA] = out.geometry.area.fillna(0.0).astype(float)
        return out
    values = pd.to_numeric(out[col], errors="coerce")
    if (values < 0).any():
        raise ValueError(f"Treated area column {col!r} contains negative values")
    n_missing = int(values.isna().sum())
    if n_missing:
        logger.info("%d records have no treated area; counted as zero", n_missing)
    out[TREATED_AREA] = to_square_metres(values.fillna(0.0).astype(float), area_unit)
    return out
