"""IO helper utilities."""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import pandas as pd

from .logging import configure_logging, logger


MULTI_LAYER_SUFFIXES = {".gdb", ".gpkg", ".sqlite"}

def setup_logging(verbose: bool) -> None:
    """Initialise project logging."""
    configure_logging(verbose)


def read_any_geo(path: str | Path, layer: str | None = None) -> gpd.GeoDataFrame:
    """Read a local geospatial table (gdb, gpkg, shp, GeoJSON or GeoParquet)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Geospatial source not found: {path}")
    suffix = path.suffix.lower()
    if suffix in {".parquet", ".geoparquet"}:
        gdf = gpd.read_parquet(path)
    elif layer and suffix in MULTI_LAYER_SUFFIXES:
        gdf = gpd.read_file(path, layer=layer)
    else:
        gdf = gpd.read_file(path)
    logger.debug("Loaded %s (layer=%s): %d rows, crs=%s", path, layer, len(gdf), gdf.crs)
    return gdf


def frame_size_mb(df: pd.DataFrame) -> float:
    """Approximate in-memory size of a frame in megabytes."""
    return float(df.memory_usage(deep=True).sum()) / 1024**2


def resolve_column(df: pd.DataFrame, name: str | None) -> str | None:
    """Return the actual column matching ``name`` case-insensitively, if any."""
    if not name:
        return None
    if name in df.columns:
        return name
    wanted = str(name).strip().lower()
    return next((c for c in df.columns if str(c).strip().lower() == wanted), None)


def require_columns(df: pd.DataFrame, cols: set[str], label: str, exact: bool = False) -> None:
    """Ensure the expected columns are available.

    With ``exact`` the names must match as written; use it for columns that
    are later read with plain ``df[name]`` indexing.
    """
    if exact:
        missing = set(cols) - set(df.columns)
    else:
        missing = {col for col in cols if resolve_column(df, col) is None}
    if missing:
        raise RuntimeError(f"{label} missing columns: {sorted(missing)}")


def fill_placeholders(path: str | Path, region: str | None = None, year: int | None = None) -> str:
    """Substitute ``{region}`` and ``{year}`` in a configured path.

    Other braces are left alone.
    """
    filled = str(path).replace("{region}", (region or "").upper())
    return filled.replace("{year}", "" if year is None else str(year))
