from __future__ import annotations

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

WORKING_CRS = "EPSG:5070"


def make_treatments(rows: list[dict], crs: str = WORKING_CRS) -> gpd.GeoDataFrame:
    defaults = {
        "twig_category": "Planned Ignition",
        "treatment_date": "2020-05-01",
        "error": None,
        "state": "CO",
    }
    records = [{**defaults, **row} for row in rows]
    geoms = [r.pop("geometry") for r in records]
    df = pd.DataFrame(records)
    df["treatment_date"] = pd.to_datetime(df["treatment_date"])
    return gpd.GeoDataFrame(df, geometry=geoms, crs=crs)


@pytest.fixture
def counties_raw() -> gpd.GeoDataFrame:
    # Two 10x10 counties sharing the x=10 edge
    return gpd.GeoDataFrame(
        {
            "NAME": ["Alpha County, Colorado", "Bravo County, Colorado"],
            "estimate": [85000.0, 52000.0],
        },
        geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10)],
        crs=WORKING_CRS,
    )


@pytest.fixture
def treatments() -> gpd.GeoDataFrame:
    return make_treatments([
        {"unique_id": "t-inside-a", "geometry": box(1, 1, 3, 3)},
        {"unique_id": "t-inside-b", "geometry": box(12, 2, 14, 4), "twig_category": "Mechanical"},
        # straddles the border, centroid (9.5, 2) lies in Alpha
        {"unique_id": "t-straddle", "geometry": box(8, 1, 11, 3), "treatment_date": "2019-03-15"},
    ])


@pytest.fixture
def straddle_outside() -> gpd.GeoDataFrame:
    return make_treatments([
        {"unique_id": "t-inside-a", "geometry": box(1, 1, 3, 3)},
        {"unique_id": "t-inside-b", "geometry": box(12, 2, 14, 4)},
        # touches both counties but its centroid (10, 11) sits above them
        {"unique_id": "t-outside", "geometry": box(8, 9, 12, 13)},
    ])
