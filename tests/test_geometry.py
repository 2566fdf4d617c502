import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import MultiPolygon, Polygon, box

from treatment_coverage.data import (
    TREATED_AREA,
    normalize_geometries,
    repair_geometry,
    representative_point,
    with_treated_area,
)

from conftest import WORKING_CRS, make_treatments

BOWTIE = Polygon([(0, 0), (2, 2), (2, 0), (0, 2)])


def test_repair_fixes_self_intersection():
    assert not BOWTIE.is_valid

    fixed = repair_geometry(BOWTIE)

    assert fixed.is_valid
    assert fixed.area == pytest.approx(2.0)


def test_repair_degrades_unrecoverable_geometry_to_empty():
    sliver = Polygon([(0, 0), (1, 1), (2, 2)])

    assert repair_geometry(sliver).is_empty
    assert repair_geometry(None).is_empty
    assert repair_geometry(Polygon()).is_empty


def test_valid_geometry_passes_through():
    geom = box(0, 0, 1, 1)
    assert repair_geometry(geom) is geom


def test_representative_point_single_part():
    pt = representative_point(box(0, 0, 4, 2))
    assert (pt.x, pt.y) == pytest.approx((2.0, 1.0))


def test_representative_point_uses_largest_part():
    geom = MultiPolygon([box(0, 0, 1, 1), box(10, 10, 13, 13)])
    pt = representative_point(geom)
    assert (pt.x, pt.y) == pytest.approx((11.5, 11.5))


def test_representative_point_tie_takes_first_part():
    geom = MultiPolygon([box(0, 0, 1, 1), box(10, 10, 11, 11)])
    pt = representative_point(geom)
    assert (pt.x, pt.y) == pytest.approx((0.5, 0.5))


def test_representative_point_empty_is_none():
    assert representative_point(Polygon()) is None
    assert representative_point(None) is None


def test_normalize_reprojects_and_repairs():
    gdf = make_treatments(
        [
            {"unique_id": "ok", "geometry": box(-105.5, 39.5, -105.4, 39.6)},
            {"unique_id": "bowtie", "geometry": Polygon([(-105, 39), (-104.9, 39.1), (-104.9, 39), (-105, 39.1)])},
            {"unique_id": "missing", "geometry": None},
        ],
        crs="EPSG:4326",
    )

    out = normalize_geometries(gdf, WORKING_CRS)

    assert out.crs.to_epsg() == 5070
    assert out.geometry.is_valid.all()
    assert out.loc[2].geometry.is_empty
    assert len(out) == len(gdf)
    assert gdf.crs.to_epsg() == 4326


def test_normalize_is_idempotent():
    gdf = make_treatments([{"unique_id": "x", "geometry": box(-105.5, 39.5, -105.4, 39.6)}], crs="EPSG:4326")

    once = normalize_geometries(gdf, WORKING_CRS)
    twice = normalize_geometries(once, WORKING_CRS)

    for a, b in zip(once.geometry, twice.geometry):
        assert a.equals_exact(b, tolerance=1e-6)


def test_normalize_rejects_geographic_target_and_missing_crs():
    gdf = make_treatments([{"unique_id": "x", "geometry": box(0, 0, 1, 1)}])

    with pytest.raises(ValueError):
        normalize_geometries(gdf, "EPSG:4326")
    no_crs = gpd.GeoDataFrame(gdf.drop(columns="geometry"), geometry=list(gdf.geometry))
    with pytest.raises(ValueError):
        normalize_geometries(no_crs, WORKING_CRS)


def test_treated_area_from_geometry_and_column():
    gdf = make_treatments([
        {"unique_id": "a", "geometry": box(0, 0, 2, 2), "acres": 1.0},
        {"unique_id": "b", "geometry": Polygon(), "acres": None},
    ])

    derived = with_treated_area(gdf)
    assert list(derived[TREATED_AREA]) == pytest.approx([4.0, 0.0])

    from_column = with_treated_area(gdf, "ACRES", "acres")
    assert list(from_column[TREATED_AREA]) == pytest.approx([4046.8564224, 0.0])


def test_treated_area_missing_column_falls_back_to_geometry():
    gdf = make_treatments([{"unique_id": "a", "geometry": box(0, 0, 3, 1)}])
    assert with_treated_area(gdf, "shape_Area")[TREATED_AREA].iloc[0] == pytest.approx(3.0)


def test_negative_treated_area_is_rejected():
    gdf = make_treatments([{"unique_id": "a", "geometry": box(0, 0, 1, 1), "shape_Area": -5.0}])
    with pytest.raises(ValueError):
        with_treated_area(gdf, "shape_Area")
