import pandas as pd
import pytest
from shapely.geometry import box

from treatment_coverage.data import DUPLICATE_DROP, drop_flagged_duplicates, error_flag_counts, subset_region

from conftest import make_treatments


@pytest.fixture
def flagged():
    geom = box(1, 1, 2, 2)
    return make_treatments([
        {"unique_id": "a", "geometry": geom, "error": DUPLICATE_DROP},
        {"unique_id": "a", "geometry": geom, "error": None},
        {"unique_id": "b", "geometry": box(3, 3, 4, 4), "error": "OVERLAP"},
        {"unique_id": "c", "geometry": box(5, 5, 6, 6), "error": DUPLICATE_DROP, "state": "UT"},
        {"unique_id": "d", "geometry": box(7, 7, 8, 8)},
    ])


def test_duplicate_flag_drops_only_flagged_records(flagged):
    cleaned = drop_flagged_duplicates(flagged)

    assert DUPLICATE_DROP not in set(cleaned["error"].dropna())
    # identical content without the flag is kept
    assert list(cleaned["unique_id"]) == ["a", "b", "d"]
    assert pd.isna(cleaned.loc[1, "error"])
    assert cleaned.loc[2, "error"] == "OVERLAP"


def test_cleaning_leaves_other_fields_and_input_untouched(flagged):
    before = flagged.copy()
    cleaned = drop_flagged_duplicates(flagged)

    assert len(flagged) == len(before)
    assert cleaned.loc[2].geometry.equals(before.loc[2].geometry)
    assert list(cleaned.columns) == list(before.columns)


def test_missing_flag_column_means_no_errors(flagged):
    no_flags = flagged.drop(columns=["error"])

    assert len(drop_flagged_duplicates(no_flags)) == len(no_flags)
    assert error_flag_counts(no_flags).empty


def test_error_flag_counts_groups_non_null_flags(flagged):
    counts = error_flag_counts(flagged)

    assert dict(zip(counts["error"], counts["n"])) == {DUPLICATE_DROP: 2, "OVERLAP": 1}
    assert counts.iloc[0]["error"] == DUPLICATE_DROP


def test_custom_flag_column_and_sentinel(flagged):
    renamed = flagged.rename(columns={"error": "qa_flag"})

    cleaned = drop_flagged_duplicates(renamed, flag_col="qa_flag", sentinel="OVERLAP")

    assert "b" not in set(cleaned["unique_id"])
    assert len(cleaned) == 4


def test_subset_region_returns_independent_copy(flagged):
    subset = subset_region(flagged, "co")

    assert set(subset["state"]) == {"CO"}
    assert len(subset) == 4
    subset.loc[subset.index[0], "unique_id"] = "changed"
    assert flagged.loc[0, "unique_id"] == "a"


def test_subset_region_requires_region_column(flagged):
    with pytest.raises(RuntimeError):
        subset_region(flagged.drop(columns=["state"]), "CO")
