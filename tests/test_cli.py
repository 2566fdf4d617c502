import json

import pytest

from treatment_coverage.cli import DEFAULTS, _load_config, parse_args
from treatment_coverage.core import ProgressReporter, fill_placeholders


def test_config_supplies_paths_and_options(tmp_path):
    config = tmp_path / "coverage.toml"
    config.write_text(
        '[paths]\n'
        'treatments = "data/treatment_index.gdb"\n'
        'counties = "data/income_{year}.gpkg"\n'
        '[options]\n'
        'region = "co"\n'
        'year = "2020"\n'
        'area_col = "shape_Area"\n'
    )

    args = parse_args(["--config", str(config)])

    assert args.treatments == "data/treatment_index.gdb"
    assert args.region == "CO"
    assert args.year == 2020
    assert args.area_col == "shape_Area"
    assert args.target_crs == DEFAULTS["target_crs"]
    assert args.locator == "strtree"


def test_cli_flags_override_config(tmp_path):
    config = tmp_path / "coverage.json"
    config.write_text(json.dumps({"treatments": "a.gpkg", "counties": "b.gpkg", "region": "UT", "verbose": True}))

    args = parse_args(["--config", str(config), "--region", "CO", "--locator", "linear"])

    assert args.region == "CO"
    assert args.locator == "linear"
    assert args.verbose is True


def test_missing_paths_exit():
    with pytest.raises(SystemExit):
        parse_args(["--region", "CO"])


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        _load_config(str(tmp_path / "missing.toml"))
    bad = tmp_path / "coverage.yaml"
    bad.write_text("region: CO\n")
    with pytest.raises(ValueError):
        _load_config(str(bad))


def test_progress_reporter_propagates_errors():
    with pytest.raises(RuntimeError):
        with ProgressReporter(3, label="test", disable=True) as progress:
            progress.step("first")
            raise RuntimeError("boom")


def test_progress_reporter_finish_is_idempotent():
    with ProgressReporter(2, label="test", disable=True) as progress:
        progress.step("one")
        progress.finish()
        progress.finish()
    assert progress._finished


def test_fill_placeholders_only_touches_region_and_year():
    path = "data/{old}/treatments_{region}_{year}.gpkg"

    assert fill_placeholders(path, "co", 2020) == "data/{old}/treatments_CO_2020.gpkg"
    assert fill_placeholders("output/{region}", None, None) == "output/"
