from __future__ import annotations
import argparse
import json
import tomllib
from pathlib import Path

from .data import DEFAULT_TARGET_CRS, DUPLICATE_DROP

DEFAULT_OUT_DIR = "output"
DEFAULT_LAYER = "treatment_index"
_REQUIRED_PATHS = ("treatments", "counties")

DEFAULTS: dict[str, object] = {
    "out_dir": DEFAULT_OUT_DIR,
    "layer": DEFAULT_LAYER,
    "counties_layer": None,
    "region": None,
    "region_col": "state",
    "year": None,
    "target_crs": DEFAULT_TARGET_CRS,
    "id_col": "unique_id",
    "flag_col": "error",
    "duplicate_flag": DUPLICATE_DROP,
    "category_col": "twig_category",
    "date_col": "treatment_date",
    "area_col": None,
    "area_unit": "m2",
    "county_name_col": "NAME",
    "income_col": "estimate",
    "locator": "strtree",
}


def _load_config(path: str) -> dict[str, object]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(config_path.read_text())
    if suffix == ".json":
        return json.loads(config_path.read_text())
    raise ValueError(f"Unsupported config format: {config_path.suffix}")


def _merge_config(args: argparse.Namespace, config: dict[str, object]) -> None:
    # Allow optional grouping inside the config (e.g. {"paths": {...}}).
    flat: dict[str, object] = {}
    if config:
        flat.update(config)
        for key in ("paths", "options"):
            section = config.get(key)
            if isinstance(section, dict):
                flat.update(section)

    for field in _REQUIRED_PATHS:
        if getattr(args, field, None) is None and field in flat:
            setattr(args, field, flat[field])
    for field, default in DEFAULTS.items():
        if getattr(args, field, None) is None:
            setattr(args, field, flat.get(field, default))
    if not args.verbose and isinstance(flat.get("verbose"), bool):
        args.verbose = flat["verbose"]

    if args.year is not None:
        try:
            args.year = int(args.year)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"year must be an integer (got {args.year!r})") from exc
    if isinstance(args.region, str):
        args.region = args.region.strip().upper() or None
    if isinstance(args.locator, str):
        args.locator = args.locator.lower()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Attribute fuel treatments to counties and compute coverage")
    ap.add_argument("--config", help="Optional TOML/JSON config file with argument defaults")
    ap.add_argument("--treatments", help="Treatment index (gdb/gpkg/shp/GeoJSON/GeoParquet); may contain {region}")
    ap.add_argument("--counties", help="County boundaries with income estimates; may contain {region}/{year}")
    ap.add_argument("--layer", help=f"Layer inside the treatment source (default: {DEFAULT_LAYER})")
    ap.add_argument("--counties-layer", help="Layer inside the county source")
    ap.add_argument("--out-dir", help=f"Output directory (default: {DEFAULT_OUT_DIR})")
    ap.add_argument("--region", help="Two-letter region code to subset treatments, e.g. CO")
    ap.add_argument("--region-col", help="Treatment column holding the region code (default: state)")
    ap.add_argument("--year", type=int, help="Income survey year")
    ap.add_argument("--target-crs", help=f"Projected working CRS (default: {DEFAULT_TARGET_CRS})")
    ap.add_argument("--id-col", help="Unique id column (default: unique_id)")
    ap.add_argument("--flag-col", help="Error flag column (default: error)")
    ap.add_argument("--duplicate-flag", help=f"Flag value marking duplicates (default: {DUPLICATE_DROP})")
    ap.add_argument("--category-col", help="Treatment category column (default: twig_category)")
    ap.add_argument("--date-col", help="Treatment date column (default: treatment_date)")
    ap.add_argument("--area-col", help="Treated area column; omit to derive area from geometry")
    ap.add_argument("--area-unit", choices=["m2", "km2", "hectares", "acres"], help="Unit of --area-col (default: m2)")
    ap.add_argument("--county-name-col", help="County name column (default: NAME)")
    ap.add_argument("--income-col", help="County income column (default: estimate)")
    ap.add_argument("--locator", choices=["strtree", "linear"], help="County lookup strategy (default: strtree)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return ap


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.config:
        config = _load_config(args.config)
        _merge_config(args, config)
    else:
        # Apply defaults even without config
        _merge_config(args, {})

    if args.locator not in {"strtree", "linear"}:
        ap.error("locator must be one of: strtree, linear")

    missing = [field for field in _REQUIRED_PATHS if getattr(args, field) is None]
    if missing:
        ap.error(f"the following arguments are required (supply via CLI or config): {', '.join(missing)}")

    return args


def main(argv: list[str] | None = None) -> None:
    from .build import build_coverage

    build_coverage(parse_args(argv))
