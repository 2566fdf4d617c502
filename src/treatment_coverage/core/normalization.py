"""Utilities for normalising area units, flags and county labels."""

from __future__ import annotations

import re
from typing import Any

import pandas as pd


SQ_METRES_PER_UNIT = {
    "m2": 1.0,
    "km2": 1_000_000.0,
    "hectares": 10_000.0,
    "ha": 10_000.0,
    "acres": 4046.8564224,
    "ac": 4046.8564224,
}


def _unit_factor(unit: str) -> float:
    key = str(unit).strip().lower()
    if key not in SQ_METRES_PER_UNIT:
        raise ValueError(f"Unsupported area unit {unit!r}; expected one of {sorted(SQ_METRES_PER_UNIT)}")
    return SQ_METRES_PER_UNIT[key]


def to_square_metres(values: Any, unit: str) -> Any:
    return values * _unit_factor(unit)


def from_square_metres(values: Any, unit: str) -> Any:
    return values / _unit_factor(unit)


def normalize_flag(value: Any) -> str | None:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    s = str(value).strip()
    return s or None


def clean_county_label(name: Any) -> str | None:
    if name is None or (not isinstance(name, str) and pd.isna(name)):
        return None
    s = re.sub(r"\s+", " ", str(name)).strip()
    return s or None


def short_county_name(name: Any) -> str | None:
    # "Adams County, Colorado" -> "Adams"
    s = clean_county_label(name)
    if s is None:
        return None
    s = s.split(",", 1)[0].strip()
    s = re.sub(r"\s+(County|Parish|Borough|Census Area)$", "", s, flags=re.IGNORECASE)
    return s or None
