"""Record cleaning: region subsetting and duplicate-flag removal."""

from __future__ import annotations

import pandas as pd

from ..core import frame_size_mb, logger, normalize_flag, resolve_column


DUPLICATE_DROP = "DUPLICATE-DROP"


def subset_region(df: pd.DataFrame, region: str, region_col: str = "state") -> pd.DataFrame:
    """Return an independent copy of the rows for one two-letter region code.

    The copy does not share memory with ``df``, so the caller may drop its
    reference to the superset (and ``gc.collect()``) as soon as this returns.
    """
    col = resolve_column(df, region_col)
    if col is None:
        raise RuntimeError(f"Treatment dataset has no region column {region_col!r}")
    code = str(region).strip().upper()
    mask = df[col].astype("string").str.strip().str.upper() == code
    subset = df.loc[mask.fillna(False)].copy(deep=True)
    logger.info(
        "Region %s: kept %d of %d records (%.1f MB of %.1f MB)",
        code,
        len(subset),
        len(df),
        frame_size_mb(subset),
        frame_size_mb(df),
    )
    return subset


def _flag_series(df: pd.DataFrame, flag_col: str) -> pd.Series | None:
    col = resolve_column(df, flag_col)
    if col is None:
        return None
    return df[col].map(normalize_flag)


def error_flag_counts(df: pd.DataFrame, flag_col: str = "error") -> pd.DataFrame:
    """Count records per non-null error flag, most common first."""
    flags = _flag_series(df, flag_col)
    if flags is None:
        logger.info("No %r column; treating all records as unflagged", flag_col)
        return pd.DataFrame({"error": pd.Series(dtype="object"), "n": pd.Series(dtype="int64")})
    counts = flags.dropna().value_counts()
    out = counts.rename_axis("error").reset_index(name="n")
    return out.sort_values(["n", "error"], ascending=[False, True]).reset_index(drop=True)


def drop_flagged_duplicates(
    df: pd.DataFrame,
    flag_col: str = "error",
    sentinel: str = DUPLICATE_DROP,
) -> pd.DataFrame:
    """Drop records whose error flag equals ``sentinel``; keep null and other flags."""
    flags = _flag_series(df, flag_col)
    if flags is None:
        return df.copy()
    keep = flags.isna() | (flags != sentinel)
    out = df.loc[keep].copy()
    dropped = len(df) - len(out)
    logger.info("Dropped %d records flagged %s (%d remain)", dropped, sentinel, len(out))
    other = error_flag_counts(out, flag_col)
    if not other.empty:
        logger.warning(
            "Records with other error flags retained for review: %s",
            dict(zip(other["error"], other["n"].astype(int))),
        )
    return out
