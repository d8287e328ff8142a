"""Core pipeline logic: weighted sex/age/race/disability population matrices.

This module turns IPUMS ACS person-level microdata into population share
tables for a single city:

* Rows are restricted to one IPUMS ``CITY`` code.
* Each record is classified by sex, age band, race/ethnicity and
  disability status (see :mod:`nyc_pop_matrix.classify`).
* Person weights (``PERWT``) are summed per combination of derived
  attributes and expressed as a percentage of the city's total weighted
  population.
* The long aggregates are pivoted into wide tables with one column per
  race/ethnicity group.

The primary entry point is :func:`run_pipeline`, which returns the long
and wide tables together with the marginal fact-check aggregates.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from .classify import classify_records
from .config import (
    AGE_BAND,
    CATEGORY_ORDERS,
    CITY_COL,
    DEFAULT_SEP,
    DEFAULT_SOURCE,
    HAS_DISABILITY,
    NYC_CITY_CODE,
    RACE_GROUP,
    REQUIRED_COLUMNS,
    SEX,
    SEX_AGE_RACE_COLUMNS,
    SEX_AGE_RACE_DIS_COLUMNS,
    SEX_AGE_RACE_DIS_KEYS,
    SEX_AGE_RACE_KEYS,
    UNCLASSIFIED,
    WEIGHT_COL,
)

# Module‑level logger
logger = logging.getLogger(__name__)

POP_EST: str = "pop_est"
SHARE_EST: str = "share_est"


class DataUnavailable(ValueError):
    """The input microdata cannot be read or holds no rows for the city."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: Sequence[str]) -> None:
    """Raise :class:`DataUnavailable` if the DataFrame lacks any required column."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise DataUnavailable(f"Missing expected columns: {missing}")


def _category_rank(series: pd.Series) -> pd.Series:
    order = CATEGORY_ORDERS.get(series.name)
    if order is None:
        return series
    ranks = {value: i for i, value in enumerate(order)}
    return series.map(ranks).fillna(len(order))


def sort_categories(df: pd.DataFrame, by: List[str]) -> pd.DataFrame:
    """Sort rows by the canonical order of each categorical column in ``by``.

    Sex is ordered Male, Female, so the published "sex descending" order
    falls out of an ascending sort.  Unclassified values sort last.
    """
    return df.sort_values(by, key=_category_rank, kind="mergesort").reset_index(
        drop=True
    )


def weights_of(records: pd.DataFrame) -> pd.Series:
    """Person weights as floats; missing or unparseable weights count as 0."""
    return pd.to_numeric(records[WEIGHT_COL], errors="coerce").fillna(0.0)


# ---------------------------------------------------------------------------
# Loader / filter
# ---------------------------------------------------------------------------


def load_microdata(
    source: str | Path = DEFAULT_SOURCE, sep: str = DEFAULT_SEP
) -> pd.DataFrame:
    """Load the IPUMS extract and keep only the columns the pipeline needs.

    Parameters
    ----------
    source : str or Path
        Path to the delimited IPUMS extract.
    sep : str, optional
        Column delimiter; defaults to ``","``.

    Returns
    -------
    pd.DataFrame
        The raw records restricted to :data:`~nyc_pop_matrix.config.REQUIRED_COLUMNS`.

    Raises
    ------
    DataUnavailable
        If the file is missing, unreadable, empty or lacks a required column.
    """
    try:
        raw = pd.read_csv(source, sep=sep)
    except FileNotFoundError as exc:
        raise DataUnavailable(f"Input file not found: {source}") from exc
    except pd.errors.EmptyDataError as exc:
        raise DataUnavailable(f"Input file is empty: {source}") from exc
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise DataUnavailable(f"Could not read {source}: {exc}") from exc

    if raw.empty:
        raise DataUnavailable(f"Input file has no data rows: {source}")
    ensure_columns(raw, REQUIRED_COLUMNS)
    logger.info("Read %d records from %s", len(raw), source)
    return raw[REQUIRED_COLUMNS].copy()


def filter_city(df: pd.DataFrame, city_code: int = NYC_CITY_CODE) -> pd.DataFrame:
    """Return the records whose ``CITY`` code equals ``city_code``.

    Raises
    ------
    DataUnavailable
        If no record matches.
    """
    codes = pd.to_numeric(df[CITY_COL], errors="coerce")
    filtered = df.loc[codes == city_code].reset_index(drop=True)
    if filtered.empty:
        raise DataUnavailable(f"No records found for CITY code {city_code}.")
    logger.info(
        "Kept %d of %d records for CITY code %s", len(filtered), len(df), city_code
    )
    return filtered


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def total_population(records: pd.DataFrame) -> float:
    """Total weighted population across all records."""
    return math.fsum(weights_of(records))


def aggregate_shares(
    records: pd.DataFrame, keys: List[str], total: float
) -> pd.DataFrame:
    """Weighted population and share for every observed combination of ``keys``.

    Parameters
    ----------
    records : pd.DataFrame
        Classified records (output of
        :func:`~nyc_pop_matrix.classify.classify_records`).
    keys : List[str]
        Derived attribute columns to group by.
    total : float
        Denominator for the share, normally :func:`total_population` of the
        full filtered dataset.

    Returns
    -------
    pd.DataFrame
        Long-format table with the key columns, ``pop_est`` (sum of weights)
        and ``share_est`` (``pop_est / total * 100``), in canonical order.
        Sums use :func:`math.fsum`, so the result does not depend on row
        order.  Shares are NaN when ``total`` is zero.
    """
    grouped = (
        records.assign(**{WEIGHT_COL: weights_of(records)})
        .groupby(keys, sort=False)[WEIGHT_COL]
        .agg(math.fsum)
        .reset_index(name=POP_EST)
    )
    grouped[SHARE_EST] = grouped[POP_EST] / total * 1e2 if total else np.nan
    return sort_categories(grouped, keys)


def marginal_shares(records: pd.DataFrame, key: str, total: float) -> pd.DataFrame:
    """Share of the total population by a single derived attribute."""
    return aggregate_shares(records, [key], total)[[key, SHARE_EST]]


def fact_checks(records: pd.DataFrame) -> Dict[str, object]:
    """Marginal aggregates for cross-checking against published figures.

    Returns
    -------
    Dict[str, object]
        ``"total_pop_est"`` (float) plus one DataFrame of shares for each of
        ``age_band``, ``sex``, ``race_group`` and ``has_disability``.
    """
    total = total_population(records)
    checks: Dict[str, object] = {"total_pop_est": total}
    for key in (AGE_BAND, SEX, RACE_GROUP, HAS_DISABILITY):
        checks[key] = marginal_shares(records, key, total)
    return checks


# ---------------------------------------------------------------------------
# Reshaping
# ---------------------------------------------------------------------------


def pivot_shares(
    long_df: pd.DataFrame,
    columns: List[str],
    *,
    include_unclassified: bool = False,
) -> pd.DataFrame:
    """Spread race/ethnicity groups into columns holding the share estimate.

    Parameters
    ----------
    long_df : pd.DataFrame
        Output of :func:`aggregate_shares` grouped by ``race_group`` and the
        key columns named in ``columns``.
    columns : List[str]
        Output columns in order: the key columns followed by the race groups
        to publish.  Rows are sorted by the key columns in this order.
    include_unclassified : bool, optional
        Append an ``Unclassified`` race column.

    Returns
    -------
    pd.DataFrame
        One row per observed key combination.  A race column is NaN (not 0)
        where no record was observed for that combination.
    """
    key_cols = [col for col in columns if col in CATEGORY_ORDERS]
    race_cols = [col for col in columns if col not in CATEGORY_ORDERS]
    if include_unclassified and UNCLASSIFIED not in race_cols:
        race_cols.append(UNCLASSIFIED)

    wide = long_df.pivot(index=key_cols, columns=RACE_GROUP, values=SHARE_EST)
    wide = wide.reindex(columns=race_cols)
    wide.columns.name = None
    wide = sort_categories(wide.reset_index(), key_cols)
    return wide[key_cols + race_cols]


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def run_pipeline(
    *,
    source: str | Path = DEFAULT_SOURCE,
    sep: str = DEFAULT_SEP,
    city_code: int = NYC_CITY_CODE,
    include_unclassified: bool = False,
) -> Dict[str, object]:
    """Run the full pipeline and return the aggregate tables.

    Parameters
    ----------
    source : str or Path, optional
        Location of the IPUMS extract.  Defaults to ``config.DEFAULT_SOURCE``.
    sep : str, optional
        Column delimiter.  Defaults to ",".
    city_code : int, optional
        IPUMS ``CITY`` code to keep.  Defaults to New York (4610).
    include_unclassified : bool, optional
        Add an ``Unclassified`` race column to both wide tables.

    Returns
    -------
    Dict[str, object]
        ``records`` (classified microdata), ``total_pop_est``, the long
        tables ``sex_age_race_long`` and ``sex_age_race_dis_long``, the wide
        tables ``sex_age_race_wide`` and ``sex_age_race_dis_wide``, and
        ``fact_checks``.
    """
    # 1. Load and restrict to the city
    raw = load_microdata(source, sep=sep)
    records = classify_records(filter_city(raw, city_code))

    # 2. One denominator shared by every share estimate
    total = total_population(records)
    if not total:
        logger.warning("Total weighted population is zero; shares are undefined.")

    # 3. Long aggregates
    sex_age_race_long = aggregate_shares(records, SEX_AGE_RACE_KEYS, total)
    sex_age_race_dis_long = aggregate_shares(records, SEX_AGE_RACE_DIS_KEYS, total)

    # 4. Wide tables
    sex_age_race_wide = pivot_shares(
        sex_age_race_long,
        SEX_AGE_RACE_COLUMNS,
        include_unclassified=include_unclassified,
    )
    sex_age_race_dis_wide = pivot_shares(
        sex_age_race_dis_long,
        SEX_AGE_RACE_DIS_COLUMNS,
        include_unclassified=include_unclassified,
    )

    return {
        "city_code": city_code,
        "records": records,
        "total_pop_est": total,
        "sex_age_race_long": sex_age_race_long,
        "sex_age_race_dis_long": sex_age_race_dis_long,
        "sex_age_race_wide": sex_age_race_wide,
        "sex_age_race_dis_wide": sex_age_race_dis_wide,
        "fact_checks": fact_checks(records),
    }
