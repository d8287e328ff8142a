"""Derive the categorical attributes used by the population matrices.

Each ``classify_*`` function takes the raw coded column(s) and returns a
Series aligned on the same index.  Conditions are evaluated with
:func:`numpy.select`, which picks the first matching condition per row, so
the order of the rule lists below is significant.  Values that match no
rule resolve to :data:`~nyc_pop_matrix.config.UNCLASSIFIED` rather than
being dropped.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np
import pandas as pd

from .config import (
    AGE_BAND,
    AGE_BANDS,
    AGE_COL,
    DISABILITY_COLS,
    DISABILITY_YES,
    HAS_DISABILITY,
    HISPAN_COL,
    HISPAN_NONE,
    HISPAN_ORIGINS,
    RACE_ASIAN,
    RACE_BLACK,
    RACE_COL,
    RACE_GROUP,
    RACE_MIXED,
    RACE_NATIVE_AMERICAN,
    RACE_OTHER,
    RACE_WHITE,
    SEX,
    SEX_CODES,
    SEX_COL,
    UNCLASSIFIED,
)

logger = logging.getLogger(__name__)


def _as_codes(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce")


def _select(
    index: pd.Index, rules: List[Tuple[pd.Series, str]]
) -> pd.Series:
    """Apply an ordered (condition, label) list; first match wins."""
    conditions = [cond.fillna(False).to_numpy(dtype=bool) for cond, _ in rules]
    labels = [label for _, label in rules]
    values = np.select(conditions, labels, default=UNCLASSIFIED)
    return pd.Series(values, index=index, dtype=object)


def classify_sex(sex: pd.Series) -> pd.Series:
    """Map IPUMS SEX codes to ``Male``/``Female``."""
    codes = _as_codes(sex)
    rules = [(codes == code, label) for code, label in SEX_CODES.items()]
    return _select(sex.index, rules)


def classify_age(age: pd.Series) -> pd.Series:
    """Bucket ages (years) into the four published bands.

    Missing, unparseable and negative ages are Unclassified.
    """
    years = _as_codes(age)
    rules = [
        ((years >= lower) & (years < upper), label)
        for label, lower, upper in AGE_BANDS
    ]
    return _select(age.index, rules)


def classify_race(race: pd.Series, hispan: pd.Series) -> pd.Series:
    """Combine IPUMS RACE and HISPAN codes into a single race/ethnicity group.

    Hispanic origin takes precedence over race except for Black respondents,
    who are split into ``Black_hispanic`` and ``Black``.
    """
    race_codes = _as_codes(race)
    hispan_codes = _as_codes(hispan)

    not_hispanic = hispan_codes == HISPAN_NONE
    hispanic = hispan_codes.isin(HISPAN_ORIGINS)
    # A missing race code must not satisfy the "not Black" rule.
    known_race = race_codes.notna()

    rules = [
        ((race_codes == RACE_WHITE) & not_hispanic, "White"),
        (race_codes.isin(RACE_ASIAN) & not_hispanic, "Asian"),
        (race_codes.isin(RACE_MIXED) & not_hispanic, "Mixed_race"),
        (known_race & (race_codes != RACE_BLACK) & hispanic, "Hispanic"),
        ((race_codes == RACE_BLACK) & hispanic, "Black_hispanic"),
        ((race_codes == RACE_BLACK) & not_hispanic, "Black"),
        ((race_codes == RACE_NATIVE_AMERICAN) & not_hispanic, "Native_american"),
        ((race_codes == RACE_OTHER) & not_hispanic, "Other"),
    ]
    return _select(race.index, rules)


def classify_disability(flags: pd.DataFrame) -> pd.Series:
    """True when any DIFF* indicator equals the "Yes" code.

    Missing indicators never count as a disability, so a row with all
    indicators missing is False.
    """
    codes = flags.apply(_as_codes)
    return codes.eq(DISABILITY_YES).any(axis=1).astype(bool)


def classify_records(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with the four derived columns added."""
    out = df.copy()
    out[SEX] = classify_sex(out[SEX_COL])
    out[AGE_BAND] = classify_age(out[AGE_COL])
    out[RACE_GROUP] = classify_race(out[RACE_COL], out[HISPAN_COL])
    out[HAS_DISABILITY] = classify_disability(out[DISABILITY_COLS])

    for col in (SEX, AGE_BAND, RACE_GROUP):
        n_unclassified = int((out[col] == UNCLASSIFIED).sum())
        if n_unclassified:
            logger.warning(
                "%d of %d records have an unclassified %s",
                n_unclassified,
                len(out),
                col,
            )
    return out
