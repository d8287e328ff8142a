"""
Pytest configuration and shared fixtures for the population matrix tests.
"""

from pathlib import Path
from typing import Callable, Dict, List

import pandas as pd
import pytest

from nyc_pop_matrix.config import DISABILITY_COLS, NYC_CITY_CODE


def person(**overrides) -> Dict[str, object]:
    """One IPUMS-shaped record; a non-Hispanic White man aged 30 by default."""
    record: Dict[str, object] = {
        "CITY": NYC_CITY_CODE,
        "SEX": 1,
        "AGE": 30,
        "RACE": 1,
        "HISPAN": 0,
        **{col: 1 for col in DISABILITY_COLS},
        "PERWT": 10.0,
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_records() -> Callable[..., pd.DataFrame]:
    """Build a DataFrame from ``person`` override dicts."""

    def _make(*overrides: Dict[str, object]) -> pd.DataFrame:
        return pd.DataFrame([person(**o) for o in overrides])

    return _make


@pytest.fixture
def two_person_records(make_records) -> pd.DataFrame:
    """The two-record example: a White man of 30 and a Black Hispanic woman of 70."""
    return make_records(
        dict(SEX=1, AGE=30, RACE=1, HISPAN=0, PERWT=10),
        dict(SEX=2, AGE=70, RACE=2, HISPAN=1, PERWT=5),
    )


@pytest.fixture
def sample_records(make_records) -> pd.DataFrame:
    """A mixed NYC sample covering every group plus a few edge cases."""
    overrides: List[Dict[str, object]] = [
        dict(SEX=1, AGE=3, RACE=1, HISPAN=0, PERWT=12),
        dict(SEX=2, AGE=3, RACE=4, HISPAN=0, PERWT=8),
        dict(SEX=2, AGE=10, RACE=8, HISPAN=0, PERWT=7),
        dict(SEX=1, AGE=18, RACE=6, HISPAN=2, PERWT=9),
        dict(SEX=1, AGE=19, RACE=2, HISPAN=3, PERWT=4, DIFFEYE=2),
        dict(SEX=2, AGE=40, RACE=2, HISPAN=0, PERWT=15),
        dict(SEX=2, AGE=64, RACE=3, HISPAN=0, PERWT=3, DIFFMOB=2),
        dict(SEX=1, AGE=65, RACE=7, HISPAN=0, PERWT=6),
        dict(SEX=2, AGE=90, RACE=5, HISPAN=0, PERWT=11, DIFFHEAR=2),
        dict(SEX=1, AGE=50, RACE=9, HISPAN=0, PERWT=2.5),
        # Race code missing: falls through every rule.
        dict(SEX=1, AGE=25, RACE=None, HISPAN=0, PERWT=5),
        # Hispanic origin not reported.
        dict(SEX=2, AGE=33, RACE=1, HISPAN=9, PERWT=1.5),
        # Missing weight contributes nothing.
        dict(SEX=2, AGE=33, RACE=1, HISPAN=0, PERWT=None),
        # Another city, filtered out.
        dict(CITY=3730, SEX=1, AGE=30, RACE=1, HISPAN=0, PERWT=1000),
    ]
    return make_records(*overrides)


@pytest.fixture
def write_csv(tmp_path) -> Callable[[pd.DataFrame, str], Path]:
    """Write a DataFrame to a CSV file under tmp_path and return its path."""

    def _write(df: pd.DataFrame, name: str = "ipums.csv") -> Path:
        path = tmp_path / name
        df.to_csv(path, index=False)
        return path

    return _write
