"""
Configuration constants for the NYC population matrix pipeline.

Codes follow the IPUMS USA coding scheme for the ACS person file:
https://usa.ipums.org/usa-action/variables/group
"""

from typing import Dict, List, Tuple

# ======================================================
#  DATA SOURCE
# ======================================================
# IPUMS extract of the ACS 2017 5-year sample (2013-2017), city level.
DEFAULT_SOURCE: str = "acs_2017_5yr_race_age_sex_disability_city.csv"
DEFAULT_SEP: str = ","

# IPUMS CITY code for New York, NY
NYC_CITY_CODE: int = 4610

# ======================================================
#  RAW COLUMNS
# ======================================================
CITY_COL: str = "CITY"
SEX_COL: str = "SEX"
AGE_COL: str = "AGE"
RACE_COL: str = "RACE"
HISPAN_COL: str = "HISPAN"
WEIGHT_COL: str = "PERWT"

DISABILITY_COLS: List[str] = [
    "DIFFREM",
    "DIFFPHYS",
    "DIFFMOB",
    "DIFFCARE",
    "DIFFSENS",
    "DIFFEYE",
    "DIFFHEAR",
]

REQUIRED_COLUMNS: List[str] = [
    CITY_COL,
    SEX_COL,
    AGE_COL,
    RACE_COL,
    HISPAN_COL,
    *DISABILITY_COLS,
    WEIGHT_COL,
]

# ======================================================
#  CODE TABLES
# ======================================================
UNCLASSIFIED: str = "Unclassified"

SEX_CODES: Dict[int, str] = {1: "Male", 2: "Female"}

# (label, lower bound inclusive, upper bound exclusive)
AGE_BANDS: List[Tuple[str, float, float]] = [
    ("00_05", 0, 6),
    ("06_18", 6, 19),
    ("19_64", 19, 65),
    ("65_+", 65, float("inf")),
]

RACE_WHITE: int = 1
RACE_BLACK: int = 2
RACE_NATIVE_AMERICAN: int = 3
RACE_ASIAN: List[int] = [4, 5, 6]
RACE_OTHER: int = 7
RACE_MIXED: List[int] = [8, 9]

HISPAN_NONE: int = 0
HISPAN_ORIGINS: List[int] = [1, 2, 3, 4]

# DIFF* variables: 1 = No, 2 = Yes
DISABILITY_YES: int = 2

# ======================================================
#  DERIVED COLUMNS / CATEGORIES
# ======================================================
SEX: str = "sex"
AGE_BAND: str = "age_band"
RACE_GROUP: str = "race_group"
HAS_DISABILITY: str = "has_disability"

SEX_ORDER: List[str] = ["Male", "Female", UNCLASSIFIED]
AGE_BAND_ORDER: List[str] = [label for label, _, _ in AGE_BANDS] + [UNCLASSIFIED]
RACE_ORDER: List[str] = [
    "White",
    "Asian",
    "Mixed_race",
    "Hispanic",
    "Black_hispanic",
    "Black",
    "Native_american",
    "Other",
    UNCLASSIFIED,
]
DISABILITY_ORDER: List[bool] = [False, True]

# Canonical ordering of every categorical, used for sorting outputs.
CATEGORY_ORDERS: Dict[str, list] = {
    SEX: SEX_ORDER,
    AGE_BAND: AGE_BAND_ORDER,
    RACE_GROUP: RACE_ORDER,
    HAS_DISABILITY: DISABILITY_ORDER,
}

# ======================================================
#  OUTPUT TABLES
# ======================================================
SEX_AGE_RACE_KEYS: List[str] = [SEX, AGE_BAND, RACE_GROUP]
SEX_AGE_RACE_DIS_KEYS: List[str] = [SEX, AGE_BAND, RACE_GROUP, HAS_DISABILITY]

SEX_AGE_RACE_COLUMNS: List[str] = [
    AGE_BAND,
    SEX,
    "White",
    "Asian",
    "Mixed_race",
    "Hispanic",
    "Black_hispanic",
    "Black",
    "Native_american",
]
SEX_AGE_RACE_DIS_COLUMNS: List[str] = [
    HAS_DISABILITY,
    AGE_BAND,
    SEX,
    "White",
    "Asian",
    "Mixed_race",
    "Hispanic",
    "Black_hispanic",
    "Black",
    "Native_american",
    "Other",
]

SEX_AGE_RACE_FILE: str = "sex_age_race_matrix_city_wide.csv"
SEX_AGE_RACE_DIS_FILE: str = "sex_age_race_dis_city_matrix_wide.csv"
