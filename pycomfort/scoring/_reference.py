"""
Reference tables for classification and scoring.

Fixed rubrics (perception text lookup, calorie reference values, proximity and
awareness cut-offs, ordinal maps, display orders) plus the one data-derived
table: gender-relative weight percentile cutpoints.
"""

import logging
from typing import NamedTuple

import pandas as pd
import pyarrow as pa

from ..io._io_utils import (
    CHICKEN_COL,
    GENDER_COL,
    SCONE_COL,
    TORTILLA_COL,
    TURKEY_COL,
    WAFFLE_COL,
    WEIGHT_COL,
    _validate_columns,
)

logger = logging.getLogger(__name__)

# --- Weight categories ---
UNDERWEIGHT = "Underweight"
NORMAL = "Normal"
OVERWEIGHT = "Overweight"
OBESE = "Obese"

WEIGHT_CATEGORY_ORDINAL: dict[str, int] = {
    UNDERWEIGHT: 1,
    NORMAL: 2,
    OVERWEIGHT: 3,
    OBESE: 4,
}

# Lower-cased self-perception phrases; anything else has no category
PERCEIVED_CATEGORY_MAP: dict[str, str] = {
    "slim": UNDERWEIGHT,
    "very fit": NORMAL,
    "just right": NORMAL,
    "slightly overweight": OVERWEIGHT,
    "overweight": OBESE,
}

WEIGHT_PERCENTILES = (0.25, 0.75, 0.90)
PERCENTILE_COLS = ["p25", "p75", "p90"]

# --- Perception accuracy ---
VERY_CLOSE = "Very Close"
CLOSE = "Close"
FAR_OFF = "Far Off"
UNSPECIFIED = "Unspecified"

# |perceived ordinal - actual ordinal| -> accuracy; larger distances are FAR_OFF
PERCEPTION_ACCURACY_BY_DISTANCE: dict[int, str] = {0: VERY_CLOSE, 1: CLOSE}

PERCEPTION_LEVEL_SCORE: dict[str, int] = {
    VERY_CLOSE: 3,
    CLOSE: 2,
    FAR_OFF: 1,
    UNSPECIFIED: 0,
}

PERCEPTION_ACCURACY_ORDER: dict[str, int] = {
    VERY_CLOSE: 1,
    CLOSE: 2,
    FAR_OFF: 3,
    UNSPECIFIED: 4,
}

# --- Calorie estimation ---
OFF = "Off"
WAY_OFF = "Way Off"


class CalorieItem(NamedTuple):
    name: str
    guess_col: str
    label_col: str
    actual_calories: int


CALORIE_ITEMS: tuple[CalorieItem, ...] = (
    CalorieItem("chicken wrap", CHICKEN_COL, "guess_to_actual_chicken", 610),
    CalorieItem("scone", SCONE_COL, "guess_to_actual_scone", 420),
    CalorieItem("tortilla", TORTILLA_COL, "guess_to_actual_tortilla", 940),
    CalorieItem("turkey sandwich", TURKEY_COL, "guess_to_actual_turkey", 690),
    CalorieItem("waffle", WAFFLE_COL, "guess_to_actual_waffle", 900),
)

# (max inclusive distance, label, points), checked in order
PROXIMITY_RUBRIC: tuple[tuple[float, str, int], ...] = (
    (0, VERY_CLOSE, 3),
    (225, CLOSE, 2),
    (325, OFF, 1),
)
PROXIMITY_POINTS: dict[str, int] = {
    **{label: points for _, label, points in PROXIMITY_RUBRIC},
    WAY_OFF: 0,
}
MAX_AWARENESS_SCORE = len(CALORIE_ITEMS) * PROXIMITY_RUBRIC[0][2]

# --- Awareness level ---
VERY_AWARE = "Very Aware"
AWARE = "Aware"
SOMEWHAT_AWARE = "Somewhat Aware"
UNAWARE = "Unaware"

# (min inclusive score, level), checked in order
AWARENESS_RUBRIC: tuple[tuple[int, str], ...] = (
    (13, VERY_AWARE),
    (10, AWARE),
    (7, SOMEWHAT_AWARE),
)

AWARENESS_LEVEL_SCORE: dict[str, int] = {
    VERY_AWARE: 3,
    AWARE: 2,
    SOMEWHAT_AWARE: 1,
    UNAWARE: 0,
}

# --- Alignment ---
PERFECTLY_ALIGNED = "Perfectly Aligned"
SLIGHT_MISALIGNMENT = "Slight Misalignment"
MODERATE_MISALIGNMENT = "Moderate Misalignment"
SEVERE_MISALIGNMENT = "Severe Misalignment"

# Larger differences are SEVERE_MISALIGNMENT
ALIGNMENT_LEVEL_BY_DIFFERENCE: dict[int, str] = {
    0: PERFECTLY_ALIGNED,
    1: SLIGHT_MISALIGNMENT,
    2: MODERATE_MISALIGNMENT,
}

ALIGNMENT_ORDER: dict[str, int] = {
    PERFECTLY_ALIGNED: 1,
    SLIGHT_MISALIGNMENT: 2,
    MODERATE_MISALIGNMENT: 3,
    SEVERE_MISALIGNMENT: 4,
}

# --- Income ---
INCOME_ORDER: dict[str, int] = {
    "Less than $15,000": 1,
    "$15,001 to $30,000": 2,
    "$30,001 to $50,000": 3,
    "$50,001 to $70,000": 4,
    "$70,001 to $100,000": 5,
    "More than $100,000": 6,
}

INCOME_GROUP_MAP: dict[str, str] = {
    "Less than $15,000": "Low",
    "$15,001 to $30,000": "Low",
    "$30,001 to $50,000": "Mid",
    "$50,001 to $70,000": "Mid",
    "$70,001 to $100,000": "High",
    "More than $100,000": "High",
}


def compute_weight_percentiles(respondents: pa.Table) -> pa.Table:
    """
    Computes the 25th/75th/90th weight percentiles within each gender.

    Uses continuous (linearly interpolated) percentiles, the same semantics as
    SQL ``PERCENTILE_CONT``. Null weights are ignored; genders without any
    weight, and respondents without a gender, produce no row.

    Args:
        respondents: Respondent table with `gender` and `weight` columns.

    Returns:
        A table with columns `gender`, `p25`, `p75`, `p90`, one row per gender,
        sorted by gender.

    Raises:
        TypeError: If `respondents` is not a PyArrow Table.
        ValueError: If `gender` or `weight` is missing or `weight` is not numeric.
    """
    _validate_columns(
        respondents,
        required_cols=[GENDER_COL, WEIGHT_COL],
        numeric_cols=[WEIGHT_COL],
        table_desc="respondent",
    )

    df = respondents.select([GENDER_COL, WEIGHT_COL]).to_pandas()
    df[WEIGHT_COL] = df[WEIGHT_COL].astype(float)
    df = df.dropna(subset=[GENDER_COL, WEIGHT_COL])

    grouped = df.groupby(GENDER_COL, sort=True)[WEIGHT_COL]
    result = pd.DataFrame(
        {
            col: grouped.quantile(q, interpolation="linear")
            for col, q in zip(PERCENTILE_COLS, WEIGHT_PERCENTILES)
        }
    ).rename_axis(GENDER_COL).reset_index()

    schema = pa.schema(
        [respondents.schema.field(GENDER_COL)]
        + [pa.field(col, pa.float64()) for col in PERCENTILE_COLS]
    )
    percentiles = pa.Table.from_pandas(
        result[[GENDER_COL, *PERCENTILE_COLS]], schema=schema, preserve_index=False
    )
    logger.debug(f"Computed weight percentiles for {percentiles.num_rows} gender(s)")
    return percentiles
