"""
Aggregation views over classified and scored respondent tables.

Each view is a pure group-by producing a new, fully recomputed PyArrow Table
with a fixed display order. Averages and proportions are rounded half away
from zero to two decimal places.
"""

import logging
import warnings

import pandas as pd
import pyarrow as pa

from ..io._io_utils import (
    COMFORT_FOOD_COL,
    COMFORT_FOOD_MAPPED_COL,
    GENDER_COL,
    HEALTHY_FEELING_COL,
    ID_COL,
    INCOME_COL,
    _validate_columns,
)
from ..scoring._reference import (
    ALIGNMENT_ORDER,
    INCOME_GROUP_MAP,
    INCOME_ORDER,
    PERCEPTION_ACCURACY_ORDER,
    UNSPECIFIED,
)
from ..scoring.scoring import (
    ALIGNMENT_LEVEL_COL,
    AWARENESS_SCORE_COL,
    PERCEPTION_ACCURACY_COL,
)
from ._aggregation_utils import (
    _dense_rank_desc,
    _is_blank,
    _round_series,
    _to_table,
)

logger = logging.getLogger(__name__)

DECIMAL_PLACES = 2


def _field(table: pa.Table, name: str) -> pa.Field:
    """Output field reusing the input column's type."""
    return pa.field(name, table.schema.field(name).type)


def _warn_unknown_income(labels: pd.Series, verbosity: int) -> None:
    unknown = sorted(set(labels.dropna()) - set(INCOME_ORDER))
    if unknown and verbosity <= 0:
        warnings.warn(
            f"Income value(s) {unknown} are not recognised income brackets; "
            "they are placed after the known brackets.",
            UserWarning,
        )


def awareness_by_perception(classified: pa.Table) -> pa.Table:
    """
    Calorie awareness by gender and perception accuracy bracket.

    Unspecified perception is excluded. `gender_avg_awareness` is the mean of
    the gender's (unrounded) bracket means, not the mean over its respondents,
    so brackets weigh equally regardless of size.

    Args:
        classified: Output of `classify_respondents`.

    Returns:
        Table with `gender`, `perception_accuracy`, `people_count`,
        `avg_awareness_bracket`, `gender_avg_awareness` and
        `perception_accuracy_order`, ordered by gender then bracket.
    """
    cols = [GENDER_COL, PERCEPTION_ACCURACY_COL, AWARENESS_SCORE_COL]
    _validate_columns(
        classified,
        required_cols=cols,
        numeric_cols=[AWARENESS_SCORE_COL],
        table_desc="classified",
    )

    df = classified.select(cols).to_pandas()
    specified = df[PERCEPTION_ACCURACY_COL].notna() & (df[PERCEPTION_ACCURACY_COL] != UNSPECIFIED)
    df = df[specified].copy()
    df[AWARENESS_SCORE_COL] = df[AWARENESS_SCORE_COL].astype(float)

    brackets = (
        df.groupby([GENDER_COL, PERCEPTION_ACCURACY_COL], sort=False)
        .agg(
            people_count=(AWARENESS_SCORE_COL, "size"),
            bracket_mean=(AWARENESS_SCORE_COL, "mean"),
        )
        .reset_index()
    )
    # Second stage: average of bracket averages within each gender
    gender_mean = brackets.groupby(GENDER_COL)["bracket_mean"].transform("mean")

    brackets["avg_awareness_bracket"] = _round_series(brackets["bracket_mean"], DECIMAL_PLACES)
    brackets["gender_avg_awareness"] = _round_series(gender_mean, DECIMAL_PLACES)
    brackets["perception_accuracy_order"] = (
        brackets[PERCEPTION_ACCURACY_COL].map(PERCEPTION_ACCURACY_ORDER).astype("int64")
    )
    brackets = brackets.sort_values(
        [GENDER_COL, "perception_accuracy_order"], kind="stable"
    )

    return _to_table(
        brackets,
        [
            _field(classified, GENDER_COL),
            pa.field(PERCEPTION_ACCURACY_COL, pa.string()),
            pa.field("people_count", pa.int64()),
            pa.field("avg_awareness_bracket", pa.float64()),
            pa.field("gender_avg_awareness", pa.float64()),
            pa.field("perception_accuracy_order", pa.int64()),
        ],
    )


def awareness_by_income(classified: pa.Table, verbosity: int = 0) -> pa.Table:
    """
    Calorie awareness by income bracket.

    Null and blank incomes are excluded. Brackets are ordered from
    'Less than $15,000' to 'More than $100,000'; unrecognised labels follow,
    alphabetically, with a null `income_order`.

    Args:
        classified: Output of `classify_respondents`.
        verbosity: `<= 0` warns about unrecognised income labels, `>= 1` is silent.

    Returns:
        Table with `income`, `people_count`, `avg_awareness_bracket` and `income_order`.
    """
    cols = [INCOME_COL, AWARENESS_SCORE_COL]
    _validate_columns(
        classified,
        required_cols=cols,
        numeric_cols=[AWARENESS_SCORE_COL],
        table_desc="classified",
    )

    df = classified.select(cols).to_pandas()
    df = df[~_is_blank(df[INCOME_COL])].copy()
    df[INCOME_COL] = df[INCOME_COL].astype(str)
    df[AWARENESS_SCORE_COL] = df[AWARENESS_SCORE_COL].astype(float)
    _warn_unknown_income(df[INCOME_COL], verbosity)

    grouped = (
        df.groupby(INCOME_COL, sort=False)
        .agg(
            people_count=(AWARENESS_SCORE_COL, "size"),
            bracket_mean=(AWARENESS_SCORE_COL, "mean"),
        )
        .reset_index()
    )
    grouped["avg_awareness_bracket"] = _round_series(grouped["bracket_mean"], DECIMAL_PLACES)
    grouped["income_order"] = grouped[INCOME_COL].map(INCOME_ORDER).astype("Int64")
    grouped = grouped.sort_values(
        ["income_order", INCOME_COL], na_position="last", kind="stable"
    )

    return _to_table(
        grouped,
        [
            pa.field(INCOME_COL, pa.string()),
            pa.field("people_count", pa.int64()),
            pa.field("avg_awareness_bracket", pa.float64()),
            pa.field("income_order", pa.int64()),
        ],
    )


def alignment_by_gender(scored: pa.Table) -> pa.Table:
    """
    Distribution of alignment levels within each gender.

    Args:
        scored: Output of `score_alignment`.

    Returns:
        Table with `gender`, `alignment_level`, `participant_count`,
        `total_gender_participant_count` and `portion_to_gender_total`, ordered
        by gender then Perfectly Aligned .. Severe Misalignment. Only levels
        observed for a gender appear.
    """
    cols = [GENDER_COL, ALIGNMENT_LEVEL_COL]
    _validate_columns(scored, required_cols=cols, table_desc="scored")

    df = scored.select(cols).to_pandas()
    counts = (
        df.groupby([GENDER_COL, ALIGNMENT_LEVEL_COL], sort=False)
        .size()
        .rename("participant_count")
        .reset_index()
    )
    counts["total_gender_participant_count"] = counts.groupby(GENDER_COL)[
        "participant_count"
    ].transform("sum")
    counts["portion_to_gender_total"] = _round_series(
        counts["participant_count"] / counts["total_gender_participant_count"],
        DECIMAL_PLACES,
    )
    counts["alignment_order"] = counts[ALIGNMENT_LEVEL_COL].map(ALIGNMENT_ORDER)
    counts = counts.sort_values([GENDER_COL, "alignment_order"], kind="stable")

    return _to_table(
        counts,
        [
            _field(scored, GENDER_COL),
            pa.field(ALIGNMENT_LEVEL_COL, pa.string()),
            pa.field("participant_count", pa.int64()),
            pa.field("total_gender_participant_count", pa.int64()),
            pa.field("portion_to_gender_total", pa.float64()),
        ],
    )


def _join_comfort_food(comfort_food: pa.Table, respondents: pa.Table) -> pd.DataFrame:
    """
    Inner-joins non-blank comfort food entries to their respondents on `id`.

    Gender always comes from the respondent row. Entries whose `id` has no
    respondent are dropped.
    """
    _validate_columns(
        comfort_food,
        required_cols=[ID_COL, COMFORT_FOOD_COL, COMFORT_FOOD_MAPPED_COL],
        table_desc="comfort food",
    )
    _validate_columns(
        respondents,
        required_cols=[ID_COL, GENDER_COL, INCOME_COL, HEALTHY_FEELING_COL],
        numeric_cols=[HEALTHY_FEELING_COL],
        table_desc="respondent",
    )

    foods = comfort_food.select([ID_COL, COMFORT_FOOD_COL, COMFORT_FOOD_MAPPED_COL]).to_pandas()
    foods = foods[~_is_blank(foods[COMFORT_FOOD_MAPPED_COL])]
    people = respondents.select([ID_COL, GENDER_COL, INCOME_COL, HEALTHY_FEELING_COL]).to_pandas()

    try:
        joined = foods.merge(people, on=ID_COL, how="inner", validate="many_to_one")
    except Exception as e:
        raise ValueError(f"Failed to join comfort food entries to respondents: {e}") from e

    dropped = len(foods) - len(joined)
    if dropped:
        logger.debug(f"{dropped} comfort food entr(ies) had no matching respondent")
    return joined


def comfort_food_by_gender(comfort_food: pa.Table, respondents: pa.Table) -> pa.Table:
    """
    Popularity of mapped comfort foods within each gender.

    Args:
        comfort_food: Comfort food entries (`id`, `comfort_food`, `comfort_food_mapped`).
        respondents: Respondent table (`id`, `gender`, `income`, `healthy_feeling`).

    Returns:
        Table with `gender`, `comfort_food_mapped`, `comfort_food_count`,
        `average_healthy_feeling` and `comfort_food_rank` (dense rank by count,
        most popular first, within gender). Ordered by gender, rank, food.
    """
    joined = _join_comfort_food(comfort_food, respondents)
    joined[HEALTHY_FEELING_COL] = joined[HEALTHY_FEELING_COL].astype(float)

    foods = (
        joined.groupby([GENDER_COL, COMFORT_FOOD_MAPPED_COL], sort=False)
        .agg(
            comfort_food_count=(COMFORT_FOOD_MAPPED_COL, "size"),
            mean_healthy_feeling=(HEALTHY_FEELING_COL, "mean"),
        )
        .reset_index()
    )
    foods["average_healthy_feeling"] = _round_series(
        foods["mean_healthy_feeling"], DECIMAL_PLACES
    )
    foods["comfort_food_rank"] = foods.groupby(GENDER_COL)["comfort_food_count"].transform(
        _dense_rank_desc
    )
    foods = foods.sort_values(
        [GENDER_COL, "comfort_food_rank", COMFORT_FOOD_MAPPED_COL], kind="stable"
    )

    return _to_table(
        foods,
        [
            _field(respondents, GENDER_COL),
            pa.field(COMFORT_FOOD_MAPPED_COL, pa.string()),
            pa.field("comfort_food_count", pa.int64()),
            pa.field("average_healthy_feeling", pa.float64()),
            pa.field("comfort_food_rank", pa.int64()),
        ],
    )


def comfort_food_detailed(
    comfort_food: pa.Table, respondents: pa.Table, verbosity: int = 0
) -> pa.Table:
    """
    One row per (respondent, comfort food) pair with a three-level income group.

    `income_group` is Low (up to $30,000), Mid ($30,001 to $70,000) or High
    (above $70,000); null when income is missing or unrecognised.

    Args:
        comfort_food: Comfort food entries.
        respondents: Respondent table.
        verbosity: `<= 0` warns about unrecognised income labels, `>= 1` is silent.

    Returns:
        Table with `id`, `gender`, `comfort_food`, `comfort_food_mapped`,
        `income`, `income_group` and `healthy_feeling`, ordered by `id`
        (entries of one respondent keep their input order).
    """
    joined = _join_comfort_food(comfort_food, respondents)
    _warn_unknown_income(joined[INCOME_COL].where(~_is_blank(joined[INCOME_COL])), verbosity)

    joined["income_group"] = joined[INCOME_COL].map(INCOME_GROUP_MAP).astype(object)
    joined = joined.sort_values(ID_COL, kind="stable")

    return _to_table(
        joined,
        [
            _field(respondents, ID_COL),
            _field(respondents, GENDER_COL),
            pa.field(COMFORT_FOOD_COL, pa.string()),
            pa.field(COMFORT_FOOD_MAPPED_COL, pa.string()),
            _field(respondents, INCOME_COL),
            pa.field("income_group", pa.string()),
            _field(respondents, HEALTHY_FEELING_COL),
        ],
    )
