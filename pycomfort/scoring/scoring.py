"""
Classification and scoring of respondent records.

Table-level operations that map the per-record rules over a respondent table:

- `classify_perception`: perceived vs percentile-derived weight category.
- `classify_calorie_awareness`: calorie-guess proximity and awareness level.
- `classify_respondents`: the two joined on `id` (one row per respondent with
  both weight and calorie classification).
- `score_alignment`: awareness vs perception alignment for respondents with a
  recognised self-perception.

Every operation validates its input columns before doing any work and returns
a new table sorted by `id`.
"""

import logging

import numpy as np
import pyarrow as pa
import pyarrow.compute as pc

from ..io._io_utils import (
    COVARIATE_COLS,
    GENDER_COL,
    HEALTHY_FEELING_COL,
    ID_COL,
    INCOME_COL,
    SELF_PERCEPTION_COL,
    WEIGHT_COL,
    _check_unique_ids,
    _validate_columns,
)
from ._classifier import (
    actual_category,
    awareness_level,
    calorie_proximity,
    perceived_category,
    perception_accuracy,
    proximity_points,
)
from ._reference import (
    CALORIE_ITEMS,
    PERCENTILE_COLS,
    UNSPECIFIED,
    compute_weight_percentiles,
)
from ._scorer import alignment_level, awareness_level_score, perception_level_score

logger = logging.getLogger(__name__)

PERCEIVED_CATEGORY_COL = "perceived_category"
ACTUAL_CATEGORY_COL = "actual_category"
PERCEPTION_ACCURACY_COL = "perception_accuracy"
AWARENESS_SCORE_COL = "calorie_awareness_score"
AWARENESS_LEVEL_COL = "awareness_level"
AWARENESS_LEVEL_SCORE_COL = "awareness_level_score"
PERCEPTION_LEVEL_SCORE_COL = "perception_level_score"
SCORE_DIFFERENCE_COL = "score_difference"
ALIGNMENT_LEVEL_COL = "alignment_level"

GUESS_COLS = [item.guess_col for item in CALORIE_ITEMS]
PROXIMITY_COLS = [item.label_col for item in CALORIE_ITEMS]


def _passthrough_cols(table: pa.Table) -> list[str]:
    """Income, healthy_feeling and covariate columns present in `table`."""
    candidates = [INCOME_COL, HEALTHY_FEELING_COL, *COVARIATE_COLS]
    return [col for col in candidates if col in table.column_names]


def _validate_respondents(
    respondents: pa.Table, required_cols: list[str], numeric_cols: list[str]
) -> None:
    _validate_columns(
        respondents,
        required_cols=[ID_COL, *required_cols],
        numeric_cols=numeric_cols,
        table_desc="respondent",
    )
    _check_unique_ids(respondents)


def _has_value(column: pa.ChunkedArray) -> pa.ChunkedArray:
    """True where a numeric column is neither null nor NaN."""
    values = pc.cast(column, pa.float64())
    return pc.and_(
        pc.is_valid(values), pc.fill_null(pc.invert(pc.is_nan(values)), False)
    )


def classify_perception(
    respondents: pa.Table, percentiles: pa.Table | None = None
) -> pa.Table:
    """
    Classifies self-perceived and actual weight categories per respondent.

    Only respondents with a non-missing weight and a gender present in the
    percentile table are classified; the rest are dropped.

    Args:
        respondents: Respondent table (`id`, `gender`, `weight`,
                     `self_perception_weight`; income, healthy_feeling and
                     covariates are carried through when present).
        percentiles: Output of `compute_weight_percentiles`. Computed from
                     `respondents` when None.

    Returns:
        Table with `id`, `gender`, `weight`, `self_perception_weight`,
        `perceived_category`, `actual_category`, `perception_accuracy` and the
        pass-through columns, sorted by `id`.

    Raises:
        TypeError: If `respondents` is not a PyArrow Table.
        ValueError: If required columns are missing or ids are not unique.
    """
    _validate_respondents(
        respondents,
        required_cols=[GENDER_COL, WEIGHT_COL, SELF_PERCEPTION_COL],
        numeric_cols=[WEIGHT_COL],
    )
    if percentiles is None:
        percentiles = compute_weight_percentiles(respondents)

    _validate_columns(
        percentiles,
        required_cols=[GENDER_COL, *PERCENTILE_COLS],
        numeric_cols=PERCENTILE_COLS,
        table_desc="weight percentile",
    )
    cutpoints = {
        row[GENDER_COL]: tuple(row[col] for col in PERCENTILE_COLS)
        for row in percentiles.to_pylist()
    }

    base_cols = [ID_COL, GENDER_COL, WEIGHT_COL, SELF_PERCEPTION_COL]
    passthrough = _passthrough_cols(respondents)
    has_cutpoints = pc.fill_null(
        pc.is_in(
            respondents[GENDER_COL],
            value_set=percentiles[GENDER_COL].combine_chunks(),
        ),
        False,
    )
    joined = (
        respondents.select(base_cols + passthrough)
        .filter(pc.and_(_has_value(respondents[WEIGHT_COL]), has_cutpoints))
        .sort_by(ID_COL)
    )

    dropped = respondents.num_rows - joined.num_rows
    if dropped:
        logger.debug(
            f"{dropped} respondent(s) without weight or gender excluded from perception classification"
        )

    texts = joined[SELF_PERCEPTION_COL].to_pylist()
    perceived = [perceived_category(text) for text in texts]
    actual = [
        actual_category(weight, *cutpoints[gender])
        for weight, gender in zip(
            joined[WEIGHT_COL].to_pylist(), joined[GENDER_COL].to_pylist()
        )
    ]
    accuracy = [perception_accuracy(p, a) for p, a in zip(perceived, actual)]

    unrecognised = sum(
        1 for text, cat in zip(texts, perceived) if text is not None and cat is None
    )
    if unrecognised:
        logger.debug(
            f"{unrecognised} self-perception value(s) not recognised; marked '{UNSPECIFIED}'"
        )

    return pa.table(
        {
            ID_COL: joined[ID_COL],
            GENDER_COL: joined[GENDER_COL],
            WEIGHT_COL: joined[WEIGHT_COL],
            SELF_PERCEPTION_COL: joined[SELF_PERCEPTION_COL],
            PERCEIVED_CATEGORY_COL: pa.array(perceived, type=pa.string()),
            ACTUAL_CATEGORY_COL: pa.array(actual, type=pa.string()),
            PERCEPTION_ACCURACY_COL: pa.array(accuracy, type=pa.string()),
            **{col: joined[col] for col in passthrough},
        }
    )


def classify_calorie_awareness(respondents: pa.Table) -> pa.Table:
    """
    Scores each respondent's five calorie guesses and derives an awareness level.

    Every respondent is classified; a missing guess counts as 'Way Off' (0 points).

    Args:
        respondents: Respondent table with `id`, `gender` and the five guess
                     columns (pass-through columns are carried when present).

    Returns:
        Table with `id`, `gender`, each guess column followed by its
        `guess_to_actual_<item>` label, `calorie_awareness_score` (0-15),
        `awareness_level` and the pass-through columns, sorted by `id`.

    Raises:
        TypeError: If `respondents` is not a PyArrow Table.
        ValueError: If required columns are missing or non-numeric, or ids are not unique.
    """
    _validate_respondents(
        respondents,
        required_cols=[GENDER_COL, *GUESS_COLS],
        numeric_cols=GUESS_COLS,
    )
    ordered = respondents.sort_by(ID_COL)

    columns: dict[str, pa.Array | pa.ChunkedArray] = {
        ID_COL: ordered[ID_COL],
        GENDER_COL: ordered[GENDER_COL],
    }
    scores = np.zeros(ordered.num_rows, dtype=np.int64)
    for item in CALORIE_ITEMS:
        labels = [
            calorie_proximity(guess, item.actual_calories)
            for guess in ordered[item.guess_col].to_pylist()
        ]
        scores += np.array([proximity_points(label) for label in labels], dtype=np.int64)
        columns[item.guess_col] = ordered[item.guess_col]
        columns[item.label_col] = pa.array(labels, type=pa.string())

    columns[AWARENESS_SCORE_COL] = pa.array(scores, type=pa.int64())
    columns[AWARENESS_LEVEL_COL] = pa.array(
        [awareness_level(int(score)) for score in scores], type=pa.string()
    )
    for col in _passthrough_cols(ordered):
        columns[col] = ordered[col]

    return pa.table(columns)


def classify_respondents(
    respondents: pa.Table, percentiles: pa.Table | None = None
) -> pa.Table:
    """
    Produces the classified record set: perception and calorie classification joined on `id`.

    Respondents missing from the perception classification (no weight) are
    dropped by the inner join.

    Args:
        respondents: Respondent table.
        percentiles: Optional precomputed weight percentiles.

    Returns:
        Table sorted by `id` with the perception columns, the guess and
        `guess_to_actual_<item>` columns, `calorie_awareness_score`,
        `awareness_level` and the pass-through columns.
    """
    perception = classify_perception(respondents, percentiles)
    awareness = classify_calorie_awareness(respondents)
    return join_classifications(perception, awareness)


def join_classifications(perception: pa.Table, awareness: pa.Table) -> pa.Table:
    """
    Inner-joins perception and calorie classification tables on `id`.

    Pass-through columns are taken from the perception table.
    """
    calorie_cols = [*GUESS_COLS, *PROXIMITY_COLS, AWARENESS_SCORE_COL, AWARENESS_LEVEL_COL]
    _validate_columns(
        awareness, required_cols=[ID_COL, *calorie_cols], table_desc="calorie awareness"
    )
    _validate_columns(
        perception,
        required_cols=[
            ID_COL,
            GENDER_COL,
            WEIGHT_COL,
            SELF_PERCEPTION_COL,
            PERCEIVED_CATEGORY_COL,
            ACTUAL_CATEGORY_COL,
            PERCEPTION_ACCURACY_COL,
        ],
        table_desc="perception accuracy",
    )

    # Row of each perception id within the awareness table (null if absent)
    match_idx = pc.index_in(
        perception[ID_COL], value_set=awareness[ID_COL].combine_chunks()
    )
    matched = pc.is_valid(match_idx)
    left = perception.filter(matched)
    right = awareness.select(calorie_cols).take(pc.drop_null(match_idx))

    unmatched = perception.num_rows - left.num_rows
    if unmatched:
        logger.debug(f"{unmatched} perception record(s) had no calorie awareness match")

    perception_cols = [
        ID_COL,
        GENDER_COL,
        WEIGHT_COL,
        SELF_PERCEPTION_COL,
        PERCEIVED_CATEGORY_COL,
        ACTUAL_CATEGORY_COL,
        PERCEPTION_ACCURACY_COL,
    ]
    columns = {col: left[col] for col in perception_cols}
    columns.update({col: right[col] for col in calorie_cols})
    columns.update({col: left[col] for col in _passthrough_cols(perception)})
    return pa.table(columns).sort_by(ID_COL)


def score_alignment(classified: pa.Table) -> pa.Table:
    """
    Scores alignment between calorie awareness and weight perception accuracy.

    Rows without a perceived category are removed first; alignment is
    undefined without one.

    Args:
        classified: Output of `classify_respondents`.

    Returns:
        The remaining classified rows plus `awareness_level_score`,
        `perception_level_score`, `score_difference` and `alignment_level`,
        sorted by `id`.

    Raises:
        TypeError: If `classified` is not a PyArrow Table.
        ValueError: If required columns are missing or hold unknown labels.
    """
    _validate_columns(
        classified,
        required_cols=[
            ID_COL,
            PERCEIVED_CATEGORY_COL,
            PERCEPTION_ACCURACY_COL,
            AWARENESS_LEVEL_COL,
        ],
        table_desc="classified",
    )

    scored = classified.filter(pc.is_valid(classified[PERCEIVED_CATEGORY_COL])).sort_by(
        ID_COL
    )
    excluded = classified.num_rows - scored.num_rows
    if excluded:
        logger.debug(f"{excluded} record(s) without a perceived category excluded from alignment")

    awareness_scores = np.array(
        [awareness_level_score(level) for level in scored[AWARENESS_LEVEL_COL].to_pylist()],
        dtype=np.int64,
    )
    perception_scores = np.array(
        [perception_level_score(acc) for acc in scored[PERCEPTION_ACCURACY_COL].to_pylist()],
        dtype=np.int64,
    )
    differences = np.abs(awareness_scores - perception_scores)

    scored = scored.append_column(
        AWARENESS_LEVEL_SCORE_COL, pa.array(awareness_scores, type=pa.int64())
    )
    scored = scored.append_column(
        PERCEPTION_LEVEL_SCORE_COL, pa.array(perception_scores, type=pa.int64())
    )
    scored = scored.append_column(
        SCORE_DIFFERENCE_COL, pa.array(differences, type=pa.int64())
    )
    return scored.append_column(
        ALIGNMENT_LEVEL_COL,
        pa.array([alignment_level(int(d)) for d in differences], type=pa.string()),
    )
