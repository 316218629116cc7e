import pyarrow as pa
import pyarrow.compute as pc
import pytest

from pycomfort.scoring import (
    classify_calorie_awareness,
    classify_perception,
    classify_respondents,
    compute_weight_percentiles,
    join_classifications,
    proximity_points,
    score_alignment,
)
from pycomfort.scoring.scoring import PROXIMITY_COLS
from tests.schemas import classified_schema, scored_schema

##########################
# Perception             #
##########################


def test_classify_perception_categories(respondents):
    result = classify_perception(respondents)
    # id 8 has no weight
    assert result["id"].to_pylist() == [1, 2, 3, 4, 5, 6, 7, 9]
    assert result["actual_category"].to_pylist() == [
        "Underweight",
        "Normal",  # weight equal to p25
        "Normal",
        "Overweight",  # weight equal to p75
        "Obese",
        "Underweight",
        "Normal",
        "Obese",
    ]
    assert result["perceived_category"].to_pylist() == [
        "Underweight",
        "Normal",
        "Obese",
        "Overweight",
        None,
        "Normal",
        "Underweight",
        "Normal",
    ]
    assert result["perception_accuracy"].to_pylist() == [
        "Very Close",
        "Very Close",
        "Far Off",
        "Very Close",
        "Unspecified",
        "Close",
        "Close",
        "Far Off",
    ]


def test_classify_perception_carries_passthrough_columns(respondents):
    result = classify_perception(respondents)
    for col in ["income", "healthy_feeling", "exercise"]:
        assert col in result.column_names
    assert result["healthy_feeling"].to_pylist() == [2, 5, 7, 3, 9, 4, 6, 1]


def test_classify_perception_with_precomputed_percentiles(respondents):
    percentiles = compute_weight_percentiles(respondents)
    assert classify_perception(respondents, percentiles).equals(
        classify_perception(respondents)
    )


def test_classify_perception_gender_without_cutpoints(respondents):
    percentiles = compute_weight_percentiles(respondents)
    percentiles = percentiles.filter(pc.equal(percentiles["gender"], 1))
    result = classify_perception(respondents, percentiles)
    assert set(result["gender"].to_pylist()) == {1}


def test_classify_perception_input_order_irrelevant(respondents):
    shuffled = respondents.take([8, 3, 0, 5, 1, 7, 2, 6, 4])
    assert classify_perception(shuffled).equals(classify_perception(respondents))


def test_classify_perception_missing_column(respondents):
    with pytest.raises(ValueError, match="self_perception_weight"):
        classify_perception(respondents.drop_columns(["self_perception_weight"]))


def test_classify_perception_invalid_percentiles(respondents):
    with pytest.raises(ValueError, match="weight percentile"):
        classify_perception(respondents, pa.table({"gender": [1], "p25": [1.0]}))


##########################
# Calorie awareness      #
##########################


def test_classify_calorie_awareness_scores(respondents):
    result = classify_calorie_awareness(respondents)
    assert result.num_rows == respondents.num_rows
    assert result["calorie_awareness_score"].to_pylist() == [15, 10, 8, 5, 15, 13, 12, 15, 0]
    assert result["awareness_level"].to_pylist() == [
        "Very Aware",
        "Aware",
        "Somewhat Aware",
        "Unaware",
        "Very Aware",
        "Very Aware",
        "Aware",
        "Very Aware",
        "Unaware",
    ]


def test_classify_calorie_awareness_labels(respondents):
    result = classify_calorie_awareness(respondents)
    row = result.filter(pc.equal(result["id"], 3)).to_pylist()[0]
    assert row["guess_to_actual_chicken"] == "Way Off"  # 936, distance 326
    assert row["guess_to_actual_scone"] == "Very Close"
    assert row["guess_to_actual_tortilla"] == "Close"  # 1165, distance 225
    assert row["guess_to_actual_turkey"] == "Way Off"  # missing guess
    assert row["guess_to_actual_waffle"] == "Very Close"


def test_classify_calorie_awareness_column_order(respondents):
    result = classify_calorie_awareness(respondents)
    assert result.column_names[:4] == [
        "id",
        "gender",
        "calories_chicken",
        "guess_to_actual_chicken",
    ]


def test_classify_calorie_awareness_score_range(respondents):
    result = classify_calorie_awareness(respondents)
    scores = result["calorie_awareness_score"].to_pylist()
    assert all(0 <= s <= 15 for s in scores)


def test_classify_calorie_awareness_non_numeric_guess(respondents):
    broken = respondents.set_column(
        respondents.column_names.index("calories_scone"),
        "calories_scone",
        pa.array(["420"] * respondents.num_rows),
    )
    with pytest.raises(ValueError, match="calories_scone"):
        classify_calorie_awareness(broken)


##########################
# Joined and scored      #
##########################


def test_classify_respondents_inner_join(respondents):
    classified = classify_respondents(respondents)
    assert classified["id"].to_pylist() == [1, 2, 3, 4, 5, 6, 7, 9]
    assert classified["calorie_awareness_score"].to_pylist() == [15, 10, 8, 5, 15, 13, 12, 0]
    classified_schema.validate(classified.to_pandas(), lazy=True)


def test_join_classifications_matches_classify_respondents(respondents):
    perception = classify_perception(respondents)
    awareness = classify_calorie_awareness(respondents)
    assert join_classifications(perception, awareness).equals(
        classify_respondents(respondents)
    )


def test_join_classifications_drops_unmatched(respondents):
    perception = classify_perception(respondents)
    awareness = classify_calorie_awareness(respondents.slice(0, 3))
    joined = join_classifications(perception, awareness)
    assert joined["id"].to_pylist() == [1, 2, 3]


def test_score_alignment(respondents):
    scored = score_alignment(classify_respondents(respondents))
    # id 5 has no recognised self-perception
    assert scored["id"].to_pylist() == [1, 2, 3, 4, 6, 7, 9]
    assert scored["awareness_level_score"].to_pylist() == [3, 2, 1, 0, 3, 2, 0]
    assert scored["perception_level_score"].to_pylist() == [3, 3, 1, 3, 2, 2, 1]
    assert scored["score_difference"].to_pylist() == [0, 1, 0, 3, 1, 0, 1]
    assert scored["alignment_level"].to_pylist() == [
        "Perfectly Aligned",
        "Slight Misalignment",
        "Perfectly Aligned",
        "Severe Misalignment",
        "Slight Misalignment",
        "Perfectly Aligned",
        "Slight Misalignment",
    ]
    scored_schema.validate(scored.to_pandas(), lazy=True)


def test_score_alignment_unknown_level(respondents):
    classified = classify_respondents(respondents)
    idx = classified.column_names.index("awareness_level")
    broken = classified.set_column(
        idx, "awareness_level", pa.array(["Omniscient"] * classified.num_rows)
    )
    with pytest.raises(ValueError, match="Unknown awareness level"):
        score_alignment(broken)


def test_score_alignment_missing_column(respondents):
    classified = classify_respondents(respondents)
    with pytest.raises(ValueError, match="perceived_category"):
        score_alignment(classified.drop_columns(["perceived_category"]))


def test_scoring_is_deterministic(respondents):
    first = score_alignment(classify_respondents(respondents))
    second = score_alignment(classify_respondents(respondents))
    assert first.equals(second)


def test_awareness_score_is_sum_of_item_points(respondents):
    result = classify_calorie_awareness(respondents).to_pylist()
    for row in result:
        points = [proximity_points(row[col]) for col in PROXIMITY_COLS]
        assert all(p in (0, 1, 2, 3) for p in points)
        assert row["calorie_awareness_score"] == sum(points)
