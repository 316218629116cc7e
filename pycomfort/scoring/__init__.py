from ._classifier import (
    actual_category,
    awareness_level,
    calorie_proximity,
    perceived_category,
    perception_accuracy,
    proximity_points,
)
from ._reference import CALORIE_ITEMS, compute_weight_percentiles
from ._scorer import alignment_level, awareness_level_score, perception_level_score
from .scoring import (
    classify_calorie_awareness,
    classify_perception,
    classify_respondents,
    join_classifications,
    score_alignment,
)

__all__ = [
    "CALORIE_ITEMS",
    "compute_weight_percentiles",
    "perceived_category",
    "actual_category",
    "perception_accuracy",
    "calorie_proximity",
    "proximity_points",
    "awareness_level",
    "awareness_level_score",
    "perception_level_score",
    "alignment_level",
    "classify_perception",
    "classify_calorie_awareness",
    "classify_respondents",
    "join_classifications",
    "score_alignment",
]
