"""
Per-record classification rules.

Each function classifies a single value using the rubrics in `_reference`, so
they can be mapped over table columns or tested in isolation.
"""

import math

from ._reference import (
    AWARENESS_RUBRIC,
    FAR_OFF,
    NORMAL,
    OBESE,
    OVERWEIGHT,
    PERCEIVED_CATEGORY_MAP,
    PERCEPTION_ACCURACY_BY_DISTANCE,
    PROXIMITY_POINTS,
    PROXIMITY_RUBRIC,
    UNAWARE,
    UNDERWEIGHT,
    UNSPECIFIED,
    WAY_OFF,
    WEIGHT_CATEGORY_ORDINAL,
)


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def perceived_category(text: str | None) -> str | None:
    """Maps free-text self-perception to a weight category, or None if unrecognised."""
    if not isinstance(text, str):
        return None
    return PERCEIVED_CATEGORY_MAP.get(text.strip().lower())


def actual_category(
    weight: float | None, p25: float, p75: float, p90: float
) -> str | None:
    """
    Buckets a weight using its gender's percentile cutpoints.

    Cutpoints are exclusive upper bounds: a weight equal to p25 is Normal.
    Returns None for a missing weight.
    """
    if _is_missing(weight):
        return None
    if weight < p25:
        return UNDERWEIGHT
    if weight < p75:
        return NORMAL
    if weight < p90:
        return OVERWEIGHT
    return OBESE


def perception_accuracy(perceived: str | None, actual: str) -> str:
    """
    Compares perceived and actual weight categories by ordinal distance.

    A missing perceived category is always Unspecified.

    Raises:
        ValueError: If a perceived category is given without an actual one, or
                    either is not a known weight category.
    """
    if perceived is None:
        return UNSPECIFIED
    if actual is None:
        raise ValueError(
            "An actual weight category is required to score perception accuracy."
        )
    try:
        distance = abs(WEIGHT_CATEGORY_ORDINAL[perceived] - WEIGHT_CATEGORY_ORDINAL[actual])
    except KeyError as e:
        raise ValueError(f"Unknown weight category: {e}") from e
    return PERCEPTION_ACCURACY_BY_DISTANCE.get(distance, FAR_OFF)


def calorie_proximity(guess: float | None, actual_calories: float) -> str:
    """Labels how close a calorie guess is to the actual value. Missing guesses are Way Off."""
    if _is_missing(guess):
        return WAY_OFF
    distance = abs(guess - actual_calories)
    for max_distance, label, _ in PROXIMITY_RUBRIC:
        if distance <= max_distance:
            return label
    return WAY_OFF


def proximity_points(label: str) -> int:
    return PROXIMITY_POINTS[label]


def awareness_level(score: int) -> str:
    for min_score, level in AWARENESS_RUBRIC:
        if score >= min_score:
            return level
    return UNAWARE
