from .aggregation import (
    alignment_by_gender,
    awareness_by_income,
    awareness_by_perception,
    comfort_food_by_gender,
    comfort_food_detailed,
)

__all__ = [
    "awareness_by_perception",
    "awareness_by_income",
    "alignment_by_gender",
    "comfort_food_by_gender",
    "comfort_food_detailed",
]
