"""
Per-record alignment scoring rules.
"""

from ._reference import (
    ALIGNMENT_LEVEL_BY_DIFFERENCE,
    AWARENESS_LEVEL_SCORE,
    PERCEPTION_LEVEL_SCORE,
    SEVERE_MISALIGNMENT,
)


def awareness_level_score(level: str) -> int:
    """Ordinal score of an awareness level (Very Aware 3 .. Unaware 0)."""
    try:
        return AWARENESS_LEVEL_SCORE[level]
    except KeyError as e:
        raise ValueError(f"Unknown awareness level: {level!r}") from e


def perception_level_score(accuracy: str) -> int:
    """Ordinal score of a perception accuracy (Very Close 3 .. Unspecified 0)."""
    try:
        return PERCEPTION_LEVEL_SCORE[accuracy]
    except KeyError as e:
        raise ValueError(f"Unknown perception accuracy: {accuracy!r}") from e


def alignment_level(score_difference: int) -> str:
    if score_difference < 0:
        raise ValueError(
            f"score_difference must be non-negative, got {score_difference}"
        )
    return ALIGNMENT_LEVEL_BY_DIFFERENCE.get(score_difference, SEVERE_MISALIGNMENT)
