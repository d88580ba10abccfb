"""Mastery score tracking."""
from typing import Dict

from nativepace.models.exercise_models import ExerciseType
from nativepace.services.text_similarity import round_half_up

# A pattern counts as learned from this mastery score on
LEARNED_THRESHOLD = 50

MIN_MASTERY = 0
MAX_MASTERY = 100

# Per-exercise mastery weights
MASTERY_WEIGHTS: Dict[ExerciseType, int] = {
    ExerciseType.COMPARISON: 5,
    ExerciseType.DISCRIMINATION: 10,
    ExerciseType.DICTATION: 15,
    ExerciseType.SPEED: 10,
}
DEFAULT_MASTERY_WEIGHT = 10


def clamp_mastery(score: float) -> int:
    """Round and clamp a score into 0-100."""
    return max(MIN_MASTERY, min(MAX_MASTERY, round_half_up(score)))


def calculate_new_mastery(
    previous_mastery: float,
    is_correct: bool,
    exercise_type: ExerciseType,
) -> int:
    """New mastery score after one exercise.

    Success adds up to the exercise weight, shrinking as mastery approaches
    100; failure takes away half the weight.
    """
    previous_mastery = max(MIN_MASTERY, min(MAX_MASTERY, previous_mastery))
    weight = MASTERY_WEIGHTS.get(exercise_type, DEFAULT_MASTERY_WEIGHT)

    if is_correct:
        remaining_to_max = MAX_MASTERY - previous_mastery
        increase = min(weight, remaining_to_max * 0.2 + weight * 0.5)
        new_mastery = previous_mastery + increase
    else:
        new_mastery = previous_mastery - weight * 0.5

    return clamp_mastery(new_mastery)


def is_pattern_learned(mastery_score: float) -> bool:
    """Whether a mastery score counts as learned."""
    return mastery_score >= LEARNED_THRESHOLD
