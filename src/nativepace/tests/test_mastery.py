"""Tests for mastery tracking."""
import pytest

from nativepace.models.exercise_models import ExerciseType
from nativepace.services.mastery import (
    LEARNED_THRESHOLD,
    MASTERY_WEIGHTS,
    calculate_new_mastery,
    is_pattern_learned,
)


@pytest.mark.parametrize(
    "exercise_type, expected",
    [
        (ExerciseType.COMPARISON, 5),
        (ExerciseType.DISCRIMINATION, 10),
        (ExerciseType.DICTATION, 15),
        (ExerciseType.SPEED, 10),
    ],
)
def test_first_success_gains_full_weight(exercise_type: ExerciseType, expected: int) -> None:
    """Test success from zero mastery."""
    assert calculate_new_mastery(0, True, exercise_type) == expected


def test_success_gain_shrinks_near_max() -> None:
    """Test that gains shrink as mastery approaches 100."""
    # min(15, 10 * 0.2 + 7.5) = 9.5 -> 99.5 -> 100
    assert calculate_new_mastery(90, True, ExerciseType.DICTATION) == 100
    # min(10, 5 * 0.2 + 5) = 6 -> 101 -> clamped
    assert calculate_new_mastery(95, True, ExerciseType.DISCRIMINATION) == 100
    # min(10, 30 * 0.2 + 5) = 10
    assert calculate_new_mastery(70, True, ExerciseType.DISCRIMINATION) == 80
    # min(10, 20 * 0.2 + 5) = 9
    assert calculate_new_mastery(80, True, ExerciseType.SPEED) == 89


def test_failure_loses_half_weight() -> None:
    """Test the failure penalty."""
    assert calculate_new_mastery(50, False, ExerciseType.DICTATION) == 43  # 42.5 rounds up
    assert calculate_new_mastery(50, False, ExerciseType.COMPARISON) == 48  # 47.5 rounds up
    assert calculate_new_mastery(50, False, ExerciseType.DISCRIMINATION) == 45


def test_failure_never_goes_below_zero() -> None:
    """Test the lower clamp."""
    assert calculate_new_mastery(0, False, ExerciseType.DICTATION) == 0
    assert calculate_new_mastery(3, False, ExerciseType.DICTATION) == 0


def test_previous_mastery_is_clamped() -> None:
    """Test that out-of-range previous values are clamped first."""
    assert calculate_new_mastery(150, True, ExerciseType.SPEED) == 100
    assert calculate_new_mastery(-20, True, ExerciseType.SPEED) == 10


def test_mastery_stays_in_range_over_long_runs() -> None:
    """Test that any sequence of outcomes keeps mastery within 0-100."""
    mastery = 0
    for i in range(200):
        exercise_type = list(MASTERY_WEIGHTS)[i % len(MASTERY_WEIGHTS)]
        mastery = calculate_new_mastery(mastery, i % 3 != 0, exercise_type)
        assert 0 <= mastery <= 100


def test_repeated_success_never_decreases_until_max() -> None:
    """Test that correct discrimination answers climb steadily to 100 and stay there."""
    scores = [0]
    while scores[-1] < 100:
        scores.append(calculate_new_mastery(scores[-1], True, ExerciseType.DISCRIMINATION))
        assert scores[-1] >= scores[-2]
        assert len(scores) < 20

    assert scores == [0, 10, 20, 30, 40, 50, 60, 70, 80, 89, 96, 100]
    assert calculate_new_mastery(100, True, ExerciseType.DISCRIMINATION) == 100


def test_learned_threshold() -> None:
    """Test the learned boundary."""
    assert LEARNED_THRESHOLD == 50
    assert is_pattern_learned(50)
    assert not is_pattern_learned(49)
