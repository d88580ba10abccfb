"""Tests for SM-2 scheduling."""
from datetime import UTC, datetime, timedelta

import pytest

from nativepace.services.spaced_repetition import (
    DEFAULT_EASE_FACTOR,
    MIN_EASE_FACTOR,
    calculate_ease_factor,
    calculate_interval,
    calculate_sm2,
    exercise_result_to_quality,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "is_correct, response_time_ms, expected",
    [
        (False, 100, 1),
        (False, 100000, 1),
        (True, 2000, 5),
        (True, 2499, 5),
        (True, 2500, 4),
        (True, 4999, 4),
        (True, 5000, 3),
        (True, 20000, 3),
    ],
)
def test_quality_mapping(is_correct: bool, response_time_ms: int, expected: int) -> None:
    """Test quality bands against the default 5s average."""
    assert exercise_result_to_quality(is_correct, response_time_ms) == expected


def test_quality_never_zero() -> None:
    """Test that incorrect answers map to 1, not 0."""
    assert exercise_result_to_quality(False, 0) == 1


def test_quality_custom_and_invalid_average() -> None:
    """Test a custom average and the fallback for a non-positive one."""
    assert exercise_result_to_quality(True, 900, average_time_ms=2000) == 5
    assert exercise_result_to_quality(True, 1500, average_time_ms=2000) == 4
    assert exercise_result_to_quality(True, 2000, average_time_ms=0) == 5


def test_quality_negative_time_is_clamped() -> None:
    """Test that a negative response time counts as instant."""
    assert exercise_result_to_quality(True, -50) == 5


@pytest.mark.parametrize(
    "quality, expected",
    [(5, 2.6), (4, 2.5), (3, 2.36), (1, 1.96), (0, 1.7)],
)
def test_ease_factor_from_default(quality: int, expected: float) -> None:
    """Test the ease update from the default ease."""
    assert calculate_ease_factor(quality, DEFAULT_EASE_FACTOR) == pytest.approx(expected)


def test_ease_factor_floor() -> None:
    """Test that the ease never drops below 1.3."""
    ease = DEFAULT_EASE_FACTOR
    for _ in range(10):
        ease = calculate_ease_factor(1, ease)
        assert ease >= MIN_EASE_FACTOR
    assert ease == MIN_EASE_FACTOR


def test_ease_factor_clamps_quality() -> None:
    """Test that out-of-range qualities are clamped to 0-5."""
    assert calculate_ease_factor(9, 2.5) == calculate_ease_factor(5, 2.5)
    assert calculate_ease_factor(-3, 2.5) == calculate_ease_factor(0, 2.5)


def test_interval_branches() -> None:
    """Test each interval branch."""
    assert calculate_interval(2, 30, 2.5) == 1
    assert calculate_interval(5, 1, 2.6) == 1
    assert calculate_interval(5, 2, 2.6) == 6
    assert calculate_interval(5, 5, 2.6) == 6
    assert calculate_interval(5, 6, 2.7) == 16


def test_sm2_first_success() -> None:
    """Test a perfect first answer."""
    result = calculate_sm2(5, 2.5, 1, now=NOW)
    assert result.ease_factor == pytest.approx(2.6)
    assert result.interval_days == 1
    assert result.next_review_at == NOW + timedelta(days=1)


def test_sm2_second_step() -> None:
    """Test the jump to six days."""
    result = calculate_sm2(5, 2.5, 2, now=NOW)
    assert result.interval_days == 6
    assert result.next_review_at == NOW + timedelta(days=6)


def test_sm2_geometric_growth() -> None:
    """Test growth by the new ease factor."""
    result = calculate_sm2(5, 2.6, 6, now=NOW)
    assert result.ease_factor == pytest.approx(2.7)
    assert result.interval_days == 16


def test_sm2_failure_resets_interval() -> None:
    """Test that a failed answer brings the pattern back tomorrow."""
    result = calculate_sm2(1, 2.5, 30, now=NOW)
    assert result.interval_days == 1
    assert result.ease_factor == pytest.approx(1.96)


def test_sm2_clamps_previous_values() -> None:
    """Test that invalid previous values are clamped."""
    result = calculate_sm2(5, 0.5, 0, now=NOW)
    assert result.interval_days == 1
    assert result.ease_factor == pytest.approx(1.4)


def test_sm2_naive_now_is_utc() -> None:
    """Test that a naive ``now`` is read as UTC."""
    result = calculate_sm2(4, now=datetime(2024, 3, 10, 12, 0))
    assert result.next_review_at == NOW + timedelta(days=1)
