"""SM-2 spaced repetition scheduling.

Exercise outcomes are binary, so they are first mapped onto the SM-2 quality
scale (0-5) using response time, then fed to the scheduler:

    quality  meaning                     produced by
    5        perfect response            correct, faster than half the average
    4        correct after hesitation    correct, faster than the average
    3        correct with difficulty     correct, average or slower
    1        incorrect                   any incorrect answer

Quality 0 (complete blackout) and 2 are never produced.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from nativepace.services.text_similarity import round_half_up
from nativepace.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
DEFAULT_AVERAGE_TIME_MS = 5000
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


@dataclass(frozen=True)
class SM2Result:
    """Outcome of one scheduling step."""
    ease_factor: float
    interval_days: int
    next_review_at: datetime


def exercise_result_to_quality(
    is_correct: bool,
    response_time_ms: float,
    average_time_ms: float = DEFAULT_AVERAGE_TIME_MS,
) -> int:
    """Convert an exercise outcome to an SM-2 quality score."""
    if not is_correct:
        return 1

    response_time_ms = max(0, response_time_ms)
    if average_time_ms <= 0:
        average_time_ms = DEFAULT_AVERAGE_TIME_MS

    time_ratio = response_time_ms / average_time_ms
    if time_ratio < 0.5:
        quality = 5
    elif time_ratio < 1.0:
        quality = 4
    else:
        quality = 3

    logger.debug(
        f"Quality {quality} for correct answer in {response_time_ms}ms (average {average_time_ms}ms)"
    )
    return quality


def calculate_ease_factor(quality: int, previous_ease: float = DEFAULT_EASE_FACTOR) -> float:
    """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3."""
    q = max(MIN_QUALITY, min(MAX_QUALITY, quality))
    previous_ease = max(MIN_EASE_FACTOR, previous_ease)
    new_ease = previous_ease + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    return round(max(MIN_EASE_FACTOR, new_ease), 2)


def calculate_interval(quality: int, previous_interval: int, new_ease: float) -> int:
    """Next interval in days.

    The first two successes use fixed steps (1 day, then 6 days); later
    successes grow by the ease factor. The branch is chosen on the previous
    interval.
    """
    if quality < PASSING_QUALITY:
        return DEFAULT_INTERVAL_DAYS
    if previous_interval == 1:
        return DEFAULT_INTERVAL_DAYS
    if previous_interval < SECOND_INTERVAL_DAYS:
        return SECOND_INTERVAL_DAYS
    return round_half_up(previous_interval * new_ease)


def calculate_sm2(
    quality: int,
    previous_ease: float = DEFAULT_EASE_FACTOR,
    previous_interval: int = DEFAULT_INTERVAL_DAYS,
    now: Optional[datetime] = None,
) -> SM2Result:
    """Schedule the next review of a pattern."""
    q = max(MIN_QUALITY, min(MAX_QUALITY, quality))
    previous_interval = max(DEFAULT_INTERVAL_DAYS, int(previous_interval))
    now = ensure_utc(now) if now is not None else utc_now()

    ease_factor = calculate_ease_factor(q, previous_ease)
    interval_days = calculate_interval(q, previous_interval, ease_factor)
    next_review_at = now + timedelta(days=interval_days)

    logger.debug(
        f"SM2: quality={q}, ease {previous_ease} -> {ease_factor}, "
        f"interval {previous_interval} -> {interval_days}, next review {next_review_at.isoformat()}"
    )
    return SM2Result(
        ease_factor=ease_factor,
        interval_days=interval_days,
        next_review_at=next_review_at,
    )
