"""Turn one exercise attempt into the next progress record state."""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from nativepace.models.exercise_models import ExerciseType
from nativepace.services.mastery import LEARNED_THRESHOLD, MAX_MASTERY, calculate_new_mastery, is_pattern_learned
from nativepace.services.spaced_repetition import (
    DEFAULT_AVERAGE_TIME_MS,
    DEFAULT_EASE_FACTOR,
    DEFAULT_INTERVAL_DAYS,
    calculate_sm2,
    exercise_result_to_quality,
)
from nativepace.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

MILESTONE_FIRST_PRACTICE = "first-practice"
MILESTONE_PERFECT_SCORE = "perfect-score"
MILESTONE_MASTERY_50 = "mastery-50"
MILESTONE_MASTERY_75 = "mastery-75"
MILESTONE_MASTERY_100 = "mastery-100"

STRONG_MASTERY = 75

# Mastery scores celebrated when crossed, highest first
MASTERY_MILESTONES = (
    (MAX_MASTERY, MILESTONE_MASTERY_100),
    (STRONG_MASTERY, MILESTONE_MASTERY_75),
    (LEARNED_THRESHOLD, MILESTONE_MASTERY_50),
)


@dataclass(frozen=True)
class ProgressState:
    """Values the store persists per (user, pattern)."""
    mastery_score: int = 0
    times_practiced: int = 0
    times_correct: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = DEFAULT_INTERVAL_DAYS
    next_review_at: Optional[datetime] = None
    last_practiced_at: Optional[datetime] = None

    @classmethod
    def initial(cls) -> "ProgressState":
        """State of a pattern that was never attempted."""
        return cls()

    @classmethod
    def from_record(cls, record: Optional[Any]) -> "ProgressState":
        """Read a stored progress record; unset columns fall back to defaults."""
        if record is None:
            return cls.initial()

        def value(name: str, default: Any) -> Any:
            current = getattr(record, name, None)
            return default if current is None else current

        return cls(
            mastery_score=int(value("mastery_score", 0)),
            times_practiced=int(value("times_practiced", 0)),
            times_correct=int(value("times_correct", 0)),
            ease_factor=float(value("ease_factor", DEFAULT_EASE_FACTOR)),
            interval_days=int(value("interval_days", DEFAULT_INTERVAL_DAYS)),
            next_review_at=ensure_utc(getattr(record, "next_review_at", None)),
            last_practiced_at=ensure_utc(getattr(record, "last_practiced_at", None)),
        )

    @property
    def is_learned(self) -> bool:
        return is_pattern_learned(self.mastery_score)


@dataclass(frozen=True)
class ProgressUpdate:
    """Previous and next progress state for one attempt."""
    exercise_type: ExerciseType
    is_correct: bool
    quality: int
    previous: ProgressState
    state: ProgressState

    @property
    def mastery_change(self) -> int:
        return self.state.mastery_score - self.previous.mastery_score

    @property
    def is_improvement(self) -> bool:
        return self.mastery_change > 0

    @property
    def is_learned(self) -> bool:
        return self.state.is_learned

    @property
    def became_learned(self) -> bool:
        return self.state.is_learned and not self.previous.is_learned

    @property
    def is_first_practice(self) -> bool:
        return self.previous.times_practiced == 0


def compute_progress_update(
    previous: ProgressState,
    exercise_type: ExerciseType,
    is_correct: bool,
    response_time_ms: float,
    now: Optional[datetime] = None,
    average_time_ms: float = DEFAULT_AVERAGE_TIME_MS,
) -> ProgressUpdate:
    """Compute scheduling and mastery from the same previous state and attempt."""
    now = ensure_utc(now) if now is not None else utc_now()

    quality = exercise_result_to_quality(is_correct, response_time_ms, average_time_ms)
    schedule = calculate_sm2(quality, previous.ease_factor, previous.interval_days, now=now)
    mastery = calculate_new_mastery(previous.mastery_score, is_correct, exercise_type)

    state = replace(
        previous,
        mastery_score=mastery,
        times_practiced=previous.times_practiced + 1,
        times_correct=previous.times_correct + (1 if is_correct else 0),
        ease_factor=schedule.ease_factor,
        interval_days=schedule.interval_days,
        next_review_at=schedule.next_review_at,
        last_practiced_at=now,
    )
    logger.debug(
        f"{exercise_type.value} attempt (correct={is_correct}): mastery "
        f"{previous.mastery_score} -> {mastery}, quality {quality}"
    )
    return ProgressUpdate(
        exercise_type=exercise_type,
        is_correct=is_correct,
        quality=quality,
        previous=previous,
        state=state,
    )


def check_session_milestone(
    is_first_practice: bool,
    accuracy: int,
    new_mastery: int,
    previous_mastery: int,
) -> Optional[str]:
    """Milestone reached by a session, if any. First match wins."""
    if is_first_practice:
        return MILESTONE_FIRST_PRACTICE

    if accuracy == 100:
        return MILESTONE_PERFECT_SCORE

    # Only thresholds crossed in this session count
    for threshold, milestone in MASTERY_MILESTONES:
        if new_mastery >= threshold > previous_mastery:
            return milestone

    return None
