"""Multi-pattern review session state machine.

Every due pattern goes through the review exercise subset (discrimination,
then dictation) before the next pattern starts. After the last exercise of the
last pattern the session reaches its summary.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from nativepace.exceptions import EmptyReviewQueueError, InvalidTransitionError, SessionNotCompleteError
from nativepace.models.exercise_models import REVIEW_EXERCISE_SEQUENCE, ExerciseResult, ExerciseType
from nativepace.models.session_models import (
    ExerciseCompleted,
    PatternReviewResult,
    ReviewItem,
    ReviewProgress,
    ReviewSessionState,
    ReviewSummary,
    SessionEvent,
    SummaryStep,
)
from nativepace.services.practice_session import summarize_results
from nativepace.services.review_queue import category_key
from nativepace.services.text_similarity import round_half_up
from nativepace.timeutils import elapsed_ms, ensure_utc, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_PATTERN_TITLE = "Unknown Pattern"


def review_item_from_record(record: Any) -> ReviewItem:
    """Queue entry for a progress record, using its loaded pattern if any."""
    pattern = getattr(record, "pattern", None)
    category = getattr(pattern, "category", None)
    return ReviewItem(
        pattern_id=record.pattern_id,
        title=getattr(pattern, "title", None) or UNKNOWN_PATTERN_TITLE,
        category=category_key(category) if category is not None else None,
    )


def create_review_state(
    due: Iterable[Any],
    now: Optional[datetime] = None,
    exercise_sequence: Sequence[ExerciseType] = REVIEW_EXERCISE_SEQUENCE,
) -> ReviewSessionState:
    """Start a review over due records or ready-made ReviewItems."""
    items = tuple(
        entry if isinstance(entry, ReviewItem) else review_item_from_record(entry)
        for entry in due
    )
    if not items:
        raise EmptyReviewQueueError("Nothing is due for review")
    if not exercise_sequence:
        raise ValueError("A review needs at least one exercise type")

    return ReviewSessionState(
        items=items,
        started_at=ensure_utc(now) if now is not None else utc_now(),
        exercise_sequence=tuple(exercise_sequence),
    )


def transition(state: ReviewSessionState, event: SessionEvent) -> ReviewSessionState:
    """Apply an event and return the next state."""
    step = state.current_step

    if isinstance(step, SummaryStep):
        logger.debug(f"Review is complete, ignoring {event!r}")
        return state

    if not isinstance(event, ExerciseCompleted):
        raise InvalidTransitionError("Review steps only advance on an exercise result")
    if event.result.exercise_type != step.exercise_type:
        raise InvalidTransitionError(
            f"Expected a {step.exercise_type.value} result, got {event.result.exercise_type.value}"
        )

    current_results = state.current_pattern_results + (event.result,)
    next_exercise_index = state.current_exercise_index + 1

    if next_exercise_index < len(state.exercise_sequence):
        return ReviewSessionState(
            items=state.items,
            started_at=state.started_at,
            exercise_sequence=state.exercise_sequence,
            current_pattern_index=state.current_pattern_index,
            current_exercise_index=next_exercise_index,
            pattern_results=state.pattern_results,
            current_pattern_results=current_results,
        )

    item = state.items[state.current_pattern_index]
    pattern_result = PatternReviewResult(
        pattern_id=item.pattern_id,
        pattern_title=item.title,
        category=item.category,
        exercise_results=current_results,
        is_correct=all(result.is_correct for result in current_results),
    )
    logger.debug(f"Reviewed {item.pattern_id}: passed={pattern_result.is_correct}")

    return ReviewSessionState(
        items=state.items,
        started_at=state.started_at,
        exercise_sequence=state.exercise_sequence,
        current_pattern_index=state.current_pattern_index + 1,
        current_exercise_index=0,
        pattern_results=state.pattern_results + (pattern_result,),
        current_pattern_results=(),
    )


def record_review_result(state: ReviewSessionState, result: ExerciseResult) -> ReviewSessionState:
    """Shortcut for ``transition(state, ExerciseCompleted(result))``."""
    return transition(state, ExerciseCompleted(result))


def replay(
    due: Iterable[Any],
    events: Iterable[SessionEvent],
    started_at: datetime,
    exercise_sequence: Sequence[ExerciseType] = REVIEW_EXERCISE_SEQUENCE,
) -> ReviewSessionState:
    """Rebuild a review from its event log."""
    state = create_review_state(due, now=started_at, exercise_sequence=exercise_sequence)
    for event in events:
        state = transition(state, event)
    return state


def all_exercise_results(state: ReviewSessionState) -> List[ExerciseResult]:
    """Every result of the session, in the order they were given."""
    results = [result for pattern in state.pattern_results for result in pattern.exercise_results]
    results.extend(state.current_pattern_results)
    return results


def get_review_progress(state: ReviewSessionState) -> ReviewProgress:
    """Pattern position plus exercise position within the whole review."""
    total = len(state.items)
    total_exercises = total * len(state.exercise_sequence)
    completed_exercises = len(all_exercise_results(state))

    if state.is_complete:
        current_exercise = len(state.exercise_sequence)
    else:
        current_exercise = state.current_exercise_index + 1

    return ReviewProgress(
        current=min(state.current_pattern_index + 1, total),
        total=total,
        percentage=round_half_up(completed_exercises / total_exercises * 100),
        current_exercise=current_exercise,
        total_exercises=len(state.exercise_sequence),
    )


def get_patterns_remaining(state: ReviewSessionState) -> int:
    """Patterns not finished yet, counting the current one."""
    return max(0, len(state.items) - state.current_pattern_index)


def format_review_progress(state: ReviewSessionState) -> str:
    """E.g. "Pattern 2/5"."""
    progress = get_review_progress(state)
    return f"Pattern {progress.current}/{progress.total}"


def create_review_summary(state: ReviewSessionState, now: Optional[datetime] = None) -> ReviewSummary:
    """Summary of a review that reached its summary step."""
    if not state.is_complete:
        raise SessionNotCompleteError("Review session is not complete")

    now = ensure_utc(now) if now is not None else utc_now()
    results = tuple(all_exercise_results(state))
    patterns_passed = sum(1 for pattern in state.pattern_results if pattern.is_correct)

    return ReviewSummary(
        exercise_results=results,
        total_time_ms=elapsed_ms(state.started_at, now),
        patterns_reviewed=len(state.pattern_results),
        patterns_passed=patterns_passed,
        patterns_failed=len(state.pattern_results) - patterns_passed,
        pattern_results=state.pattern_results,
        **summarize_results(results),
    )
