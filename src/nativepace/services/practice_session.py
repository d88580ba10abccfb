"""Single-pattern practice session state machine.

    PatternView -> Exercise(comparison) -> Exercise(discrimination)
                -> Exercise(dictation) -> Exercise(speed) -> Summary

``transition`` is the only way to move forward: it takes the current state and
an event and returns a new state. The pattern view advances on ``Next``; each
exercise advances on the ``ExerciseCompleted`` carrying its result. Summary is
terminal.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from nativepace.exceptions import InvalidTransitionError, SessionNotCompleteError
from nativepace.models.exercise_models import PRACTICE_EXERCISE_SEQUENCE, ExerciseResult, ExerciseType
from nativepace.models.session_models import (
    ExerciseCompleted,
    ExerciseStep,
    Next,
    PatternViewStep,
    PracticeSessionState,
    PracticeSummary,
    SessionEvent,
    SessionProgress,
    SummaryStep,
)
from nativepace.services.text_similarity import round_half_up
from nativepace.timeutils import elapsed_ms, ensure_utc, utc_now

logger = logging.getLogger(__name__)


def create_session_state(
    pattern_id: str,
    exercise_sequence: Sequence[ExerciseType] = PRACTICE_EXERCISE_SEQUENCE,
    include_pattern_view: bool = True,
    now: Optional[datetime] = None,
) -> PracticeSessionState:
    """Start a practice session for one pattern."""
    steps = [ExerciseStep(exercise_type) for exercise_type in exercise_sequence]
    if include_pattern_view:
        steps.insert(0, PatternViewStep())
    steps.append(SummaryStep())

    return PracticeSessionState(
        pattern_id=pattern_id,
        steps=tuple(steps),
        started_at=ensure_utc(now) if now is not None else utc_now(),
    )


def transition(state: PracticeSessionState, event: SessionEvent) -> PracticeSessionState:
    """Apply an event and return the next state."""
    step = state.current_step

    if isinstance(step, SummaryStep):
        logger.debug(f"Session for {state.pattern_id} is complete, ignoring {event!r}")
        return state

    if isinstance(step, PatternViewStep):
        if not isinstance(event, Next):
            raise InvalidTransitionError("The pattern view only accepts a Next event")
        return _advance(state)

    if isinstance(step, ExerciseStep):
        if not isinstance(event, ExerciseCompleted):
            raise InvalidTransitionError(
                f"Exercise {step.exercise_type.value} needs a result before advancing"
            )
        if event.result.exercise_type != step.exercise_type:
            raise InvalidTransitionError(
                f"Expected a {step.exercise_type.value} result, "
                f"got {event.result.exercise_type.value}"
            )
        return _advance(state, event.result)

    raise InvalidTransitionError(f"Unknown step: {step!r}")


def _advance(state: PracticeSessionState, result: Optional[ExerciseResult] = None) -> PracticeSessionState:
    results = state.exercise_results + (result,) if result is not None else state.exercise_results
    return PracticeSessionState(
        pattern_id=state.pattern_id,
        steps=state.steps,
        started_at=state.started_at,
        current_step_index=state.current_step_index + 1,
        exercise_results=results,
    )


def record_exercise_result(state: PracticeSessionState, result: ExerciseResult) -> PracticeSessionState:
    """Shortcut for ``transition(state, ExerciseCompleted(result))``."""
    return transition(state, ExerciseCompleted(result))


def replay(
    pattern_id: str,
    events: Iterable[SessionEvent],
    started_at: datetime,
    exercise_sequence: Sequence[ExerciseType] = PRACTICE_EXERCISE_SEQUENCE,
    include_pattern_view: bool = True,
) -> PracticeSessionState:
    """Rebuild a session from its event log."""
    state = create_session_state(pattern_id, exercise_sequence, include_pattern_view, now=started_at)
    for event in events:
        state = transition(state, event)
    return state


def get_session_progress(state: PracticeSessionState) -> SessionProgress:
    """Current step number, total steps and percentage done."""
    total = len(state.steps)
    current = min(state.current_step_index + 1, total)
    if state.is_complete:
        percentage = 100
    else:
        # The summary is not a step to work through
        percentage = round_half_up(state.current_step_index / max(1, total - 1) * 100)
    return SessionProgress(current=current, total=total, percentage=percentage)


def get_exercises_remaining(state: PracticeSessionState) -> int:
    """Exercises still to be done."""
    exercise_steps = sum(1 for step in state.steps if isinstance(step, ExerciseStep))
    return max(0, exercise_steps - len(state.exercise_results))


def summarize_results(results: Sequence[ExerciseResult]) -> dict:
    """Counts, accuracy and average response time of a list of results."""
    total_count = len(results)
    correct_count = sum(1 for result in results if result.is_correct)
    accuracy = round_half_up(correct_count / total_count * 100) if total_count else 0
    average_response_time_ms = (
        round_half_up(sum(result.response_time_ms for result in results) / total_count)
        if total_count
        else 0
    )
    return {
        "correct_count": correct_count,
        "total_count": total_count,
        "accuracy": accuracy,
        "average_response_time_ms": average_response_time_ms,
    }


def create_session_summary(state: PracticeSessionState, now: Optional[datetime] = None) -> PracticeSummary:
    """Summary of a session that reached its summary step."""
    if not state.is_complete:
        raise SessionNotCompleteError(f"Practice session for {state.pattern_id} is not complete")

    now = ensure_utc(now) if now is not None else utc_now()
    return PracticeSummary(
        pattern_id=state.pattern_id,
        exercise_results=state.exercise_results,
        total_time_ms=elapsed_ms(state.started_at, now),
        **summarize_results(state.exercise_results),
    )


def format_session_time(ms: int) -> str:
    """E.g. "45s" or "1:30"."""
    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining_seconds = divmod(seconds, 60)
    return f"{minutes}:{remaining_seconds:02d}"
