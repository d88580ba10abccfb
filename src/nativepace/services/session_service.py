"""Service wiring practice and review sessions to the progress store."""
import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from nativepace.config import settings
from nativepace.exceptions import EmptyReviewQueueError, InvalidTransitionError
from nativepace.models.exercise_models import ExerciseResult, ExerciseType
from nativepace.models.session_models import (
    ExerciseCompleted,
    Next,
    PracticeSessionState,
    PracticeSummary,
    ReviewSessionState,
    ReviewSummary,
)
from nativepace.monitoring import due_patterns_served, session_accuracy, session_duration, sessions_completed
from nativepace.services import practice_session, review_session
from nativepace.services.exercises import DictationExercise
from nativepace.services.progress_service import ProgressService
from nativepace.services.progress_update import ProgressUpdate
from nativepace.services.review_queue import DueSummary, select_due
from nativepace.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

PRACTICE = "practice"
REVIEW = "review"


class SessionService:
    """Runs sessions for one learner at a time.

    Session states are plain values kept by the caller; every exercise result
    is recorded in the store as soon as it is accepted by the state machine.
    """

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.progress_service = ProgressService(db)

    # Practice

    def start_practice(self, pattern_id: str, now: Optional[datetime] = None) -> PracticeSessionState:
        """Start a practice session for an existing pattern."""
        self.progress_service.get_pattern(pattern_id)
        logger.info(f"Starting practice of {pattern_id}")
        return practice_session.create_session_state(pattern_id, now=now)

    def continue_practice(self, state: PracticeSessionState) -> PracticeSessionState:
        """Leave the pattern view."""
        return practice_session.transition(state, Next())

    def submit_practice_result(
        self,
        user_id: int,
        state: PracticeSessionState,
        result: ExerciseResult,
        user_input: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[PracticeSessionState, ProgressUpdate]:
        """Advance the session and record the attempt.

        A dictation result with the typed answer is checked again against the
        pattern's example sentence.
        """
        if state.is_complete:
            raise InvalidTransitionError("Practice session is already complete")
        result = self._check_dictation(state.pattern_id, result, user_input)
        new_state = practice_session.transition(state, ExerciseCompleted(result))
        update = self.progress_service.record_attempt(
            user_id,
            state.pattern_id,
            result.exercise_type,
            result.is_correct,
            result.response_time_ms,
            user_input=user_input,
            now=now,
        )
        return new_state, update

    def complete_practice(
        self,
        user_id: int,
        state: PracticeSessionState,
        now: Optional[datetime] = None,
    ) -> PracticeSummary:
        """Summarize a finished practice session and log it."""
        now = ensure_utc(now) if now is not None else utc_now()
        summary = practice_session.create_session_summary(state, now)

        self.progress_service.log_practice_session(
            user_id,
            started_at=state.started_at,
            ended_at=now,
            patterns_practiced=1,
            exercises_completed=summary.total_count,
            correct_answers=summary.correct_count,
            kind=PRACTICE,
        )
        self._observe(PRACTICE, summary.total_time_ms, summary.accuracy)
        logger.info(
            f"User {user_id} finished practice of {state.pattern_id}: "
            f"{summary.correct_count}/{summary.total_count} correct"
        )
        return summary

    # Review

    def get_due_summary(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> DueSummary:
        """Due records of a learner with their category breakdown."""
        now = ensure_utc(now) if now is not None else utc_now()
        records = self.progress_service.get_due_progress(user_id, now=now, limit=limit)
        return select_due(records, now)

    def start_review(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> ReviewSessionState:
        """Start a review over everything due, earliest first."""
        now = ensure_utc(now) if now is not None else utc_now()
        due = self.get_due_summary(user_id, now=now, limit=limit)
        if due.is_empty:
            raise EmptyReviewQueueError(f"Nothing is due for user {user_id}")

        due_patterns_served.inc(due.total_due)
        logger.info(f"Starting review of {due.total_due} patterns for user {user_id}")
        return review_session.create_review_state(due.records, now=now)

    def submit_review_result(
        self,
        user_id: int,
        state: ReviewSessionState,
        result: ExerciseResult,
        user_input: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[ReviewSessionState, ProgressUpdate]:
        """Advance the review and record the attempt for the current pattern."""
        item = state.current_item
        if item is None:
            raise InvalidTransitionError("Review session is already complete")
        result = self._check_dictation(item.pattern_id, result, user_input)
        new_state = review_session.transition(state, ExerciseCompleted(result))

        update = self.progress_service.record_attempt(
            user_id,
            item.pattern_id,
            result.exercise_type,
            result.is_correct,
            result.response_time_ms,
            user_input=user_input,
            now=now,
        )
        return new_state, update

    def complete_review(
        self,
        user_id: int,
        state: ReviewSessionState,
        now: Optional[datetime] = None,
    ) -> ReviewSummary:
        """Summarize a finished review and log it."""
        now = ensure_utc(now) if now is not None else utc_now()
        summary = review_session.create_review_summary(state, now)

        self.progress_service.log_practice_session(
            user_id,
            started_at=state.started_at,
            ended_at=now,
            patterns_practiced=summary.patterns_reviewed,
            exercises_completed=summary.total_count,
            correct_answers=summary.correct_count,
            kind=REVIEW,
        )
        self._observe(REVIEW, summary.total_time_ms, summary.accuracy)
        logger.info(
            f"User {user_id} finished review: {summary.patterns_passed} passed, "
            f"{summary.patterns_failed} failed"
        )
        return summary

    def _check_dictation(
        self, pattern_id: str, result: ExerciseResult, user_input: Optional[str]
    ) -> ExerciseResult:
        if result.exercise_type != ExerciseType.DICTATION or user_input is None:
            return result

        pattern = self.progress_service.get_pattern(pattern_id)
        exercise = DictationExercise(
            pattern.example_sentence, threshold=settings.learning.similarity_threshold
        )
        checked = exercise.evaluate(user_input, result.response_time_ms)
        if checked.is_correct != result.is_correct:
            logger.warning(
                f"Dictation of {pattern_id} reported correct={result.is_correct}, "
                f"answer checks as correct={checked.is_correct}"
            )
        return checked

    @staticmethod
    def _observe(kind: str, total_time_ms: int, accuracy: int) -> None:
        sessions_completed.labels(kind=kind).inc()
        session_duration.labels(kind=kind).observe(total_time_ms / 1000)
        session_accuracy.labels(kind=kind).observe(accuracy)
