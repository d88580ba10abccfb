"""Progress store backed by SQLAlchemy."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from nativepace.config import settings
from nativepace.exceptions import PatternNotFoundError, ProgressConflictError, UserNotFoundError
from nativepace.models.exercise_models import ExerciseType
from nativepace.models.models import (
    ExerciseAttempt,
    Pattern,
    PracticeSessionLog,
    User,
    UserPatternProgress,
)
from nativepace.monitoring import attempts_recorded, db_errors, patterns_learned
from nativepace.services.progress_update import ProgressState, ProgressUpdate, compute_progress_update
from nativepace.services.streaks import calculate_streak_update
from nativepace.services.stats import (
    calculate_average_accuracy,
    calculate_mastery_by_category,
    calculate_patterns_learned,
    calculate_total_practice_minutes,
)
from nativepace.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ProgressService:
    """Service for reading and updating learner progress."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_user(self, user_id: int) -> User:
        """Get a learner or raise UserNotFoundError."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def get_pattern(self, pattern_id: str) -> Pattern:
        """Get a pattern or raise PatternNotFoundError."""
        pattern = self.db.query(Pattern).filter(Pattern.id == pattern_id).first()
        if not pattern:
            raise PatternNotFoundError(f"Pattern {pattern_id} not found")
        return pattern

    def get_progress(self, user_id: int, pattern_id: str) -> Optional[UserPatternProgress]:
        """Get the progress record for one pattern, if the learner has one."""
        return (
            self.db.query(UserPatternProgress)
            .filter(
                UserPatternProgress.user_id == user_id,
                UserPatternProgress.pattern_id == pattern_id,
            )
            .first()
        )

    def get_user_progress(self, user_id: int) -> List[UserPatternProgress]:
        """Get all progress records of a learner with their patterns."""
        return (
            self.db.query(UserPatternProgress)
            .options(joinedload(UserPatternProgress.pattern))
            .filter(UserPatternProgress.user_id == user_id)
            .order_by(UserPatternProgress.pattern_id)
            .all()
        )

    def get_due_progress(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[UserPatternProgress]:
        """Get records due at ``now``, earliest first."""
        now = ensure_utc(now) if now is not None else utc_now()
        limit = limit if limit is not None else settings.learning.due_patterns_limit

        records = (
            self.db.query(UserPatternProgress)
            .options(joinedload(UserPatternProgress.pattern))
            .filter(
                UserPatternProgress.user_id == user_id,
                UserPatternProgress.next_review_at.isnot(None),
                UserPatternProgress.next_review_at <= now,
            )
            .order_by(UserPatternProgress.next_review_at.asc(), UserPatternProgress.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        logger.debug(f"User {user_id}: {len(records)} due records (offset {offset}, limit {limit})")
        return records

    def count_due(self, user_id: int, now: Optional[datetime] = None) -> int:
        """Number of records due at ``now``."""
        now = ensure_utc(now) if now is not None else utc_now()
        return (
            self.db.query(UserPatternProgress)
            .filter(
                UserPatternProgress.user_id == user_id,
                UserPatternProgress.next_review_at.isnot(None),
                UserPatternProgress.next_review_at <= now,
            )
            .count()
        )

    def get_new_patterns_for_level(
        self,
        user_id: int,
        level: int,
        limit: Optional[int] = None,
    ) -> List[Pattern]:
        """Patterns of a level the learner never practiced, in curriculum order."""
        limit = limit if limit is not None else settings.learning.new_patterns_limit
        practiced = select(UserPatternProgress.pattern_id).where(
            UserPatternProgress.user_id == user_id
        )
        return (
            self.db.query(Pattern)
            .filter(Pattern.level == level, Pattern.id.notin_(practiced))
            .order_by(Pattern.order_index)
            .limit(limit)
            .all()
        )

    def record_attempt(
        self,
        user_id: int,
        pattern_id: str,
        exercise_type: ExerciseType,
        is_correct: bool,
        response_time_ms: int,
        user_input: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ProgressUpdate:
        """Append an attempt and update the progress record in one transaction."""
        now = ensure_utc(now) if now is not None else utc_now()
        self.get_user(user_id)
        self.get_pattern(pattern_id)

        created = False
        try:
            record = (
                self.db.query(UserPatternProgress)
                .filter(
                    UserPatternProgress.user_id == user_id,
                    UserPatternProgress.pattern_id == pattern_id,
                )
                .with_for_update()
                .first()
            )
            update = compute_progress_update(
                ProgressState.from_record(record),
                exercise_type,
                is_correct,
                response_time_ms,
                now=now,
                average_time_ms=settings.learning.average_response_time_ms,
            )

            self.db.add(
                ExerciseAttempt(
                    user_id=user_id,
                    pattern_id=pattern_id,
                    exercise_type=exercise_type,
                    is_correct=is_correct,
                    response_time_ms=max(0, int(response_time_ms)),
                    user_input=user_input,
                    created_at=now,
                )
            )
            if record is None:
                record = UserPatternProgress(user_id=user_id, pattern_id=pattern_id)
                self.db.add(record)
                created = True
            self._apply_state(record, update.state)

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if not created:
                db_errors.labels(error_type=type(e).__name__).inc()
                logger.error(f"Error recording attempt for user {user_id}, pattern {pattern_id}: {e}")
                raise
            db_errors.labels(error_type="conflict").inc()
            logger.error(f"Conflicting progress write for user {user_id}, pattern {pattern_id}: {e}")
            raise ProgressConflictError(
                f"Progress for user {user_id} and pattern {pattern_id} was created concurrently"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            db_errors.labels(error_type=type(e).__name__).inc()
            logger.error(f"Error recording attempt for user {user_id}, pattern {pattern_id}: {e}")
            raise

        attempts_recorded.labels(
            exercise_type=exercise_type.value,
            outcome="correct" if is_correct else "incorrect",
        ).inc()
        if update.became_learned:
            patterns_learned.inc()
            logger.info(f"User {user_id} learned pattern {pattern_id}")

        logger.info(
            f"User {user_id} {exercise_type.value} on {pattern_id}: correct={is_correct}, "
            f"mastery {update.previous.mastery_score} -> {update.state.mastery_score}, "
            f"next review in {update.state.interval_days} day(s)"
        )
        return update

    @staticmethod
    def _apply_state(record: UserPatternProgress, state: ProgressState) -> None:
        record.mastery_score = state.mastery_score
        record.times_practiced = state.times_practiced
        record.times_correct = state.times_correct
        record.ease_factor = state.ease_factor
        record.interval_days = state.interval_days
        record.next_review_at = state.next_review_at
        record.last_practiced_at = state.last_practiced_at

    def log_practice_session(
        self,
        user_id: int,
        started_at: datetime,
        ended_at: datetime,
        patterns_practiced: int,
        exercises_completed: int,
        correct_answers: int,
        kind: str = "practice",
    ) -> PracticeSessionLog:
        """Store a finished session and extend the learner's daily streak."""
        user = self.get_user(user_id)
        session_log = PracticeSessionLog(
            user_id=user_id,
            kind=kind,
            started_at=ensure_utc(started_at),
            ended_at=ensure_utc(ended_at),
            patterns_practiced=patterns_practiced,
            exercises_completed=exercises_completed,
            correct_answers=correct_answers,
        )
        streak = calculate_streak_update(
            user.streak_current or 0,
            user.streak_longest or 0,
            user.last_practice_date,
            ended_at,
        )
        try:
            user.streak_current = streak.current
            user.streak_longest = streak.longest
            user.last_practice_date = streak.practice_date
            self.db.add(session_log)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            db_errors.labels(error_type=type(e).__name__).inc()
            logger.error(f"Error logging {kind} session for user {user_id}: {e}")
            raise

        if streak.broken:
            logger.info(f"User {user_id} started a new streak")
        elif streak.is_new_record:
            logger.info(f"User {user_id} reached a record streak of {streak.current} days")
        self.db.refresh(session_log)
        return session_log

    def get_user_stats(self, user_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Get a learner's aggregate statistics."""
        user = self.get_user(user_id)
        records = self.get_user_progress(user_id)
        patterns = self.db.query(Pattern).all()
        sessions = (
            self.db.query(PracticeSessionLog)
            .filter(PracticeSessionLog.user_id == user_id)
            .all()
        )

        return {
            "patterns_practiced": len(records),
            "patterns_learned": calculate_patterns_learned(records),
            "average_accuracy": calculate_average_accuracy(records),
            "total_practice_minutes": calculate_total_practice_minutes(sessions),
            "sessions_completed": len(sessions),
            "due_count": self.count_due(user_id, now),
            "current_streak": user.streak_current or 0,
            "longest_streak": user.streak_longest or 0,
            "mastery_by_category": calculate_mastery_by_category(records, patterns),
        }
