"""Database models for the learning engine."""
from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from nativepace.models.base import Base, TimestampMixin
from nativepace.models.exercise_models import ExerciseType, PatternCategory


def _enum_values(enum_class):
    return [member.value for member in enum_class]


class User(Base, TimestampMixin):
    """Learner account. Authentication lives elsewhere."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    streak_current = Column(Integer, nullable=False, default=0)
    streak_longest = Column(Integer, nullable=False, default=0)
    last_practice_date = Column(Date, nullable=True)  # UTC day of the last finished session

    # Relationships
    progress = relationship("UserPatternProgress", back_populates="user")
    attempts = relationship("ExerciseAttempt", back_populates="user")
    practice_sessions = relationship("PracticeSessionLog", back_populates="user")


class Pattern(Base, TimestampMixin):
    """Connected speech pattern. Authored externally, read-only here."""

    __tablename__ = "patterns"

    id = Column(String, primary_key=True)  # e.g., "weak-form-to"
    category = Column(
        Enum(PatternCategory, values_callable=_enum_values, name="pattern_category"),
        nullable=False,
    )
    level = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    phonetic_clear = Column(String, nullable=False, default="")
    phonetic_reduced = Column(String, nullable=False, default="")
    example_sentence = Column(String, nullable=False, default="")
    example_transcription = Column(String, nullable=False, default="")
    audio_slow_url = Column(String)
    audio_fast_url = Column(String)
    tips = Column(JSON, nullable=False, default=list)
    difficulty = Column(Integer, nullable=False, default=1)
    order_index = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("level BETWEEN 1 AND 6", name="ck_patterns_level"),
        CheckConstraint("difficulty BETWEEN 1 AND 5", name="ck_patterns_difficulty"),
    )

    # Relationships
    progress = relationship("UserPatternProgress", back_populates="pattern")


class UserPatternProgress(Base, TimestampMixin):
    """Per-learner scheduling and mastery state of one pattern."""

    __tablename__ = "user_pattern_progress"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pattern_id = Column(String, ForeignKey("patterns.id", ondelete="CASCADE"), nullable=False)
    mastery_score = Column(Integer, nullable=False, default=0)
    times_practiced = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    last_practiced_at = Column(DateTime(timezone=True))
    next_review_at = Column(DateTime(timezone=True))  # None until first attempt
    ease_factor = Column(Float, nullable=False, default=2.5)
    interval_days = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("user_id", "pattern_id", name="uq_progress_user_pattern"),
        CheckConstraint("mastery_score BETWEEN 0 AND 100", name="ck_progress_mastery"),
        CheckConstraint("times_correct <= times_practiced", name="ck_progress_counts"),
        Index("idx_progress_user_next_review", "user_id", "next_review_at"),
    )

    # Relationships
    user = relationship("User", back_populates="progress")
    pattern = relationship("Pattern", back_populates="progress")

    def __repr__(self) -> str:
        return (
            f"<UserPatternProgress user={self.user_id} pattern={self.pattern_id} "
            f"mastery={self.mastery_score} next_review_at={self.next_review_at}>"
        )


class ExerciseAttempt(Base):
    """Append-only log of exercise attempts."""

    __tablename__ = "exercise_attempts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pattern_id = Column(String, ForeignKey("patterns.id", ondelete="SET NULL"))
    exercise_type = Column(
        Enum(ExerciseType, values_callable=_enum_values, name="exercise_type"),
        nullable=False,
    )
    is_correct = Column(Boolean, nullable=False)
    response_time_ms = Column(Integer)
    user_input = Column(Text)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    __table_args__ = (
        Index("idx_attempts_user_created", "user_id", "created_at"),
    )

    # Relationships
    user = relationship("User", back_populates="attempts")


class PracticeSessionLog(Base):
    """One finished practice or review session."""

    __tablename__ = "practice_sessions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String, nullable=False, default="practice")  # practice, review
    started_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    ended_at = Column(DateTime(timezone=True))
    patterns_practiced = Column(Integer, nullable=False, default=0)
    exercises_completed = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_sessions_user_started", "user_id", "started_at"),
    )

    # Relationships
    user = relationship("User", back_populates="practice_sessions")
