"""Models for practice and review session state.

Session state is ephemeral and immutable: every transition produces a new
state value. The ``to_data``/``from_data`` pairs give a JSON-friendly snapshot
so a session can be stored and restored by the caller.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from nativepace.models.exercise_models import (
    ExerciseResult,
    ExerciseType,
    REVIEW_EXERCISE_SEQUENCE,
)
from nativepace.timeutils import ensure_utc


# Steps

@dataclass(frozen=True)
class PatternViewStep:
    """Pattern explanation shown before any exercise."""


@dataclass(frozen=True)
class ExerciseStep:
    """One exercise of the practice pipeline."""
    exercise_type: ExerciseType


@dataclass(frozen=True)
class InPatternStep:
    """Review position: exercise ``exercise_index`` of pattern ``pattern_index``."""
    pattern_index: int
    exercise_index: int
    exercise_type: ExerciseType


@dataclass(frozen=True)
class SummaryStep:
    """Terminal step."""


PracticeStep = Union[PatternViewStep, ExerciseStep, SummaryStep]
ReviewStep = Union[InPatternStep, SummaryStep]


def step_to_data(step: PracticeStep) -> Dict[str, Any]:
    """Convert a practice step to serializable data."""
    if isinstance(step, PatternViewStep):
        return {"kind": "pattern_view"}
    if isinstance(step, ExerciseStep):
        return {"kind": "exercise", "exercise_type": step.exercise_type.value}
    if isinstance(step, SummaryStep):
        return {"kind": "summary"}
    raise ValueError(f"Unknown step: {step!r}")


def step_from_data(data: Dict[str, Any]) -> PracticeStep:
    """Create a practice step from stored data."""
    kind = data.get("kind")
    if kind == "pattern_view":
        return PatternViewStep()
    if kind == "exercise":
        return ExerciseStep(ExerciseType(data["exercise_type"]))
    if kind == "summary":
        return SummaryStep()
    raise ValueError(f"Unknown step kind: {kind!r}")


# Events

@dataclass(frozen=True)
class Next:
    """Explicit "continue" signal; only the pattern view accepts it."""


@dataclass(frozen=True)
class ExerciseCompleted:
    """An exercise produced its result."""
    result: ExerciseResult


SessionEvent = Union[Next, ExerciseCompleted]


# Progress

@dataclass(frozen=True)
class SessionProgress:
    """Position within a session, for progress bars."""
    current: int
    total: int
    percentage: int


@dataclass(frozen=True)
class ReviewProgress(SessionProgress):
    """Review position; ``current``/``total`` count patterns."""
    current_exercise: int = 0
    total_exercises: int = 0


# Practice session

@dataclass(frozen=True)
class PracticeSessionState:
    """State of a single-pattern practice session."""
    pattern_id: str
    steps: Tuple[PracticeStep, ...]
    started_at: datetime
    current_step_index: int = 0
    exercise_results: Tuple[ExerciseResult, ...] = ()

    @property
    def current_step(self) -> PracticeStep:
        return self.steps[min(self.current_step_index, len(self.steps) - 1)]

    @property
    def is_complete(self) -> bool:
        return isinstance(self.current_step, SummaryStep)

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data for storage."""
        return {
            "pattern_id": self.pattern_id,
            "steps": [step_to_data(step) for step in self.steps],
            "started_at": self.started_at.isoformat(),
            "current_step_index": self.current_step_index,
            "exercise_results": [result.to_data() for result in self.exercise_results],
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "PracticeSessionState":
        """Create a PracticeSessionState from stored data."""
        return cls(
            pattern_id=data["pattern_id"],
            steps=tuple(step_from_data(step) for step in data["steps"]),
            started_at=ensure_utc(datetime.fromisoformat(data["started_at"])),
            current_step_index=int(data["current_step_index"]),
            exercise_results=tuple(
                ExerciseResult.from_data(result) for result in data["exercise_results"]
            ),
        )


@dataclass(frozen=True)
class PracticeSummary:
    """Read-only outcome of a finished practice session."""
    pattern_id: str
    exercise_results: Tuple[ExerciseResult, ...]
    total_time_ms: int
    correct_count: int
    total_count: int
    accuracy: int
    average_response_time_ms: int


# Review session

@dataclass(frozen=True)
class ReviewItem:
    """A due pattern queued for review."""
    pattern_id: str
    title: str = "Unknown Pattern"
    category: Optional[str] = None

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data for storage."""
        return {"pattern_id": self.pattern_id, "title": self.title, "category": self.category}

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "ReviewItem":
        """Create a ReviewItem from stored data."""
        return cls(
            pattern_id=data["pattern_id"],
            title=data.get("title", "Unknown Pattern"),
            category=data.get("category"),
        )


@dataclass(frozen=True)
class PatternReviewResult:
    """Outcome of one pattern within a review session."""
    pattern_id: str
    pattern_title: str
    category: Optional[str]
    exercise_results: Tuple[ExerciseResult, ...]
    is_correct: bool  # passed iff every exercise was correct

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data for storage."""
        return {
            "pattern_id": self.pattern_id,
            "pattern_title": self.pattern_title,
            "category": self.category,
            "exercise_results": [result.to_data() for result in self.exercise_results],
            "is_correct": self.is_correct,
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "PatternReviewResult":
        """Create a PatternReviewResult from stored data."""
        return cls(
            pattern_id=data["pattern_id"],
            pattern_title=data["pattern_title"],
            category=data.get("category"),
            exercise_results=tuple(
                ExerciseResult.from_data(result) for result in data["exercise_results"]
            ),
            is_correct=bool(data["is_correct"]),
        )


@dataclass(frozen=True)
class ReviewSessionState:
    """State of a multi-pattern review session."""
    items: Tuple[ReviewItem, ...]
    started_at: datetime
    exercise_sequence: Tuple[ExerciseType, ...] = REVIEW_EXERCISE_SEQUENCE
    current_pattern_index: int = 0
    current_exercise_index: int = 0
    pattern_results: Tuple[PatternReviewResult, ...] = ()
    current_pattern_results: Tuple[ExerciseResult, ...] = ()

    @property
    def current_step(self) -> ReviewStep:
        if self.current_pattern_index >= len(self.items):
            return SummaryStep()
        return InPatternStep(
            pattern_index=self.current_pattern_index,
            exercise_index=self.current_exercise_index,
            exercise_type=self.exercise_sequence[self.current_exercise_index],
        )

    @property
    def current_item(self) -> Optional[ReviewItem]:
        if self.current_pattern_index >= len(self.items):
            return None
        return self.items[self.current_pattern_index]

    @property
    def is_complete(self) -> bool:
        return isinstance(self.current_step, SummaryStep)

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data for storage."""
        return {
            "items": [item.to_data() for item in self.items],
            "started_at": self.started_at.isoformat(),
            "exercise_sequence": [exercise.value for exercise in self.exercise_sequence],
            "current_pattern_index": self.current_pattern_index,
            "current_exercise_index": self.current_exercise_index,
            "pattern_results": [result.to_data() for result in self.pattern_results],
            "current_pattern_results": [
                result.to_data() for result in self.current_pattern_results
            ],
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "ReviewSessionState":
        """Create a ReviewSessionState from stored data."""
        return cls(
            items=tuple(ReviewItem.from_data(item) for item in data["items"]),
            started_at=ensure_utc(datetime.fromisoformat(data["started_at"])),
            exercise_sequence=tuple(ExerciseType(value) for value in data["exercise_sequence"]),
            current_pattern_index=int(data["current_pattern_index"]),
            current_exercise_index=int(data["current_exercise_index"]),
            pattern_results=tuple(
                PatternReviewResult.from_data(result) for result in data["pattern_results"]
            ),
            current_pattern_results=tuple(
                ExerciseResult.from_data(result) for result in data["current_pattern_results"]
            ),
        )


@dataclass(frozen=True)
class ReviewSummary:
    """Read-only outcome of a finished review session."""
    exercise_results: Tuple[ExerciseResult, ...]
    total_time_ms: int
    correct_count: int
    total_count: int
    accuracy: int
    average_response_time_ms: int
    patterns_reviewed: int
    patterns_passed: int
    patterns_failed: int
    pattern_results: Tuple[PatternReviewResult, ...]
