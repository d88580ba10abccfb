"""Models for exercise-related data structures."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ExerciseType(Enum):
    """Exercise types a pattern can be practiced with."""
    COMPARISON = "comparison"  # Listen to clear and natural audio side by side
    DISCRIMINATION = "discrimination"  # Pick what was heard from options
    DICTATION = "dictation"  # Type what was heard
    SPEED = "speed"  # Listen at increasing playback speeds


class PatternCategory(Enum):
    """Categories of connected speech patterns."""
    WEAK_FORMS = "weak-forms"
    REDUCTIONS = "reductions"
    LINKING = "linking"
    ELISION = "elision"
    ASSIMILATION = "assimilation"
    FLAPPING = "flapping"


# Full exercise pipeline for learning a pattern
PRACTICE_EXERCISE_SEQUENCE = (
    ExerciseType.COMPARISON,
    ExerciseType.DISCRIMINATION,
    ExerciseType.DICTATION,
    ExerciseType.SPEED,
)

# Review assumes the pattern was already taught
REVIEW_EXERCISE_SEQUENCE = (
    ExerciseType.DISCRIMINATION,
    ExerciseType.DICTATION,
)


@dataclass(frozen=True)
class ExerciseResult:
    """Outcome of one exercise, as reported by the exercise UI."""
    exercise_type: ExerciseType
    is_correct: bool
    response_time_ms: int

    def to_data(self) -> Dict[str, Any]:
        """Convert to serializable data."""
        return {
            "exercise_type": self.exercise_type.value,
            "is_correct": self.is_correct,
            "response_time_ms": self.response_time_ms,
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "ExerciseResult":
        """Create an ExerciseResult from stored data."""
        return cls(
            exercise_type=ExerciseType(data["exercise_type"]),
            is_correct=bool(data["is_correct"]),
            response_time_ms=int(data["response_time_ms"]),
        )
