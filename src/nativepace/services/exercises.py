"""Exercise evaluators turning exercise answers into results."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Type, final

from nativepace.models.exercise_models import ExerciseResult, ExerciseType
from nativepace.services.text_similarity import (
    DEFAULT_SIMILARITY_THRESHOLD,
    calculate_similarity,
    is_answer_acceptable,
)

logger = logging.getLogger(__name__)

# Response times outside this window are clamped for statistics
MIN_RESPONSE_TIME_MS = 500
MAX_RESPONSE_TIME_MS = 60000

DEFAULT_SPEED_LEVELS = (0.75, 1.0, 1.25)
NORMAL_SPEED = 1.0


def normalize_response_time(response_time_ms: float) -> int:
    """Clamp a response time into the tracked window."""
    return int(max(MIN_RESPONSE_TIME_MS, min(MAX_RESPONSE_TIME_MS, response_time_ms)))


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


class BaseExercise(ABC):
    """Base class for all exercise evaluators."""

    type: ExerciseType

    @abstractmethod
    def check(self, answer: Any) -> bool:
        """Whether the answer is correct. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    @final
    def evaluate(self, answer: Any, response_time_ms: float) -> ExerciseResult:
        """Check an answer and wrap it into an ExerciseResult."""
        is_correct = self.check(answer)
        logger.debug(f"{self.type.value}: answer {answer!r} correct={is_correct}")
        return ExerciseResult(
            exercise_type=self.type,
            is_correct=is_correct,
            response_time_ms=max(0, int(response_time_ms)),
        )


@dataclass(frozen=True)
class ComparisonAnswer:
    """What the learner played during an audio comparison."""
    listened_clear: bool
    listened_natural: bool
    replay_count: int = 0


class ComparisonExercise(BaseExercise):
    """Clear vs natural audio; passive, done once both were heard."""
    type = ExerciseType.COMPARISON

    def check(self, answer: ComparisonAnswer) -> bool:
        return answer.listened_clear and answer.listened_natural


class DiscriminationExercise(BaseExercise):
    """Pick the phrase that was heard from a list of options."""
    type = ExerciseType.DISCRIMINATION

    def __init__(self, correct_answer: str, options: Sequence[str] = ()):
        self.correct_answer = correct_answer
        self.options = list(options)

    def check(self, answer: Optional[str]) -> bool:
        if not answer:
            return False
        return answer.strip().lower() == self.correct_answer.strip().lower()

    def validate_options(self, min_options: int = 2, max_options: int = 6) -> bool:
        """Whether the exercise offers a sensible number of options."""
        return min_options <= len(self.options) <= max_options


class DictationExercise(BaseExercise):
    """Type what was heard; close enough answers are accepted."""
    type = ExerciseType.DICTATION

    def __init__(
        self,
        correct_answer: str,
        acceptable_answers: Iterable[str] = (),
        threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self.correct_answer = correct_answer
        self.acceptable_answers = list(acceptable_answers)
        self.threshold = threshold

    def check(self, answer: Optional[str]) -> bool:
        return is_answer_acceptable(
            answer or "", self.correct_answer, self.acceptable_answers, self.threshold
        )

    def similarity(self, answer: Optional[str]) -> int:
        """Similarity of the answer to the correct one, 0-100."""
        return calculate_similarity(answer or "", self.correct_answer)


class SpeedExercise(BaseExercise):
    """Listen at increasing speeds and report which ones were understood."""
    type = ExerciseType.SPEED

    def __init__(self, speed_levels: Sequence[float] = DEFAULT_SPEED_LEVELS):
        self.speed_levels = list(speed_levels)

    @staticmethod
    def comfortable_speed(answer: Mapping[float, bool]) -> float:
        """Highest speed marked as understood, 0 if none."""
        understood = [speed for speed, ok in answer.items() if ok]
        return max(understood, default=0)

    def check(self, answer: Mapping[float, bool]) -> bool:
        return self.comfortable_speed(answer) >= NORMAL_SPEED


def get_speed_label(speed: float) -> str:
    """Slow, Normal or Fast."""
    if speed < 0.9:
        return "Slow"
    if speed <= 1.1:
        return "Normal"
    return "Fast"


def get_exercise_classes() -> Dict[ExerciseType, Type[BaseExercise]]:
    """Map every exercise type to its evaluator class."""
    return {
        exercise_class.type: exercise_class
        for exercise_class in get_all_subclasses(BaseExercise)
        if hasattr(exercise_class, "type")
    }

