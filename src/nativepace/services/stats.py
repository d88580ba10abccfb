"""Learner statistics computed from progress records and session logs."""
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from nativepace.models.exercise_models import PatternCategory
from nativepace.services.mastery import is_pattern_learned
from nativepace.services.review_queue import category_key, is_pattern_due, sort_by_order_index
from nativepace.services.text_similarity import round_half_up
from nativepace.timeutils import ensure_utc, utc_now


def calculate_patterns_learned(records: Iterable[Any]) -> int:
    """Number of records whose mastery counts as learned."""
    return sum(1 for record in records if is_pattern_learned(record.mastery_score or 0))


def calculate_average_accuracy(records: Iterable[Any]) -> int:
    """Total correct over total practiced, as a percentage; 0 without practice."""
    total_practiced = 0
    total_correct = 0
    for record in records:
        total_practiced += record.times_practiced or 0
        total_correct += record.times_correct or 0

    if total_practiced == 0:
        return 0
    return round_half_up(total_correct / total_practiced * 100)


def calculate_mastery_by_category(records: Iterable[Any], patterns: Iterable[Any]) -> Dict[str, int]:
    """Average mastery per category over all patterns; unpracticed patterns count as 0."""
    mastery_by_pattern = {record.pattern_id: record.mastery_score or 0 for record in records}

    scores: Dict[str, list] = {}
    for pattern in patterns:
        scores.setdefault(category_key(pattern.category), []).append(
            mastery_by_pattern.get(pattern.id, 0)
        )

    result = {category.value: 0 for category in PatternCategory}
    for category, values in scores.items():
        result[category] = round_half_up(sum(values) / len(values))
    return result


def calculate_total_practice_minutes(sessions: Iterable[Any]) -> int:
    """Minutes spent in finished sessions; sessions without an end are skipped."""
    total_seconds = 0.0
    for session in sessions:
        if session.ended_at is None:
            continue
        duration = ensure_utc(session.ended_at) - ensure_utc(session.started_at)
        total_seconds += duration.total_seconds()
    return round_half_up(total_seconds / 60)


def calculate_completion_percentage(patterns: Sequence[Any], progress_by_pattern: Mapping[str, Any]) -> int:
    """Share of ``patterns`` already learned, 0-100, rounded half up."""
    if not patterns:
        return 0
    learned = sum(
        1 for pattern in patterns if _is_learned(progress_by_pattern.get(pattern.id))
    )
    return round_half_up(learned / len(patterns) * 100)


def find_next_unlearned_pattern(patterns: Iterable[Any], progress_by_pattern: Mapping[str, Any]) -> Optional[Any]:
    """First pattern in curriculum order that is not learned yet."""
    for pattern in sort_by_order_index(patterns):
        if not _is_learned(progress_by_pattern.get(pattern.id)):
            return pattern
    return None


def get_next_recommended_pattern(records: Sequence[Any], now: Optional[datetime] = None) -> Optional[str]:
    """Pattern id to practice next.

    Earliest due record first, then the lowest mastery below the learned
    threshold, then the least practiced one.
    """
    if not records:
        return None
    now = ensure_utc(now) if now is not None else utc_now()

    due = [record for record in records if is_pattern_due(record.next_review_at, now)]
    if due:
        return min(due, key=lambda record: ensure_utc(record.next_review_at)).pattern_id

    weak = [record for record in records if not is_pattern_learned(record.mastery_score or 0)]
    if weak:
        return min(weak, key=lambda record: record.mastery_score or 0).pattern_id

    return min(records, key=lambda record: record.times_practiced or 0).pattern_id


def _is_learned(record: Optional[Any]) -> bool:
    return record is not None and is_pattern_learned(record.mastery_score or 0)
