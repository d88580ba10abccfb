"""Selection of progress records that are due for review.

Works on any record exposing ``next_review_at`` and, for grouping, an optional
``pattern`` with a ``category``. Records loaded from the store fit, and so do
plain objects built in tests.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from nativepace.models.exercise_models import PatternCategory
from nativepace.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DUE_PATTERNS_LIMIT = 20
DEFAULT_NEW_PATTERNS_LIMIT = 5
UNKNOWN_CATEGORY = "unknown"

CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    PatternCategory.WEAK_FORMS.value: "Weak Forms",
    PatternCategory.REDUCTIONS.value: "Reductions",
    PatternCategory.LINKING.value: "Linking",
    PatternCategory.ELISION.value: "Elision",
    PatternCategory.ASSIMILATION.value: "Assimilation",
    PatternCategory.FLAPPING.value: "Flapping",
}


@dataclass(frozen=True)
class CategorySummary:
    """Number of due patterns in one category."""
    category: str
    display_name: str
    count: int


@dataclass(frozen=True)
class DueSummary:
    """Due records plus their per-category breakdown."""
    records: Tuple[Any, ...]
    total_due: int
    categories: Tuple[CategorySummary, ...]

    @property
    def is_empty(self) -> bool:
        return self.total_due == 0


def get_category_display_name(category: Any) -> str:
    """Human-readable name of a category; unknown values are returned as is."""
    key = category_key(category)
    return CATEGORY_DISPLAY_NAMES.get(key, key)


def category_key(category: Any) -> str:
    if category is None:
        return UNKNOWN_CATEGORY
    if isinstance(category, Enum):
        return category.value
    return str(category)


def record_category(record: Any) -> str:
    """Category of the pattern attached to a record."""
    pattern = getattr(record, "pattern", None)
    return category_key(getattr(pattern, "category", None))


def is_pattern_due(next_review_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """A record is due once its review time has come; never-attempted records never are."""
    if next_review_at is None:
        return False
    now = ensure_utc(now) if now is not None else utc_now()
    return ensure_utc(next_review_at) <= now


def filter_due_patterns(records: Iterable[T], now: Optional[datetime] = None) -> List[T]:
    """Records due at ``now``, in input order."""
    now = ensure_utc(now) if now is not None else utc_now()
    return [record for record in records if is_pattern_due(getattr(record, "next_review_at", None), now)]


def group_by_category(records: Iterable[Any]) -> Dict[str, int]:
    """Count records per pattern category."""
    return dict(Counter(record_category(record) for record in records))


def create_review_summary(due_records: Sequence[Any]) -> DueSummary:
    """Summarize due records; categories are sorted by count, largest first."""
    counts = group_by_category(due_records)
    categories = sorted(
        (
            CategorySummary(
                category=category,
                display_name=get_category_display_name(category),
                count=count,
            )
            for category, count in counts.items()
        ),
        key=lambda summary: summary.count,
        reverse=True,
    )
    return DueSummary(
        records=tuple(due_records),
        total_due=len(due_records),
        categories=tuple(categories),
    )


def select_due(records: Iterable[Any], now: Optional[datetime] = None) -> DueSummary:
    """Due subset of ``records`` with its category summary."""
    due = filter_due_patterns(records, now)
    logger.debug(f"{len(due)} records due")
    return create_review_summary(due)


def sort_by_review_date(records: Iterable[T]) -> List[T]:
    """Earliest review first; records without a review date go last."""
    def key(record: Any):
        next_review_at = getattr(record, "next_review_at", None)
        if next_review_at is None:
            return (1, 0.0)
        return (0, ensure_utc(next_review_at).timestamp())

    return sorted(records, key=key)


def filter_unpracticed_patterns(patterns: Iterable[T], practiced_pattern_ids: Iterable[str]) -> List[T]:
    """Patterns the learner has no progress for."""
    practiced = set(practiced_pattern_ids)
    return [pattern for pattern in patterns if getattr(pattern, "id") not in practiced]


def sort_by_order_index(patterns: Iterable[T]) -> List[T]:
    """Patterns in curriculum order."""
    return sorted(patterns, key=lambda pattern: getattr(pattern, "order_index"))


def format_due_count(count: int) -> str:
    """E.g. "No patterns", "1 pattern", "8 patterns"."""
    if count == 0:
        return "No patterns"
    return "1 pattern" if count == 1 else f"{count} patterns"
