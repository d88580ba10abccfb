"""Tests for due-pattern selection."""
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Optional

from nativepace.models.exercise_models import PatternCategory
from nativepace.services.review_queue import (
    UNKNOWN_CATEGORY,
    create_review_summary,
    filter_due_patterns,
    filter_unpracticed_patterns,
    format_due_count,
    get_category_display_name,
    group_by_category,
    is_pattern_due,
    select_due,
    sort_by_order_index,
    sort_by_review_date,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


def make_record(pattern_id: str, next_review_at: Optional[datetime], category=PatternCategory.LINKING):
    pattern = SimpleNamespace(id=pattern_id, category=category) if category is not None else None
    return SimpleNamespace(pattern_id=pattern_id, next_review_at=next_review_at, pattern=pattern)


def test_is_pattern_due() -> None:
    """Test due boundaries."""
    assert is_pattern_due(NOW - timedelta(days=1), NOW)
    assert is_pattern_due(NOW, NOW)
    assert not is_pattern_due(NOW + timedelta(seconds=1), NOW)
    assert not is_pattern_due(None, NOW)


def test_is_pattern_due_naive_timestamp() -> None:
    """Test that naive timestamps from the store are read as UTC."""
    assert is_pattern_due(datetime(2024, 3, 10, 11, 59), NOW)
    assert not is_pattern_due(datetime(2024, 3, 10, 12, 1), NOW)


def test_filter_due_keeps_input_order() -> None:
    """Test that due records are returned in input order."""
    records = [
        make_record("c", NOW - timedelta(hours=1)),
        make_record("never", None),
        make_record("a", NOW - timedelta(days=3)),
        make_record("future", NOW + timedelta(days=2)),
        make_record("b", NOW),
    ]
    due = filter_due_patterns(records, NOW)
    assert [record.pattern_id for record in due] == ["c", "a", "b"]


def test_due_subset_excludes_future_and_never_attempted() -> None:
    """Test that every returned record is due and none is missing."""
    records = [make_record(str(i), NOW + timedelta(hours=i - 5)) for i in range(10)]
    records.append(make_record("new", None))
    due = filter_due_patterns(records, NOW)
    assert all(record.next_review_at <= NOW for record in due)
    assert len(due) == 6


def test_group_by_category() -> None:
    """Test counts per category, with unknown for records without pattern."""
    records = [
        make_record("a", NOW, PatternCategory.LINKING),
        make_record("b", NOW, PatternCategory.LINKING),
        make_record("c", NOW, PatternCategory.FLAPPING),
        make_record("d", NOW, None),
    ]
    assert group_by_category(records) == {"linking": 2, "flapping": 1, UNKNOWN_CATEGORY: 1}


def test_create_review_summary() -> None:
    """Test totals and category order."""
    records = [
        make_record("a", NOW, PatternCategory.ELISION),
        make_record("b", NOW, PatternCategory.WEAK_FORMS),
        make_record("c", NOW, PatternCategory.WEAK_FORMS),
    ]
    summary = create_review_summary(records)

    assert summary.total_due == 3
    assert not summary.is_empty
    assert summary.categories[0].category == "weak-forms"
    assert summary.categories[0].display_name == "Weak Forms"
    assert summary.categories[0].count == 2
    assert summary.categories[1].display_name == "Elision"


def test_select_due_empty() -> None:
    """Test that nothing due gives an empty summary."""
    summary = select_due([make_record("a", NOW + timedelta(days=1)), make_record("b", None)], NOW)
    assert summary.is_empty
    assert summary.total_due == 0
    assert summary.categories == ()


def test_sort_by_review_date() -> None:
    """Test earliest first with unscheduled records last."""
    records = [
        make_record("late", NOW),
        make_record("never", None),
        make_record("early", NOW - timedelta(days=2)),
    ]
    assert [record.pattern_id for record in sort_by_review_date(records)] == ["early", "late", "never"]


def test_unpracticed_patterns_in_order() -> None:
    """Test curriculum helpers."""
    patterns = [
        SimpleNamespace(id="c", order_index=3),
        SimpleNamespace(id="a", order_index=1),
        SimpleNamespace(id="b", order_index=2),
    ]
    unpracticed = filter_unpracticed_patterns(patterns, {"a"})
    assert [pattern.id for pattern in sort_by_order_index(unpracticed)] == ["b", "c"]


def test_display_helpers() -> None:
    """Test category names and due count text."""
    assert get_category_display_name(PatternCategory.ASSIMILATION) == "Assimilation"
    assert get_category_display_name("reductions") == "Reductions"
    assert get_category_display_name("custom") == "custom"
    assert format_due_count(0) == "No patterns"
    assert format_due_count(1) == "1 pattern"
    assert format_due_count(8) == "8 patterns"
