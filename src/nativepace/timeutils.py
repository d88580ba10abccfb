"""Timezone helpers shared by the engine and the store."""
from datetime import UTC, datetime
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are taken to be UTC already.

    SQLite hands timestamps back without tzinfo even for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds from start to end, never negative."""
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0, int(delta.total_seconds() * 1000))
