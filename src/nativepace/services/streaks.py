"""Daily practice streaks.

A streak counts consecutive UTC days with at least one finished session.
Practicing again on the same day leaves it unchanged; skipping a whole day
starts it over at 1.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from nativepace.timeutils import ensure_utc, utc_now

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class StreakUpdate:
    """New streak values after a finished session."""
    current: int
    longest: int
    practice_date: date
    continued: bool
    broken: bool
    is_new_record: bool


def to_day(value: DateLike) -> date:
    """UTC calendar day of a date or timestamp."""
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def days_between(first: DateLike, second: DateLike) -> int:
    """Whole days from ``first`` to ``second``, negative if ``second`` is earlier."""
    return (to_day(second) - to_day(first)).days


def has_practiced_today(last_practice_date: Optional[DateLike], now: Optional[DateLike] = None) -> bool:
    if last_practice_date is None:
        return False
    return days_between(last_practice_date, now if now is not None else utc_now()) == 0


def calculate_streak_update(
    current: int,
    longest: int,
    last_practice_date: Optional[DateLike],
    practice_date: Optional[DateLike] = None,
) -> StreakUpdate:
    """Streak values after practicing on ``practice_date``."""
    day = to_day(practice_date if practice_date is not None else utc_now())

    if has_practiced_today(last_practice_date, day):
        return StreakUpdate(
            current=current,
            longest=longest,
            practice_date=day,
            continued=True,
            broken=False,
            is_new_record=False,
        )

    if last_practice_date is not None and days_between(last_practice_date, day) == 1:
        new_current = current + 1
        continued = True
        broken = False
    else:
        new_current = 1
        continued = False
        broken = current > 0 and last_practice_date is not None

    return StreakUpdate(
        current=new_current,
        longest=max(longest, new_current),
        practice_date=day,
        continued=continued,
        broken=broken,
        is_new_record=new_current > longest,
    )


def format_streak_text(streak: int) -> str:
    if streak == 0:
        return "No streak"
    if streak == 1:
        return "1 day streak"
    return f"{streak} day streak"


def get_streak_motivation_message(current: int, is_new_record: bool) -> str:
    """Short encouragement for the streak a learner just reached."""
    if is_new_record and current > 1:
        return "New personal best! Keep it up!"
    if current >= 30:
        return "Incredible dedication! A month of practice!"
    if current >= 14:
        return "Two weeks strong! Amazing consistency!"
    if current >= 7:
        return "One week streak! Great commitment!"
    if current >= 3:
        return "Building momentum! Keep going!"
    if current == 1:
        return "Great start! Come back tomorrow!"
    return "Start your streak today!"
