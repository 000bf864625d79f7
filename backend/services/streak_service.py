"""
Streak Service — consecutive-day streaks over an activity history.

Pure functions only: callers load the activity dates (see
db.repositories.ActivityRepository) and hand them in.  The same input set
always produces the same result regardless of order or duplicates.

Seeding policy for the current streak: the most recent activity day anchors
the streak when it is today or at most STREAK_GRACE_DAYS before today
(default 1 → "yesterday still counts until today's entry is logged").
Anything older means the streak is broken and the current streak is 0.
"""
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

logger = logging.getLogger("vitalog.streaks")

STREAK_GRACE_DAYS = max(0, int(os.environ.get("STREAK_GRACE_DAYS", "1")))

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class StreakResult:
    current_streak: int = 0
    longest_streak: int = 0


def _to_date(value: DateLike) -> Optional[date]:
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def normalize_dates(dates: Iterable[DateLike]) -> list[date]:
    """
    Collapse an activity history into distinct calendar days, most recent first.
    Values that can't be read as a date are dropped.
    """
    days: set[date] = set()
    for value in dates:
        day = _to_date(value)
        if day is None:
            logger.debug("Skipping unparseable activity date %r", value)
            continue
        days.add(day)
    return sorted(days, reverse=True)


def current_streak(days: list[date], today: date, grace_days: int = STREAK_GRACE_DAYS) -> int:
    """Length of the run of consecutive days ending at the most recent activity.

    `days` must be distinct and sorted descending (see normalize_dates).
    Days after `today` are ignored.
    """
    grace_days = max(0, grace_days)
    past = [d for d in days if d <= today]
    if not past:
        return 0
    if (today - past[0]).days > grace_days:
        return 0

    streak = 0
    expected = past[0]
    for day in past:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


def longest_streak(days: list[date]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    if not days:
        return 0

    longest = 0
    run = 1
    for prev, curr in zip(days, days[1:]):
        if (prev - curr).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    return max(longest, run)


def compute_streaks(
    dates: Iterable[DateLike],
    today: Optional[date] = None,
    grace_days: int = STREAK_GRACE_DAYS,
) -> StreakResult:
    today = today or date.today()
    # Future-dated entries are not history yet
    days = [d for d in normalize_dates(dates) if d <= today]
    if not days:
        return StreakResult(0, 0)

    return StreakResult(
        current_streak=current_streak(days, today, grace_days),
        longest_streak=longest_streak(days),
    )
