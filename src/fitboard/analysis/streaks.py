"""
Activity streaks: runs of consecutive calendar days with at least one activity.

Days are taken from start_date_local, the athlete's wall-clock time, so a
late-evening run counts for the day it was run on wherever it happened.

The current streak is still alive if the last active day is today or
yesterday; an athlete who has not trained *yet* today keeps yesterday's
streak until the day is over.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Set

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakInfo:
    current: int
    longest: int
    current_start: Optional[date] = None
    longest_start: Optional[date] = None
    longest_end: Optional[date] = None


def _activity_day(activity) -> Optional[date]:
    when = getattr(activity, "start_date_local", None) or getattr(activity, "start_date", None)
    return when.date() if when is not None else None


def active_days(activities: Iterable) -> Set[date]:
    """Distinct calendar days with at least one activity."""
    days = set()
    for activity in activities:
        day = _activity_day(activity)
        if day is not None:
            days.add(day)
    return days


def calculate_streaks(activities: Iterable, today: Optional[date] = None) -> StreakInfo:
    """
    Current and longest streak over a set of activities.

    Args:
        activities: Objects with start_date_local and/or start_date
            (Activity rows in practice). Order does not matter.
        today: Reference date for the current streak. Defaults to the
            server's local date.

    Returns:
        StreakInfo. Start dates are the earliest day of a streak and
        longest_end its latest; all are None when the streak is 0. When
        two runs tie for longest, the most recent one is reported.
    """
    days = active_days(activities)
    if not days:
        return StreakInfo(current=0, longest=0)

    today = today or date.today()

    current = 0
    current_start = None
    anchor = today if today in days else today - ONE_DAY
    while anchor in days:
        current += 1
        current_start = anchor
        anchor -= ONE_DAY

    ordered: List[date] = sorted(days)
    longest, longest_start, longest_end = 0, None, None
    run_start = ordered[0]
    for previous, day in zip(ordered, ordered[1:] + [None]):
        if day is not None and day - previous == ONE_DAY:
            continue
        # previous closes the run that began at run_start
        length = (previous - run_start).days + 1
        if length >= longest:
            longest, longest_start, longest_end = length, run_start, previous
        run_start = day

    return StreakInfo(
        current=current,
        longest=longest,
        current_start=current_start,
        longest_start=longest_start,
        longest_end=longest_end,
    )
