"""Tests for activity streak calculation."""
from datetime import date, datetime, timedelta

import pytest

from fitboard.analysis.streaks import StreakInfo, active_days, calculate_streaks
from fitboard.models.activity import Activity

TODAY = date(2025, 6, 15)


def run_on(day: date, hour: int = 7, activity_id: int = 0) -> Activity:
    local = datetime(day.year, day.month, day.day, hour, 0)
    return Activity(
        id=activity_id or int(local.timestamp()),
        name="Run",
        start_date=local + timedelta(hours=7),
        start_date_local=local,
        distance=5000.0,
        moving_time=1800,
    )


def days_ago(*offsets: int):
    return [run_on(TODAY - timedelta(days=n)) for n in offsets]


class TestCurrentStreak:
    def test_empty_input(self):
        assert calculate_streaks([], today=TODAY) == StreakInfo(current=0, longest=0)

    def test_streak_ending_today(self):
        info = calculate_streaks(days_ago(0, 1, 2), today=TODAY)
        assert info.current == 3
        assert info.current_start == TODAY - timedelta(days=2)

    def test_streak_ending_yesterday_still_counts(self):
        info = calculate_streaks(days_ago(1, 2, 3, 4), today=TODAY)
        assert info.current == 4
        assert info.current_start == TODAY - timedelta(days=4)

    def test_streak_broken_two_days_ago(self):
        info = calculate_streaks(days_ago(2, 3, 4), today=TODAY)
        assert info.current == 0
        assert info.current_start is None
        assert info.longest == 3

    def test_gap_ends_current_streak(self):
        info = calculate_streaks(days_ago(0, 1, 3, 4, 5), today=TODAY)
        assert info.current == 2

    def test_multiple_activities_same_day_count_once(self):
        activities = [run_on(TODAY, hour=6, activity_id=1), run_on(TODAY, hour=18, activity_id=2)]
        info = calculate_streaks(activities, today=TODAY)
        assert info.current == 1
        assert info.longest == 1

    def test_uses_local_date_not_utc(self):
        # 23:30 local is already the next day in UTC
        late = Activity(
            id=1,
            name="Late run",
            start_date=datetime(2025, 6, 15, 6, 30),
            start_date_local=datetime(2025, 6, 14, 23, 30),
        )
        assert active_days([late]) == {date(2025, 6, 14)}

    def test_falls_back_to_start_date(self):
        activity = Activity(id=1, name="Run", start_date=datetime(2025, 6, 15, 7, 0))
        assert active_days([activity]) == {TODAY}

    def test_defaults_to_today(self):
        info = calculate_streaks([run_on(date.today())])
        assert info.current == 1


class TestLongestStreak:
    def test_longest_of_two_runs(self):
        info = calculate_streaks(days_ago(0, 1, 2, 3, 4, 10, 11, 12), today=TODAY)
        assert info.longest == 5
        assert info.longest_start == TODAY - timedelta(days=4)
        assert info.longest_end == TODAY

    def test_older_run_can_be_longest(self):
        info = calculate_streaks(days_ago(0, 10, 11, 12, 13), today=TODAY)
        assert info.current == 1
        assert info.longest == 4
        assert info.longest_start == TODAY - timedelta(days=13)
        assert info.longest_end == TODAY - timedelta(days=10)

    def test_tie_reports_most_recent_run(self):
        info = calculate_streaks(days_ago(3, 4, 10, 11), today=TODAY)
        assert info.longest == 2
        assert info.longest_end == TODAY - timedelta(days=3)

    def test_single_day(self):
        info = calculate_streaks(days_ago(30), today=TODAY)
        assert info.longest == 1
        assert info.longest_start == info.longest_end == TODAY - timedelta(days=30)

    def test_month_boundary(self):
        activities = [run_on(date(2025, 2, 27)), run_on(date(2025, 2, 28)), run_on(date(2025, 3, 1))]
        info = calculate_streaks(activities, today=date(2025, 3, 1))
        assert info.current == 3
        assert info.longest == 3

    @pytest.mark.parametrize("offsets", [(0, 1, 2), (5, 6), (1,)])
    def test_longest_never_below_current(self, offsets):
        info = calculate_streaks(days_ago(*offsets), today=TODAY)
        assert info.longest >= info.current

    def test_order_independent(self):
        activities = days_ago(0, 1, 2, 7, 8)
        assert calculate_streaks(activities, today=TODAY) == calculate_streaks(
            list(reversed(activities)), today=TODAY
        )
