"""Tests for the statistics calculator"""

from datetime import date, datetime

import pytest

from xp_analytics.calculator import (
    StatisticsCalculator,
    compute_snapshot,
    filter_by_period,
    format_hour,
    period_start,
)
from xp_analytics.log_parser import parse
from xp_analytics.models import Activity, StatisticsSnapshot
from xp_analytics.taxonomy import ActivityType


@pytest.fixture
def sample_snapshot(sample_log):
    return compute_snapshot(parse(sample_log), today=date(2025, 10, 20))


class TestComputeSnapshot:

    def test_totals(self, sample_snapshot):
        assert sample_snapshot.total_xp == 98
        assert sample_snapshot.total_activities == 4
        assert sample_snapshot.avg_xp_per_day == 49
        assert sample_snapshot.activity_counts == {
            "diagnostics": 1, "lessons": 1, "reviews": 1, "multisteps": 0, "quizzes": 1,
        }

    def test_success_metrics(self, sample_snapshot):
        metrics = sample_snapshot.success_metrics
        assert (metrics.perfect_count, metrics.pass_count, metrics.fail_count) == (1, 3, 0)
        assert (metrics.total_earned, metrics.total_possible) == (98, 103)
        assert metrics.success_rate == pytest.approx(95.1)

    def test_daily_stats_and_transition(self, sample_snapshot):
        days = sample_snapshot.daily_stats
        assert [(d.date, d.xp) for d in days] == [("2025-10-15", 15), ("2025-10-16", 83)]
        assert days[1].course_transition
        assert days[1].transition_from == "Mathematical Foundations II"
        assert days[1].transition_to == "Mathematical Foundations III"

    def test_best_performance(self, sample_snapshot):
        best = sample_snapshot.best_performance
        assert (best.best_day_xp, best.best_day_date) == (83, "2025-10-16")
        # diagnostics are left out of accuracy
        assert best.best_accuracy == pytest.approx(100.0)
        assert best.best_accuracy_date == "2025-10-16"

    def test_weekday_and_hour(self, sample_snapshot):
        weekdays = sample_snapshot.weekday_stats
        assert weekdays.best_weekday == "Thursday"
        assert weekdays.best_weekday_avg == 28
        assert weekdays.xp[3] == 15 and weekdays.xp[4] == 83
        assert weekdays.count[4] == 3

        hours = sample_snapshot.time_analysis
        assert hours.most_productive_hour == "12:00 AM"
        assert hours.max_hourly_xp == 98
        assert len(hours.hourly_xp) == 24

    def test_last_14_days(self, sample_snapshot):
        points = sample_snapshot.last_14_days
        assert len(points) == 14
        assert points[0].date == "2025-10-07"
        assert points[-1].date == "2025-10-20"
        by_date = {p.date: p for p in points}
        assert (by_date["2025-10-16"].xp, by_date["2025-10-16"].count) == (83, 3)
        assert by_date["2025-10-16"].label == "10/16"
        assert by_date["2025-10-14"].xp == 0

    def test_empty_snapshot(self):
        snapshot = compute_snapshot([])
        assert snapshot == StatisticsSnapshot()
        assert snapshot.is_empty
        assert snapshot.success_metrics.success_rate == 0
        assert snapshot.total_xp == 0
        assert snapshot.daily_stats == ()
        assert set(snapshot.activity_counts) == {
            "diagnostics", "lessons", "reviews", "multisteps", "quizzes",
        }

    def test_is_idempotent(self, sample_log):
        activities = parse(sample_log)
        first = compute_snapshot(activities, today=date(2025, 10, 20))
        second = compute_snapshot(list(reversed(activities)), today=date(2025, 10, 20))
        assert first.to_dict() == second.to_dict()

    def test_partition_covers_every_activity(self, activity_factory):
        day = datetime(2026, 1, 5)
        activities = [
            activity_factory(day, earned=12, base=10),
            activity_factory(day, earned=7, base=10),
            activity_factory(day, earned=0, base=10),
            activity_factory(day, type=ActivityType.DIAGNOSTIC, earned=0, base=0),
            activity_factory(day, type=ActivityType.DIAGNOSTIC, earned=40, base=0),
        ]
        metrics = compute_snapshot(activities).success_metrics
        assert (metrics.perfect_count, metrics.pass_count, metrics.fail_count) == (1, 2, 2)
        assert metrics.perfect_count + metrics.pass_count + metrics.fail_count == len(activities)

    def test_unclassified_records_are_counted_but_not_categorized(self):
        activity = Activity(timestamp=datetime(2026, 1, 5), type="Practice Test", earned=5, base=10)
        snapshot = compute_snapshot([activity])
        assert snapshot.total_activities == 1
        assert snapshot.total_xp == 5
        assert sum(snapshot.activity_counts.values()) == 0

    def test_weekday_tie_goes_to_earliest_from_sunday(self, activity_factory):
        snapshot = compute_snapshot([
            activity_factory(datetime(2026, 1, 5), earned=10),  # Monday
            activity_factory(datetime(2026, 1, 4), earned=10),  # Sunday
        ])
        assert snapshot.weekday_stats.best_weekday == "Sunday"

    def test_zero_xp_has_no_best_weekday(self, activity_factory):
        snapshot = compute_snapshot([activity_factory(datetime(2026, 1, 5), earned=0)])
        assert snapshot.weekday_stats.best_weekday == ""
        assert snapshot.weekday_stats.best_weekday_avg == 0

    def test_to_dict_leaves_out_activities(self, sample_snapshot):
        payload = sample_snapshot.to_dict()
        assert "activities" not in payload
        assert payload["success_metrics"]["success_rate"] == pytest.approx(95.1)


@pytest.mark.parametrize(
    "hour, expected",
    [(0, "12:00 AM"), (9, "9:00 AM"), (12, "12:00 PM"), (13, "1:00 PM"), (23, "11:00 PM")],
)
def test_format_hour(hour, expected):
    assert format_hour(hour) == expected


class TestPeriodFilter:
    NOW = datetime(2026, 1, 10, 12)

    @pytest.fixture
    def activities(self, activity_factory):
        return [
            activity_factory(datetime(2026, 1, 10), hour=9),
            activity_factory(datetime(2026, 1, 5)),
            activity_factory(datetime(2025, 12, 20)),
        ]

    @pytest.mark.parametrize(
        "period, expected", [("today", 1), ("week", 2), ("month", 2), ("all", 3), ("bogus", 3)]
    )
    def test_filter_by_period(self, activities, period, expected):
        assert len(filter_by_period(activities, period, now=self.NOW)) == expected

    def test_period_start(self):
        assert period_start("today", self.NOW) == datetime(2026, 1, 10)
        assert period_start("month", self.NOW) == datetime(2026, 1, 1)
        assert period_start("all", self.NOW) is None


class TestStatisticsCalculator:

    def test_filtered_calculator(self, activity_factory):
        calc = StatisticsCalculator([
            activity_factory(datetime(2026, 1, 10), earned=4),
            activity_factory(datetime(2025, 12, 20), earned=9),
        ])
        scoped = calc.filter_by_period("today", now=datetime(2026, 1, 10, 18))
        assert scoped.calculate_stats().total_xp == 4
        assert calc.calculate_stats().total_xp == 13

    def test_set_data_and_active_dates(self, activity_factory):
        calc = StatisticsCalculator()
        assert calc.calculate_stats().is_empty
        calc.set_data([
            activity_factory(datetime(2026, 1, 6)),
            activity_factory(datetime(2026, 1, 5)),
            activity_factory(datetime(2026, 1, 5), hour=4),
        ])
        assert calc.active_dates() == ["2026-01-05", "2026-01-06"]
        assert [d.count for d in calc.daily_stats()] == [2, 1]
