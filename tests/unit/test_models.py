"""Tests for Activity and TimeSeries records"""

from datetime import datetime

import pandas as pd
import pytest

from xp_analytics.models import Activity, CourseTransition, TimeSeries, round_half_up
from xp_analytics.taxonomy import ActivityType

DAY = datetime(2026, 1, 5)


class TestActivity:

    def test_derived_percentage_and_success(self, activity_factory):
        activity = activity_factory(DAY, earned=8, base=10)
        assert activity.percentage == 80
        assert activity.is_success

    def test_percentage_rounds_half_up(self, activity_factory):
        assert activity_factory(DAY, earned=1, base=8).percentage == 13

    def test_zero_base_counts_as_full_percentage(self, activity_factory):
        activity = activity_factory(DAY, earned=0, base=0)
        assert activity.percentage == 100
        assert activity.is_success

    def test_below_threshold_is_not_success(self, activity_factory):
        assert not activity_factory(DAY, earned=6, base=10).is_success

    def test_diagnostic_possible_equals_earned(self, activity_factory):
        activity = activity_factory(DAY, type=ActivityType.DIAGNOSTIC, earned=50, base=0)
        assert activity.is_diagnostic
        assert activity.possible_xp == 50

    def test_unset_base_defaults_to_ten_possible(self, activity_factory):
        assert activity_factory(DAY, earned=5, base=0).possible_xp == 10
        assert activity_factory(DAY, earned=5, base=None).possible_xp == 10

    def test_raw_type_is_normalized(self):
        activity = Activity(timestamp=DAY, type="Assessment", earned=5, base=5, title="Quiz 2")
        assert activity.type is ActivityType.QUIZ

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"timestamp": "2026-01-05", "type": ActivityType.LESSON, "earned": 1, "base": 1},
            {"timestamp": None, "type": ActivityType.LESSON, "earned": 1, "base": 1},
            {"timestamp": DAY, "type": None, "earned": 1, "base": 1},
            {"timestamp": DAY, "type": ActivityType.LESSON, "earned": None, "base": 1},
            {"timestamp": pd.NaT, "type": ActivityType.LESSON, "earned": 5, "base": 10},
            {"timestamp": DAY, "type": ActivityType.LESSON, "earned": float("nan"), "base": 10},
            {"timestamp": DAY, "type": ActivityType.LESSON, "earned": 5, "base": float("nan")},
            {"timestamp": DAY, "type": ActivityType.LESSON, "earned": -5, "base": 10},
            {"timestamp": DAY, "type": ActivityType.LESSON, "earned": 5, "base": -1},
            {"timestamp": DAY, "type": "", "earned": 5, "base": 10},
            {"timestamp": DAY, "type": "   ", "earned": 5, "base": 10},
        ],
    )
    def test_incomplete_records_are_not_constructible(self, kwargs):
        with pytest.raises(ValueError):
            Activity(**kwargs)

    def test_raw_text_is_not_part_of_equality(self):
        a = Activity(timestamp=DAY, type=ActivityType.LESSON, earned=1, base=1, raw_text="x")
        b = Activity(timestamp=DAY, type=ActivityType.LESSON, earned=1, base=1, raw_text="y")
        assert a == b


class TestTimeSeries:

    def test_to_dict(self):
        series = TimeSeries(
            labels=["2026-01-05", "2026-01-06"],
            values=[5, 12],
            transitions={"2026-01-06": CourseTransition("MF I", "MF II")},
        )
        assert series.to_dict() == {
            "labels": ["2026-01-05", "2026-01-06"],
            "values": [5, 12],
            "transitions": {"2026-01-06": {"from": "MF I", "to": "MF II"}},
        }

    def test_misaligned_series_rejected(self):
        with pytest.raises(ValueError):
            TimeSeries(labels=["2026-01-05"], values=[])


@pytest.mark.parametrize(
    "value, digits, expected",
    [(12.5, 0, 13), (12.49, 0, 12), (95.145, 1, 95.1), (87.25, 1, 87.3), (0, 0, 0)],
)
def test_round_half_up(value, digits, expected):
    assert round_half_up(value, digits) == pytest.approx(expected)
