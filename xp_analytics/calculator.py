"""
XP Activity Analytics - Statistics Calculator
Reduces a list of parsed activities to a single StatisticsSnapshot.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from xp_analytics.aggregator import activities_frame, group_by_day, local_date_key, local_naive, sort_by_time
from xp_analytics.models import (
    Activity,
    BestPerformance,
    DailyAggregate,
    DayPoint,
    StatisticsSnapshot,
    SuccessMetrics,
    TimeAnalysis,
    WeekdayStats,
    round_half_up,
)
from xp_analytics.taxonomy import ActivityType, classify

logger = logging.getLogger(__name__)


WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
PERIODS = ("all", "today", "week", "month")
RECENT_DAYS = 14

DateLike = Union[date, datetime, None]


def as_date(value: DateLike) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def format_hour(hour: int) -> str:
    """13 -> '1:00 PM'"""
    ampm = "PM" if hour >= 12 else "AM"
    display = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display}:00 {ampm}"


# ─────────────────────────────────────────────
# REDUCTIONS
# ─────────────────────────────────────────────

def activity_counts(activities: Sequence[Activity]) -> Dict[str, int]:
    """Counts per category; unclassified records are left out."""
    counts = {t.plural: 0 for t in ActivityType.counted()}
    for a in activities:
        category = classify(a.type, a.title)
        if category is not ActivityType.UNCLASSIFIED:
            counts[category.plural] += 1
    return counts


def success_metrics(activities: Sequence[Activity]) -> SuccessMetrics:
    """
    Perfect / pass / fail partition plus the XP attainment rate.

    Diagnostics have no target: they pass whenever they earned anything and
    count their earned XP as possible XP.
    """
    perfect = passed = failed = 0
    total_earned = total_possible = 0
    for a in activities:
        if a.is_diagnostic:
            if a.earned > 0:
                passed += 1
            else:
                failed += 1
        elif a.earned > a.base:
            perfect += 1
        elif 0 < a.earned <= a.base:
            passed += 1
        else:
            failed += 1
        total_earned += a.earned
        total_possible += a.possible_xp

    rate = round_half_up(total_earned / total_possible * 100, 1) if total_possible > 0 else 0
    return SuccessMetrics(
        perfect_count=perfect,
        pass_count=passed,
        fail_count=failed,
        success_rate=rate,
        total_earned=total_earned,
        total_possible=total_possible,
    )


def weekday_stats(df: pd.DataFrame) -> WeekdayStats:
    per_day = df.groupby("weekday")["earned"].agg(["sum", "count"]).reindex(range(7), fill_value=0)
    xp = per_day["sum"].to_numpy(dtype=float)
    count = per_day["count"].to_numpy(dtype=int)
    avg = np.divide(xp, count, out=np.zeros(7), where=count > 0)
    # argmax keeps the first maximum, so ties go to the earliest weekday from Sunday
    best = int(np.argmax(avg))
    best_name = WEEKDAY_NAMES[best] if avg[best] > 0 else ""
    return WeekdayStats(
        xp=tuple(per_day["sum"].tolist()),
        count=tuple(int(c) for c in count),
        best_weekday=best_name,
        best_weekday_avg=round_half_up(avg[best]) if best_name else 0,
    )


def time_analysis(df: pd.DataFrame) -> TimeAnalysis:
    per_hour = df.groupby("hour")["earned"].agg(["sum", "count"]).reindex(range(24), fill_value=0)
    hourly_xp = per_hour["sum"].to_numpy(dtype=float)
    peak = int(np.argmax(hourly_xp))
    return TimeAnalysis(
        hourly_xp=tuple(per_hour["sum"].tolist()),
        hourly_count=tuple(int(c) for c in per_hour["count"].tolist()),
        most_productive_hour=format_hour(peak),
        max_hourly_xp=per_hour["sum"].tolist()[peak] if hourly_xp[peak] > 0 else 0,
    )


def best_performance(daily: Sequence[DailyAggregate]) -> BestPerformance:
    """Best day by XP and best day by accuracy (diagnostics excluded)."""
    best_xp, best_xp_date = 0, ""
    best_accuracy, best_accuracy_date = 0.0, ""
    for day in daily:
        if day.xp > best_xp:
            best_xp, best_xp_date = day.xp, day.date
        if day.graded_possible > 0:
            accuracy = day.graded_earned / day.graded_possible * 100
            if accuracy > best_accuracy:
                best_accuracy, best_accuracy_date = accuracy, day.date
    return BestPerformance(
        best_day_xp=best_xp,
        best_day_date=best_xp_date,
        best_accuracy=round_half_up(best_accuracy, 1),
        best_accuracy_date=best_accuracy_date,
    )


def recent_days(daily: Sequence[DailyAggregate], today: DateLike = None,
                days: int = RECENT_DAYS) -> Tuple[DayPoint, ...]:
    """The last `days` calendar days ending today, zero-filled."""
    lookup = {d.date: d for d in daily}
    end = as_date(today)
    points = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        key = day.strftime("%Y-%m-%d")
        agg = lookup.get(key)
        points.append(DayPoint(
            date=key,
            label=f"{day.month}/{day.day}",
            xp=agg.xp if agg else 0,
            count=agg.count if agg else 0,
        ))
    return tuple(points)


def compute_snapshot(activities: Sequence[Activity], today: DateLike = None) -> StatisticsSnapshot:
    """All statistics for the activities in scope. Empty input gives a zeroed snapshot."""
    activities = sort_by_time(activities or [])
    if not activities:
        return StatisticsSnapshot()

    daily = group_by_day(activities)
    df = activities_frame(activities)
    total_xp = sum(a.earned for a in activities)

    snapshot = StatisticsSnapshot(
        activities=tuple(activities),
        total_xp=total_xp,
        total_activities=len(activities),
        activity_counts=activity_counts(activities),
        success_metrics=success_metrics(activities),
        avg_xp_per_day=round_half_up(total_xp / len(daily)) if daily else 0,
        daily_stats=tuple(daily),
        weekday_stats=weekday_stats(df),
        best_performance=best_performance(daily),
        last_14_days=recent_days(daily, today),
        time_analysis=time_analysis(df),
    )
    logger.debug(
        f"Snapshot: {snapshot.total_activities} activities, {snapshot.total_xp} XP over {len(daily)} days"
    )
    return snapshot


# ─────────────────────────────────────────────
# PERIOD FILTER
# ─────────────────────────────────────────────

def period_start(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of the reporting period, or None for 'all'."""
    now = local_naive(now or datetime.now())
    if period == "today":
        return datetime(now.year, now.month, now.day)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return datetime(now.year, now.month, 1)
    if period != "all":
        logger.debug(f"Unknown period {period!r}, using all activities")
    return None


def filter_by_period(activities: Sequence[Activity], period: str,
                     now: Optional[datetime] = None) -> List[Activity]:
    start = period_start(period, now)
    if start is None:
        return list(activities)
    return [a for a in activities if local_naive(a.timestamp) >= start]


class StatisticsCalculator:
    """
    Holds the activities currently in scope.
    Every call recomputes from the activity list; nothing is cached here.
    """

    def __init__(self, activities: Optional[Sequence[Activity]] = None, today: DateLike = None):
        self.activities: List[Activity] = sort_by_time(activities or [])
        self.today = today

    def set_data(self, activities: Sequence[Activity]) -> None:
        self.activities = sort_by_time(activities or [])

    def calculate_stats(self) -> StatisticsSnapshot:
        return compute_snapshot(self.activities, self.today)

    def daily_stats(self) -> List[DailyAggregate]:
        return group_by_day(self.activities)

    def active_dates(self) -> List[str]:
        return sorted({local_date_key(a.timestamp) for a in self.activities})

    def filter_by_period(self, period: str, now: Optional[datetime] = None) -> "StatisticsCalculator":
        return StatisticsCalculator(filter_by_period(self.activities, period, now), self.today)
