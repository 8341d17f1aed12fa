"""
Chart-ready time series built from a StatisticsSnapshot.

Full-range series cover every calendar day between the first and last active
day (missing days count as zero). Rolling series are evaluated on active days
only. Week series always cover today-6 .. today.
"""

import logging
from datetime import timedelta
from typing import Callable, Dict, List, Optional

import pandas as pd

from xp_analytics.calculator import DateLike, as_date
from xp_analytics.models import CourseTransition, DailyAggregate, StatisticsSnapshot, TimeSeries, round_half_up

logger = logging.getLogger(__name__)

ROLLING_WINDOW = 7
WEEK_DAYS = 7
# Empty days in the week attainment chart are drawn at target, not as failures
EMPTY_DAY_ATTAINMENT = 100


def _plain(values) -> List:
    return [v.item() if hasattr(v, "item") else v for v in values]


class SeriesBuilder:

    METRICS = ("xp", "activities", "avg_xp", "success_rate")

    def __init__(self, snapshot: StatisticsSnapshot):
        self.snapshot = snapshot
        self.daily: List[DailyAggregate] = list(snapshot.daily_stats)

    def _transitions(self, labels: List[str]) -> Dict[str, CourseTransition]:
        in_range = set(labels)
        return {
            d.date: d.transition
            for d in self.daily
            if d.course_transition and d.date in in_range
        }

    def _series(self, labels: List[str], values: List) -> TimeSeries:
        return TimeSeries(labels=labels, values=_plain(values), transitions=self._transitions(labels))

    # ─────────────────────────────────────────────
    # FULL RANGE
    # ─────────────────────────────────────────────

    def _zero_filled(self, field: str) -> pd.Series:
        per_day = pd.Series(
            [getattr(d, field) for d in self.daily],
            index=pd.to_datetime([d.date for d in self.daily]),
        )
        full_range = pd.date_range(per_day.index.min(), per_day.index.max(), freq="D")
        return per_day.reindex(full_range, fill_value=0)

    def _cumulative(self, field: str) -> TimeSeries:
        if not self.daily:
            return TimeSeries()
        cumulative = self._zero_filled(field).cumsum()
        labels = [d.strftime("%Y-%m-%d") for d in cumulative.index]
        logger.debug(f"Zero-filled {field} series over {len(labels)} days")
        return self._series(labels, cumulative.tolist())

    def cumulative_xp(self) -> TimeSeries:
        return self._cumulative("xp")

    def cumulative_activities(self) -> TimeSeries:
        return self._cumulative("count")

    # ─────────────────────────────────────────────
    # ROLLING (active days only)
    # ─────────────────────────────────────────────

    def rolling_avg_xp(self, window: int = ROLLING_WINDOW) -> TimeSeries:
        if not self.daily:
            return TimeSeries()
        xp = pd.Series([d.xp for d in self.daily], dtype=float)
        rolling = xp.rolling(window, min_periods=1).mean()
        return self._series([d.date for d in self.daily], [round_half_up(v) for v in rolling])

    def rolling_success_rate(self, window: int = ROLLING_WINDOW) -> TimeSeries:
        """Attainment over the trailing window; may exceed 100."""
        if not self.daily:
            return TimeSeries()
        earned = pd.Series([d.total_earned for d in self.daily], dtype=float).rolling(window, min_periods=1).sum()
        possible = pd.Series([d.total_possible for d in self.daily], dtype=float).rolling(window, min_periods=1).sum()
        values = [
            round_half_up(e / p * 100) if p > 0 else 0
            for e, p in zip(earned, possible)
        ]
        return self._series([d.date for d in self.daily], values)

    # ─────────────────────────────────────────────
    # WEEK VIEW
    # ─────────────────────────────────────────────

    def _week(self, value_of: Callable[[Optional[DailyAggregate]], float],
              today: DateLike = None, cumulative: bool = False) -> TimeSeries:
        if not self.daily:
            return TimeSeries()
        lookup = {d.date: d for d in self.daily}
        end = as_date(today)
        labels = [
            (end - timedelta(days=offset)).strftime("%Y-%m-%d")
            for offset in range(WEEK_DAYS - 1, -1, -1)
        ]
        values = pd.Series([value_of(lookup.get(label)) for label in labels])
        if cumulative:
            values = values.cumsum()
        return self._series(labels, values.tolist())

    def daily_xp(self, today: DateLike = None) -> TimeSeries:
        return self._week(lambda d: d.xp if d else 0, today)

    def weekly_cumulative_xp(self, today: DateLike = None) -> TimeSeries:
        return self._week(lambda d: d.xp if d else 0, today, cumulative=True)

    def daily_activities(self, today: DateLike = None) -> TimeSeries:
        return self._week(lambda d: d.count if d else 0, today)

    def weekly_cumulative_activities(self, today: DateLike = None) -> TimeSeries:
        return self._week(lambda d: d.count if d else 0, today, cumulative=True)

    def daily_attainment(self, today: DateLike = None) -> TimeSeries:
        def attainment(day: Optional[DailyAggregate]):
            if day is None or day.attainment is None:
                return EMPTY_DAY_ATTAINMENT
            return day.attainment

        return self._week(attainment, today)

    # ─────────────────────────────────────────────
    # DISPATCH
    # ─────────────────────────────────────────────

    def build(self, metric: str, period: str = "all", today: DateLike = None) -> TimeSeries:
        """Series for a dashboard chart; the week period switches to the 7-day views."""
        week = period == "week"
        if metric == "xp":
            return self.weekly_cumulative_xp(today) if week else self.cumulative_xp()
        if metric == "activities":
            return self.weekly_cumulative_activities(today) if week else self.cumulative_activities()
        if metric == "avg_xp":
            return self.daily_xp(today) if week else self.rolling_avg_xp()
        if metric == "success_rate":
            return self.daily_attainment(today) if week else self.rolling_success_rate()
        raise ValueError(f"Unknown metric {metric!r}, expected one of {self.METRICS}")


def downsample(series: TimeSeries, max_points: int) -> TimeSeries:
    """Keep every n-th point so the chart stays under max_points (plus the last point)."""
    if max_points <= 0 or len(series) <= max_points:
        return series
    step = -(-len(series) // max_points)
    indices = list(range(0, len(series), step))
    if indices[-1] != len(series) - 1:
        indices.append(len(series) - 1)
    labels = [series.labels[i] for i in indices]
    kept = set(labels)
    return TimeSeries(
        labels=labels,
        values=[series.values[i] for i in indices],
        transitions={d: t for d, t in series.transitions.items() if d in kept},
    )
