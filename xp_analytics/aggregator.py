"""
Daily aggregation of parsed activities.
Groups activities by local calendar day and flags course transitions.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from xp_analytics.models import Activity, DailyAggregate

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "timestamp", "date", "weekday", "hour", "type", "course", "title",
    "earned", "base", "possible", "is_diagnostic", "graded_earned", "graded_possible",
]


def local_date_key(ts: datetime) -> str:
    """YYYY-MM-DD in the learner's local time zone."""
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.strftime("%Y-%m-%d")


def local_naive(ts: datetime) -> datetime:
    """Wall-clock local time without tzinfo."""
    return ts.astimezone().replace(tzinfo=None) if ts.tzinfo is not None else ts


def sort_by_time(activities: Iterable[Activity]) -> List[Activity]:
    # aware and naive timestamps can be mixed in caller-built data
    return sorted(activities, key=lambda a: local_naive(a.timestamp))


def activities_frame(activities: Sequence[Activity]) -> pd.DataFrame:
    """One row per activity, with the derived columns used by aggregations."""
    if not activities:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    rows = []
    for a in activities:
        local_ts = local_naive(a.timestamp)
        diagnostic = a.is_diagnostic
        rows.append({
            "timestamp": local_ts,
            "date": local_date_key(a.timestamp),
            # Sunday = 0
            "weekday": (local_ts.weekday() + 1) % 7,
            "hour": local_ts.hour,
            "type": a.type.value,
            "course": a.course or None,
            "title": a.title,
            "earned": a.earned,
            "base": a.base,
            "possible": a.possible_xp,
            "is_diagnostic": diagnostic,
            "graded_earned": 0 if diagnostic else a.earned,
            "graded_possible": 0 if diagnostic else a.base,
        })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _distinct_courses(courses: pd.Series) -> tuple:
    return tuple(dict.fromkeys(c for c in courses if isinstance(c, str) and c))


def _num(value):
    """numpy scalar -> plain Python number."""
    return value.item() if hasattr(value, "item") else value


def group_by_day(activities: Sequence[Activity]) -> List[DailyAggregate]:
    """
    Per-day XP, counts and attainment totals, sorted by date.

    A day is a course transition when its first course differs from the first
    course of the closest earlier day that recorded one.
    """
    if not activities:
        return []

    df = activities_frame(sort_by_time(activities))
    grouped = df.groupby("date", sort=True)
    totals = grouped.agg(
        xp=("earned", "sum"),
        n_activities=("earned", "size"),
        total_earned=("earned", "sum"),
        total_possible=("possible", "sum"),
        graded_earned=("graded_earned", "sum"),
        graded_possible=("graded_possible", "sum"),
    )
    courses = {key: _distinct_courses(group) for key, group in grouped["course"]}

    days: List[DailyAggregate] = []
    previous_course: Optional[str] = None
    for row in totals.itertuples():
        date_key = row.Index
        day_courses = courses.get(date_key, ())
        transition_from = transition_to = None
        if day_courses:
            current = day_courses[0]
            if previous_course and current != previous_course:
                transition_from, transition_to = previous_course, current
                logger.debug(f"Course transition on {date_key}: {previous_course} -> {current}")
            previous_course = current
        days.append(DailyAggregate(
            date=str(date_key),
            xp=_num(row.xp),
            count=int(row.n_activities),
            total_earned=_num(row.total_earned),
            total_possible=_num(row.total_possible),
            graded_earned=_num(row.graded_earned),
            graded_possible=_num(row.graded_possible),
            courses=day_courses,
            course_transition=transition_to is not None,
            transition_from=transition_from,
            transition_to=transition_to,
        ))
    return days
