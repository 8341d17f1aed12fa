"""
Records produced by the activity-log pipeline.

Activity        one parsed learning task with its XP outcome
DailyAggregate  per local calendar day totals
StatisticsSnapshot / TimeSeries  analytics outputs consumed by the dashboard
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd

from xp_analytics.taxonomy import ActivityType, classify, is_diagnostic

Number = Union[int, float]

SUCCESS_THRESHOLD = 70
# Non-diagnostic records with no recorded possible XP count as out of 10.
DEFAULT_BASE_XP = 10


def round_half_up(value: float, digits: int = 0) -> Number:
    """Round like a charting front end does (0.5 always goes up)."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def _is_xp(value) -> bool:
    """A usable XP amount: a real, non-negative number (NaN and bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value) and value >= 0


@dataclass(frozen=True)
class Activity:
    timestamp: datetime
    type: ActivityType
    earned: Number
    base: Number
    course: Optional[str] = None
    title: str = ""
    raw_text: str = field(default="", compare=False, repr=False)

    def __post_init__(self):
        if self.type is None or (isinstance(self.type, str) and not self.type.strip()):
            raise ValueError("activity type is required")
        if not isinstance(self.timestamp, datetime) or pd.isna(self.timestamp):
            raise ValueError(f"timestamp must be a datetime, got {self.timestamp!r}")
        if not _is_xp(self.earned):
            raise ValueError(f"earned XP must be a non-negative number, got {self.earned!r}")
        if self.base is None:
            object.__setattr__(self, "base", 0)
        elif not _is_xp(self.base):
            raise ValueError(f"base XP must be a non-negative number, got {self.base!r}")
        object.__setattr__(self, "type", classify(self.type, self.title))

    @property
    def percentage(self) -> int:
        if self.base > 0:
            return round_half_up(self.earned / self.base * 100)
        return 100

    @property
    def is_success(self) -> bool:
        return self.percentage >= SUCCESS_THRESHOLD

    @property
    def is_diagnostic(self) -> bool:
        return is_diagnostic(self.type, self.title)

    @property
    def possible_xp(self) -> Number:
        """Possible XP with diagnostics treated as always at target."""
        if self.is_diagnostic:
            return self.earned
        return self.base or DEFAULT_BASE_XP

    def to_dict(self) -> Dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "course": self.course,
            "title": self.title,
            "earned": self.earned,
            "base": self.base,
            "percentage": self.percentage,
            "is_success": self.is_success,
        }


@dataclass(frozen=True)
class CourseTransition:
    from_course: str
    to_course: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_course, "to": self.to_course}


@dataclass(frozen=True)
class DailyAggregate:
    date: str
    xp: Number = 0
    count: int = 0
    total_earned: Number = 0
    total_possible: Number = 0
    graded_earned: Number = 0
    graded_possible: Number = 0
    courses: Tuple[str, ...] = ()
    course_transition: bool = False
    transition_from: Optional[str] = None
    transition_to: Optional[str] = None

    @property
    def transition(self) -> Optional[CourseTransition]:
        if not self.course_transition:
            return None
        return CourseTransition(self.transition_from, self.transition_to)

    @property
    def attainment(self) -> Optional[int]:
        if self.total_possible > 0:
            return round_half_up(self.total_earned / self.total_possible * 100)
        return None


@dataclass(frozen=True)
class SuccessMetrics:
    perfect_count: int = 0
    pass_count: int = 0
    fail_count: int = 0
    success_rate: float = 0
    total_earned: Number = 0
    total_possible: Number = 0


@dataclass(frozen=True)
class WeekdayStats:
    # Sunday first, matching the calendar week used by the dashboard
    xp: Tuple[Number, ...] = (0,) * 7
    count: Tuple[int, ...] = (0,) * 7
    best_weekday: str = ""
    best_weekday_avg: int = 0


@dataclass(frozen=True)
class BestPerformance:
    best_day_xp: Number = 0
    best_day_date: str = ""
    best_accuracy: float = 0
    best_accuracy_date: str = ""


@dataclass(frozen=True)
class DayPoint:
    date: str
    label: str
    xp: Number = 0
    count: int = 0


@dataclass(frozen=True)
class TimeAnalysis:
    hourly_xp: Tuple[Number, ...] = (0,) * 24
    hourly_count: Tuple[int, ...] = (0,) * 24
    most_productive_hour: str = ""
    max_hourly_xp: Number = 0


@dataclass(frozen=True)
class StatisticsSnapshot:
    activities: Tuple[Activity, ...] = ()
    total_xp: Number = 0
    total_activities: int = 0
    activity_counts: Dict[str, int] = field(
        default_factory=lambda: {t.plural: 0 for t in ActivityType.counted()}
    )
    success_metrics: SuccessMetrics = field(default_factory=SuccessMetrics)
    avg_xp_per_day: int = 0
    daily_stats: Tuple[DailyAggregate, ...] = ()
    weekday_stats: WeekdayStats = field(default_factory=WeekdayStats)
    best_performance: BestPerformance = field(default_factory=BestPerformance)
    last_14_days: Tuple[DayPoint, ...] = ()
    time_analysis: TimeAnalysis = field(default_factory=TimeAnalysis)

    @property
    def is_empty(self) -> bool:
        return not self.activities

    def to_dict(self) -> Dict:
        """Named fields for presentation layers (activities left out)."""
        return {
            "total_xp": self.total_xp,
            "total_activities": self.total_activities,
            "activity_counts": dict(self.activity_counts),
            "success_metrics": asdict(self.success_metrics),
            "avg_xp_per_day": self.avg_xp_per_day,
            "daily_stats": [asdict(d) for d in self.daily_stats],
            "weekday_stats": asdict(self.weekday_stats),
            "best_performance": asdict(self.best_performance),
            "last_14_days": [asdict(d) for d in self.last_14_days],
            "time_analysis": asdict(self.time_analysis),
        }


@dataclass(frozen=True)
class TimeSeries:
    labels: List[str] = field(default_factory=list)
    values: List[Number] = field(default_factory=list)
    transitions: Dict[str, CourseTransition] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.labels) != len(self.values):
            raise ValueError(
                f"labels and values must align ({len(self.labels)} != {len(self.values)})"
            )

    def __len__(self) -> int:
        return len(self.labels)

    def to_dict(self) -> Dict:
        return {
            "labels": list(self.labels),
            "values": list(self.values),
            "transitions": {d: t.to_dict() for d, t in self.transitions.items()},
        }
