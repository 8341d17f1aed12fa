"""
Placeholder activities shown when no log could be loaded or parsed.
"""

from typing import Dict, List

from xp_analytics.log_parser import activity_from_record
from xp_analytics.models import Activity

SAMPLE_RECORDS: List[Dict] = [
    {"type": "lessons", "earned": 20, "maxXP": 20, "date": "Oct 16, 2025", "time": "10:30 AM",
     "course": "Mathematical Foundations III"},
    {"type": "reviews", "earned": 15, "maxXP": 20, "date": "Oct 16, 2025", "time": "11:15 AM",
     "course": "Mathematical Foundations III"},
    {"type": "quizzes", "earned": 18, "maxXP": 20, "date": "Oct 15, 2025", "time": "2:45 PM",
     "course": "Mathematical Foundations III"},
    {"type": "diagnostics", "earned": 25, "maxXP": 30, "date": "Oct 14, 2025", "time": "9:20 AM",
     "course": "Mathematical Foundations II"},
    {"type": "multisteps", "earned": 22, "maxXP": 25, "date": "Oct 14, 2025", "time": "3:10 PM",
     "course": "Mathematical Foundations II"},
]


def generate_sample_activities() -> List[Activity]:
    activities = []
    for record in SAMPLE_RECORDS:
        title = f"Sample {record['type'].capitalize()}"
        activity = activity_from_record({**record, "title": title})
        if activity is not None:
            activities.append(activity)
    return activities
