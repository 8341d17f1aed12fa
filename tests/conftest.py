"""Shared fixtures for the XP analytics tests."""

from datetime import datetime, timedelta

import pytest

from xp_analytics.models import Activity
from xp_analytics.taxonomy import ActivityType


SAMPLE_LOG = """Activity Log  Page 1
Thu, Oct 16th, 2025
Mathematical Foundations III   Lesson   Intro to Limits   8 / 10 XP
Mathematical Foundations III   Review   Derivatives   12 / 10 XP
Mathematical Foundations III   Placement   63 /   XP
Wed, Oct 15th, 2025
Mathematical Foundations II   Quiz   Quiz 3   15 / 20 XP
Mon, Oct 13th, 2025
"""


def make_activity(
    day: datetime,
    type=ActivityType.LESSON,
    earned=10,
    base=10,
    course="MF I",
    title="Task",
    hour: int = 0,
) -> Activity:
    return Activity(
        timestamp=day + timedelta(hours=hour),
        type=type,
        earned=earned,
        base=base,
        course=course,
        title=title,
    )


@pytest.fixture
def activity_factory():
    return make_activity


@pytest.fixture
def sample_log() -> str:
    return SAMPLE_LOG
