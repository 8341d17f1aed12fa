"""
Activity taxonomy.
Maps the raw type labels found in activity logs onto a closed set of categories.
"""

from enum import Enum
from typing import Optional, Union


class ActivityType(str, Enum):
    DIAGNOSTIC = "diagnostic"
    LESSON = "lesson"
    REVIEW = "review"
    MULTISTEP = "multistep"
    QUIZ = "quiz"
    UNCLASSIFIED = "unclassified"

    @property
    def plural(self) -> str:
        """Key used in category count mappings (e.g. 'lessons', 'quizzes')."""
        if self is ActivityType.QUIZ:
            return "quizzes"
        return f"{self.value}s"

    @classmethod
    def counted(cls):
        """Categories that appear in category counts, in display order."""
        return [cls.DIAGNOSTIC, cls.LESSON, cls.REVIEW, cls.MULTISTEP, cls.QUIZ]


# Quizzes are logged under a generic "Assessment" label, so the title is the
# only reliable discriminator.
DIAGNOSTIC_RAW_TYPES = {"diagnostic", "assessment", "supplemental diagnostic"}

_DIRECT_TYPES = {
    "lesson": ActivityType.LESSON,
    "review": ActivityType.REVIEW,
    "multistep": ActivityType.MULTISTEP,
    "quiz": ActivityType.QUIZ,
}

RawType = Union[ActivityType, str, None]


def _normalize(raw: RawType) -> str:
    if raw is None:
        return ""
    if isinstance(raw, ActivityType):
        return raw.value
    return str(raw).strip().lower()


def is_quiz_title(title: Optional[str]) -> bool:
    return "quiz" in (title or "").lower()


def is_diagnostic(raw_type: RawType, title: Optional[str] = "") -> bool:
    """
    True for placement/supplemental style records that are scored as always
    at target. A quiz title always wins over the raw type.
    """
    if is_quiz_title(title):
        return False
    return _normalize(raw_type) in DIAGNOSTIC_RAW_TYPES


def classify(raw_type: RawType, title: Optional[str] = "") -> ActivityType:
    if is_quiz_title(title):
        return ActivityType.QUIZ
    if is_diagnostic(raw_type, title):
        return ActivityType.DIAGNOSTIC
    return _DIRECT_TYPES.get(_normalize(raw_type), ActivityType.UNCLASSIFIED)
