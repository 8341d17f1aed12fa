"""
Activity log text parser.
Recovers Activity records from the page text of an exported activity log.

The export has no reliable delimiters: each day starts with a header such as
"Thu, Oct 16th, 2025" and is followed by records of two shapes:

  Mathematical Foundations III   Placement   63 /   XP
  Mathematical Foundations III   Lesson   Intro to Limits   8 / 10 XP
"""

import re
import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from xp_analytics.models import Activity
from xp_analytics.taxonomy import ActivityType, classify

logger = logging.getLogger(__name__)


DATE_HEADER_RE = re.compile(
    r"(Mon|Tue|Wed|Thu|Fri|Sat|Sun),\s+[A-Za-z]{3}\s+\d{1,2}(?:st|nd|rd|th)?,\s+\d{4}"
)
_WEEKDAY_PREFIX_RE = re.compile(r"^(Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*,?\s*", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)")

DEFAULT_COURSE_PATTERN = r"Mathematical Foundations \w+"
MIN_SECTION_LENGTH = 10
DEFAULT_DIAGNOSTIC_XP = 63

# Plural and legacy labels seen in hand-built records
_RAW_TYPE_ALIASES = {
    "lessons": "lesson",
    "reviews": "review",
    "quizzes": "quiz",
    "diagnostics": "diagnostic",
    "placement": "diagnostic",
    "supplemental": "diagnostic",
    "multisteps": "multistep",
    "practice": "multistep",
}


# ─────────────────────────────────────────────
# DATES
# ─────────────────────────────────────────────

def _to_datetime(text: str) -> Optional[datetime]:
    if not text or not text.strip():
        return None
    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def resolve_date_header(text: str) -> datetime:
    """
    Parse a header like "Thu, Oct 16th, 2025".
    Falls back to the current time when the header cannot be parsed.
    """
    clean = _WEEKDAY_PREFIX_RE.sub("", (text or "").strip())
    clean = _ORDINAL_RE.sub(r"\1", clean, count=1)
    parsed = _to_datetime(clean)
    if parsed is None:
        logger.warning(f"Unparsable date header {text!r}, using current date")
        return datetime.now()
    return parsed


def resolve_date_time(date_str: str, time_str: str) -> datetime:
    """Parse a date plus a clock time ("Oct 16, 2025", "10:30 AM")."""
    parsed = _to_datetime(f"{date_str or ''} {time_str or ''}".strip())
    if parsed is None:
        return resolve_date_header(date_str)
    return parsed


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ─────────────────────────────────────────────
# GRAMMAR
# ─────────────────────────────────────────────

class LogGrammar:
    """
    The two record shapes of the export. Format changes in the source
    document only need to touch this class.
    """

    DIAGNOSTIC_KINDS = ("Placement", "Supplemental")
    GRADED_KINDS = ("Lesson", "Review", "Quiz", "Diagnostic", "Multistep")

    def __init__(self, course_pattern: str = DEFAULT_COURSE_PATTERN):
        self.course_pattern = course_pattern
        self.diagnostic_re = re.compile(
            rf"(?P<course>{course_pattern})\s+"
            rf"(?P<kind>{'|'.join(self.DIAGNOSTIC_KINDS)})\s+"
            r"(?P<xp>\d+)\s*/\s*XP"
        )
        self.graded_re = re.compile(
            rf"(?P<course>{course_pattern})\s+"
            rf"(?P<kind>{'|'.join(self.GRADED_KINDS)})\s+"
            r"(?P<title>.*?)\s+(?P<earned>\d+)\s*/\s*(?P<possible>\d+)\s*XP"
        )

    def graded(self, section: str, timestamp: datetime) -> List[Dict]:
        records = []
        for m in self.graded_re.finditer(section):
            title = m.group("title").strip()
            earned = _to_int(m.group("earned"), 0)
            # "5 / 0 XP" carries no target; score it against what was earned
            possible = _to_int(m.group("possible"), 0) or earned
            records.append({
                "timestamp": timestamp,
                "type": classify(m.group("kind"), title),
                "course": m.group("course").strip(),
                "title": title,
                "earned": earned,
                "base": possible,
                "raw_text": m.group(0),
            })
        return records

    def diagnostics(self, section: str, timestamp: datetime) -> List[Dict]:
        records = []
        for m in self.diagnostic_re.finditer(section):
            xp = _to_int(m.group("xp"), DEFAULT_DIAGNOSTIC_XP)
            records.append({
                "timestamp": timestamp,
                "type": ActivityType.DIAGNOSTIC,
                "course": m.group("course").strip(),
                "title": f"{m.group('kind')} Activity",
                "earned": xp,
                # no meaningful target, so possible XP is what was earned
                "base": xp,
                "raw_text": m.group(0),
            })
        return records


def _build(candidate: Dict) -> Optional[Activity]:
    raw_type = candidate.get("type")
    if raw_type is None or (isinstance(raw_type, str) and not raw_type.strip()):
        return None
    if candidate.get("earned") is None:
        return None
    if not isinstance(candidate.get("timestamp"), datetime):
        return None
    try:
        return Activity(**candidate)
    except ValueError as e:
        logger.debug(f"Dropping malformed record: {e}")
        return None


def activity_from_record(record: Dict) -> Optional[Activity]:
    """
    Build an Activity from a loosely typed mapping (sample data, JSON exports).
    Returns None when type, earned XP or a usable date is missing.
    """
    title = record.get("title") or record.get("taskName") or ""
    raw_type = record.get("type")
    if isinstance(raw_type, str):
        key = raw_type.strip().lower()
        raw_type = _RAW_TYPE_ALIASES.get(key, key)

    timestamp = record.get("timestamp")
    if isinstance(timestamp, str):
        timestamp = _to_datetime(timestamp)
    if not isinstance(timestamp, datetime) and record.get("date"):
        timestamp = resolve_date_time(record["date"], record.get("time", ""))

    base = record.get("base")
    if base is None:
        base = record.get("maxXP")

    return _build({
        "timestamp": timestamp,
        "type": raw_type,
        "course": record.get("course"),
        "title": title,
        "earned": record.get("earned"),
        "base": base,
    })


# ─────────────────────────────────────────────
# PARSER
# ─────────────────────────────────────────────

class LogParser:
    """Splits the export into dated sections and extracts records from each."""

    def __init__(self, grammar: Optional[LogGrammar] = None):
        self.grammar = grammar or LogGrammar()

    def parse(self, text: str) -> List[Activity]:
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        if not text or not isinstance(text, str):
            return []

        headers = list(DATE_HEADER_RE.finditer(text))
        if not headers:
            logger.info("No date headers found in activity log text")
            return []

        candidates: List[Dict] = []
        for i, header in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            section = text[header.end():end]
            if len(section) <= MIN_SECTION_LENGTH:
                continue
            candidates.extend(self.parse_section(header.group(0), section))

        activities = [a for a in (_build(c) for c in candidates) if a is not None]
        dropped = len(candidates) - len(activities)
        if dropped:
            logger.debug(f"Dropped {dropped} incomplete records")
        logger.info(f"Parsed {len(activities)} activities from {len(headers)} date sections")
        return activities

    def parse_section(self, date_str: str, section: str) -> List[Dict]:
        """Candidate records for one day; graded records come first."""
        timestamp = resolve_date_header(date_str)
        records = self.grammar.graded(section, timestamp)
        records.extend(self.grammar.diagnostics(section, timestamp))
        return records


def parse(text: str, course_pattern: str = DEFAULT_COURSE_PATTERN) -> List[Activity]:
    return LogParser(LogGrammar(course_pattern)).parse(text)
