"""
Job Posting Model

Common shape every source (Greenhouse, Lever, JSearch) is normalized into
before it is attached to a firm:

    {"title": ..., "type": ..., "salary": ..., "posted": ..., "url": ...}

Also holds the formatting helpers shared by the fetchers: employment type
coercion, salary range formatting and relative posted time.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

UNTITLED = 'Untitled'
SALARY_FALLBACK = 'See listing'
POSTED_FALLBACK = 'Recently'


class EmploymentType(Enum):
    """Employment types shown on the job board"""
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    INTERNSHIP = "Internship"
    CONTRACT = "Contract"
    OTHER = "Other"


# Ordered (pattern, type) rules; first match wins.
KEYWORD_TYPE_RULES: List[Tuple[str, EmploymentType]] = [
    (r'\bintern(?:ship)?s?\b', EmploymentType.INTERNSHIP),
    (r'\bpart[\s_-]?time\b', EmploymentType.PART_TIME),
    (r'\b(?:contract(?:or)?|temporary|freelance)\b', EmploymentType.CONTRACT),
]

FULL_TIME_RULE: Tuple[str, EmploymentType] = (r'\b(?:full[\s_-]?time|permanent)\b', EmploymentType.FULL_TIME)


@dataclass
class JobPosting:
    """A normalized job posting attached to one firm."""
    title: str
    type: str = EmploymentType.FULL_TIME.value
    salary: str = SALARY_FALLBACK
    posted: str = POSTED_FALLBACK
    url: str = ''

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'type': self.type,
            'salary': self.salary,
            'posted': self.posted,
            'url': self.url,
        }


def match_type_keywords(
    text: Optional[str],
    rules: List[Tuple[str, EmploymentType]] = KEYWORD_TYPE_RULES
) -> Optional[str]:
    """Return the employment type of the first rule whose pattern occurs in text."""
    if not text:
        return None
    for pattern, employment_type in rules:
        if re.search(pattern, text, re.IGNORECASE):
            return employment_type.value
    return None


def coerce_employment_type(value: Any, default: EmploymentType = EmploymentType.FULL_TIME) -> str:
    """
    Map a free-text employment type onto EmploymentType.

    Handles board values ("Full-time", "Intern") and aggregator codes
    ("FULLTIME", "CONTRACTOR"). Empty values take the default; anything
    unrecognised becomes "Other".
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return default.value

    text = str(value).strip()
    if not text:
        return default.value

    matched = match_type_keywords(text, KEYWORD_TYPE_RULES + [FULL_TIME_RULE])
    return matched or EmploymentType.OTHER.value


def _round_thousands(amount: float) -> int:
    # Half-up, not banker's rounding
    return int(math.floor(amount / 1000 + 0.5))


def format_salary_range(minimum: Any, maximum: Any) -> str:
    """
    Format a salary range as "$XK–$YK".

    Both bounds must be present and non-zero, otherwise the fallback
    "See listing" is returned.
    """
    try:
        low = float(minimum) if minimum is not None else 0.0
        high = float(maximum) if maximum is not None else 0.0
    except (TypeError, ValueError):
        return SALARY_FALLBACK

    if not low or not high or math.isnan(low) or math.isnan(high):
        return SALARY_FALLBACK

    return f"${_round_thousands(low)}K–${_round_thousands(high)}K"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or an epoch number (seconds or ms) to an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        ts = float(value)
        # Epoch in ms
        if ts > 1e12:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def time_ago(value: Any, now: Optional[datetime] = None) -> str:
    """
    Human-relative age of a posting: "Today", "3 days ago", "2 weeks ago", ...

    Unparseable or missing timestamps give "Recently".
    """
    then = parse_timestamp(value)
    if then is None:
        return POSTED_FALLBACK

    now = now or datetime.now(timezone.utc)
    days = math.floor((now - then).total_seconds() / 86400)

    if days <= 0:
        return 'Today'
    if days == 1:
        return '1 day ago'
    if days < 7:
        return f'{days} days ago'
    if days < 14:
        return '1 week ago'
    if days < 30:
        return f'{days // 7} weeks ago'
    if days < 60:
        return '1 month ago'
    return f'{days // 30} months ago'
