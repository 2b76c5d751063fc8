"""
"Xh Ym" duration strings used by the external task system.
"""

import re
from datetime import timedelta

DURATION_PATTERN = re.compile(r"(\d+)h(?:\s*(\d+)m)?")


def format_duration(span: timedelta) -> str:
    """
    Encode a span as the external system's duration string.

    Rounded to whole minutes; "8h 30m", or "2h" when there are no minutes.
    """
    total_minutes = round(span.total_seconds() / 60)
    hours, minutes = divmod(total_minutes, 60)
    if minutes > 0:
        return f"{hours}h {minutes}m"
    return f"{hours}h"


def parse_duration(value: str) -> timedelta:
    """Parse "8h 30m" / "2h" into a timedelta. Raises ValueError if unrecognised."""
    match = DURATION_PATTERN.search(value or "")
    if not match:
        raise ValueError(f"Unrecognised duration '{value}'")
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    return timedelta(hours=hours, minutes=minutes)
