from __future__ import annotations

import re
from datetime import datetime, time

from .errors import InvalidTimeFormat

_CLOCK_RE = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")

END_OF_DAY = time(23, 59, 59, 999000)


def parse_clock(value: str) -> int:
    """Convert an ``HH:MM`` wall-clock string into minutes since midnight."""
    match = _CLOCK_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise InvalidTimeFormat()
    return int(match.group(1)) * 60 + int(match.group(2))


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Return True when two minute intervals share at least one instant.

    Intervals are half-open, so 09:00-10:00 and 10:00-11:00 do not overlap.
    """
    return start_a < end_b and start_b < end_a


def day_bounds(value: datetime) -> tuple[datetime, datetime]:
    # Stored dates keep full timestamp precision; comparisons are per calendar day
    day = value.date()
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)
