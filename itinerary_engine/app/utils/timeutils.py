"""HH:MM parsing and formatting on zone-naive minutes since day start."""

import logging
import re

logger = logging.getLogger(__name__)

MINUTES_IN_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_to_minutes(value: str | None) -> int | None:
    """Parse "HH:MM" into minutes since day start.

    Hours above 23 are accepted so that past-midnight times produced by the
    scheduler ("24:30") round-trip. Returns None for missing or malformed
    input; malformed strings are logged, never raised.
    """
    if not value:
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        logger.warning(f"Unparsable time string: {value!r}")
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if minutes >= 60:
        logger.warning(f"Unparsable time string: {value!r}")
        return None
    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """Format cumulative minutes as "HH:MM" without wrapping at midnight."""
    total = max(0, int(round(total_minutes)))
    return f"{total // 60:02d}:{total % 60:02d}"


def format_clock(total_minutes: int) -> str:
    """Format minutes as a wall-clock "HH:MM", clamped to the same day."""
    clamped = max(0, min(int(round(total_minutes)), MINUTES_IN_DAY - 1))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"
