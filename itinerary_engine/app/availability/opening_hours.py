"""Open-now evaluation against weekly operating hours.

Periods are weekly; an overnight period (``is_overnight`` or close earlier
than open) closes on the following day, so at 01:00 on a Saturday the Friday
18:00-02:00 period is still open.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from itinerary_engine.app.models.common import WEEKDAYS_FROM_MONDAY, Weekday
from itinerary_engine.app.models.location import OperatingHours, OperatingPeriod
from itinerary_engine.app.utils.timeutils import MINUTES_IN_DAY, parse_time_to_minutes

logger = logging.getLogger(__name__)

OpenState = Literal["open", "closed", "unknown"]

_SHORT_DAY = {
    Weekday.sunday: "Sun",
    Weekday.monday: "Mon",
    Weekday.tuesday: "Tue",
    Weekday.wednesday: "Wed",
    Weekday.thursday: "Thu",
    Weekday.friday: "Fri",
    Weekday.saturday: "Sat",
}


@dataclass(frozen=True)
class OpenStatus:
    """Result of an open-now check."""

    state: OpenState
    closes_at: str | None = None
    opens_at: str | None = None
    opens_day: Weekday | None = None


def weekday_of(instant: datetime) -> Weekday:
    """Weekday of a datetime."""
    return WEEKDAYS_FROM_MONDAY[instant.weekday()]


def shift_weekday(day: Weekday, offset: int) -> Weekday:
    """Weekday ``offset`` days after ``day`` (negative goes back)."""
    index = WEEKDAYS_FROM_MONDAY.index(day)
    return WEEKDAYS_FROM_MONDAY[(index + offset) % 7]


def periods_for_day(hours: OperatingHours | None, day: Weekday | None) -> list[OperatingPeriod]:
    """All periods listed for a weekday (split shifts yield several)."""
    if hours is None or day is None:
        return []
    return [period for period in hours.periods if period.day == day]


def get_period_for_day(hours: OperatingHours | None, day: Weekday | None) -> OperatingPeriod | None:
    """First period listed for a weekday, or None."""
    periods = periods_for_day(hours, day)
    return periods[0] if periods else None


def is_overnight(period: OperatingPeriod) -> bool:
    """True when the period closes after midnight."""
    if period.is_overnight:
        return True
    opens = parse_time_to_minutes(period.open)
    closes = parse_time_to_minutes(period.close)
    if opens is None or closes is None:
        return False
    return closes < opens


def period_bounds(period: OperatingPeriod) -> tuple[int, int] | None:
    """(open, effective close) in minutes from the period's own day start.

    Returns None when either time is malformed.
    """
    opens = parse_time_to_minutes(period.open)
    closes = parse_time_to_minutes(period.close)
    if opens is None or closes is None:
        return None
    if is_overnight(period):
        closes += MINUTES_IN_DAY
    elif closes == opens:
        # Same open and close time means open around the clock
        closes = opens + MINUTES_IN_DAY
    return opens, closes


def is_open_now(hours: OperatingHours | None, instant: datetime) -> OpenStatus:
    """Decide whether a location is open at ``instant`` (local, zone-naive)."""
    if hours is None or not hours.periods:
        return OpenStatus(state="unknown")

    today = weekday_of(instant)
    now_minutes = instant.hour * 60 + instant.minute

    today_periods = periods_for_day(hours, today)
    today_bounds: list[tuple[OperatingPeriod, tuple[int, int]]] = []
    for period in today_periods:
        bounds = period_bounds(period)
        if bounds is None:
            logger.warning(f"Malformed operating period for {today.value}: {period.open}-{period.close}")
            return OpenStatus(state="unknown")
        today_bounds.append((period, bounds))

    for period, (opens, closes) in today_bounds:
        if opens <= now_minutes < closes:
            return OpenStatus(state="open", closes_at=period.close)

    # Yesterday's overnight period may still be running
    for period in periods_for_day(hours, shift_weekday(today, -1)):
        if not is_overnight(period):
            continue
        bounds = period_bounds(period)
        if bounds is None:
            continue
        _, closes = bounds
        if now_minutes + MINUTES_IN_DAY < closes:
            return OpenStatus(state="open", closes_at=period.close)

    later_today = sorted(
        (opens, period) for period, (opens, _) in today_bounds if now_minutes < opens
    )
    if later_today:
        return OpenStatus(state="closed", opens_at=later_today[0][1].open, opens_day=today)

    for offset in range(1, 8):
        day = shift_weekday(today, offset)
        candidates = [p for p in periods_for_day(hours, day) if period_bounds(p) is not None]
        if candidates:
            first = min(candidates, key=lambda p: parse_time_to_minutes(p.open) or 0)
            return OpenStatus(state="closed", opens_at=first.open, opens_day=day)

    return OpenStatus(state="closed")


def format_open_status(status: OpenStatus, today: Weekday | None = None) -> str:
    """Short human-readable label for an open status."""
    if status.state == "open":
        return f"Open now · closes {status.closes_at}" if status.closes_at else "Open now"
    if status.state == "closed":
        if not status.opens_at:
            return "Closed"
        if status.opens_day is None or status.opens_day == today:
            return f"Closed · opens {status.opens_at}"
        return f"Closed · opens {_SHORT_DAY[status.opens_day]} {status.opens_at}"
    return "Hours unknown"
