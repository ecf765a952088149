"""Seasonal availability: does a location's rule set overlap a trip?

Three rule shapes are supported:

- ``fixed_annual``: same dates every year (July 24-25), possibly wrapping the
  new year (Dec 31 - Jan 2).
- ``floating_annual``: relative date such as "3rd Saturday of March" or "last
  Sunday of October", optionally lasting several days.
- ``date_range``: month/day range, optionally limited to explicit years.

Overlap throughout is ``not (trip_end < rule_start or trip_start > rule_end)``.
"""

import calendar
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Protocol, TypeVar

from itinerary_engine.app.models.location import AvailabilityRule, Location

LAST_ORDINAL = 5


class SeasonalCandidate(Protocol):
    """Anything carrying a seasonal flag and rules (usually a Location)."""

    is_seasonal: bool
    availability: list[AvailabilityRule]


T = TypeVar("T", bound=SeasonalCandidate)


def _overlaps(trip_start: date, trip_end: date, rule_start: date, rule_end: date) -> bool:
    return not (trip_end < rule_start or trip_start > rule_end)


def _safe_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the month length (Feb 29 -> Feb 28)."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _js_weekday(d: date) -> int:
    """0=Sunday..6=Saturday, the convention used by availability rules."""
    return (d.weekday() + 1) % 7


def nth_weekday_of_month(year: int, month: int, day_of_week: int, ordinal: int) -> date | None:
    """Nth occurrence of a weekday in a month.

    Args:
        year: Calendar year
        month: Month (1-12)
        day_of_week: 0=Sunday..6=Saturday
        ordinal: 1-4 for first..fourth; 5 means the last occurrence

    Returns:
        The date, or None when the occurrence does not exist
    """
    if ordinal == LAST_ORDINAL:
        last = date(year, month, calendar.monthrange(year, month)[1])
        back = (_js_weekday(last) - day_of_week) % 7
        return last - timedelta(days=back)

    first = date(year, month, 1)
    until_first = (day_of_week - _js_weekday(first)) % 7
    day = 1 + until_first + (ordinal - 1) * 7
    if day > calendar.monthrange(year, month)[1]:
        return None
    return date(year, month, day)


def trip_overlaps_fixed_annual(
    trip_start: date,
    trip_end: date,
    month_start: int,
    day_start: int,
    month_end: int | None = None,
    day_end: int | None = None,
) -> bool:
    """Check a fixed annual period against the trip for every year it spans."""
    end_month = month_end if month_end is not None else month_start
    end_day = day_end if day_end is not None else day_start

    for year in range(trip_start.year, trip_end.year + 1):
        rule_start = _safe_date(year, month_start, day_start)
        rule_end = _safe_date(year, end_month, end_day)

        if rule_end < rule_start:
            # Wraps the new year: test the December and January portions apart,
            # including this January's tail of last year's run
            if _overlaps(trip_start, trip_end, date(year, 1, 1), rule_end):
                return True
            if _overlaps(trip_start, trip_end, rule_start, date(year, 12, 31)):
                return True
            next_year_end = _safe_date(year + 1, end_month, end_day)
            if _overlaps(trip_start, trip_end, date(year + 1, 1, 1), next_year_end):
                return True
        elif _overlaps(trip_start, trip_end, rule_start, rule_end):
            return True

    return False


def trip_overlaps_floating_annual(
    trip_start: date,
    trip_end: date,
    month: int,
    week_ordinal: int,
    day_of_week: int,
    duration_days: int = 1,
) -> bool:
    """Check a relative annual date ("3rd Saturday of March") against the trip."""
    for year in range(trip_start.year, trip_end.year + 1):
        event_start = nth_weekday_of_month(year, month, day_of_week, week_ordinal)
        if event_start is None:
            continue
        event_end = event_start + timedelta(days=max(1, duration_days) - 1)
        if _overlaps(trip_start, trip_end, event_start, event_end):
            return True
    return False


def trip_overlaps_date_range(
    trip_start: date,
    trip_end: date,
    month_start: int,
    day_start: int,
    month_end: int,
    day_end: int,
    year_start: int | None = None,
    year_end: int | None = None,
) -> bool:
    """Check a month/day range, optionally bounded by explicit years."""
    trip_year = trip_start.year
    if year_start is not None and trip_year < year_start:
        return False
    if year_end is not None and trip_year > year_end:
        return False

    if year_start is not None:
        event_start = _safe_date(year_start, month_start, day_start)
        event_end = _safe_date(year_end if year_end is not None else year_start, month_end, day_end)
        return _overlaps(trip_start, trip_end, event_start, event_end)

    # Annual range: anchor on each candidate year, including the previous
    # one so a January trip sees a December-February range.
    for anchor in range(trip_year - 1, trip_end.year + 1):
        event_start = _safe_date(anchor, month_start, day_start)
        end_year = year_end if year_end is not None else anchor
        event_end = _safe_date(end_year, month_end, day_end)
        if event_end < event_start and year_end is None:
            event_end = _safe_date(anchor + 1, month_end, day_end)
        if _overlaps(trip_start, trip_end, event_start, event_end):
            return True
    return False


def rule_overlaps_trip(rule: AvailabilityRule, trip_start: date, trip_end: date) -> bool:
    """Dispatch one rule to its overlap check; incomplete rules never match."""
    if rule.availability_type == "fixed_annual":
        if rule.month_start is None or rule.day_start is None:
            return False
        return trip_overlaps_fixed_annual(
            trip_start, trip_end, rule.month_start, rule.day_start, rule.month_end, rule.day_end
        )
    if rule.availability_type == "floating_annual":
        if rule.month_start is None or rule.week_ordinal is None or rule.day_of_week is None:
            return False
        return trip_overlaps_floating_annual(
            trip_start,
            trip_end,
            rule.month_start,
            rule.week_ordinal,
            rule.day_of_week,
            rule.duration_days,
        )
    if rule.availability_type == "date_range":
        if (
            rule.month_start is None
            or rule.day_start is None
            or rule.month_end is None
            or rule.day_end is None
        ):
            return False
        return trip_overlaps_date_range(
            trip_start,
            trip_end,
            rule.month_start,
            rule.day_start,
            rule.month_end,
            rule.day_end,
            rule.year_start,
            rule.year_end,
        )
    return False


def is_seasonal_location_relevant(
    is_seasonal: bool | None,
    rules: Sequence[AvailabilityRule] | None,
    trip_start: date | None,
    trip_end: date | None,
) -> bool:
    """Whether a (possibly seasonal) location should be offered for a trip.

    Non-seasonal locations are always relevant. Seasonal locations are
    excluded when trip dates or rules are missing; otherwise they are relevant
    iff any available-marked rule overlaps the trip.
    """
    if not is_seasonal:
        return True
    if trip_start is None or trip_end is None:
        return False
    if not rules:
        return False

    for rule in rules:
        if not rule.is_available:
            continue
        if rule_overlaps_trip(rule, trip_start, trip_end):
            return True
    return False


def filter_by_trip_dates(candidates: Iterable[T], trip_start: date | None, trip_end: date | None) -> list[T]:
    """Keep non-seasonal candidates and seasonal ones overlapping the trip."""
    return [
        c
        for c in candidates
        if is_seasonal_location_relevant(c.is_seasonal, c.availability, trip_start, trip_end)
    ]


def _rule_matches_date(rule: AvailabilityRule, day: date) -> bool:
    return rule_overlaps_trip(rule, day, day)


def is_location_available_on_date(location: Location, day: date) -> tuple[bool, str | None]:
    """Availability of a location on one date, with a reason.

    The first rule matching the date decides: an available rule opens the
    location, a closure rule closes it. Seasonal locations with no matching
    rule are unavailable.
    """
    if not location.is_seasonal:
        return True, None

    if not location.availability:
        return False, f"{location.name} is a seasonal location but has no availability rules defined"

    for rule in location.availability:
        if _rule_matches_date(rule, day):
            if rule.is_available:
                return True, rule.description or "Available during this period"
            return False, rule.description or "Closed during this period"

    return False, f"{location.name} is not available on {day.isoformat()}"


def available_dates_in_trip(location: Location, trip_start: date, trip_end: date) -> list[date]:
    """Dates within the trip on which the location is available."""
    dates: list[date] = []
    current = trip_start
    while current <= trip_end:
        available, _ = is_location_available_on_date(location, current)
        if available:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def is_location_available_during_trip(
    location: Location, trip_start: date, trip_end: date
) -> tuple[bool, str | None]:
    """Whether the location is available on at least one trip date."""
    if not location.is_seasonal:
        return True, None
    dates = available_dates_in_trip(location, trip_start, trip_end)
    if dates:
        return True, f"Available on {dates[0].isoformat()}"
    return False, f"{location.name} is not available during your trip dates"
