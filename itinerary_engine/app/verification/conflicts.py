"""Rule-based conflict detection over a scheduled itinerary.

Four independent rules run over the place activities of each day:

- closed_during_visit: the visit falls outside the operating window
- insufficient_travel_time: the gap before a stop is shorter than its travel leg
- overlapping_activities: a stop starts before the previous one ends
- reservation_recommended: dining that usually needs a booking

A rule that lacks the data it needs is skipped for that activity only. Notes
never produce conflicts. Detection is recomputed from scratch on each call and
never raises on itinerary content.
"""

import logging
import time
from collections.abc import Sequence

from itinerary_engine.app.models.common import MealType
from itinerary_engine.app.models.conflicts import (
    Conflict,
    ConflictReport,
    ConflictSeverity,
    ConflictSummary,
    ConflictType,
)
from itinerary_engine.app.models.itinerary import Itinerary, ItineraryDay, OperatingWindow, PlaceActivity
from itinerary_engine.app.utils.logging import StructuredStageLogger
from itinerary_engine.app.utils.metrics import get_metrics
from itinerary_engine.app.utils.timeutils import MINUTES_IN_DAY, format_clock, parse_time_to_minutes

logger = logging.getLogger(__name__)

FINE_DINING_TAGS = ("fine_dining", "kaiseki", "omakase")
RESTAURANT_TAGS = ("restaurant", "dining")

# Slack added to suggested times in travel-time messages
SUGGESTION_MARGIN_MINUTES = 5


def _window_for(activity: PlaceActivity) -> OperatingWindow | None:
    if activity.schedule is not None and activity.schedule.operating_window is not None:
        return activity.schedule.operating_window
    return activity.operating_window


def _effective_interval(arrival: int, opens: int, closes: int, overnight: bool) -> tuple[int, int]:
    """Open interval in the same minute frame as ``arrival``.

    Equal open and close times mean open around the clock.
    """
    if not overnight and closes != opens:
        return opens, closes
    if arrival < closes:
        # Early-morning visit inside the run that started the evening before
        return opens - MINUTES_IN_DAY, closes
    return opens, closes + MINUTES_IN_DAY


def detect_closed_conflict(activity: PlaceActivity, day_id: str, day_index: int) -> Conflict | None:
    """Visit starts before opening or ends after closing."""
    schedule = activity.schedule
    window = _window_for(activity)
    if schedule is None or window is None:
        return None

    arrival = parse_time_to_minutes(schedule.arrival_time)
    departure = parse_time_to_minutes(schedule.departure_time)
    opens = parse_time_to_minutes(window.opens_at)
    closes = parse_time_to_minutes(window.closes_at)
    if arrival is None or departure is None or opens is None or closes is None:
        return None

    overnight = window.is_overnight or closes < opens
    open_at, close_at = _effective_interval(arrival, opens, closes, overnight)
    if departure < arrival:
        departure += MINUTES_IN_DAY

    if arrival < open_at:
        message = f"Scheduled arrival at {schedule.arrival_time}, but opens at {window.opens_at}"
    elif arrival >= close_at or departure > close_at:
        message = f"Closes at {window.closes_at}, but scheduled until {schedule.departure_time}"
    else:
        return None

    return Conflict(
        id=f"closed-{activity.id}",
        type=ConflictType.CLOSED_DURING_VISIT,
        severity=ConflictSeverity.ERROR,
        day_id=day_id,
        day_index=day_index,
        activity_id=activity.id,
        activity_title=activity.title,
        title="Outside Operating Hours",
        message=message,
        details={
            "scheduledTime": schedule.arrival_time,
            "opensAt": window.opens_at,
            "closesAt": window.closes_at,
        },
    )


def detect_travel_time_conflicts(
    places: Sequence[PlaceActivity], day_id: str, day_index: int
) -> list[Conflict]:
    """Consecutive stops whose gap is shorter than the travel between them."""
    conflicts: list[Conflict] = []
    for previous, current in zip(places, places[1:]):
        travel = current.travel_from_previous.duration_minutes if current.travel_from_previous else 0
        if not travel:
            continue
        if previous.schedule is None or current.schedule is None:
            continue
        previous_departure = parse_time_to_minutes(previous.schedule.departure_time)
        current_arrival = parse_time_to_minutes(current.schedule.arrival_time)
        if previous_departure is None or current_arrival is None:
            continue

        gap = current_arrival - previous_departure
        if gap >= travel:
            continue

        if gap < 0:
            suggested = format_clock(previous_departure + travel + SUGGESTION_MARGIN_MINUTES)
            message = (
                f"Schedule overlaps by {abs(gap)} min. "
                f"Remove one activity or shift arrival to {suggested}."
            )
        else:
            suggested = format_clock(previous_departure - (travel - gap + SUGGESTION_MARGIN_MINUTES))
            message = (
                f"Only {gap} min gap but travel takes ~{travel} min. "
                f"Leave by {suggested} or switch to a faster mode."
            )

        conflicts.append(
            Conflict(
                id=f"travel-{current.id}",
                type=ConflictType.INSUFFICIENT_TRAVEL_TIME,
                severity=ConflictSeverity.ERROR if gap < 0 else ConflictSeverity.WARNING,
                day_id=day_id,
                day_index=day_index,
                activity_id=current.id,
                activity_title=current.title,
                title="Travel Time Issue",
                message=message,
                details={
                    "travelTime": travel,
                    "gapMinutes": gap,
                    "requiredGap": travel,
                    "relatedActivityId": previous.id,
                    "relatedActivityTitle": previous.title,
                },
            )
        )
    return conflicts


def detect_overlapping_activities(
    places: Sequence[PlaceActivity], day_id: str, day_index: int
) -> list[Conflict]:
    """Stops that begin before the previous stop ends."""
    conflicts: list[Conflict] = []
    for previous, current in zip(places, places[1:]):
        if previous.schedule is None or current.schedule is None:
            continue
        previous_departure = parse_time_to_minutes(previous.schedule.departure_time)
        current_arrival = parse_time_to_minutes(current.schedule.arrival_time)
        if previous_departure is None or current_arrival is None:
            continue
        if previous_departure <= current_arrival:
            continue

        overlap = previous_departure - current_arrival
        conflicts.append(
            Conflict(
                id=f"overlap-{current.id}",
                type=ConflictType.OVERLAPPING_ACTIVITIES,
                severity=ConflictSeverity.ERROR,
                day_id=day_id,
                day_index=day_index,
                activity_id=current.id,
                activity_title=current.title,
                title="Schedule Overlap",
                message=f"Overlaps with {previous.title} by {overlap} min",
                details={
                    "overlapMinutes": overlap,
                    "relatedActivityId": previous.id,
                    "relatedActivityTitle": previous.title,
                },
            )
        )
    return conflicts


def detect_reservation_needed(activity: PlaceActivity, day_id: str, day_index: int) -> Conflict | None:
    """Dining that typically needs a reservation."""
    tags = [tag.lower() for tag in activity.tags]
    fine_dining = any(marker in tag for tag in tags for marker in FINE_DINING_TAGS)
    restaurant = any(marker in tag for tag in tags for marker in RESTAURANT_TAGS)

    if fine_dining or activity.availability_status == "requires_reservation":
        title = "Reservation Recommended"
        message = (
            "Fine dining venue - advance reservation strongly recommended"
            if fine_dining
            else "This venue typically requires reservations"
        )
    elif restaurant and activity.meal_type == MealType.dinner:
        title = "Consider Reserving"
        message = "Popular dinner spot - reservations may be helpful"
    else:
        return None

    return Conflict(
        id=f"reservation-{activity.id}",
        type=ConflictType.RESERVATION_RECOMMENDED,
        severity=ConflictSeverity.INFO,
        day_id=day_id,
        day_index=day_index,
        activity_id=activity.id,
        activity_title=activity.title,
        title=title,
        message=message,
    )


def detect_day_conflicts(day: ItineraryDay, day_index: int) -> list[Conflict]:
    """All conflicts for one day, per-activity rules first."""
    places = [a for a in day.activities if isinstance(a, PlaceActivity)]
    conflicts: list[Conflict] = []

    for activity in places:
        closed = detect_closed_conflict(activity, day.id, day_index)
        if closed is not None:
            conflicts.append(closed)
        reservation = detect_reservation_needed(activity, day.id, day_index)
        if reservation is not None:
            conflicts.append(reservation)

    conflicts.extend(detect_travel_time_conflicts(places, day.id, day_index))
    conflicts.extend(detect_overlapping_activities(places, day.id, day_index))
    return conflicts


def summarize(conflicts: Sequence[Conflict]) -> ConflictSummary:
    """Counts by severity."""
    return ConflictSummary(
        total=len(conflicts),
        errors=sum(1 for c in conflicts if c.severity == ConflictSeverity.ERROR),
        warnings=sum(1 for c in conflicts if c.severity == ConflictSeverity.WARNING),
        info=sum(1 for c in conflicts if c.severity == ConflictSeverity.INFO),
    )


def detect_itinerary_conflicts(itinerary: Itinerary) -> ConflictReport:
    """Detect conflicts across every day of an itinerary.

    Args:
        itinerary: Itinerary, usually the output of the scheduler

    Returns:
        ConflictReport with the flat list, per-day grouping (days without
        conflicts are omitted) and severity counts
    """
    start_time = time.perf_counter()
    metrics = get_metrics()

    conflicts: list[Conflict] = []
    by_day: dict[str, list[Conflict]] = {}
    for day_index, day in enumerate(itinerary.days):
        day_conflicts = detect_day_conflicts(day, day_index)
        if day_conflicts:
            by_day[day.id] = day_conflicts
            conflicts.extend(day_conflicts)

    for conflict in conflicts:
        metrics.inc_conflict(conflict.type.value, conflict.severity.value)

    summary = summarize(conflicts)
    latency_ms = (time.perf_counter() - start_time) * 1000
    metrics.record_latency("conflicts", latency_ms)
    StructuredStageLogger().log_stage(
        "conflicts",
        "success",
        latency_ms,
        day_count=len(itinerary.days),
        errors=summary.errors,
        warnings=summary.warnings,
        info=summary.info,
    )

    return ConflictReport(conflicts=conflicts, by_day=by_day, summary=summary)


def get_day_conflicts(report: ConflictReport, day_id: str) -> list[Conflict]:
    """Conflicts for one day (empty for unknown days)."""
    return report.by_day.get(day_id, [])


def get_activity_conflicts(report: ConflictReport, activity_id: str) -> list[Conflict]:
    """Conflicts attached to one activity."""
    return [c for c in report.conflicts if c.activity_id == activity_id]


def has_activity_conflicts(report: ConflictReport, activity_id: str) -> bool:
    """Whether an activity has any conflict."""
    return any(c.activity_id == activity_id for c in report.conflicts)


def get_day_conflict_summary(report: ConflictReport, day_id: str) -> ConflictSummary:
    """Severity counts for one day."""
    return summarize(get_day_conflicts(report, day_id))
