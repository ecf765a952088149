"""Per-activity availability checks, fanned out over a batch."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime

from itinerary_engine.app.availability.opening_hours import (
    OpenStatus,
    format_open_status,
    is_open_now,
    weekday_of,
)
from itinerary_engine.app.models.api import AvailabilityResult
from itinerary_engine.app.models.itinerary import Activity, OperatingWindow, PlaceActivity
from itinerary_engine.app.models.location import Location, OperatingHours, OperatingPeriod
from itinerary_engine.app.utils.logging import StructuredStageLogger
from itinerary_engine.app.utils.metrics import get_metrics

logger = logging.getLogger(__name__)

PERMANENTLY_CLOSED = "PERMANENTLY_CLOSED"


def _hours_from_window(window: OperatingWindow, instant: datetime) -> OperatingHours:
    """Treat an activity's own operating window as today's only period."""
    return OperatingHours(
        periods=[
            OperatingPeriod(
                day=weekday_of(instant),
                open=window.opens_at,
                close=window.closes_at,
                is_overnight=window.is_overnight,
            )
        ]
    )


def _open_status_for(activity: PlaceActivity, location: Location | None, now: datetime) -> OpenStatus:
    if location is not None and location.operating_hours is not None:
        return is_open_now(location.operating_hours, now)
    if activity.operating_window is not None:
        return is_open_now(_hours_from_window(activity.operating_window, now), now)
    return OpenStatus(state="unknown")


def check_activity_availability(
    activity: Activity,
    location: Location | None,
    now: datetime,
) -> AvailabilityResult:
    """Availability of a single activity at ``now``.

    Precedence: permanently closed, closed now, reservation required, busy,
    open, unknown.
    """
    if not isinstance(activity, PlaceActivity):
        return AvailabilityResult(
            activity_id=activity.id,
            status="unknown",
            message="Notes are not tied to a location",
        )

    needs_reservation = activity.availability_status == "requires_reservation"

    if location is not None and location.business_status == PERMANENTLY_CLOSED:
        return AvailabilityResult(
            activity_id=activity.id,
            status="closed",
            message="Permanently closed",
            reservation_required=needs_reservation or None,
        )

    status = _open_status_for(activity, location, now)
    label = format_open_status(status, today=weekday_of(now))

    if status.state == "closed":
        return AvailabilityResult(
            activity_id=activity.id,
            status="closed",
            message=label,
            reservation_required=needs_reservation or None,
        )

    if needs_reservation:
        return AvailabilityResult(
            activity_id=activity.id,
            status="requires_reservation",
            message="Reservation required",
            reservation_required=True,
        )

    busy_level = location.busy_level if location is not None else None
    if status.state == "open":
        if busy_level == "high":
            return AvailabilityResult(
                activity_id=activity.id,
                status="busy",
                message=f"{label} · usually busy at this time",
                busy_level=busy_level,
            )
        return AvailabilityResult(
            activity_id=activity.id,
            status="open",
            message=label,
            busy_level=busy_level,
        )

    return AvailabilityResult(
        activity_id=activity.id,
        status="unknown",
        message="Operating hours not available",
        busy_level=busy_level,
    )


async def check_availability_batch(
    activities: Sequence[Activity],
    locations: Mapping[str, Location],
    now: datetime,
    fanout_cap: int = 4,
) -> list[AvailabilityResult]:
    """Check every activity concurrently; results keep the input order.

    ``now`` is captured once by the caller so all checks agree. A failure on
    one activity yields ``unknown`` for it and does not affect the others.
    """
    semaphore = asyncio.Semaphore(max(1, fanout_cap))
    stage_logger = StructuredStageLogger()
    metrics = get_metrics()

    async def _check(activity: Activity) -> AvailabilityResult:
        location = None
        if isinstance(activity, PlaceActivity) and activity.location_id:
            location = locations.get(activity.location_id)
        async with semaphore:
            try:
                result = await asyncio.to_thread(check_activity_availability, activity, location, now)
            except Exception as e:
                stage_logger.log_fallback(activity.id, "availability", type(e).__name__)
                result = AvailabilityResult(
                    activity_id=activity.id,
                    status="unknown",
                    message="Availability could not be determined",
                )
        metrics.inc_availability(result.status)
        return result

    return list(await asyncio.gather(*(_check(a) for a in activities)))
