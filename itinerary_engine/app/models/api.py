"""Request/response envelopes for the HTTP surface."""

from datetime import date, datetime

from pydantic import Field

from itinerary_engine.app.models.common import CamelModel
from itinerary_engine.app.models.conflicts import Conflict, ConflictSummary
from itinerary_engine.app.models.itinerary import (
    Activity,
    AvailabilityStatus,
    DayEntryPoints,
    EntryPoint,
    Itinerary,
    ItineraryDay,
)
from itinerary_engine.app.models.location import BusyLevel, Location


class SchedulerOptions(CamelModel):
    """Per-request overrides of the scheduling defaults."""

    default_day_start: str | None = None
    default_day_end: str | None = None
    default_visit_minutes: int | None = Field(default=None, gt=0)
    transition_buffer_minutes: int | None = Field(default=None, ge=0)


class ScheduleRequest(CamelModel):
    """POST /itinerary/schedule body."""

    itinerary: Itinerary
    options: SchedulerOptions | None = None
    day_entry_points: dict[str, DayEntryPoints] | None = None
    locations: list[Location] = Field(default_factory=list)


class ScheduleResponse(CamelModel):
    """Fully timestamped itinerary."""

    data: Itinerary


class RouteRequest(CamelModel):
    """POST /itinerary/route body."""

    day: ItineraryDay
    start_point: EntryPoint | None = None
    end_point: EntryPoint | None = None
    locations: list[Location] = Field(default_factory=list)


class RouteStats(CamelModel):
    """Route optimization counters."""

    optimized_count: int
    skipped_count: int


class RouteResponse(CamelModel):
    """Reordered day (unchanged when ``optimized`` is false)."""

    optimized: bool
    day: ItineraryDay
    stats: RouteStats


class ConflictsRequest(CamelModel):
    """POST /itinerary/conflicts body."""

    itinerary: Itinerary


class ConflictsResponse(CamelModel):
    """Conflicts plus severity summary."""

    conflicts: list[Conflict]
    by_day: dict[str, list[Conflict]] = Field(default_factory=dict)
    summary: ConflictSummary


class CompileRequest(CamelModel):
    """POST /itinerary/compile body."""

    itinerary: Itinerary
    locations: list[Location] = Field(default_factory=list)
    trip_start: date | None = None
    trip_end: date | None = None
    options: SchedulerOptions | None = None
    day_entry_points: dict[str, DayEntryPoints] | None = None
    optimize_routes: bool = True


class CompileResponse(CamelModel):
    """Scheduled itinerary with its conflicts."""

    data: Itinerary
    conflicts: list[Conflict]
    summary: ConflictSummary
    excluded_activity_ids: list[str] = Field(default_factory=list)


class AvailabilityRequest(CamelModel):
    """POST /availability/check body."""

    activities: list[Activity]
    locations: list[Location] = Field(default_factory=list)
    now: datetime | None = None


class AvailabilityResult(CamelModel):
    """Availability of one activity at the request instant."""

    activity_id: str
    status: AvailabilityStatus
    message: str
    reservation_required: bool | None = None
    busy_level: BusyLevel | None = None


class AvailabilityResponse(CamelModel):
    """Results in the same order as the request's activities."""

    results: list[AvailabilityResult]
