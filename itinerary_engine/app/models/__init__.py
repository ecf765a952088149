"""Models package - re-exports for convenience."""

from itinerary_engine.app.models.api import (
    AvailabilityRequest,
    AvailabilityResponse,
    AvailabilityResult,
    CompileRequest,
    CompileResponse,
    ConflictsRequest,
    ConflictsResponse,
    RouteRequest,
    RouteResponse,
    RouteStats,
    ScheduleRequest,
    ScheduleResponse,
    SchedulerOptions,
)
from itinerary_engine.app.models.common import (
    CamelModel,
    Coordinates,
    MealType,
    TimeOfDay,
    TravelMode,
    Weekday,
)
from itinerary_engine.app.models.conflicts import (
    Conflict,
    ConflictReport,
    ConflictSeverity,
    ConflictSummary,
    ConflictType,
)
from itinerary_engine.app.models.itinerary import (
    Activity,
    CityTransition,
    DayBounds,
    DayEntryPoints,
    EntryPoint,
    Itinerary,
    ItineraryDay,
    NoteActivity,
    OperatingWindow,
    PlaceActivity,
    Schedule,
    TravelSegment,
)
from itinerary_engine.app.models.location import (
    AvailabilityRule,
    Location,
    MealOptions,
    OperatingHours,
    OperatingPeriod,
)

__all__ = [
    # Common
    "CamelModel",
    "Coordinates",
    "Weekday",
    "TimeOfDay",
    "TravelMode",
    "MealType",
    # Itinerary
    "Itinerary",
    "ItineraryDay",
    "DayBounds",
    "Activity",
    "PlaceActivity",
    "NoteActivity",
    "Schedule",
    "OperatingWindow",
    "TravelSegment",
    "CityTransition",
    "EntryPoint",
    "DayEntryPoints",
    # Locations
    "Location",
    "OperatingHours",
    "OperatingPeriod",
    "AvailabilityRule",
    "MealOptions",
    # Conflicts
    "Conflict",
    "ConflictReport",
    "ConflictSeverity",
    "ConflictSummary",
    "ConflictType",
    # API envelopes
    "SchedulerOptions",
    "ScheduleRequest",
    "ScheduleResponse",
    "RouteRequest",
    "RouteResponse",
    "RouteStats",
    "ConflictsRequest",
    "ConflictsResponse",
    "CompileRequest",
    "CompileResponse",
    "AvailabilityRequest",
    "AvailabilityResult",
    "AvailabilityResponse",
]
