"""Itinerary models - the document the engine schedules and inspects."""

from typing import Annotated, Literal

from pydantic import Field

from itinerary_engine.app.models.common import (
    CamelModel,
    Coordinates,
    MealType,
    TimeOfDay,
    TravelMode,
    Weekday,
)

ScheduleStatus = Literal["scheduled", "tentative", "out-of-hours"]
WindowStatus = Literal["within", "outside", "unknown"]
AvailabilityStatus = Literal["open", "closed", "unknown", "requires_reservation", "busy"]


class OperatingWindow(CamelModel):
    """Open/close pair for the visit day (HH:MM)."""

    opens_at: str
    closes_at: str
    is_overnight: bool = False
    note: str | None = None
    status: WindowStatus | None = None


class Schedule(CamelModel):
    """Computed visit times (HH:MM, may exceed 24:00 past midnight)."""

    arrival_time: str
    departure_time: str
    arrival_buffer_minutes: int | None = None
    departure_buffer_minutes: int | None = None
    status: ScheduleStatus | None = None
    operating_window: OperatingWindow | None = None


class TravelSegment(CamelModel):
    """Travel leg between two stops."""

    mode: TravelMode = TravelMode.walk
    duration_minutes: int = Field(default=0, ge=0)
    distance_meters: float | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    source: str | None = None


class PlaceActivity(CamelModel):
    """A visitable stop."""

    kind: Literal["place"] = "place"
    id: str
    title: str
    time_of_day: TimeOfDay = TimeOfDay.morning
    location_id: str | None = None
    coordinates: Coordinates | None = None
    duration_min: int | None = Field(default=None, gt=0)
    neighborhood: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    schedule: Schedule | None = None
    operating_window: OperatingWindow | None = None
    travel_from_previous: TravelSegment | None = None
    travel_to_next: TravelSegment | None = None
    meal_type: MealType | None = None
    availability_status: AvailabilityStatus | None = None


class NoteActivity(CamelModel):
    """Free-text entry; never scheduled against hours or checked for conflicts."""

    kind: Literal["note"] = "note"
    id: str
    title: str
    time_of_day: TimeOfDay = TimeOfDay.morning
    notes: str = ""
    start_time: str | None = None
    end_time: str | None = None


Activity = Annotated[PlaceActivity | NoteActivity, Field(discriminator="kind")]


class DayBounds(CamelModel):
    """Configured start/end of a day (HH:MM)."""

    start_time: str | None = None
    end_time: str | None = None


class CityTransition(CamelModel):
    """Inter-city travel between consecutive days."""

    from_city_id: str
    to_city_id: str
    mode: TravelMode
    duration_minutes: int
    departure_time: str
    arrival_time: str
    notes: str | None = None


class ItineraryDay(CamelModel):
    """One day of the itinerary; activity order is the visiting order."""

    id: str
    date_label: str | None = None
    city_id: str | None = None
    weekday: Weekday | None = None
    bounds: DayBounds | None = None
    activities: list[Activity] = Field(default_factory=list)
    city_transition: CityTransition | None = None


class Itinerary(CamelModel):
    """Ordered sequence of days."""

    days: list[ItineraryDay] = Field(default_factory=list)
    timezone: str | None = None


class EntryPoint(CamelModel):
    """Externally supplied anchor for a day's route (hotel, station, airport)."""

    coordinates: Coordinates
    type: str | None = None
    id: str | None = None
    name: str | None = None


class DayEntryPoints(CamelModel):
    """Start/end anchors for one day."""

    start_point: EntryPoint | None = None
    end_point: EntryPoint | None = None
