"""Location models - catalog data consumed by the engine."""

from typing import Literal

from pydantic import Field

from itinerary_engine.app.models.common import CamelModel, Coordinates, TravelMode, Weekday


class OperatingPeriod(CamelModel):
    """Opening window for one weekday.

    When ``is_overnight`` is set, ``close`` belongs to the following day.
    """

    day: Weekday
    open: str
    close: str
    is_overnight: bool = False


class OperatingHours(CamelModel):
    """Weekly operating hours."""

    periods: list[OperatingPeriod] = Field(default_factory=list)
    timezone: str | None = None
    notes: str | None = None


AvailabilityType = Literal["fixed_annual", "floating_annual", "date_range"]


class AvailabilityRule(CamelModel):
    """Seasonal availability rule.

    ``day_of_week`` uses 0=Sunday..6=Saturday; ``week_ordinal`` is 1-5 where 5
    means the last occurrence in the month.
    """

    availability_type: AvailabilityType
    month_start: int | None = Field(default=None, ge=1, le=12)
    day_start: int | None = Field(default=None, ge=1, le=31)
    month_end: int | None = Field(default=None, ge=1, le=12)
    day_end: int | None = Field(default=None, ge=1, le=31)
    week_ordinal: int | None = Field(default=None, ge=1, le=5)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    duration_days: int = Field(default=1, ge=1)
    year_start: int | None = None
    year_end: int | None = None
    is_available: bool = True
    description: str | None = None


class MealOptions(CamelModel):
    """Meal service flags (authoritative when present)."""

    serves_breakfast: bool | None = None
    serves_brunch: bool | None = None
    serves_lunch: bool | None = None
    serves_dinner: bool | None = None


BusyLevel = Literal["low", "moderate", "high"]


class Location(CamelModel):
    """A visitable place from the location catalog."""

    id: str
    name: str
    category: str | None = None
    coordinates: Coordinates | None = None
    operating_hours: OperatingHours | None = None
    is_seasonal: bool = False
    availability: list[AvailabilityRule] = Field(default_factory=list)
    meal_options: MealOptions | None = None
    google_primary_type: str | None = None
    google_types: list[str] = Field(default_factory=list)
    business_status: str | None = None
    short_description: str | None = None
    description: str | None = None
    recommended_visit_minutes: int | None = Field(default=None, gt=0)
    estimated_duration: str | None = None
    preferred_transit_modes: list[TravelMode] = Field(default_factory=list)
    busy_level: BusyLevel | None = None
