"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys.

    Itinerary documents arrive as camelCase JSON; attributes stay snake_case
    and either spelling is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    """Geographic coordinates (WGS84)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Weekday(str, Enum):
    """Day of week as used by operating hours."""

    sunday = "sunday"
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"


# Python's date.weekday(): Monday == 0
WEEKDAYS_FROM_MONDAY: tuple[Weekday, ...] = (
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
    Weekday.saturday,
    Weekday.sunday,
)


class TimeOfDay(str, Enum):
    """Coarse time-of-day bucket for an activity."""

    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


class TravelMode(str, Enum):
    """Travel mode between stops."""

    walk = "walk"
    transit = "transit"
    train = "train"
    bus = "bus"
    subway = "subway"
    car = "car"
    taxi = "taxi"
    bicycle = "bicycle"


class MealType(str, Enum):
    """Meal slot."""

    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"
