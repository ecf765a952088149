"""Conflict models - scheduling problems found in an itinerary."""

from enum import Enum
from typing import Any

from pydantic import Field

from itinerary_engine.app.models.common import CamelModel

# JSON-serializable value types for conflict details
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class ConflictSeverity(str, Enum):
    """Severity levels for conflicts."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ConflictType(str, Enum):
    """Closed conflict taxonomy."""

    CLOSED_DURING_VISIT = "closed_during_visit"
    INSUFFICIENT_TRAVEL_TIME = "insufficient_travel_time"
    OVERLAPPING_ACTIVITIES = "overlapping_activities"
    RESERVATION_RECOMMENDED = "reservation_recommended"


class Conflict(CamelModel):
    """A scheduling conflict detected on one activity.

    Conflicts are derived from the itinerary on every call; they carry no
    identity beyond the activity they describe.
    """

    id: str
    type: ConflictType
    severity: ConflictSeverity
    day_id: str
    day_index: int
    activity_id: str
    activity_title: str
    title: str  # Short headline, e.g. "Schedule Overlap"
    message: str  # Human-readable description (1-2 sentences)
    details: dict[str, JsonValue] = Field(default_factory=dict)


class ConflictSummary(CamelModel):
    """Counts by severity."""

    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0


class ConflictReport(CamelModel):
    """Result of conflict detection for an entire itinerary."""

    conflicts: list[Conflict] = Field(default_factory=list)
    by_day: dict[str, list[Conflict]] = Field(default_factory=dict)
    summary: ConflictSummary = Field(default_factory=ConflictSummary)
