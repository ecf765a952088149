"""Visit-duration resolution."""

import re

from itinerary_engine.app.models.itinerary import PlaceActivity
from itinerary_engine.app.models.location import Location

# Typical visit length by category (minutes)
CATEGORY_DEFAULT_MINUTES: dict[str, int] = {
    "temple": 60,
    "shrine": 45,
    "museum": 120,
    "park": 90,
    "garden": 75,
    "castle": 90,
    "landmark": 60,
    "viewpoint": 45,
    "historic": 60,
    "market": 60,
    "shopping": 90,
    "restaurant": 75,
    "cafe": 45,
    "bar": 90,
    "entertainment": 120,
    "onsen": 120,
    "nature": 120,
    "food": 60,
}

_HOURS_RE = re.compile(r"([\d.]+)\s*(?:hours?|hrs?|h\b)", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)


def parse_estimated_duration(text: str | None) -> int | None:
    """Parse free text such as "1.5 hours" or "1 hr 30 min" into minutes."""
    if not text:
        return None
    total = 0.0
    hours = _HOURS_RE.search(text)
    if hours:
        try:
            total += float(hours.group(1)) * 60
        except ValueError:
            pass
    minutes = _MINUTES_RE.search(text)
    if minutes:
        total += int(minutes.group(1))
    if total <= 0:
        return None
    return int(round(total))


def category_default_minutes(activity: PlaceActivity, location: Location | None) -> int | None:
    """Category default from the location, else from the activity's tags."""
    if location is not None and location.category:
        minutes = CATEGORY_DEFAULT_MINUTES.get(location.category.lower())
        if minutes:
            return minutes
    for tag in activity.tags:
        minutes = CATEGORY_DEFAULT_MINUTES.get(tag.lower())
        if minutes:
            return minutes
    return None


def resolve_visit_duration(
    activity: PlaceActivity,
    location: Location | None,
    default_minutes: int,
) -> int:
    """Visit length: explicit, location data, category default, global default."""
    if activity.duration_min:
        return activity.duration_min

    if location is not None:
        if location.recommended_visit_minutes:
            return location.recommended_visit_minutes
        parsed = parse_estimated_duration(location.estimated_duration)
        if parsed:
            return parsed

    by_category = category_default_minutes(activity, location)
    if by_category:
        return by_category

    return default_minutes
