"""Meal suitability and dining detection for catalog locations.

Signals are layered from most to least reliable: Google place types, explicit
meal-option flags, the weekday's operating hours, and finally name and
description keywords when no structured data exists. A location is kept
unless some layer disqualifies it.
"""

import re
from collections.abc import Iterable, Sequence
from datetime import date

from itinerary_engine.app.availability.opening_hours import get_period_for_day, is_overnight
from itinerary_engine.app.models.common import WEEKDAYS_FROM_MONDAY, MealType, Weekday
from itinerary_engine.app.models.location import Location
from itinerary_engine.app.utils.timeutils import parse_time_to_minutes

PERMANENTLY_CLOSED = "PERMANENTLY_CLOSED"

# Google types that are never breakfast venues
NOT_BREAKFAST_TYPES = frozenset(
    {
        "bar",
        "night_club",
        "pub",
        "wine_bar",
        "cocktail_bar",
        "brewery",
        "izakaya",
    }
)

NOT_BREAKFAST_KEYWORDS = (
    "izakaya",
    "bar",
    "pub",
    "brewery",
    "sake",
    "cocktail",
    "night",
    "ramen",
    "gyoza",
    "sukiyaki",
    "shabu",
    "yakiniku",
    "yakitori",
)

BREAKFAST_KEYWORDS = (
    "cafe",
    "café",
    "coffee",
    "breakfast",
    "brunch",
    "morning",
    "bakery",
    "toast",
    "egg",
    "pancake",
)

# Dessert and snack places are not meals
DESSERT_KEYWORDS = (
    "soft serve",
    "ice cream",
    "gelato",
    "dessert",
    "sweets",
    "parfait",
    "cake shop",
    "patisserie",
)

DINING_CATEGORIES = ("restaurant", "bar", "market", "food")

DINING_GOOGLE_TYPES = (
    "restaurant",
    "cafe",
    "coffee_shop",
    "bar",
    "bakery",
    "ramen_restaurant",
    "sushi_restaurant",
    "japanese_restaurant",
    "fast_food_restaurant",
    "meal_takeaway",
    "food",
)

# Landmark names that must not be treated as restaurants
LANDMARK_PATTERNS = re.compile(
    r"castle|shrine|temple|museum|palace|tower|park|garden|observatory|gate|historic|heritage"
    r"|ruins|monument|jo\b|jinja|jingu|dera|taisha|-ji\b|城|神社|寺|塔|門",
    re.IGNORECASE,
)

_RESTAURANT_NAME = re.compile(r"restaurant|ramen|sushi|izakaya|cafe|café|dining", re.IGNORECASE)

BREAKFAST_LATEST_OPEN_HOUR = 11
LUNCH_LATEST_OPEN_HOUR = 17
DINNER_EARLIEST_CLOSE_HOUR = 18


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against any keyword."""
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def weekday_for_trip_date(value: str | date) -> Weekday:
    """Weekday of an ISO trip date ("2025-02-20") or a date."""
    day = value if isinstance(value, date) else date.fromisoformat(value)
    return WEEKDAYS_FROM_MONDAY[day.weekday()]


def _google_types(location: Location) -> list[str]:
    types = [t.lower() for t in location.google_types]
    if location.google_primary_type:
        types.append(location.google_primary_type.lower())
    return types


def _hours_verdict(location: Location, meal_type: MealType, weekday: Weekday) -> bool | None:
    """False when the weekday's hours rule the meal out, else None."""
    period = get_period_for_day(location.operating_hours, weekday)
    if period is None:
        return None

    if meal_type in (MealType.breakfast, MealType.lunch):
        opens = parse_time_to_minutes(period.open)
        if opens is None:
            return None
        limit = BREAKFAST_LATEST_OPEN_HOUR if meal_type == MealType.breakfast else LUNCH_LATEST_OPEN_HOUR
        return False if opens // 60 >= limit else None

    if meal_type == MealType.dinner:
        if is_overnight(period):
            return None
        closes = parse_time_to_minutes(period.close)
        if closes is None:
            return None
        return False if closes // 60 < DINNER_EARLIEST_CLOSE_HOUR else None

    return None


def _meal_options_verdict(location: Location, meal_type: MealType) -> bool | None:
    """True/False when meal-option flags decide, else None."""
    options = location.meal_options
    if options is None:
        return None

    if meal_type == MealType.breakfast:
        if options.serves_breakfast or options.serves_brunch:
            return True
        if options.serves_breakfast is False and options.serves_brunch is False:
            return False
    elif meal_type == MealType.lunch:
        if options.serves_lunch:
            return True
        if options.serves_lunch is False and options.serves_dinner and not options.serves_breakfast:
            return False
    elif meal_type == MealType.dinner:
        if options.serves_dinner:
            return True
        if options.serves_dinner is False and (options.serves_breakfast or options.serves_lunch):
            return False
    return None


def is_suitable_for_meal(location: Location, meal_type: MealType, weekday: Weekday) -> bool:
    """Whether one location suits a meal on ``weekday``."""
    types = _google_types(location)

    if meal_type == MealType.breakfast and any(t in NOT_BREAKFAST_TYPES for t in types):
        return False

    verdict = _meal_options_verdict(location, meal_type)
    if verdict is not None:
        return verdict

    hours_verdict = _hours_verdict(location, meal_type, weekday)
    if hours_verdict is not None:
        return hours_verdict

    has_structured_data = bool(types) or location.meal_options is not None or (
        location.operating_hours is not None and bool(location.operating_hours.periods)
    )
    if meal_type == MealType.breakfast and not has_structured_data:
        text = " ".join(
            part for part in (location.name, location.short_description, location.description) if part
        )
        if contains_keyword(text, NOT_BREAKFAST_KEYWORDS):
            return False
        if contains_keyword(text, DESSERT_KEYWORDS):
            return False

    return True


def filter_by_meal_type(
    locations: Sequence[Location],
    meal_type: MealType,
    weekday: Weekday | None = None,
) -> list[Location]:
    """Keep locations suitable for ``meal_type``.

    Args:
        locations: Candidate dining locations
        meal_type: Meal slot to fill
        weekday: Day whose operating hours apply (defaults to today)

    Returns:
        The suitable locations in input order
    """
    day = weekday or weekday_for_trip_date(date.today())
    return [location for location in locations if is_suitable_for_meal(location, meal_type, day)]


def is_dining_location(location: Location) -> bool:
    """Whether a location is a restaurant, cafe, bar or similar.

    Google types are trusted first. Otherwise a dining category or a
    restaurant-like name counts, as long as the name is not a landmark.
    """
    if location.business_status == PERMANENTLY_CLOSED:
        return False

    if any(t in DINING_GOOGLE_TYPES for t in _google_types(location)):
        return True

    if LANDMARK_PATTERNS.search(location.name):
        return False
    if (location.category or "").lower() in DINING_CATEGORIES:
        return True
    return bool(_RESTAURANT_NAME.search(location.name))
