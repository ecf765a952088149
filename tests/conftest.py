"""Shared pytest fixtures for all test suites."""

from collections.abc import Generator

import pytest

from itinerary_engine.app.config import get_settings
from itinerary_engine.app.models.common import Coordinates
from itinerary_engine.app.models.location import Location, OperatingHours, OperatingPeriod


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Reload settings for every test so env overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def temple_location() -> Location:
    """Kyoto temple open 09:00-17:00 every day."""
    days = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    return Location(
        id="loc-temple",
        name="Kiyomizu-dera",
        category="temple",
        coordinates=Coordinates(lat=34.9949, lng=135.7850),
        operating_hours=OperatingHours(
            periods=[OperatingPeriod(day=day, open="09:00", close="17:00") for day in days]
        ),
    )


@pytest.fixture
def night_bar_location() -> Location:
    """Bar open Friday 18:00 until 02:00 Saturday."""
    return Location(
        id="loc-bar",
        name="Golden Gai Bar",
        category="bar",
        coordinates=Coordinates(lat=35.6938, lng=139.7045),
        google_primary_type="bar",
        operating_hours=OperatingHours(
            periods=[OperatingPeriod(day="friday", open="18:00", close="02:00", is_overnight=True)]
        ),
    )
