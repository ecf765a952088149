"""Global pytest configuration."""

import os

# Pin engine settings for tests before any imports
os.environ.setdefault("ITINERARY_LOG_LEVEL", "WARNING")
os.environ.setdefault("ITINERARY_TRIP_TIMEZONE", "Asia/Tokyo")
# Never reach a real routing service from tests
os.environ["ITINERARY_ROUTING_BASE_URL"] = ""
