"""Travel-time estimation between stops.

Travel time is an externally supplied estimate: either a great-circle
approximation or an OSRM-compatible routing service over HTTP.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from itinerary_engine.app.config import Settings, get_settings
from itinerary_engine.app.errors import TravelEstimateError
from itinerary_engine.app.models.common import Coordinates, TravelMode
from itinerary_engine.app.models.itinerary import PlaceActivity
from itinerary_engine.app.models.location import Location
from itinerary_engine.app.utils.geo import distance_meters

logger = logging.getLogger(__name__)

# Streets are not straight lines
ROUTE_DETOUR_FACTOR = 1.3

# Walking to the station and waiting for the next departure
TRANSIT_ACCESS_MINUTES = 5

_TRANSIT_MODES = {TravelMode.transit, TravelMode.train, TravelMode.bus, TravelMode.subway}


@dataclass(frozen=True)
class TravelEstimate:
    """Estimated leg between two points."""

    mode: TravelMode
    duration_minutes: int
    distance_meters: float | None = None
    source: str = "estimate"


class TravelTimeEstimator(Protocol):
    """Anything that can estimate a leg; raises TravelEstimateError on failure."""

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        ...


class HaversineTravelTimeEstimator:
    """Distance over mode speed, with a detour factor."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def _speed_kmh(self, mode: TravelMode) -> float:
        s = self._settings
        if mode == TravelMode.walk:
            return s.walk_speed_kmh
        if mode == TravelMode.bicycle:
            return s.bicycle_speed_kmh
        if mode == TravelMode.train:
            return s.train_speed_kmh
        if mode in (TravelMode.car, TravelMode.taxi):
            return s.car_speed_kmh
        return s.transit_speed_kmh

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        meters = distance_meters(origin, destination) * ROUTE_DETOUR_FACTOR
        minutes = meters / 1000.0 / self._speed_kmh(mode) * 60.0
        if mode in _TRANSIT_MODES:
            minutes += TRANSIT_ACCESS_MINUTES
        return TravelEstimate(
            mode=mode,
            duration_minutes=max(1, int(round(minutes))),
            distance_meters=round(meters, 1),
            source="haversine",
        )


class HttpRoutingEstimator:
    """OSRM-compatible routing service (``/route/v1/{profile}/{coords}``)."""

    _PROFILES = {
        TravelMode.walk: "foot",
        TravelMode.bicycle: "bike",
    }

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 4000,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._close_client = False
        if client is None:
            client = httpx.Client(timeout=timeout_ms / 1000.0)
            self._close_client = True
        self._client = client

    def close(self) -> None:
        """Close the HTTP client if this estimator created it."""
        if self._close_client:
            self._client.close()
            self._close_client = False

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        profile = self._PROFILES.get(mode, "driving")
        coords = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        url = f"{self._base_url}/route/v1/{profile}/{coords}"

        try:
            response = self._client.get(url, params={"overview": "false"})
            response.raise_for_status()
            data = response.json()
            route = data["routes"][0]
            seconds = float(route["duration"])
            meters = float(route["distance"])
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            raise TravelEstimateError(f"routing request failed: {type(e).__name__}") from e

        minutes = seconds / 60.0
        if mode in _TRANSIT_MODES:
            minutes += TRANSIT_ACCESS_MINUTES
        return TravelEstimate(
            mode=mode,
            duration_minutes=max(1, int(round(minutes))),
            distance_meters=meters,
            source="routing",
        )


def get_default_estimator(settings: Settings | None = None) -> TravelTimeEstimator:
    """Routing service when configured, else the great-circle estimator."""
    settings = settings or get_settings()
    if settings.routing_base_url:
        return HttpRoutingEstimator(settings.routing_base_url, settings.routing_timeout_ms)
    return HaversineTravelTimeEstimator(settings)


def close_estimator(estimator: TravelTimeEstimator) -> None:
    """Release resources held by an estimator (HTTP connection pools)."""
    if isinstance(estimator, HttpRoutingEstimator):
        estimator.close()


def choose_travel_mode(
    activity: PlaceActivity,
    location: Location | None,
    previous_location: Location | None,
) -> TravelMode:
    """Explicit mode, then the previous or current location's preference, then walk."""
    if activity.travel_from_previous is not None:
        return activity.travel_from_previous.mode
    if previous_location is not None and previous_location.preferred_transit_modes:
        return previous_location.preferred_transit_modes[0]
    if location is not None and location.preferred_transit_modes:
        return location.preferred_transit_modes[0]
    return TravelMode.walk


def plan_leg(
    estimator: TravelTimeEstimator,
    origin: Coordinates,
    destination: Coordinates,
    preferred_mode: TravelMode,
    walk_threshold_minutes: int,
) -> TravelEstimate:
    """Estimate a leg, switching long walks to transit.

    A non-walk preferred mode is kept as is. Otherwise walking is used when it
    takes at most ``walk_threshold_minutes``; longer walks try transit and
    keep walking if transit cannot be estimated.

    Raises:
        TravelEstimateError: If no estimate at all could be produced
    """
    if preferred_mode != TravelMode.walk:
        return estimator.estimate(origin, destination, preferred_mode)

    walk = estimator.estimate(origin, destination, TravelMode.walk)
    if walk.duration_minutes <= walk_threshold_minutes:
        return walk

    try:
        return estimator.estimate(origin, destination, TravelMode.transit)
    except TravelEstimateError as e:
        logger.warning(f"No transit estimate for a {walk.duration_minutes} min walk, walking instead: {e}")
        return walk
