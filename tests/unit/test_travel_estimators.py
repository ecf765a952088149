"""Tests for travel-time estimators and mode choice."""

import httpx
import pytest

from itinerary_engine.app.config import Settings
from itinerary_engine.app.errors import TravelEstimateError
from itinerary_engine.app.models.common import Coordinates, TravelMode
from itinerary_engine.app.models.itinerary import PlaceActivity, TravelSegment
from itinerary_engine.app.models.location import Location
from itinerary_engine.app.scheduling.travel import (
    ROUTE_DETOUR_FACTOR,
    TRANSIT_ACCESS_MINUTES,
    HaversineTravelTimeEstimator,
    HttpRoutingEstimator,
    TravelEstimate,
    choose_travel_mode,
    close_estimator,
    get_default_estimator,
    plan_leg,
)
from itinerary_engine.app.utils.geo import distance_meters

ORIGIN = Coordinates(lat=35.0, lng=139.0)
ONE_KM_NORTH = Coordinates(lat=35.009, lng=139.0)


class ModeTableEstimator:
    """Estimator returning fixed minutes per mode; missing modes fail."""

    def __init__(self, minutes: dict[TravelMode, int]) -> None:
        self.minutes = minutes
        self.calls: list[TravelMode] = []

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        self.calls.append(mode)
        if mode not in self.minutes:
            raise TravelEstimateError(f"no {mode.value} estimate")
        return TravelEstimate(mode=mode, duration_minutes=self.minutes[mode], source="table")


# Haversine estimator


def test_haversine_walk_estimate() -> None:
    """Test distance over walking speed with the detour factor."""
    estimator = HaversineTravelTimeEstimator(Settings(walk_speed_kmh=4.5))
    estimate = estimator.estimate(ORIGIN, ONE_KM_NORTH, TravelMode.walk)

    meters = distance_meters(ORIGIN, ONE_KM_NORTH) * ROUTE_DETOUR_FACTOR
    assert estimate.mode == TravelMode.walk
    assert estimate.source == "haversine"
    assert estimate.duration_minutes == round(meters / 1000 / 4.5 * 60)


def test_haversine_minimum_one_minute() -> None:
    """Test that identical points still take one minute."""
    estimate = HaversineTravelTimeEstimator(Settings()).estimate(ORIGIN, ORIGIN, TravelMode.walk)
    assert estimate.duration_minutes == 1


def test_haversine_transit_includes_access_time() -> None:
    """Test that transit legs include station access and waiting."""
    estimator = HaversineTravelTimeEstimator(Settings(transit_speed_kmh=25.0))
    estimate = estimator.estimate(ORIGIN, ORIGIN, TravelMode.transit)
    assert estimate.duration_minutes == TRANSIT_ACCESS_MINUTES


# HTTP routing estimator


def test_http_routing_estimator_parses_response() -> None:
    """Test parsing of an OSRM-style response and the request URL."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"routes": [{"duration": 600.0, "distance": 800.0}]})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    estimator = HttpRoutingEstimator("http://osrm.local/", client=client)

    estimate = estimator.estimate(ORIGIN, ONE_KM_NORTH, TravelMode.walk)

    assert estimate.duration_minutes == 10
    assert estimate.distance_meters == 800.0
    assert estimate.source == "routing"
    assert seen[0].url.path == "/route/v1/foot/139.0,35.0;139.0,35.009"
    assert seen[0].url.params["overview"] == "false"
    client.close()


def test_http_routing_estimator_uses_driving_profile_for_taxi() -> None:
    """Test that non-walking, non-cycling modes use the driving profile."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"routes": [{"duration": 300.0, "distance": 2000.0}]})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    HttpRoutingEstimator("http://osrm.local", client=client).estimate(ORIGIN, ONE_KM_NORTH, TravelMode.taxi)

    assert seen[0].startswith("/route/v1/driving/")
    client.close()


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="upstream error"),
        httpx.Response(200, json={"routes": []}),
        httpx.Response(200, json={"code": "NoRoute"}),
    ],
)
def test_http_routing_estimator_errors_raise(response: httpx.Response) -> None:
    """Test that HTTP and payload failures surface as TravelEstimateError."""
    client = httpx.Client(transport=httpx.MockTransport(lambda request: response))
    estimator = HttpRoutingEstimator("http://osrm.local", client=client)

    with pytest.raises(TravelEstimateError):
        estimator.estimate(ORIGIN, ONE_KM_NORTH, TravelMode.walk)
    client.close()


def test_default_estimator_follows_settings() -> None:
    """Test that a configured routing URL selects the HTTP estimator."""
    assert isinstance(get_default_estimator(Settings(routing_base_url=None)), HaversineTravelTimeEstimator)
    routing = get_default_estimator(Settings(routing_base_url="http://osrm.local"))
    assert isinstance(routing, HttpRoutingEstimator)
    close_estimator(routing)


def test_http_routing_estimator_closes_its_own_client() -> None:
    """Test that close() releases a client the estimator created."""
    estimator = HttpRoutingEstimator("http://osrm.local")
    client = estimator._client

    close_estimator(estimator)

    assert client.is_closed


def test_http_routing_estimator_leaves_injected_client_open() -> None:
    """Test that a caller-owned client is not closed by the estimator."""
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    estimator = HttpRoutingEstimator("http://osrm.local", client=client)

    estimator.close()

    assert not client.is_closed
    client.close()


def test_close_estimator_ignores_estimators_without_resources() -> None:
    """Test that closing the great-circle estimator is a no-op."""
    close_estimator(HaversineTravelTimeEstimator())


# Mode choice


def test_short_walk_stays_walk() -> None:
    """Test that walks within the threshold are kept."""
    estimator = ModeTableEstimator({TravelMode.walk: 8, TravelMode.transit: 6})
    leg = plan_leg(estimator, ORIGIN, ONE_KM_NORTH, TravelMode.walk, walk_threshold_minutes=10)

    assert leg.mode == TravelMode.walk
    assert leg.duration_minutes == 8
    assert estimator.calls == [TravelMode.walk]


def test_long_walk_switches_to_transit() -> None:
    """Test that walks above the threshold use transit."""
    estimator = ModeTableEstimator({TravelMode.walk: 25, TravelMode.transit: 12})
    leg = plan_leg(estimator, ORIGIN, ONE_KM_NORTH, TravelMode.walk, walk_threshold_minutes=10)

    assert leg.mode == TravelMode.transit
    assert leg.duration_minutes == 12


def test_long_walk_without_transit_keeps_walking() -> None:
    """Test the fallback when transit cannot be estimated."""
    estimator = ModeTableEstimator({TravelMode.walk: 25})
    leg = plan_leg(estimator, ORIGIN, ONE_KM_NORTH, TravelMode.walk, walk_threshold_minutes=10)

    assert leg.mode == TravelMode.walk
    assert leg.duration_minutes == 25


def test_explicit_non_walk_mode_is_preserved() -> None:
    """Test that a chosen taxi leg is never replaced."""
    estimator = ModeTableEstimator({TravelMode.taxi: 7})
    leg = plan_leg(estimator, ORIGIN, ONE_KM_NORTH, TravelMode.taxi, walk_threshold_minutes=10)

    assert leg.mode == TravelMode.taxi
    assert estimator.calls == [TravelMode.taxi]


def test_choose_travel_mode_precedence() -> None:
    """Test explicit mode, then previous location, then current location."""
    previous = Location(id="p", name="Station", preferred_transit_modes=[TravelMode.train])
    current = Location(id="c", name="Shrine", preferred_transit_modes=[TravelMode.bus])
    explicit = PlaceActivity(
        id="a", title="A", travel_from_previous=TravelSegment(mode=TravelMode.taxi, duration_minutes=5)
    )
    plain = PlaceActivity(id="b", title="B")

    assert choose_travel_mode(explicit, current, previous) == TravelMode.taxi
    assert choose_travel_mode(plain, current, previous) == TravelMode.train
    assert choose_travel_mode(plain, current, None) == TravelMode.bus
    assert choose_travel_mode(plain, None, None) == TravelMode.walk
