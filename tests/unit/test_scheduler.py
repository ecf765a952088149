"""Tests for the day scheduler."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from itinerary_engine.app.availability.opening_hours import is_open_now
from itinerary_engine.app.errors import ItineraryStructureError, TravelEstimateError
from itinerary_engine.app.models.api import SchedulerOptions
from itinerary_engine.app.models.common import Coordinates, TravelMode, Weekday
from itinerary_engine.app.models.itinerary import (
    DayBounds,
    DayEntryPoints,
    EntryPoint,
    Itinerary,
    ItineraryDay,
    NoteActivity,
    PlaceActivity,
    TravelSegment,
)
from itinerary_engine.app.models.location import Location, OperatingHours, OperatingPeriod
from itinerary_engine.app.scheduling.scheduler import evaluate_operating_window, schedule_itinerary
from itinerary_engine.app.scheduling.travel import HttpRoutingEstimator, TravelEstimate
from itinerary_engine.app.verification.conflicts import detect_itinerary_conflicts


class FixedEstimator:
    """Every leg takes the same number of minutes."""

    def __init__(self, minutes: int = 8) -> None:
        self.minutes = minutes

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        return TravelEstimate(mode=mode, duration_minutes=self.minutes, distance_meters=500.0, source="stub")


class FailingEstimator:
    """Estimator whose backend is down."""

    def estimate(self, origin: Coordinates, destination: Coordinates, mode: TravelMode) -> TravelEstimate:
        raise TravelEstimateError("routing request failed: ConnectError")


def make_place(activity_id: str, lng: float | None = None, **kwargs) -> PlaceActivity:
    """Helper to create a place with a one-hour default visit."""
    kwargs.setdefault("duration_min", 60)
    return PlaceActivity(
        id=activity_id,
        title=activity_id.title(),
        coordinates=Coordinates(lat=35.0, lng=lng) if lng is not None else None,
        **kwargs,
    )


def make_itinerary(*activities, weekday: Weekday | None = Weekday.monday, **day_kwargs) -> Itinerary:
    """Helper to wrap activities in a single-day itinerary."""
    return Itinerary(days=[ItineraryDay(id="day-1", weekday=weekday, activities=list(activities), **day_kwargs)])


def hours_location(location_id: str, open_: str, close: str, day: str = "monday") -> Location:
    """Helper to create a location open one weekday."""
    return Location(
        id=location_id,
        name=location_id,
        operating_hours=OperatingHours(periods=[OperatingPeriod(day=day, open=open_, close=close)]),
    )


def test_first_activity_starts_at_day_start() -> None:
    """Test that the first stop begins at the default day start."""
    result = schedule_itinerary(make_itinerary(make_place("a")), estimator=FixedEstimator())

    schedule = result.days[0].activities[0].schedule
    assert schedule.arrival_time == "09:00"
    assert schedule.departure_time == "10:00"
    assert schedule.status == "tentative"
    assert result.days[0].bounds.start_time == "09:00"
    assert result.days[0].bounds.end_time == "21:00"


def test_day_bounds_and_options_override_defaults() -> None:
    """Test that day bounds beat options, and options beat settings."""
    itinerary = make_itinerary(make_place("a"), bounds=DayBounds(start_time="08:15"))
    result = schedule_itinerary(
        itinerary, options=SchedulerOptions(default_day_start="10:00"), estimator=FixedEstimator()
    )
    assert result.days[0].activities[0].schedule.arrival_time == "08:15"

    result = schedule_itinerary(
        make_itinerary(make_place("a")),
        options=SchedulerOptions(default_day_start="10:00"),
        estimator=FixedEstimator(),
    )
    assert result.days[0].activities[0].schedule.arrival_time == "10:00"


def test_travel_and_buffer_between_stops() -> None:
    """Test arrival = previous departure + buffer + travel."""
    itinerary = make_itinerary(make_place("a", 139.70), make_place("b", 139.71))
    result = schedule_itinerary(itinerary, estimator=FixedEstimator(8))

    first, second = result.days[0].activities
    assert second.schedule.arrival_time == "10:18"
    assert second.schedule.departure_time == "11:18"
    assert second.travel_from_previous.mode == TravelMode.walk
    assert second.travel_from_previous.duration_minutes == 8
    assert second.travel_from_previous.departure_time == "10:10"
    assert second.travel_from_previous.arrival_time == "10:18"
    assert first.travel_to_next == second.travel_from_previous


def test_start_point_travel_has_no_buffer() -> None:
    """Test that travel from the day's entry point is added without a buffer."""
    itinerary = make_itinerary(make_place("a", 139.70))
    entry = {"day-1": DayEntryPoints(start_point=EntryPoint(coordinates=Coordinates(lat=35.0, lng=139.69)))}

    result = schedule_itinerary(itinerary, day_entry_points=entry, estimator=FixedEstimator(8))

    assert result.days[0].activities[0].schedule.arrival_time == "09:08"


def test_explicit_travel_used_without_coordinates() -> None:
    """Test that a supplied travel leg counts when coordinates are missing."""
    second = make_place("b", travel_from_previous=TravelSegment(mode=TravelMode.train, duration_minutes=20))
    result = schedule_itinerary(make_itinerary(make_place("a"), second), estimator=FixedEstimator())

    assert result.days[0].activities[1].schedule.arrival_time == "10:30"
    assert result.days[0].activities[1].travel_from_previous.mode == TravelMode.train


def test_early_arrival_moves_to_opening_time() -> None:
    """Test that arriving before opening waits for the doors."""
    place = make_place("museum", location_id="loc-museum")
    locations = {"loc-museum": hours_location("loc-museum", "10:00", "17:00")}

    result = schedule_itinerary(make_itinerary(place), locations=locations, estimator=FixedEstimator())

    activity = result.days[0].activities[0]
    assert activity.schedule.arrival_time == "10:00"
    assert activity.schedule.departure_time == "11:00"
    assert activity.schedule.arrival_buffer_minutes == 60
    assert activity.schedule.status == "scheduled"
    assert activity.schedule.operating_window.status == "within"
    assert activity.operating_window.opens_at == "10:00"


def test_departure_after_closing_is_not_clipped() -> None:
    """Test that a visit running past closing keeps its departure."""
    place = make_place("shop", location_id="loc-shop", duration_min=120)
    locations = {"loc-shop": hours_location("loc-shop", "09:00", "10:00")}

    result = schedule_itinerary(make_itinerary(place), locations=locations, estimator=FixedEstimator())

    schedule = result.days[0].activities[0].schedule
    assert schedule.arrival_time == "09:00"
    assert schedule.departure_time == "11:00"
    assert schedule.status == "out-of-hours"
    assert schedule.departure_buffer_minutes == 60
    assert schedule.operating_window.status == "outside"


def test_hours_for_other_weekday_are_ignored() -> None:
    """Test that only the day's weekday periods apply."""
    place = make_place("museum", location_id="loc-museum")
    locations = {"loc-museum": hours_location("loc-museum", "10:00", "17:00", day="tuesday")}

    result = schedule_itinerary(make_itinerary(place), locations=locations, estimator=FixedEstimator())

    assert result.days[0].activities[0].schedule.arrival_time == "09:00"
    assert result.days[0].activities[0].schedule.status == "tentative"


def test_times_keep_counting_past_midnight() -> None:
    """Test that late visits render as 24:30 and flag the end-of-day overrun."""
    itinerary = make_itinerary(make_place("bar", duration_min=90), bounds=DayBounds(start_time="23:00"))
    result = schedule_itinerary(itinerary, estimator=FixedEstimator())

    schedule = result.days[0].activities[0].schedule
    assert schedule.arrival_time == "23:00"
    assert schedule.departure_time == "24:30"
    assert schedule.status == "out-of-hours"


def test_estimator_failure_uses_default_travel_time() -> None:
    """Test that an estimator failure falls back to the configured default."""
    itinerary = make_itinerary(make_place("a", 139.70), make_place("b", 139.71))
    metrics = MagicMock()

    with patch("itinerary_engine.app.scheduling.scheduler.get_metrics", return_value=metrics):
        result = schedule_itinerary(itinerary, estimator=FailingEstimator())

    second = result.days[0].activities[1]
    assert second.schedule.arrival_time == "10:25"
    assert second.travel_from_previous.duration_minutes == 15
    assert second.travel_from_previous.source == "default"
    metrics.inc_travel_fallback.assert_called_once_with("estimator_error")


def test_notes_get_times_but_do_not_move_the_cursor() -> None:
    """Test that notes are stamped at the cursor and take no time."""
    note = NoteActivity(id="n1", title="Lunch tip", notes="Try the tamagoyaki")
    itinerary = make_itinerary(make_place("a"), note, make_place("b"))

    result = schedule_itinerary(itinerary, estimator=FixedEstimator())

    planned_note = result.days[0].activities[1]
    assert planned_note.start_time == "10:00"
    assert planned_note.end_time == "10:15"
    assert result.days[0].activities[2].schedule.arrival_time == "10:10"


def test_city_transition_between_days() -> None:
    """Test that a city change with a known travel time adds a transition."""
    itinerary = Itinerary(
        days=[
            ItineraryDay(id="day-1", city_id="tokyo", activities=[make_place("a")]),
            ItineraryDay(id="day-2", city_id="kyoto", activities=[make_place("b")]),
        ]
    )

    result = schedule_itinerary(
        itinerary, estimator=FixedEstimator(), city_travel_minutes={("tokyo", "kyoto"): 135}
    )

    transition = result.days[1].city_transition
    assert transition.from_city_id == "tokyo"
    assert transition.to_city_id == "kyoto"
    assert transition.mode == TravelMode.train
    assert transition.departure_time == "21:00"
    assert transition.arrival_time == "23:15"
    assert result.days[0].city_transition is None


def test_deterministic_and_input_untouched() -> None:
    """Test that identical inputs give identical outputs and inputs are not mutated."""
    itinerary = make_itinerary(make_place("a", 139.70), make_place("b", 139.71), make_place("c", 139.72))

    first = schedule_itinerary(itinerary, estimator=FixedEstimator())
    second = schedule_itinerary(itinerary, estimator=FixedEstimator())

    assert first.model_dump() == second.model_dump()
    assert all(a.schedule is None for a in itinerary.days[0].activities)


def test_zero_day_itinerary_raises() -> None:
    """Test that an itinerary without days is a structural error."""
    with pytest.raises(ItineraryStructureError):
        schedule_itinerary(Itinerary(days=[]), estimator=FixedEstimator())


def test_entry_points_for_unknown_day_raise() -> None:
    """Test that entry points must reference existing days."""
    entry = {"day-9": DayEntryPoints(start_point=EntryPoint(coordinates=Coordinates(lat=35.0, lng=139.7)))}
    with pytest.raises(ItineraryStructureError, match="day-9"):
        schedule_itinerary(make_itinerary(make_place("a")), day_entry_points=entry, estimator=FixedEstimator())


# evaluate_operating_window


def test_window_without_period_is_tentative() -> None:
    """Test that unknown hours leave times as computed."""
    evaluation = evaluate_operating_window(None, 600, 60)
    assert (evaluation.arrival, evaluation.departure, evaluation.status) == (600, 660, "tentative")


def test_window_overnight_early_morning_not_advanced() -> None:
    """Test that 01:00 inside an 18:00-02:00 run is not pushed to 18:00."""
    period = OperatingPeriod(day=Weekday.friday, open="18:00", close="02:00", is_overnight=True)
    evaluation = evaluate_operating_window(period, 60, 30)

    assert evaluation.arrival == 60
    assert evaluation.arrival_buffer is None
    assert evaluation.status == "scheduled"


def test_window_overnight_early_morning_checks_tonight_close() -> None:
    """Test that 01:00-03:00 overruns the 02:00 close of last night's run."""
    period = OperatingPeriod(day=Weekday.saturday, open="18:00", close="02:00", is_overnight=True)
    evaluation = evaluate_operating_window(period, 60, 120)

    assert (evaluation.arrival, evaluation.departure) == (60, 180)
    assert evaluation.status == "out-of-hours"
    assert evaluation.departure_buffer == 60
    assert evaluation.window.status == "outside"


def test_window_equal_open_and_close_is_all_day() -> None:
    """Test that a 00:00-00:00 period is open around the clock."""
    period = OperatingPeriod(day=Weekday.monday, open="00:00", close="00:00")
    evaluation = evaluate_operating_window(period, 9 * 60, 30)

    assert (evaluation.arrival, evaluation.departure) == (9 * 60, 9 * 60 + 30)
    assert evaluation.status == "scheduled"
    assert evaluation.departure_buffer is None
    assert evaluation.window.status == "within"


def test_all_day_location_schedules_without_conflicts() -> None:
    """Test that scheduler, open-now check and conflict detector agree on 24h hours."""
    location = hours_location("loc-24h", "00:00", "00:00")
    itinerary = make_itinerary(make_place("konbini", location_id="loc-24h", duration_min=30))

    result = schedule_itinerary(itinerary, locations={"loc-24h": location}, estimator=FixedEstimator())

    schedule = result.days[0].activities[0].schedule
    assert (schedule.arrival_time, schedule.departure_time, schedule.status) == ("09:00", "09:30", "scheduled")
    assert is_open_now(location.operating_hours, datetime(2026, 10, 19, 9, 0)).state == "open"
    assert detect_itinerary_conflicts(result).conflicts == []


def test_window_arrival_after_close_is_out_of_hours() -> None:
    """Test that a late arrival is flagged and kept."""
    period = OperatingPeriod(day=Weekday.monday, open="09:00", close="17:00")
    evaluation = evaluate_operating_window(period, 18 * 60, 30)

    assert evaluation.arrival == 18 * 60
    assert evaluation.status == "out-of-hours"
    assert evaluation.window.status == "outside"


def test_default_estimator_is_closed_after_scheduling() -> None:
    """Test that an estimator created for the call releases its HTTP client."""
    routing = MagicMock(spec=HttpRoutingEstimator)
    with patch("itinerary_engine.app.scheduling.scheduler.get_default_estimator", return_value=routing):
        schedule_itinerary(make_itinerary(make_place("a")))

    routing.close.assert_called_once()


def test_caller_estimator_is_not_closed() -> None:
    """Test that a caller-supplied estimator stays open for reuse."""
    routing = MagicMock(spec=HttpRoutingEstimator)
    schedule_itinerary(make_itinerary(make_place("a")), estimator=routing)

    routing.close.assert_not_called()
