"""Day scheduler: turn an ordered itinerary into concrete visit times.

Each day walks its activities in order with a minute cursor that starts at the
day's start time. For every place activity the scheduler adds travel from the
previous stop, moves an early arrival forward to the opening time, and adds
the visit duration. Departures are never clipped to closing time or to the
end of the day; overruns are reported through ``schedule.status`` and left to
the conflict detector.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from itinerary_engine.app.availability.opening_hours import is_overnight, period_bounds, periods_for_day
from itinerary_engine.app.config import get_settings
from itinerary_engine.app.errors import ItineraryStructureError, TravelEstimateError
from itinerary_engine.app.models.api import SchedulerOptions
from itinerary_engine.app.models.common import Coordinates, TravelMode, Weekday
from itinerary_engine.app.models.itinerary import (
    CityTransition,
    DayBounds,
    DayEntryPoints,
    EntryPoint,
    Itinerary,
    ItineraryDay,
    NoteActivity,
    OperatingWindow,
    PlaceActivity,
    Schedule,
    ScheduleStatus,
    TravelSegment,
    WindowStatus,
)
from itinerary_engine.app.models.location import Location, OperatingPeriod
from itinerary_engine.app.routing.sequencer import resolve_coordinates
from itinerary_engine.app.scheduling.durations import resolve_visit_duration
from itinerary_engine.app.scheduling.travel import (
    TravelTimeEstimator,
    choose_travel_mode,
    close_estimator,
    get_default_estimator,
    plan_leg,
)
from itinerary_engine.app.utils.logging import StructuredStageLogger
from itinerary_engine.app.utils.metrics import get_metrics
from itinerary_engine.app.utils.timeutils import format_minutes, parse_time_to_minutes

logger = logging.getLogger(__name__)

NOTE_MINUTES_WITH_TEXT = 15
NOTE_MINUTES_EMPTY = 5

CityTravelTable = Mapping[tuple[str, str], int]


@dataclass(frozen=True)
class ResolvedOptions:
    """Scheduler options with settings defaults filled in."""

    day_start: str
    day_end: str
    visit_minutes: int
    buffer_minutes: int
    default_travel_minutes: int
    walk_threshold_minutes: int


@dataclass(frozen=True)
class WindowEvaluation:
    """Arrival/departure after applying a day's operating period."""

    arrival: int
    departure: int
    status: ScheduleStatus
    arrival_buffer: int | None = None
    departure_buffer: int | None = None
    window: OperatingWindow | None = None


def _first_time(*values: str | None, default: int) -> int:
    """First parsable "HH:MM" among ``values``, else ``default``."""
    for value in values:
        minutes = parse_time_to_minutes(value)
        if minutes is not None:
            return minutes
    return default


def resolve_options(options: SchedulerOptions | None = None) -> ResolvedOptions:
    """Merge per-request overrides over the configured defaults."""
    settings = get_settings()
    options = options or SchedulerOptions()
    return ResolvedOptions(
        day_start=options.default_day_start or settings.default_day_start,
        day_end=options.default_day_end or settings.default_day_end,
        visit_minutes=options.default_visit_minutes or settings.default_visit_minutes,
        buffer_minutes=(
            options.transition_buffer_minutes
            if options.transition_buffer_minutes is not None
            else settings.transition_buffer_minutes
        ),
        default_travel_minutes=settings.default_travel_minutes,
        walk_threshold_minutes=settings.walk_threshold_minutes,
    )


def select_operating_period(
    location: Location | None,
    activity: PlaceActivity,
    weekday: Weekday | None,
    arrival: int,
) -> OperatingPeriod | None:
    """Pick the period that applies to an arrival on ``weekday``.

    With split shifts the first period still open at arrival wins, else the
    first listed. Without catalog hours the activity's own window is used.
    """
    if location is not None and location.operating_hours is not None:
        periods = periods_for_day(location.operating_hours, weekday)
        if not periods:
            return None
        for period in periods:
            bounds = period_bounds(period)
            if bounds is not None and arrival < bounds[1]:
                return period
        return periods[0]

    if activity.operating_window is not None and weekday is not None:
        window = activity.operating_window
        return OperatingPeriod(
            day=weekday,
            open=window.opens_at,
            close=window.closes_at,
            is_overnight=window.is_overnight,
        )
    return None


def evaluate_operating_window(
    period: OperatingPeriod | None,
    arrival: int,
    duration: int,
    note: str | None = None,
) -> WindowEvaluation:
    """Fit a visit into an operating period.

    Early arrivals move forward to the opening time. Late arrivals and visits
    running past closing are marked out-of-hours but keep their computed
    times.
    """
    if period is None:
        return WindowEvaluation(arrival=arrival, departure=arrival + duration, status="tentative")

    opens = parse_time_to_minutes(period.open)
    closes_raw = parse_time_to_minutes(period.close)
    if opens is None or closes_raw is None:
        return WindowEvaluation(
            arrival=arrival,
            departure=arrival + duration,
            status="tentative",
            window=OperatingWindow(
                opens_at=period.open,
                closes_at=period.close,
                is_overnight=period.is_overnight,
                note=note,
                status="unknown",
            ),
        )

    overnight = is_overnight(period)
    # Same open and close time means open around the clock
    wraps = overnight or closes_raw == opens
    _, closes = period_bounds(period)

    arrival_buffer: int | None = None
    if wraps and arrival < closes_raw:
        # Still inside the run that opened the evening before
        closes = closes_raw
    elif arrival < opens:
        arrival_buffer = opens - arrival
        arrival = opens
    departure = arrival + duration

    status: ScheduleStatus = "scheduled"
    window_status: WindowStatus = "within"
    departure_buffer: int | None = None
    if arrival > closes:
        status = "out-of-hours"
        window_status = "outside"
    elif departure > closes:
        departure_buffer = departure - closes
        status = "out-of-hours"
        window_status = "outside"

    return WindowEvaluation(
        arrival=arrival,
        departure=departure,
        status=status,
        arrival_buffer=arrival_buffer,
        departure_buffer=departure_buffer,
        window=OperatingWindow(
            opens_at=period.open,
            closes_at=period.close,
            is_overnight=overnight,
            note=note,
            status=window_status,
        ),
    )


class _TravelPlanner:
    """Travel legs for one scheduling run, with fallback accounting."""

    def __init__(self, estimator: TravelTimeEstimator, options: ResolvedOptions) -> None:
        self._estimator = estimator
        self._options = options
        self._stage_logger = StructuredStageLogger()
        self._metrics = get_metrics()

    def leg(
        self,
        activity: PlaceActivity,
        origin: Coordinates | None,
        destination: Coordinates | None,
        location: Location | None,
        previous_location: Location | None,
        depart_at: int,
    ) -> TravelSegment | None:
        """Travel segment into ``activity``; None when there is nothing to travel from."""
        explicit = activity.travel_from_previous

        if origin is None or destination is None:
            if explicit is None:
                return None
            return explicit.model_copy(
                update={
                    "departure_time": format_minutes(depart_at),
                    "arrival_time": format_minutes(depart_at + explicit.duration_minutes),
                }
            )

        preferred = choose_travel_mode(activity, location, previous_location)
        try:
            estimate = plan_leg(
                self._estimator,
                origin,
                destination,
                preferred,
                self._options.walk_threshold_minutes,
            )
            mode = estimate.mode
            minutes = estimate.duration_minutes
            distance = estimate.distance_meters
            source = estimate.source
        except TravelEstimateError as e:
            self._stage_logger.log_fallback(activity.id, "travel", str(e))
            self._metrics.inc_travel_fallback("estimator_error")
            mode = preferred if preferred != TravelMode.walk else TravelMode.transit
            minutes = self._options.default_travel_minutes
            distance = None
            source = "default"

        return TravelSegment(
            mode=mode,
            duration_minutes=minutes,
            distance_meters=distance,
            departure_time=format_minutes(depart_at),
            arrival_time=format_minutes(depart_at + minutes),
            source=source,
        )


def schedule_day(
    day: ItineraryDay,
    options: ResolvedOptions,
    estimator: TravelTimeEstimator,
    start_point: EntryPoint | None = None,
    locations: Mapping[str, Location] | None = None,
) -> ItineraryDay:
    """Timestamp one day's activities in their current order."""
    bounds = day.bounds or DayBounds()
    start = _first_time(bounds.start_time, options.day_start, default=9 * 60)
    end = _first_time(bounds.end_time, options.day_end, default=21 * 60)

    travel = _TravelPlanner(estimator, options)
    cursor = start
    previous_coords: Coordinates | None = start_point.coordinates if start_point else None
    previous_location: Location | None = None
    last_place_index: int | None = None
    planned: list[PlaceActivity | NoteActivity] = []

    for activity in day.activities:
        if isinstance(activity, NoteActivity):
            length = NOTE_MINUTES_WITH_TEXT if activity.notes else NOTE_MINUTES_EMPTY
            planned.append(
                activity.model_copy(
                    update={
                        "start_time": activity.start_time or format_minutes(cursor),
                        "end_time": activity.end_time or format_minutes(cursor + length),
                    }
                )
            )
            continue

        location = locations.get(activity.location_id) if locations and activity.location_id else None
        coords = resolve_coordinates(activity, locations)

        # Transition buffer only applies between two stops
        if last_place_index is not None:
            cursor += options.buffer_minutes

        segment = travel.leg(
            activity,
            previous_coords,
            coords,
            location,
            previous_location,
            cursor,
        )
        if segment is not None:
            cursor += segment.duration_minutes
            if last_place_index is not None:
                previous = planned[last_place_index]
                planned[last_place_index] = previous.model_copy(update={"travel_to_next": segment})

        duration = resolve_visit_duration(activity, location, options.visit_minutes)
        note = location.operating_hours.notes if location and location.operating_hours else None
        period = select_operating_period(location, activity, day.weekday, cursor)
        evaluation = evaluate_operating_window(period, cursor, duration, note)

        schedule = Schedule(
            arrival_time=format_minutes(evaluation.arrival),
            departure_time=format_minutes(evaluation.departure),
            arrival_buffer_minutes=evaluation.arrival_buffer,
            departure_buffer_minutes=evaluation.departure_buffer,
            status=evaluation.status,
            operating_window=evaluation.window,
        )
        planned.append(
            activity.model_copy(
                update={
                    "duration_min": duration,
                    "schedule": schedule,
                    "operating_window": evaluation.window or activity.operating_window,
                    "travel_from_previous": segment,
                }
            )
        )

        cursor = evaluation.departure
        last_place_index = len(planned) - 1
        if coords is not None:
            previous_coords = coords
        previous_location = location

    if last_place_index is not None and cursor > end:
        last = planned[last_place_index]
        if last.schedule is not None:
            logger.info(f"[schedule] day {day.id} runs {cursor - end} min past {format_minutes(end)}")
            planned[last_place_index] = last.model_copy(
                update={"schedule": last.schedule.model_copy(update={"status": "out-of-hours"})}
            )

    return day.model_copy(
        update={
            "bounds": bounds.model_copy(
                update={"start_time": format_minutes(start), "end_time": format_minutes(end)}
            ),
            "activities": planned,
        }
    )


def _transition_mode(minutes: int) -> TravelMode:
    if minutes < 60 or minutes > 120:
        return TravelMode.train
    return TravelMode.transit


def build_city_transition(
    previous_day: ItineraryDay,
    day: ItineraryDay,
    city_travel_minutes: CityTravelTable | None,
    default_day_end: str,
) -> CityTransition | None:
    """Inter-city leg leaving at the end of the previous day, if the pair is known."""
    if not city_travel_minutes or not previous_day.city_id or not day.city_id:
        return None
    if previous_day.city_id == day.city_id:
        return None

    pair = (previous_day.city_id, day.city_id)
    minutes = city_travel_minutes.get(pair)
    if minutes is None:
        minutes = city_travel_minutes.get((day.city_id, previous_day.city_id))
    if minutes is None:
        return None

    departure_time = (previous_day.bounds.end_time if previous_day.bounds else None) or default_day_end
    departure = _first_time(departure_time, default=0)
    return CityTransition(
        from_city_id=previous_day.city_id,
        to_city_id=day.city_id,
        mode=_transition_mode(minutes),
        duration_minutes=minutes,
        departure_time=format_minutes(departure),
        arrival_time=format_minutes(departure + minutes),
        notes=f"Traveling from {previous_day.city_id} to {day.city_id}",
    )


def schedule_itinerary(
    itinerary: Itinerary,
    options: SchedulerOptions | None = None,
    day_entry_points: Mapping[str, DayEntryPoints] | None = None,
    locations: Mapping[str, Location] | None = None,
    estimator: TravelTimeEstimator | None = None,
    city_travel_minutes: CityTravelTable | None = None,
) -> Itinerary:
    """Compute arrival and departure times for every place activity.

    Deterministic for identical inputs and estimator. The input itinerary is
    not modified.

    Args:
        itinerary: Days with activities in visiting order
        options: Overrides for day bounds, visit length and transition buffer
        day_entry_points: Optional start/end anchors keyed by day id
        locations: Location catalog keyed by id
        estimator: Travel-time estimator (defaults to the configured one)
        city_travel_minutes: Travel minutes keyed by (from_city, to_city)

    Returns:
        A new itinerary with schedules, travel segments and city transitions

    Raises:
        ItineraryStructureError: If the itinerary has no days, or entry
            points reference a day that does not exist
    """
    if not itinerary.days:
        raise ItineraryStructureError("itinerary has no days")

    day_ids = {day.id for day in itinerary.days}
    entry_points = dict(day_entry_points or {})
    unknown = sorted(set(entry_points) - day_ids)
    if unknown:
        raise ItineraryStructureError(f"entry points reference unknown days: {', '.join(unknown)}")

    resolved = resolve_options(options)
    close_client = False
    if estimator is None:
        estimator = get_default_estimator()
        close_client = True
    start_time = time.perf_counter()

    planned_days: list[ItineraryDay] = []
    try:
        for day in itinerary.days:
            points = entry_points.get(day.id)
            planned = schedule_day(
                day,
                resolved,
                estimator,
                start_point=points.start_point if points else None,
                locations=locations,
            )
            if planned_days:
                transition = build_city_transition(
                    planned_days[-1], planned, city_travel_minutes, resolved.day_end
                )
                if transition is not None:
                    planned = planned.model_copy(update={"city_transition": transition})
            planned_days.append(planned)
    finally:
        if close_client:
            close_estimator(estimator)

    latency_ms = (time.perf_counter() - start_time) * 1000
    get_metrics().record_latency("schedule", latency_ms)
    StructuredStageLogger().log_stage(
        "schedule",
        "success",
        latency_ms,
        day_count=len(planned_days),
        activity_count=sum(len(d.activities) for d in planned_days),
    )

    return itinerary.model_copy(update={"days": planned_days})
