"""Itinerary compiler: seasonal filter -> route order -> schedule -> conflicts."""

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date

from itinerary_engine.app.availability.seasonal import is_seasonal_location_relevant
from itinerary_engine.app.errors import ItineraryStructureError
from itinerary_engine.app.models.api import SchedulerOptions
from itinerary_engine.app.models.conflicts import ConflictReport
from itinerary_engine.app.models.itinerary import DayEntryPoints, Itinerary, ItineraryDay, PlaceActivity
from itinerary_engine.app.models.location import Location
from itinerary_engine.app.routing.sequencer import apply_route_order, optimize_route_order
from itinerary_engine.app.scheduling.scheduler import CityTravelTable, schedule_itinerary
from itinerary_engine.app.scheduling.travel import TravelTimeEstimator
from itinerary_engine.app.utils.logging import StructuredStageLogger
from itinerary_engine.app.utils.metrics import get_metrics
from itinerary_engine.app.verification.conflicts import detect_itinerary_conflicts

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Scheduled itinerary, its conflicts, and the activities dropped on the way."""

    itinerary: Itinerary
    report: ConflictReport
    excluded_activity_ids: list[str] = field(default_factory=list)


def locations_by_id(locations: Sequence[Location] | None) -> dict[str, Location]:
    """Index a location list by id (later duplicates win)."""
    return {location.id: location for location in locations or []}


def filter_seasonal_activities(
    itinerary: Itinerary,
    locations: Mapping[str, Location],
    trip_start: date | None,
    trip_end: date | None,
) -> tuple[Itinerary, list[str]]:
    """Drop place activities whose seasonal location is out of season for the trip.

    Returns:
        (filtered itinerary, ids of removed activities in itinerary order)
    """
    excluded: list[str] = []
    days: list[ItineraryDay] = []
    for day in itinerary.days:
        kept = []
        for activity in day.activities:
            if isinstance(activity, PlaceActivity) and activity.location_id:
                location = locations.get(activity.location_id)
                if location is not None and not is_seasonal_location_relevant(
                    location.is_seasonal, location.availability, trip_start, trip_end
                ):
                    excluded.append(activity.id)
                    continue
            kept.append(activity)
        days.append(day.model_copy(update={"activities": kept}) if len(kept) != len(day.activities) else day)

    if not excluded:
        return itinerary, excluded
    return itinerary.model_copy(update={"days": days}), excluded


def optimize_days(
    itinerary: Itinerary,
    locations: Mapping[str, Location],
    day_entry_points: Mapping[str, DayEntryPoints] | None = None,
) -> Itinerary:
    """Reorder every day by route, anchored on its entry points when given."""
    entry_points = day_entry_points or {}
    days: list[ItineraryDay] = []
    for day in itinerary.days:
        points = entry_points.get(day.id)
        result = optimize_route_order(
            day.activities,
            start_point=points.start_point if points else None,
            end_point=points.end_point if points else None,
            locations=locations,
        )
        days.append(apply_route_order(day, result))
    return itinerary.model_copy(update={"days": days})


def compile_itinerary(
    itinerary: Itinerary,
    locations: Sequence[Location] | None = None,
    trip_start: date | None = None,
    trip_end: date | None = None,
    options: SchedulerOptions | None = None,
    day_entry_points: Mapping[str, DayEntryPoints] | None = None,
    optimize_routes: bool = True,
    estimator: TravelTimeEstimator | None = None,
    city_travel_minutes: CityTravelTable | None = None,
) -> CompileResult:
    """Run the full pipeline over one itinerary.

    Stages:
    1. Seasonal filter: remove place activities whose seasonal location does
       not overlap the trip dates
    2. Route order (optional): nearest neighbour per day
    3. Schedule: arrival/departure times and travel legs
    4. Conflicts: rule-based detection over the scheduled result

    Args:
        itinerary: Days with chosen activities
        locations: Location catalog
        trip_start: First trip date (required to keep seasonal locations)
        trip_end: Last trip date
        options: Scheduler overrides
        day_entry_points: Start/end anchors keyed by day id
        optimize_routes: Whether to reorder days before scheduling
        estimator: Travel-time estimator override
        city_travel_minutes: Inter-city travel minutes keyed by city pair

    Returns:
        CompileResult with the scheduled itinerary and conflict report

    Raises:
        ItineraryStructureError: If the itinerary has no days or entry points
            reference unknown days
    """
    if not itinerary.days:
        raise ItineraryStructureError("itinerary has no days")

    stage_logger = StructuredStageLogger()
    metrics = get_metrics()
    catalog = locations_by_id(locations)
    compile_start = time.perf_counter()

    start_time = time.perf_counter()
    filtered, excluded = filter_seasonal_activities(itinerary, catalog, trip_start, trip_end)
    latency_ms = (time.perf_counter() - start_time) * 1000
    metrics.record_latency("seasonal_filter", latency_ms)
    stage_logger.log_stage("seasonal_filter", "success", latency_ms, excluded_count=len(excluded))
    if excluded:
        logger.info(f"[compile] excluded {len(excluded)} out-of-season activities: {excluded}")

    if optimize_routes:
        start_time = time.perf_counter()
        filtered = optimize_days(filtered, catalog, day_entry_points)
        latency_ms = (time.perf_counter() - start_time) * 1000
        metrics.record_latency("route", latency_ms)
        stage_logger.log_stage("route", "success", latency_ms, day_count=len(filtered.days))

    scheduled = schedule_itinerary(
        filtered,
        options=options,
        day_entry_points=day_entry_points,
        locations=catalog,
        estimator=estimator,
        city_travel_minutes=city_travel_minutes,
    )
    report = detect_itinerary_conflicts(scheduled)

    latency_ms = (time.perf_counter() - compile_start) * 1000
    metrics.record_latency("compile", latency_ms)
    stage_logger.log_stage(
        "compile",
        "success",
        latency_ms,
        day_count=len(scheduled.days),
        conflicts=report.summary.total,
    )

    return CompileResult(itinerary=scheduled, report=report, excluded_activity_ids=excluded)
