"""Route sequencing: reorder a day's stops to cut travel overhead.

Greedy nearest neighbour from an anchor (the day's start point, or the first
stop with coordinates), followed by a 2-opt pass once a day has enough stops
for crossings to matter. Intended for up to ~15 stops per day.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from itinerary_engine.app.config import get_settings
from itinerary_engine.app.errors import ItineraryStructureError
from itinerary_engine.app.models.common import Coordinates
from itinerary_engine.app.models.itinerary import Activity, EntryPoint, ItineraryDay, PlaceActivity
from itinerary_engine.app.models.location import Location
from itinerary_engine.app.utils.geo import distance_meters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteOrderResult:
    """Outcome of route optimization for one day."""

    order: list[str]  # All activity ids, notes included, in new order
    order_changed: bool
    optimized_count: int  # Place activities with coordinates
    skipped_count: int  # Place activities without coordinates


def resolve_coordinates(
    activity: PlaceActivity,
    locations: Mapping[str, Location] | None = None,
) -> Coordinates | None:
    """Coordinates of a place: inline first, then the location catalog."""
    if activity.coordinates is not None:
        return activity.coordinates
    if locations and activity.location_id:
        location = locations.get(activity.location_id)
        if location is not None and location.coordinates is not None:
            return location.coordinates
    return None


def total_route_distance(
    order: Sequence[str],
    coords: Mapping[str, Coordinates],
    start: Coordinates,
    end: Coordinates | None = None,
) -> float:
    """Path length in meters: start -> stops in order (-> end)."""
    total = 0.0
    previous = start
    for activity_id in order:
        point = coords[activity_id]
        total += distance_meters(previous, point)
        previous = point
    if end is not None:
        total += distance_meters(previous, end)
    return total


def nearest_neighbor_order(
    candidates: Sequence[str],
    coords: Mapping[str, Coordinates],
    start: Coordinates,
) -> list[str]:
    """Greedy tour; ties go to the candidate earliest in ``candidates``."""
    remaining = list(candidates)
    order: list[str] = []
    current = start
    while remaining:
        best_index = 0
        best_distance = distance_meters(current, coords[remaining[0]])
        for index in range(1, len(remaining)):
            d = distance_meters(current, coords[remaining[index]])
            if d < best_distance:
                best_distance = d
                best_index = index
        chosen = remaining.pop(best_index)
        order.append(chosen)
        current = coords[chosen]
    return order


def two_opt_improve(
    order: Sequence[str],
    coords: Mapping[str, Coordinates],
    start: Coordinates,
    end: Coordinates | None = None,
    max_passes: int = 5,
) -> list[str]:
    """Reverse sub-segments while that strictly shortens the path."""
    best = list(order)
    if len(best) <= 2:
        return best
    best_distance = total_route_distance(best, coords, start, end)

    for _ in range(max_passes):
        improved = False
        for i in range(len(best) - 1):
            for j in range(i + 1, len(best)):
                candidate = best[:i] + best[i : j + 1][::-1] + best[j + 1 :]
                candidate_distance = total_route_distance(candidate, coords, start, end)
                if candidate_distance < best_distance:
                    best = candidate
                    best_distance = candidate_distance
                    improved = True
        if not improved:
            break

    return best


def optimize_route_order(
    activities: Sequence[Activity],
    start_point: EntryPoint | None = None,
    end_point: EntryPoint | None = None,
    locations: Mapping[str, Location] | None = None,
) -> RouteOrderResult:
    """Reorder a day's place activities by nearest neighbour.

    Notes keep their slots. Places without coordinates follow the optimized
    ones in their original order and are counted as skipped.

    Raises:
        ItineraryStructureError: If two activities share an id
    """
    settings = get_settings()
    original_order = [a.id for a in activities]
    duplicates = sorted({i for i in original_order if original_order.count(i) > 1})
    if duplicates:
        raise ItineraryStructureError(f"duplicate activity ids: {', '.join(duplicates)}")
    places = [a for a in activities if isinstance(a, PlaceActivity)]

    coords: dict[str, Coordinates] = {}
    unresolved: list[str] = []
    for place in places:
        point = resolve_coordinates(place, locations)
        if point is None:
            unresolved.append(place.id)
        else:
            coords[place.id] = point
    resolvable = [p.id for p in places if p.id in coords]

    if not resolvable:
        return RouteOrderResult(
            order=original_order,
            order_changed=False,
            optimized_count=0,
            skipped_count=len(unresolved),
        )

    end = end_point.coordinates if end_point is not None else None
    if start_point is not None:
        anchor = start_point.coordinates
        optimized = nearest_neighbor_order(resolvable, coords, anchor)
        if len(optimized) >= settings.route_two_opt_min_stops:
            optimized = two_opt_improve(
                optimized, coords, anchor, end, settings.route_two_opt_max_passes
            )
    else:
        # The first stop with coordinates anchors the route and stays first
        first = resolvable[0]
        anchor = coords[first]
        rest = nearest_neighbor_order(resolvable[1:], coords, anchor)
        if len(rest) + 1 >= settings.route_two_opt_min_stops:
            rest = two_opt_improve(rest, coords, anchor, end, settings.route_two_opt_max_passes)
        optimized = [first, *rest]

    place_sequence = iter(optimized + unresolved)
    place_ids = {p.id for p in places}
    final_order = [next(place_sequence) if a.id in place_ids else a.id for a in activities]

    order_changed = final_order != original_order
    if order_changed:
        logger.debug(
            f"[route] reordered {len(resolvable)} stops, {len(unresolved)} without coordinates"
        )

    return RouteOrderResult(
        order=final_order,
        order_changed=order_changed,
        optimized_count=len(resolvable),
        skipped_count=len(unresolved),
    )


def apply_route_order(day: ItineraryDay, result: RouteOrderResult) -> ItineraryDay:
    """Return a copy of ``day`` with activities in ``result.order``."""
    if not result.order_changed:
        return day
    by_id = {a.id: a for a in day.activities}
    return day.model_copy(update={"activities": [by_id[i] for i in result.order]})
