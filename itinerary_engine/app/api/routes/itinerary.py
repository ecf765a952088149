"""Itinerary endpoints - POST /itinerary/{schedule,route,conflicts,compile}."""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from itinerary_engine.app.errors import ItineraryStructureError
from itinerary_engine.app.models.api import (
    CompileRequest,
    CompileResponse,
    ConflictsRequest,
    ConflictsResponse,
    RouteRequest,
    RouteResponse,
    RouteStats,
    ScheduleRequest,
    ScheduleResponse,
)
from itinerary_engine.app.orchestration.compiler import compile_itinerary, locations_by_id
from itinerary_engine.app.routing.sequencer import apply_route_order, optimize_route_order
from itinerary_engine.app.scheduling.scheduler import schedule_itinerary
from itinerary_engine.app.verification.conflicts import detect_itinerary_conflicts

router = APIRouter(prefix="/itinerary", tags=["itinerary"])
logger = logging.getLogger(__name__)


@router.post("/schedule", response_model=ScheduleResponse)
async def schedule_endpoint(request: ScheduleRequest) -> ScheduleResponse:
    """Compute arrival/departure times for an itinerary in its current order.

    Raises:
        HTTPException: 400 for structurally invalid itineraries, 500 otherwise
    """
    logger.info(f"[POST /itinerary/schedule] days={len(request.itinerary.days)}")

    try:
        # Travel estimation may block on HTTP; keep it off the event loop
        scheduled = await run_in_threadpool(
            schedule_itinerary,
            request.itinerary,
            options=request.options,
            day_entry_points=request.day_entry_points,
            locations=locations_by_id(request.locations),
        )
    except ItineraryStructureError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"[POST /itinerary/schedule] failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Scheduling failed: {type(e).__name__}",
        ) from e

    return ScheduleResponse(data=scheduled)


@router.post("/route", response_model=RouteResponse)
async def route_endpoint(request: RouteRequest) -> RouteResponse:
    """Reorder one day's stops to reduce travel.

    Raises:
        HTTPException: 400 for duplicate activity ids, 500 otherwise
    """
    logger.info(
        f"[POST /itinerary/route] day={request.day.id}, activities={len(request.day.activities)}"
    )

    try:
        result = optimize_route_order(
            request.day.activities,
            start_point=request.start_point,
            end_point=request.end_point,
            locations=locations_by_id(request.locations),
        )
    except ItineraryStructureError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"[POST /itinerary/route] failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Route optimization failed: {type(e).__name__}",
        ) from e

    return RouteResponse(
        optimized=result.order_changed,
        day=apply_route_order(request.day, result),
        stats=RouteStats(
            optimized_count=result.optimized_count,
            skipped_count=result.skipped_count,
        ),
    )


@router.post("/conflicts", response_model=ConflictsResponse)
async def conflicts_endpoint(request: ConflictsRequest) -> ConflictsResponse:
    """Detect scheduling conflicts in an already scheduled itinerary."""
    report = detect_itinerary_conflicts(request.itinerary)
    logger.info(f"[POST /itinerary/conflicts] total={report.summary.total}")
    return ConflictsResponse(conflicts=report.conflicts, by_day=report.by_day, summary=report.summary)


@router.post("/compile", response_model=CompileResponse)
async def compile_endpoint(request: CompileRequest) -> CompileResponse:
    """Seasonal filter, route order, schedule and detect conflicts in one call.

    Raises:
        HTTPException: 400 for structurally invalid input, 500 otherwise
    """
    logger.info(
        f"[POST /itinerary/compile] days={len(request.itinerary.days)}, "
        f"trip={request.trip_start}..{request.trip_end}, optimize={request.optimize_routes}"
    )

    if request.trip_start and request.trip_end and request.trip_end < request.trip_start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="tripEnd must not be before tripStart",
        )

    try:
        result = await run_in_threadpool(
            compile_itinerary,
            request.itinerary,
            locations=request.locations,
            trip_start=request.trip_start,
            trip_end=request.trip_end,
            options=request.options,
            day_entry_points=request.day_entry_points,
            optimize_routes=request.optimize_routes,
        )
    except ItineraryStructureError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"[POST /itinerary/compile] failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Compilation failed: {type(e).__name__}",
        ) from e

    return CompileResponse(
        data=result.itinerary,
        conflicts=result.report.conflicts,
        summary=result.report.summary,
        excluded_activity_ids=result.excluded_activity_ids,
    )
