"""Availability endpoint - POST /availability/check."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter

from itinerary_engine.app.availability.batch import check_availability_batch
from itinerary_engine.app.config import get_settings
from itinerary_engine.app.models.api import AvailabilityRequest, AvailabilityResponse
from itinerary_engine.app.orchestration.compiler import locations_by_id

router = APIRouter(prefix="/availability", tags=["availability"])
logger = logging.getLogger(__name__)


def local_now(request_now: datetime | None, timezone: str) -> datetime:
    """One zone-naive "now" in trip-local time for the whole request."""
    zone = ZoneInfo(timezone)
    if request_now is None:
        return datetime.now(zone).replace(tzinfo=None)
    if request_now.tzinfo is not None:
        return request_now.astimezone(zone).replace(tzinfo=None)
    return request_now


@router.post("/check", response_model=AvailabilityResponse)
async def check_availability(request: AvailabilityRequest) -> AvailabilityResponse:
    """Open/closed/busy status for each activity, in request order."""
    settings = get_settings()
    now = local_now(request.now, settings.trip_timezone)

    logger.info(f"[POST /availability/check] activities={len(request.activities)}, now={now.isoformat()}")

    results = await check_availability_batch(
        request.activities,
        locations_by_id(request.locations),
        now,
        fanout_cap=settings.fanout_cap,
    )
    return AvailabilityResponse(results=results)
