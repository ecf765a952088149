"""FastAPI application."""

from fastapi import FastAPI

from itinerary_engine.app.api.routes.availability import router as availability_router
from itinerary_engine.app.api.routes.health import router as health_router
from itinerary_engine.app.api.routes.itinerary import router as itinerary_router
from itinerary_engine.app.api.routes.metrics import router as metrics_router
from itinerary_engine.app.config import get_settings
from itinerary_engine.app.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="Itinerary Engine API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(itinerary_router)
app.include_router(availability_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Itinerary Engine API", "version": "0.1.0"}
