"""Structured logging for engine stages."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Set the root log level once at application start."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


class StructuredStageLogger:
    """Structured logger for compiler stages and per-activity fallbacks."""

    def log_stage(
        self,
        stage: str,
        outcome: str,
        latency_ms: float,
        day_count: int | None = None,
        activity_count: int | None = None,
        error_reason: str | None = None,
        **fields: Any,
    ) -> None:
        """Log one stage run with structured data."""
        log_data: dict[str, Any] = {
            "stage": stage,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if day_count is not None:
            log_data["day_count"] = day_count
        if activity_count is not None:
            log_data["activity_count"] = activity_count
        if error_reason:
            log_data["error_reason"] = error_reason
        log_data.update(fields)

        log_msg = f"Engine stage: {stage} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_fallback(self, activity_id: str, check: str, reason: str) -> None:
        """Log a per-activity fallback to a default or unknown value."""
        log_data = {"activity_id": activity_id, "check": check, "reason": reason}
        logger.warning(
            f"Fallback for activity {activity_id}: {check} ({reason})",
            extra={"structured": log_data},
        )
