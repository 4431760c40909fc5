"""Structured logging for itinerary auto-save."""

import logging
from typing import Any

from backend.app.db.context import ItineraryScope

logger = logging.getLogger(__name__)


class StructuredSyncLogger:
    """Structured logger for itinerary persistence attempts."""

    def log_save(
        self,
        scope: ItineraryScope,
        outcome: str,
        event_count: int,
        latency_ms: float,
        version: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log auto-save attempt with structured data."""
        log_data: dict[str, Any] = {
            "owner_id": scope.owner_id,
            "scope_kind": scope.kind.value,
            "scope_key": scope.key,
            "outcome": outcome,
            "event_count": event_count,
            "latency_ms": round(latency_ms, 2),
        }

        if version is not None:
            log_data["version"] = version

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Itinerary save: {scope.kind.value}/{scope.key} - {outcome}"

        if outcome == "saved":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
