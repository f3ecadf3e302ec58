"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from src.cycles.store import RecordKind
from src.dependencies import AppSettings

router = APIRouter(tags=["system"])
logger = logging.getLogger("luna.health")


@router.get("/health")
async def health_check(request: Request, settings: AppSettings) -> dict:
    """Liveness check. Returns 200 if the API process is up.

    Also reports whether the record store is attached and how much it holds.
    """
    store = getattr(request.app.state, "store", None)
    counts: dict[str, int] = {}
    if store is not None:
        counts = {kind.value: len(store.query(kind)) for kind in RecordKind}
    else:
        logger.warning("Health check: record store not attached")

    return {
        "status": "healthy" if store is not None else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "store": "attached" if store is not None else "missing",
        "records": counts,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
