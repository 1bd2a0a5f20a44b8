"""
Health check endpoints for deployment.

Provides:
- /health - Basic liveness check (is the app running?)
- /ready - Readiness check with a count of live rooms
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Service references (set during app initialization)
_room_manager = None


def set_health_dependencies(room_manager=None):
    """Set dependencies for health checks."""
    global _room_manager
    _room_manager = room_manager


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - can the app handle requests?

    Returns 503 until the room manager has been wired in.
    """
    if _room_manager is None:
        logger.warning("Readiness check failed: room manager not configured")
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    rooms = _room_manager.rooms
    return {
        "status": "ok",
        "active_rooms": len(rooms),
        "seated_players": sum(len(room.players) for room in rooms.values()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
