"""
Potion API — Health Check Route
================================

What:  Health check endpoint for monitoring and load balancer health checks.
How:   Pings MongoDB and reports the result with the service uptime.

Status levels:
    - healthy:   MongoDB answered the ping (HTTP 200)
    - unhealthy: MongoDB is unreachable (HTTP 200, flagged in the body)
"""

import logging
import time

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from potion_api import __version__
from potion_api.database import get_database
from potion_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(db: AsyncDatabase = Depends(get_database)) -> HealthResponse:
    """Probe MongoDB with a `ping` command and report aggregate status."""
    db_status = "connected"
    overall = "healthy"

    try:
        await db.command("ping")
    except PyMongoError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
