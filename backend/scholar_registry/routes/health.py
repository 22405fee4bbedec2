"""
Scholar Registry: Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the database and asks the blob store for a reachability probe.

Status levels:
    - healthy:   database and blob store reachable (HTTP 200)
    - degraded:  blob store unreachable; reads still work (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from scholar_registry import __version__
from scholar_registry.blobs.base import BlobStore
from scholar_registry.database import Database
from scholar_registry.dependencies import get_blob_store, get_database
from scholar_registry.schemas.scholar import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    database: Database = Depends(get_database),
    blob_store: BlobStore = Depends(get_blob_store),
) -> HealthResponse:
    db_status = "connected"
    blob_status = "available"
    overall = "healthy"

    if not await database.ping():
        db_status = "disconnected"
        overall = "unhealthy"

    try:
        if not await blob_store.health_check():
            blob_status = "unavailable"
    except Exception as e:
        blob_status = "unavailable"
        logger.warning("Health check: blob store unreachable: %s", str(e))

    if blob_status != "available" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        blob_store=blob_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
