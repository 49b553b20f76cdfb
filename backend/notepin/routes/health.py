"""
Notepin — Health Check Route
=============================

What:  GET /health for monitors and container health checks.
How:   Asks the configured PostStore for a lightweight read.

Status levels:
    healthy:    store reachable (HTTP 200)
    unhealthy:  store unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from notepin import __version__
from notepin.dependencies import get_post_service
from notepin.schemas.post import HealthResponse
from notepin.services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(service: PostService = Depends(get_post_service)):
    store = service.store
    available = await store.health_check()

    body = HealthResponse(
        status="healthy" if available else "unhealthy",
        version=__version__,
        storage_backend=store.backend_name,
        storage="available" if available else "unavailable",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not available:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
