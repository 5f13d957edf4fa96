"""
Daily Tracker Backend — Health Check Route
============================================

What:  Liveness + readiness report for load balancers and monitoring.
Why:   A degraded store still answers requests, so operators need an
       explicit signal that writes are no longer durable.

Status levels:
    healthy   serving from the configured store (durable, or memory when no
              database was configured)
    degraded  the durable store failed and the process is now serving from
              memory; new writes will not survive a restart

Always HTTP 200: the process can still answer requests either way.
"""

import time

from fastapi import APIRouter, Request

from daily_tracker import __version__
from daily_tracker.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    store = request.app.state.store
    degraded = store.state.degraded
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        version=__version__,
        storage=store.mode,
        degraded=degraded,
        connections=request.app.state.broadcaster.connection_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
