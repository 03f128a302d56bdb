"""Health check routes."""

from __future__ import annotations

import time

from fastapi import APIRouter

from bodylog.models import HealthResponse

router = APIRouter(tags=["health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check for the demo service."""
    return HealthResponse(
        status="healthy",
        uptime_seconds=round(time.time() - _start_time, 1),
    )
