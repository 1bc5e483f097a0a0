"""Liveness endpoint."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..deps.providers import get_job_store, get_simulator
from ..jobs.simulator import JobSimulator
from ..jobs.store import JobStore
from ..schemas.envelope import ApiResponse

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health(
    simulator: JobSimulator = Depends(get_simulator),
    store: JobStore = Depends(get_job_store),
) -> ApiResponse:
    return ApiResponse.success({
        "ok": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "running_jobs": simulator.running_count,
        "active_jobs": await store.count_active(),
        "timers": simulator.live_jobs(),
    })
