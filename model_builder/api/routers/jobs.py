"""Training job endpoints."""
from __future__ import annotations

import json

from fastapi import APIRouter, Depends, status
from sse_starlette.sse import EventSourceResponse

from ..catalog.models import ProjectRecord
from ..catalog.store import CatalogStore
from ..deps.lookups import require_project
from ..deps.providers import get_catalog_store, get_job_store, get_simulator
from ..errors import JobNotFoundError, ModelNotFoundError
from ..jobs.models import JobStatus
from ..jobs.simulator import JobSimulator
from ..jobs.store import JobStore
from ..schemas.envelope import ApiResponse
from ..schemas.requests import JobCreateRequest

router = APIRouter(tags=["jobs"])


def _not_found(job_id: int) -> None:
    """Raise JobNotFoundError to be handled by the global error handler."""
    raise JobNotFoundError(f"Job {job_id} not found")


@router.get("/api/projects/{project_id}/jobs")
async def list_project_jobs(
    limit: int = 100,
    project: ProjectRecord = Depends(require_project),
    store: JobStore = Depends(get_job_store),
) -> ApiResponse:
    jobs = await store.list_jobs(project.id, limit=limit)
    running = sum(1 for j in jobs if j.status == JobStatus.running)
    return ApiResponse.success(
        [j.model_dump(mode="json", by_alias=True) for j in jobs],
        total=len(jobs),
        running_jobs=running,
    )


@router.post("/api/projects/{project_id}/jobs", status_code=status.HTTP_201_CREATED)
async def create_job(
    req: JobCreateRequest,
    project: ProjectRecord = Depends(require_project),
    catalog: CatalogStore = Depends(get_catalog_store),
    store: JobStore = Depends(get_job_store),
    simulator: JobSimulator = Depends(get_simulator),
) -> ApiResponse:
    config = dict(req.config)
    if req.model_id is not None:
        model = await catalog.get_model(req.model_id)
        if model is None or model.project_id != project.id:
            raise ModelNotFoundError(f"Model {req.model_id} not found in project {project.id}")
        if not config:
            config = dict(model.config)

    job_id = await store.create_queued_job(project.id, req.model_id, req.type, config)
    await simulator.start(job_id, config)
    rec = await store.get_job(job_id)
    return ApiResponse.success(rec.model_dump(mode="json", by_alias=True))


@router.get("/api/jobs/{job_id}")
async def get_job(
    job_id: int,
    store: JobStore = Depends(get_job_store),
) -> ApiResponse:
    rec = await store.get_job(job_id)
    if rec is None:
        _not_found(job_id)
    return ApiResponse.success(rec.model_dump(mode="json", by_alias=True))


@router.post("/api/jobs/{job_id}/cancel")
async def cancel_job(
    job_id: int,
    simulator: JobSimulator = Depends(get_simulator),
) -> ApiResponse:
    rec = await simulator.cancel(job_id)
    if rec is None:
        _not_found(job_id)
    return ApiResponse.success(rec.model_dump(mode="json", by_alias=True))


@router.get("/api/jobs/{job_id}/events")
async def job_events(
    job_id: int,
    store: JobStore = Depends(get_job_store),
    simulator: JobSimulator = Depends(get_simulator),
):
    rec = await store.get_job(job_id)
    if rec is None:
        _not_found(job_id)

    async def _generate():
        async for event in simulator.subscribe_events(job_id):
            yield {"event": event.get("event", "message"), "data": json.dumps(event)}

    return EventSourceResponse(_generate())
