"""Project endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..catalog.models import ProjectRecord
from ..catalog.store import CatalogStore
from ..deps.lookups import require_project
from ..deps.providers import get_catalog_store
from ..errors import InvalidRequestError
from ..schemas.envelope import ApiResponse
from ..schemas.requests import ProjectCreateRequest

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("")
async def list_projects(catalog: CatalogStore = Depends(get_catalog_store)) -> ApiResponse:
    projects = await catalog.list_projects()
    return ApiResponse.success([p.model_dump() for p in projects], total=len(projects))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    req: ProjectCreateRequest,
    catalog: CatalogStore = Depends(get_catalog_store),
) -> ApiResponse:
    name = req.name.strip()
    if not name:
        raise InvalidRequestError("name is required")
    project = await catalog.create_project(name, req.description)
    return ApiResponse.success(project.model_dump())


@router.get("/{project_id}")
async def get_project(project: ProjectRecord = Depends(require_project)) -> ApiResponse:
    return ApiResponse.success(project.model_dump())
