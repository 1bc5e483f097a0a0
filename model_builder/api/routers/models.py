"""Saved model config endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..catalog.models import ProjectRecord
from ..catalog.store import CatalogStore
from ..deps.lookups import require_project
from ..deps.providers import get_catalog_store
from ..errors import InvalidRequestError
from ..schemas.envelope import ApiResponse
from ..schemas.requests import ModelCreateRequest

router = APIRouter(prefix="/api/projects/{project_id}/models", tags=["models"])


@router.get("")
async def list_models(
    project: ProjectRecord = Depends(require_project),
    catalog: CatalogStore = Depends(get_catalog_store),
) -> ApiResponse:
    models = await catalog.list_models(project.id)
    return ApiResponse.success([m.model_dump() for m in models], total=len(models))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_model(
    req: ModelCreateRequest,
    project: ProjectRecord = Depends(require_project),
    catalog: CatalogStore = Depends(get_catalog_store),
) -> ApiResponse:
    name = req.name.strip()
    if not name:
        raise InvalidRequestError("name is required")
    model = await catalog.create_model(project.id, name, req.config)
    return ApiResponse.success(model.model_dump())
