"""Dataset upload, listing and preview endpoints."""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from ..catalog.models import ProjectRecord
from ..catalog.store import CatalogStore
from ..config import ApiSettings
from ..deps.lookups import require_project
from ..deps.providers import get_catalog_store, get_settings
from ..errors import DatasetNotFoundError, InvalidRequestError
from ..schemas.envelope import ApiResponse
from ..services.dataset_service import (
    build_preview,
    check_extension,
    estimate_rows,
    save_upload,
    stored_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["datasets"])


@router.get("/api/projects/{project_id}/datasets")
async def list_datasets(
    project: ProjectRecord = Depends(require_project),
    catalog: CatalogStore = Depends(get_catalog_store),
) -> ApiResponse:
    datasets = await catalog.list_datasets(project.id)
    return ApiResponse.success([d.model_dump() for d in datasets], total=len(datasets))


@router.post("/api/projects/{project_id}/datasets", status_code=status.HTTP_201_CREATED)
async def upload_dataset(
    file: Optional[UploadFile] = File(None),
    project: ProjectRecord = Depends(require_project),
    catalog: CatalogStore = Depends(get_catalog_store),
    settings: ApiSettings = Depends(get_settings),
) -> ApiResponse:
    if file is None or not file.filename:
        raise InvalidRequestError("file field is required")
    check_extension(file.filename)

    filename = stored_filename(file.filename)
    dest = Path(settings.uploads_dir) / filename
    size = await save_upload(file, dest)
    rows = await asyncio.to_thread(estimate_rows, dest)

    dataset = await catalog.create_dataset(project.id, file.filename, filename, size, rows)
    logger.info("Stored dataset %s for project %s (%d bytes, rows=%s)", dataset.id, project.id, size, rows)
    return ApiResponse.success(dataset.model_dump())


@router.get("/api/datasets/{dataset_id}/preview")
async def preview_dataset(
    dataset_id: int,
    catalog: CatalogStore = Depends(get_catalog_store),
    settings: ApiSettings = Depends(get_settings),
) -> ApiResponse:
    dataset = await catalog.get_dataset(dataset_id)
    if dataset is None:
        raise DatasetNotFoundError(f"Dataset {dataset_id} not found")
    path = Path(settings.uploads_dir) / dataset.filename
    if not path.is_file():
        raise DatasetNotFoundError(f"File for dataset {dataset_id} is missing")
    t0 = time.monotonic()
    preview = await asyncio.to_thread(build_preview, path, dataset.name)
    elapsed = (time.monotonic() - t0) * 1000
    return ApiResponse.success(preview, elapsed_ms=elapsed)
