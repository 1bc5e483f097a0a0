"""Path-parameter lookups that raise the matching not-found error."""
from __future__ import annotations

from fastapi import Depends

from ..catalog.models import ProjectRecord
from ..catalog.store import CatalogStore
from ..errors import ProjectNotFoundError
from .providers import get_catalog_store


async def require_project(
    project_id: int,
    catalog: CatalogStore = Depends(get_catalog_store),
) -> ProjectRecord:
    project = await catalog.get_project(project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project {project_id} not found")
    return project
