"""Request schemas for mutation (POST) endpoints."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProjectCreateRequest(BaseModel):
    """Request body for POST /api/projects."""

    name: str
    description: str = ""


class ModelCreateRequest(BaseModel):
    """Request body for POST /api/projects/{id}/models."""

    name: str
    config: Dict[str, Any] = Field(default_factory=dict)


class JobCreateRequest(BaseModel):
    """Request body for POST /api/projects/{id}/jobs.

    ``modelId`` is accepted as an alias of ``model_id`` for clients that
    post camelCase bodies.
    """

    type: str = "train"
    model_id: Optional[int] = Field(default=None, alias="modelId")
    config: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}
