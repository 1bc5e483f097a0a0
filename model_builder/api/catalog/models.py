"""Catalog data models."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProjectRecord(BaseModel):
    id: int
    name: str
    description: str = ""
    created_at: Optional[str] = None
    dataset_count: int = 0
    model_count: int = 0


class DatasetRecord(BaseModel):
    """An uploaded file.  ``rows`` is an estimate and may be unknown."""

    id: int
    project_id: int
    name: str
    filename: str
    size_bytes: int
    rows: Optional[int] = None
    created_at: Optional[str] = None


class ModelRecord(BaseModel):
    """A saved hyperparameter config."""

    id: int
    project_id: int
    name: str
    config: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
