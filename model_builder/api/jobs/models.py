"""Job data models."""
from __future__ import annotations

import enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field


class JobStatus(str, enum.Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"
    canceled = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.completed, JobStatus.failed, JobStatus.canceled})
ACTIVE_STATUSES = frozenset({JobStatus.queued, JobStatus.running})


class MetricSample(BaseModel):
    """One simulated training step.

    Serialised as ``{step, loss, accuracy, elapsedMs}``; ``elapsed_ms`` is
    also accepted on input.
    """

    step: int = Field(ge=1)
    loss: float
    accuracy: float
    elapsed_ms: int = Field(
        validation_alias=AliasChoices("elapsed_ms", "elapsedMs"),
        serialization_alias="elapsedMs",
    )


class JobRecord(BaseModel):
    """Persistent representation of a training job."""

    id: int
    project_id: int
    model_id: Optional[int] = None
    type: str = "train"
    status: JobStatus = JobStatus.queued
    progress: int = 0
    config: Dict[str, Any] = Field(default_factory=dict)
    metrics: List[MetricSample] = Field(default_factory=list)
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
