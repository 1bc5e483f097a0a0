"""SQLite-backed training jobs and their in-process simulator."""
from .models import JobRecord, JobStatus, MetricSample
from .registry import JobHandle, JobRegistry
from .simulator import JobSimulator
from .store import JobStore

__all__ = [
    "JobHandle",
    "JobRecord",
    "JobRegistry",
    "JobSimulator",
    "JobStatus",
    "JobStore",
    "MetricSample",
]
