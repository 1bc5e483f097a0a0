"""Live map from job id to the task driving its simulation."""
from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class JobHandle:
    """The running tick task of one job."""

    task: asyncio.Task
    total_steps: int
    started_at: float = field(default_factory=time.monotonic)


class JobRegistry:
    """Thread-safe registry of live job timers.

    An entry exists exactly while its job is running.  Removing an entry
    and stopping its task happen under one lock acquisition, so no caller
    can observe an entry whose task has already been stopped.
    """

    def __init__(self) -> None:
        self._handles: Dict[int, JobHandle] = {}
        self._lock = threading.Lock()

    def register(self, job_id: int, handle: JobHandle) -> None:
        """Add a handle.  Raises ``KeyError`` if the job already has one."""
        with self._lock:
            if job_id in self._handles:
                raise KeyError(f"Job {job_id} already has a live timer")
            self._handles[job_id] = handle

    def get(self, job_id: int) -> Optional[JobHandle]:
        with self._lock:
            return self._handles.get(job_id)

    def stop(self, job_id: int) -> bool:
        """Remove the entry and cancel its task.  Returns False if absent."""
        with self._lock:
            handle = self._handles.pop(job_id, None)
            if handle is None:
                return False
            handle.task.cancel()
            return True

    def release(self, job_id: int, task: Optional[asyncio.Task]) -> bool:
        """Remove the entry without cancelling its task.

        Used by a job's own task when it reaches a terminal state.  Only
        removes the entry if it is still driven by ``task``.
        """
        with self._lock:
            handle = self._handles.get(job_id)
            if handle is None or handle.task is not task:
                return False
            del self._handles[job_id]
            return True

    def stop_all(self) -> List[int]:
        """Cancel every live task and clear the registry."""
        with self._lock:
            stopped = list(self._handles)
            for handle in self._handles.values():
                handle.task.cancel()
            self._handles.clear()
        return stopped

    def active_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._handles)

    def __contains__(self, job_id: int) -> bool:
        with self._lock:
            return job_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
