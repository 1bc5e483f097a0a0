"""Simulated training jobs: one asyncio tick task per job."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional

import numpy as np

from ...config import SIM_FLUSH_EVERY, SIM_TICK_INTERVAL_S
from .metrics import make_sample, progress_for, total_steps
from .models import JobRecord, JobStatus, MetricSample
from .registry import JobHandle, JobRegistry
from .store import JobStore

logger = logging.getLogger(__name__)


class JobSimulator:
    """Drives fake training jobs from ``queued`` to a terminal status.

    Each started job gets its own task that wakes every
    ``tick_interval_s`` seconds, appends one metric sample and persists
    progress every ``flush_every`` ticks (the final tick always flushes).
    All store writes for a job, including cancellation, are serialised
    by a per-job ``asyncio.Lock``.
    """

    def __init__(
        self,
        store: JobStore,
        registry: Optional[JobRegistry] = None,
        *,
        tick_interval_s: float = SIM_TICK_INTERVAL_S,
        flush_every: int = SIM_FLUSH_EVERY,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be positive")
        if flush_every < 1:
            raise ValueError("flush_every must be >= 1")
        self._store = store
        self._registry = registry if registry is not None else JobRegistry()
        self._interval = tick_interval_s
        self._flush_every = flush_every
        self._rng = rng if rng is not None else np.random.default_rng()
        self._locks: Dict[int, asyncio.Lock] = {}
        self._event_subscribers: Dict[int, list] = {}

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    @property
    def running_count(self) -> int:
        """Number of jobs with a live timer."""
        return len(self._registry)

    def live_jobs(self) -> List[Dict[str, Any]]:
        """Job id, step count and seconds since start for every live timer."""
        now = time.monotonic()
        out = []
        for job_id in self._registry.active_ids():
            handle = self._registry.get(job_id)
            if handle is None:
                continue
            out.append({
                "job_id": job_id,
                "total_steps": handle.total_steps,
                "running_s": round(now - handle.started_at, 3),
            })
        return out

    def _lock_for(self, job_id: int) -> asyncio.Lock:
        lock = self._locks.get(job_id)
        if lock is None:
            lock = self._locks[job_id] = asyncio.Lock()
        return lock

    # ── Start ────────────────────────────────────────────────────────

    async def start(self, job_id: int, config: Optional[Mapping[str, Any]] = None) -> None:
        """Mark *job_id* running and schedule its ticks.

        Returns once the ``running`` status is stored; the ticks happen in
        the background.  Any error on the way forces the job to ``failed``.
        """
        task: Optional[asyncio.Task] = None
        try:
            async with self._lock_for(job_id):
                if not await self._store.set_running(job_id):
                    logger.warning(
                        "Job %s is not queued; simulation not started", job_id,
                        extra={"job_id": job_id},
                    )
                    self._locks.pop(job_id, None)
                    return
                steps = total_steps(config)
                task = asyncio.create_task(self._run(job_id, steps), name=f"sim-job-{job_id}")
                self._registry.register(job_id, JobHandle(task=task, total_steps=steps))
            logger.info(
                "Job %s running: %d steps every %.3fs", job_id, steps, self._interval,
                extra={"job_id": job_id},
            )
            self._emit(job_id, {"event": "started", "job_id": job_id, "total_steps": steps})
        except Exception as exc:
            logger.exception(
                "Job %s failed to start", job_id,
                extra={"job_id": job_id},
            )
            if task is not None and not self._registry.stop(job_id):
                task.cancel()
            await self._fail(job_id, str(exc))

    # ── Tick loop ────────────────────────────────────────────────────

    async def _run(self, job_id: int, steps: int) -> None:
        task = asyncio.current_task()
        lock = self._lock_for(job_id)
        started = time.monotonic()
        metrics: List[MetricSample] = []
        step = 0

        while step < steps:
            await asyncio.sleep(self._interval)
            async with lock:
                step += 1
                try:
                    elapsed_ms = int((time.monotonic() - started) * 1000)
                    sample = make_sample(step, steps, elapsed_ms, self._rng)
                    metrics.append(sample)
                    progress = progress_for(step, steps)
                    final = step >= steps
                    flush = final or progress == 100 or step % self._flush_every == 0

                    if final:
                        self._registry.release(job_id, task)
                        written = await self._store.set_terminal(
                            job_id, JobStatus.completed, progress=100, metrics=metrics
                        )
                    elif flush:
                        written = await self._store.update_progress(job_id, progress, metrics)
                    else:
                        written = True
                except Exception as exc:
                    logger.exception(
                        "Job %s: step %d failed", job_id, step,
                        extra={"job_id": job_id},
                    )
                    self._registry.release(job_id, task)
                    await self._fail(job_id, str(exc))
                    return

                if not written:
                    # Terminated underneath us; the stored terminal state wins.
                    logger.warning(
                        "Job %s is no longer active at step %d; stopping", job_id, step,
                        extra={"job_id": job_id},
                    )
                    self._registry.release(job_id, task)
                    self._locks.pop(job_id, None)
                    return

                if flush and not final:
                    self._emit(job_id, {
                        "event": "progress",
                        "job_id": job_id,
                        "progress": progress,
                        "sample": sample.model_dump(by_alias=True),
                    })

        self._locks.pop(job_id, None)
        logger.info(
            "Job %s completed after %d steps", job_id, steps,
            extra={"job_id": job_id},
        )
        self._emit(job_id, {"event": "completed", "job_id": job_id, "progress": 100})
        self._emit(job_id, {"event": "done", "job_id": job_id})

    async def _fail(self, job_id: int, message: str) -> None:
        try:
            await self._store.set_terminal(job_id, JobStatus.failed, error=message)
        except Exception:
            logger.exception(
                "Job %s: could not record failure %r", job_id, message,
                extra={"job_id": job_id},
            )
        self._locks.pop(job_id, None)
        self._emit(job_id, {"event": "failed", "job_id": job_id, "error": message})
        self._emit(job_id, {"event": "done", "job_id": job_id})

    # ── Cancel ───────────────────────────────────────────────────────

    async def cancel(self, job_id: int) -> Optional[JobRecord]:
        """Stop *job_id*'s timer and mark it ``canceled``.

        The job keeps its last persisted progress and metrics; a sample
        computed but not yet flushed is dropped.  Canceling a terminal job
        returns it unchanged.  Returns ``None`` for an unknown id.
        """
        async with self._lock_for(job_id):
            stopped = self._registry.stop(job_id)
            rec = await self._store.get_job(job_id)
            if rec is None:
                self._locks.pop(job_id, None)
                return None
            if rec.status.is_terminal:
                self._locks.pop(job_id, None)
                return rec
            await self._store.set_terminal(job_id, JobStatus.canceled, progress=rec.progress)
            updated = await self._store.get_job(job_id)
        self._locks.pop(job_id, None)
        logger.info(
            "Job %s canceled at %d%% (timer stopped: %s)", job_id, rec.progress, stopped,
            extra={"job_id": job_id},
        )
        self._emit(job_id, {"event": "canceled", "job_id": job_id, "progress": rec.progress})
        self._emit(job_id, {"event": "done", "job_id": job_id})
        return updated

    async def shutdown(self) -> None:
        """Stop every live timer.  Stored statuses are left as they are.

        Subscribers of the stopped jobs receive ``done`` so their streams end.
        """
        stopped = self._registry.stop_all()
        if stopped:
            logger.info("Stopped %d running simulation(s): %s", len(stopped), stopped)
            await asyncio.sleep(0)
        for job_id in stopped:
            self._locks.pop(job_id, None)
            self._emit(job_id, {"event": "done", "job_id": job_id})

    # ── Event streaming ──────────────────────────────────────────────

    async def subscribe_events(self, job_id: int) -> AsyncGenerator[Dict[str, Any], None]:
        """Yield lifecycle events for a job until it is done.

        The first event carries the current stored record; a job that is
        already terminal yields only that.
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._event_subscribers.setdefault(job_id, []).append(queue)
        try:
            rec = await self._store.get_job(job_id)
            if rec is None:
                return
            yield {"event": "status", "job_id": job_id, "data": rec.model_dump(mode="json", by_alias=True)}
            if rec.status.is_terminal:
                return

            while True:
                event = await queue.get()
                yield event
                if event.get("event") == "done":
                    break
        finally:
            subs = self._event_subscribers.get(job_id, [])
            if queue in subs:
                subs.remove(queue)
            if not subs:
                self._event_subscribers.pop(job_id, None)

    def _emit(self, job_id: int, event: Dict[str, Any]) -> None:
        for q in self._event_subscribers.get(job_id, []):
            q.put_nowait(event)
