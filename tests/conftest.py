"""Shared test fixtures for the model_builder test suite."""
from __future__ import annotations

import asyncio
from typing import List, Tuple

import numpy as np
import pytest

from model_builder.api.catalog.store import CatalogStore
from model_builder.api.db import Database
from model_builder.api.jobs.models import JobStatus
from model_builder.api.jobs.registry import JobRegistry
from model_builder.api.jobs.simulator import JobSimulator
from model_builder.api.jobs.store import JobStore

FAST_TICK = 0.005


def pytest_sessionfinish(session, exitstatus):
    """Spawn a watchdog that force-exits if the process hangs at shutdown.

    aiosqlite keeps a worker thread per connection; a connection left open
    by a failing test would otherwise keep the interpreter alive.
    """
    import os
    import threading
    import time

    def _watchdog():
        time.sleep(5)
        os._exit(exitstatus)

    t = threading.Thread(target=_watchdog, daemon=True)
    t.start()


class RecordingJobStore(JobStore):
    """JobStore that remembers every lifecycle write it accepted."""

    def __init__(self, db: Database) -> None:
        super().__init__(db)
        self.writes: List[Tuple[str, int, int]] = []  # (kind, progress, n_metrics)

    async def update_progress(self, job_id, progress, metrics):
        changed = await super().update_progress(job_id, progress, metrics)
        if changed:
            self.writes.append(("progress", int(progress), len(metrics)))
        return changed

    async def set_terminal(self, job_id, status, progress=None, metrics=None, error=None):
        changed = await super().set_terminal(job_id, status, progress, metrics, error)
        if changed:
            n = len(metrics) if metrics is not None else -1
            self.writes.append((status.value, -1 if progress is None else int(progress), n))
        return changed


async def wait_for_status(store: JobStore, job_id: int, statuses, timeout: float = 10.0):
    """Poll the store until the job reaches one of *statuses*."""
    wanted = {JobStatus(s) for s in statuses}
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        rec = await store.get_job(job_id)
        if rec is not None and rec.status in wanted:
            return rec
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"job {job_id} stuck in {rec.status if rec else None}")
        await asyncio.sleep(0.01)


# ── Persistence fixtures ─────────────────────────────────────────────


@pytest.fixture
async def db():
    d = Database(":memory:")
    await d.initialize()
    yield d
    await d.close()


@pytest.fixture
async def job_store(db):
    return RecordingJobStore(db)


@pytest.fixture
async def catalog(db):
    return CatalogStore(db)


@pytest.fixture
async def project(catalog):
    return await catalog.create_project("Churn", "test project")


@pytest.fixture
def wait_for(job_store):
    """``await wait_for(job_id, ["completed"])`` against the test store."""

    async def _wait(job_id, statuses, timeout=10.0):
        return await wait_for_status(job_store, job_id, statuses, timeout)

    return _wait


@pytest.fixture
async def queued_job(job_store, project):
    """Factory: insert a queued job for the test project and return its id."""

    async def _make(config=None, job_type="train"):
        return await job_store.create_queued_job(project.id, None, job_type, config or {})

    return _make


# ── Simulator fixtures ───────────────────────────────────────────────


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
async def simulator(job_store, registry):
    """Fast-ticking simulator with a seeded rng."""
    sim = JobSimulator(
        job_store,
        registry,
        tick_interval_s=FAST_TICK,
        flush_every=2,
        rng=np.random.default_rng(7),
    )
    yield sim
    await sim.shutdown()


@pytest.fixture
async def slow_simulator(job_store, registry):
    """Simulator whose first tick is far away, for pre-tick assertions."""
    sim = JobSimulator(job_store, registry, tick_interval_s=30.0, rng=np.random.default_rng(7))
    yield sim
    await sim.shutdown()


# ── App fixtures ─────────────────────────────────────────────────────


@pytest.fixture
async def app(tmp_path, db, job_store, catalog, simulator):
    """Create a test FastAPI app whose providers return the per-test instances."""
    import model_builder.api.deps.providers as _prov
    from model_builder.api.config import ApiSettings
    from model_builder.api.main import create_app

    settings = ApiSettings(
        db_path=":memory:",
        uploads_dir=str(tmp_path / "uploads"),
        tick_interval_s=FAST_TICK,
    )

    _prov._database = db
    _prov._job_store = job_store
    _prov._catalog_store = catalog
    _prov._simulator = simulator

    application = create_app(settings)
    application.dependency_overrides[_prov.get_settings] = lambda: settings
    yield application

    application.dependency_overrides.clear()
    _prov._database = None
    _prov._job_store = None
    _prov._catalog_store = None
    _prov._simulator = None
    _prov.get_settings.cache_clear()


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
