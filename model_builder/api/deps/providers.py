"""Singleton dependency providers for FastAPI ``Depends()``."""
from __future__ import annotations

from functools import lru_cache

from ..config import ApiSettings


@lru_cache
def get_settings() -> ApiSettings:
    return ApiSettings()


# Lazy singletons: initialised at first call rather than import time
# so the event loop is already running when async resources are needed.

_database = None
_job_store = None
_catalog_store = None
_simulator = None


def get_database():
    """Return the singleton ``Database`` (opened by the app lifespan)."""
    global _database
    if _database is None:
        from ..db import Database

        _database = Database(get_settings().db_path)
    return _database


def get_job_store():
    """Return the singleton ``JobStore``."""
    global _job_store
    if _job_store is None:
        from ..jobs.store import JobStore

        _job_store = JobStore(get_database())
    return _job_store


def get_catalog_store():
    """Return the singleton ``CatalogStore``."""
    global _catalog_store
    if _catalog_store is None:
        from ..catalog.store import CatalogStore

        _catalog_store = CatalogStore(get_database())
    return _catalog_store


def get_simulator():
    """Return the singleton ``JobSimulator`` with its own ``JobRegistry``."""
    global _simulator
    if _simulator is None:
        import numpy as np

        from ..jobs.registry import JobRegistry
        from ..jobs.simulator import JobSimulator

        settings = get_settings()
        _simulator = JobSimulator(
            get_job_store(),
            JobRegistry(),
            tick_interval_s=settings.tick_interval_s,
            flush_every=settings.flush_every,
            rng=np.random.default_rng(settings.rng_seed),
        )
    return _simulator
