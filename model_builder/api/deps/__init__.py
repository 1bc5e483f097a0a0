"""Dependency injection providers."""
from .lookups import require_project
from .providers import (
    get_catalog_store,
    get_database,
    get_job_store,
    get_settings,
    get_simulator,
)

__all__ = [
    "get_catalog_store",
    "get_database",
    "get_job_store",
    "get_settings",
    "get_simulator",
    "require_project",
]
