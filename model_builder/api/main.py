"""FastAPI application factory and server entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from .. import __version__
from ..config import LOG_FORMAT, STATIC_DIR, validate_config
from .config import ApiSettings
from .deps.providers import get_database, get_job_store, get_settings, get_simulator
from .errors import register_error_handlers

logger = logging.getLogger(__name__)


def configure_logging(level_name: str) -> None:
    """Structured (default) or JSON log lines on the root logger."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    if LOG_FORMAT == "json":
        fmt = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
    else:
        fmt = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings: ApiSettings = app.state.settings
    configure_logging(settings.log_level)
    logger.info("Starting Model Builder API on %s:%s", settings.host, settings.port)

    for issue in validate_config():
        if issue.get("level") == "ERROR":
            logger.error("Config validation: %s", issue.get("message", ""))
        else:
            logger.warning("Config validation: %s", issue.get("message", ""))

    from .routers.logs import setup_log_buffer, teardown_log_buffer
    setup_log_buffer()

    db = get_database()
    await db.initialize()

    # Timers of a previous process died with it
    orphaned = await get_job_store().fail_orphaned()
    if orphaned:
        logger.warning("Marked %d job(s) left running by a previous process as failed", orphaned)

    yield

    await get_simulator().shutdown()
    await db.close()
    teardown_log_buffer()
    logger.info("Shutting down Model Builder API")


def create_app(settings: ApiSettings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Model Builder API",
        description="Projects, datasets, model configs and simulated training jobs.",
        version=__version__,
        lifespan=_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    # CORS
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    allow_creds = "*" not in origins
    if not allow_creds:
        logger.warning("CORS origins contain '*'. Credentials will NOT be allowed.")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_creds,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    from .routers import all_routers

    for router in all_routers():
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def index_page() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/project.html", include_in_schema=False)
    async def project_page() -> FileResponse:
        return FileResponse(STATIC_DIR / "project.html")

    return app


def run_server() -> None:
    """CLI entry point: ``python -m model_builder.api.main``."""
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run_server()
