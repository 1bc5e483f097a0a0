"""Custom exceptions and FastAPI error handler registration."""
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .schemas.envelope import ApiResponse

logger = logging.getLogger(__name__)


# ── Custom Exceptions ────────────────────────────────────────────────


class ProjectNotFoundError(Exception):
    """Requested project ID does not exist."""


class DatasetNotFoundError(Exception):
    """Requested dataset ID does not exist."""


class ModelNotFoundError(Exception):
    """Requested model config ID does not exist (or belongs to another project)."""


class JobNotFoundError(Exception):
    """Requested job ID does not exist."""


class InvalidRequestError(Exception):
    """Request is well-formed JSON but semantically unusable."""


class UploadTooLargeError(Exception):
    """Uploaded file exceeds the configured size limit."""


class UnsupportedFileTypeError(Exception):
    """Uploaded file extension is not an accepted dataset format."""


# ── Error → HTTP mapping ────────────────────────────────────────────

_EXCEPTION_STATUS = {
    ProjectNotFoundError: 404,
    DatasetNotFoundError: 404,
    ModelNotFoundError: 404,
    JobNotFoundError: 404,
    InvalidRequestError: 400,
    UploadTooLargeError: 413,
    UnsupportedFileTypeError: 415,
}


def _make_handler(status_code: int):
    """Create a handler that wraps an exception in ApiResponse."""

    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        resp = ApiResponse.fail(str(exc))
        return JSONResponse(status_code=status_code, content=resp.model_dump())

    return _handler


def register_error_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""
    for exc_cls, status in _EXCEPTION_STATUS.items():
        app.add_exception_handler(exc_cls, _make_handler(status))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s: %s\n%s", request.method, request.url.path, exc, traceback.format_exc())
        resp = ApiResponse.fail("Internal server error")
        return JSONResponse(status_code=500, content=resp.model_dump())
