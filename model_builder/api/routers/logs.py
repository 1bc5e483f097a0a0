"""Recent log records, optionally narrowed to one job."""
from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Dict, List, Optional

from fastapi import APIRouter

from ...config import LOG_BUFFER_SIZE
from ..schemas.envelope import ApiResponse

router = APIRouter(prefix="/api/logs", tags=["logs"])

_PACKAGE_LOGGER = "model_builder"


class _BufferHandler(logging.Handler):
    """Keeps the newest records in memory.

    Records logged with ``extra={"job_id": ...}`` carry the id so the
    endpoint can return one job's history.
    """

    def __init__(self, capacity: int) -> None:
        super().__init__(level=logging.INFO)
        self.records: deque = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append({
            "ts": record.created,
            "level": record.levelname,
            "levelno": record.levelno,
            "logger": record.name,
            "job_id": getattr(record, "job_id", None),
            "message": record.getMessage(),
        })

    def select(self, last_n: int, job_id: Optional[int], min_level: int) -> List[Dict[str, Any]]:
        if last_n <= 0:
            return []
        out = [
            {k: v for k, v in e.items() if k != "levelno"}
            for e in self.records
            if e["levelno"] >= min_level and (job_id is None or e["job_id"] == job_id)
        ]
        return out[-last_n:]


_handler = _BufferHandler(LOG_BUFFER_SIZE)


def setup_log_buffer() -> None:
    """Attach the buffer to the package logger; repeated calls are no-ops."""
    pkg_logger = logging.getLogger(_PACKAGE_LOGGER)
    if _handler not in pkg_logger.handlers:
        pkg_logger.addHandler(_handler)


def teardown_log_buffer() -> None:
    logging.getLogger(_PACKAGE_LOGGER).removeHandler(_handler)
    _handler.records.clear()


@router.get("")
async def get_logs(last_n: int = 100, job_id: Optional[int] = None, level: str = "INFO") -> ApiResponse:
    t0 = time.monotonic()
    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        min_level = logging.INFO
    entries = _handler.select(last_n, job_id, min_level)
    return ApiResponse.success(entries, elapsed_ms=(time.monotonic() - t0) * 1000)
