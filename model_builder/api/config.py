"""Environment-driven settings for the API layer."""
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from ..config import DATA_DIR, LOG_LEVEL, SIM_FLUSH_EVERY, SIM_TICK_INTERVAL_S, UPLOADS_DIR


class ApiSettings(BaseSettings):
    """Immutable settings loaded from environment / .env file."""

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "http://localhost:3000"
    db_path: str = str(DATA_DIR / "app.db")
    uploads_dir: str = str(UPLOADS_DIR)
    log_level: str = LOG_LEVEL

    # Simulation cadence
    tick_interval_s: float = Field(default=SIM_TICK_INTERVAL_S, gt=0)
    flush_every: int = Field(default=SIM_FLUSH_EVERY, ge=1)
    rng_seed: Optional[int] = None

    model_config = {"env_prefix": "MB_API_"}
