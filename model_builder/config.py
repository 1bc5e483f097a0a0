"""
Central configuration for Model Builder.

Flat module-level constants read by the API layer, the job simulator and
the dataset helpers.  Deployment-specific values (host, port, database
path) live in ``model_builder.api.config.ApiSettings`` and are read from
the environment; the constants here are the defaults those settings fall
back to.

Each constant carries a ``# STATUS:`` annotation:

  ACTIVE      Imported and used by running code.
"""
from pathlib import Path

# ── Paths ──────────────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).parent                  # STATUS: ACTIVE, base path for package-relative references
DATA_DIR = Path.cwd() / "data"                    # STATUS: ACTIVE, api/config.py; default home of app.db
UPLOADS_DIR = Path.cwd() / "uploads"              # STATUS: ACTIVE, api/config.py, run_seed.py; uploaded dataset files
STATIC_DIR = ROOT_DIR / "api" / "static"          # STATUS: ACTIVE, api/main.py; index.html / project.html

# ── Log Configuration ──────────────────────────────────────────────
LOG_LEVEL = "INFO"                                # STATUS: ACTIVE, api/main.py; "DEBUG", "INFO", "WARNING", "ERROR"
LOG_FORMAT = "structured"                         # STATUS: ACTIVE, api/main.py; "structured" or "json"
LOG_BUFFER_SIZE = 500                             # STATUS: ACTIVE, api/routers/logs.py; records kept for /api/logs

# ── Training Simulation ────────────────────────────────────────────
SIM_TICK_INTERVAL_S = 0.5                         # STATUS: ACTIVE, api/jobs/simulator.py; seconds between simulated steps
SIM_DEFAULT_EPOCHS = 5                            # STATUS: ACTIVE, api/jobs/metrics.py; used when config.epochs is absent/invalid
SIM_DEFAULT_STEPS_PER_EPOCH = 20                  # STATUS: ACTIVE, api/jobs/metrics.py; used when config.stepsPerEpoch is absent/invalid
SIM_MIN_TOTAL_STEPS = 20                          # STATUS: ACTIVE, api/jobs/metrics.py; floor on epochs * stepsPerEpoch
SIM_FLUSH_EVERY = 2                               # STATUS: ACTIVE, api/jobs/simulator.py; persist every Nth tick (final tick always)
SIM_LOSS_SCALE = 1.5                              # STATUS: ACTIVE, api/jobs/metrics.py; loss at t=0 before noise
SIM_LOSS_DECAY = 3.0                              # STATUS: ACTIVE, api/jobs/metrics.py; exponent of the loss decay
SIM_LOSS_NOISE = 0.05                             # STATUS: ACTIVE, api/jobs/metrics.py; loss noise ~ U[0, SIM_LOSS_NOISE)
SIM_ACCURACY_NOISE = 0.05                         # STATUS: ACTIVE, api/jobs/metrics.py; accuracy noise width, centred on 0

# ── Datasets ───────────────────────────────────────────────────────
ALLOWED_DATASET_EXTENSIONS = (".csv", ".tsv", ".json", ".txt")  # STATUS: ACTIVE, api/services/dataset_service.py
MAX_UPLOAD_BYTES = 512 * 1024 * 1024              # STATUS: ACTIVE, api/services/dataset_service.py; 512 MiB per file
UPLOAD_CHUNK_BYTES = 1024 * 1024                  # STATUS: ACTIVE, api/services/dataset_service.py; write and scan chunk size
ROW_SCAN_LIMIT_BYTES = 10 * 1024 * 1024           # STATUS: ACTIVE, api/services/dataset_service.py; row estimate reads at most 10 MiB
PREVIEW_SCAN_BYTES = 128 * 1024                   # STATUS: ACTIVE, api/services/dataset_service.py; preview reads the first 128 KiB
PREVIEW_MAX_ROWS = 25                             # STATUS: ACTIVE, api/services/dataset_service.py; header + 24 data rows
PREVIEW_MAX_COLS = 30                             # STATUS: ACTIVE, api/services/dataset_service.py


# ── Config Validation ──────────────────────────────────────────────

def validate_config() -> list:
    """Check config for common misconfigurations.

    Returns a list of dicts: [{"level": "WARNING"|"ERROR", "message": str}].
    Called on server startup.
    """
    issues = []

    if SIM_TICK_INTERVAL_S <= 0:
        issues.append({
            "level": "ERROR",
            "message": f"SIM_TICK_INTERVAL_S must be positive, got {SIM_TICK_INTERVAL_S}.",
        })

    if SIM_FLUSH_EVERY < 1:
        issues.append({
            "level": "ERROR",
            "message": f"SIM_FLUSH_EVERY must be >= 1, got {SIM_FLUSH_EVERY}.",
        })

    if SIM_MIN_TOTAL_STEPS < 1:
        issues.append({
            "level": "ERROR",
            "message": f"SIM_MIN_TOTAL_STEPS must be >= 1, got {SIM_MIN_TOTAL_STEPS}.",
        })

    if LOG_FORMAT not in ("structured", "json"):
        issues.append({
            "level": "WARNING",
            "message": f"LOG_FORMAT={LOG_FORMAT!r} is not recognised; falling back to 'structured'.",
        })

    if PREVIEW_SCAN_BYTES > ROW_SCAN_LIMIT_BYTES:
        issues.append({
            "level": "WARNING",
            "message": (
                "PREVIEW_SCAN_BYTES exceeds ROW_SCAN_LIMIT_BYTES; previews will read "
                "more of a file than the row estimate does."
            ),
        })

    return issues
