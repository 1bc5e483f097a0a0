"""Model Builder API server entry point.

Usage:
    python run_server.py
    python run_server.py --host 127.0.0.1 --port 9000
    python run_server.py --reload --log-level debug
"""
from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Model Builder API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=3000, help="Port (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    import uvicorn

    logger.info("Starting Model Builder API on http://%s:%s", args.host, args.port)
    if args.reload:
        # Reload mode needs an import string; settings come from MB_API_* env vars.
        uvicorn.run(
            "model_builder.api.main:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            log_level=args.log_level,
        )
        return

    from model_builder.api.config import ApiSettings
    from model_builder.api.main import create_app

    settings = ApiSettings(host=args.host, port=args.port, log_level=args.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
