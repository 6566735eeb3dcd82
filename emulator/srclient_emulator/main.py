"""
Schema registry emulator - Main entry point.

Usage:
    python -m srclient_emulator.main

Configuration is entirely via environment variables (SR_EMULATOR_*).
See config.py for all available settings.
"""

from __future__ import annotations

import logging

import json_log_formatter
import uvicorn

from .app import create_app
from .config import Settings

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Emulator settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main() -> None:
    """Run the emulator until interrupted."""
    settings = Settings()
    setup_logging(settings)

    logger.info(
        "Starting schema registry emulator",
        extra={"host": settings.host, "port": settings.port, "seed": settings.seed},
    )
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
