"""
Run the todo service with uvicorn.

Usage:
    python -m src.todo_service
"""
from __future__ import annotations

import logging

import uvicorn

from .main import configure_logging, create_app
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def run_server() -> None:
    """Serve the app on the configured host and port until interrupted."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Serving todos on %s:%s (db: %s)", settings.host, settings.port, settings.sqlite_db_path)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run_server()
