"""Serve the Contacts API with uvicorn.

Host, port and every other option come from environment variables read
by ``contacts_api.app.core.config`` (``API_HOST``, ``API_PORT``,
``DATABASE_URL``, ``SECRET_KEY``, ``LOG_LEVEL`` ...).

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from contacts_api.app.core.config import settings
from contacts_api.app.main import app


async def run_api() -> None:
    """Start the API server and wait until it stops."""
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Server stopped")
