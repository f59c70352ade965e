"""Entry point for serving the User Directory API.

Host and port are read from the ``HOST`` and ``PORT`` environment
variables (see ``user_directory_api.app.core.config``).  Place other
settings such as ``SECRET_KEY`` and ``DATABASE_URL`` in the
environment before starting.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from user_directory_api.app.core.config import settings
from user_directory_api.app.main import app


async def main() -> None:
    """Serve the API with Uvicorn until interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Starting %s on %s:%s", settings.project_name, settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
