"""
AccTrack Data Service Entry Point

Runs as a child of the desktop UI process. The UI writes facade requests
to our stdin, one JSON object per line, and reads replies from stdout.

DESIGN PRINCIPLES:
1. Open the record store before serving anything
2. A store that cannot be opened ends the process with status 1
3. stdout carries replies only; all logging goes to stderr
4. End of input is a clean shutdown: drain, close the store, exit 0
"""

import asyncio
import sys

import structlog

from src.audit import configure_logging
from src.config import get_settings
from src.ipc import serve_stdio
from src.orchestrator import AppComponents, create_app_components
from src.services.storage import StorageOpenError


logger = structlog.get_logger("acctrack.main")


def run_async(coro):
    """Helper to run the async service from a plain entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def run_service(components: AppComponents) -> int:
    """
    Start, serve until end of input, stop.

    Returns:
        Process exit status
    """
    try:
        await components.start()
    except StorageOpenError as e:
        logger.critical("store_open_fatal", error=str(e))
        return 1

    try:
        await serve_stdio(components.facade)
    finally:
        await components.stop()
    return 0


def main() -> int:
    settings = get_settings()
    configure_logging("DEBUG" if settings.debug_mode else settings.log_level)
    logger.info(
        "service_starting",
        environment=settings.app_environment,
        data_dir=str(settings.data_dir),
    )
    return run_async(run_service(create_app_components(settings)))


if __name__ == "__main__":
    sys.exit(main())
