"""API server: runs uvicorn inside the existing asyncio event loop."""

from __future__ import annotations

import asyncio
import contextlib

import uvicorn
from loguru import logger

from config.settings import settings


async def run_api_server(shutdown_event: asyncio.Event | None = None) -> None:
    """Serve the scan API until ``shutdown_event`` is set.

    Exiting through ``should_exit`` lets the lifespan close the services.
    """
    from pinioscan.api.app import create_app

    app = create_app()
    config = uvicorn.Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning",
        loop="none",  # use the existing event loop
    )
    server = uvicorn.Server(config)

    async def _watch_shutdown() -> None:
        await shutdown_event.wait()
        server.should_exit = True

    watcher = asyncio.create_task(_watch_shutdown()) if shutdown_event else None
    logger.info(f"Pinioscan API starting on http://{settings.api_host}:{settings.api_port}")
    try:
        await server.serve()
    finally:
        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
