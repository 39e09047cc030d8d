"""
Warden - API Package
====================

FastAPI-based REST API over the moderation engine.

Usage:
    from warden.api import APIService

    api_service = APIService(engine)
    await api_service.start()

    # On shutdown
    await api_service.stop()
"""

import asyncio
from typing import Optional

import uvicorn

from warden.api.app import create_app
from warden.api.dependencies import set_engine
from warden.core.config import Config, get_config
from warden.core.logger import logger
from warden.engine import ModerationEngine
from warden.utils.async_utils import create_safe_task


# =============================================================================
# API Service
# =============================================================================

class APIService:
    """
    Manages the FastAPI server lifecycle.

    The server runs in a background task so the caller keeps control of
    the event loop (signal handling, graceful shutdown).
    """

    def __init__(self, engine: ModerationEngine, config: Optional[Config] = None) -> None:
        self._engine = engine
        self._config = config or get_config()
        self._app = create_app(engine)
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Check if the API server is running."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the API server in a background task."""
        if self.is_running:
            logger.warning("API Already Running")
            return

        config = uvicorn.Config(
            app=self._app,
            host=self._config.api_host,
            port=self._config.api_port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._task = create_safe_task(self._run_server(), "API Server")

        logger.tree("API Service Started", [
            ("Host", self._config.api_host),
            ("Port", str(self._config.api_port)),
            ("Debug", str(self._config.api_debug)),
            ("Auth", "Bearer token" if self._config.api_token else "Open"),
        ], emoji="🌐")

    async def wait(self) -> None:
        """Block until the server task finishes."""
        if self._task:
            await self._task

    async def _run_server(self) -> None:
        """Run the uvicorn server."""
        try:
            await self._server.serve()
        except asyncio.CancelledError:
            logger.debug("API Server Cancelled")

    async def stop(self) -> None:
        """Stop the API server gracefully."""
        if not self.is_running:
            return

        logger.tree("API Service Stopping", [], emoji="🛑")

        if self._server:
            self._server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._server = None
        self._task = None
        set_engine(None)

        logger.tree("API Service Stopped", [], emoji="✅")


__all__ = [
    "APIService",
    "create_app",
]
