"""
Liveness endpoint served next to long polling.
"""

import time
from datetime import datetime, timezone
from typing import Optional

import structlog
from aiohttp import web

from config import HealthConfig

logger = structlog.get_logger(__name__)

SERVICE_NAME = "audio-drop-bot"


class HealthServer:
    """Small aiohttp app exposing / and /health."""

    def __init__(self, config: HealthConfig):
        self.config = config
        self.started_at = time.monotonic()
        self._runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.root)
        app.router.add_get("/health", self.health)
        return app

    async def root(self, request: web.Request) -> web.Response:
        return web.json_response({"service": SERVICE_NAME, "status": "running"})

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - self.started_at, 3),
        })

    async def start(self) -> None:
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await site.start()
        logger.info("health_server_started", host=self.config.host, port=self.config.port)

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("health_server_stopped")
