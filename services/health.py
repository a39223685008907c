# services/health.py
# Liveness / readiness endpoints for the hosting platform.

import logging
from datetime import datetime, timezone

from aiohttp import web

logger = logging.getLogger(__name__)

STATE_KEY = web.AppKey("bot_state", object)


class BotState:
    """What the health endpoints report: catalog, uptime, polling flag."""

    def __init__(self, catalog, command_router):
        self.catalog = catalog
        self.command_router = command_router
        self.polling = False

    def status(self) -> dict:
        return {
            "status": "running",
            "uptime_seconds": round(self.command_router.uptime_seconds(), 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def readiness(self) -> dict:
        ready = self.polling and bool(self.catalog.cards)
        return {
            "ready": ready,
            "bot_status": "ready" if ready else "not_ready",
            "cards_loaded": len(self.catalog.cards),
            "spreads_loaded": len(self.catalog.spreads),
        }


async def status_handler(request: web.Request) -> web.Response:
    return web.json_response(request.app[STATE_KEY].status())


async def health_handler(request: web.Request) -> web.Response:
    return web.json_response(request.app[STATE_KEY].readiness())


def create_health_app(state: BotState) -> web.Application:
    app = web.Application()
    app[STATE_KEY] = state
    app.router.add_get("/", status_handler)
    app.router.add_get("/health", health_handler)
    return app


async def start_health_server(state: BotState, port: int) -> web.AppRunner:
    runner = web.AppRunner(create_health_app(state))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    logger.info("Health check server running on port %d", port)
    return runner
