"""Local status HTTP service.

Runs alongside the bot so an operator can see what it is doing without
reading the log.

Endpoints:
    GET  /status           - Session state and per-stream monitor tasks
    GET  /events           - Recent status events (``?limit=N&kind=...``)
    GET  /purchases/stats  - Purchase attempt counts from the journal
    POST /stop             - Request a graceful shutdown
"""

from __future__ import annotations

import logging

from aiohttp import web
from aiohttp.web import AppRunner, TCPSite

from .models.events import EventKind

logger = logging.getLogger(__name__)


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def handle_status(request: web.Request) -> web.Response:
    bot = request.app["bot"]
    session = bot.session_manager.status() if bot.session_manager else None
    streams = bot.monitor.snapshot() if bot.monitor else []
    return web.json_response({
        "session": session,
        "streams": streams,
        "stopping": bot.token.cancelled,
    })


async def handle_events(request: web.Request) -> web.Response:
    bot = request.app["bot"]
    try:
        limit = int(request.query.get("limit", "50"))
    except ValueError:
        return web.json_response({"error": "limit must be an integer"}, status=400)
    if limit < 1:
        return web.json_response({"error": "limit must be at least 1"}, status=400)

    kind = None
    if request.query.get("kind"):
        try:
            kind = EventKind(request.query["kind"])
        except ValueError:
            return web.json_response({"error": f"unknown event kind: {request.query['kind']}"}, status=400)

    events = [e.model_dump(mode="json") for e in bot.events.recent(limit=limit, kind=kind)]
    return web.json_response({"events": events, "count": len(events)})


async def handle_purchase_stats(request: web.Request) -> web.Response:
    bot = request.app["bot"]
    if bot.repository is None:
        return web.json_response({"error": "Event journal is not enabled."}, status=503)
    try:
        stats = await bot.repository.purchase_stats()
    except Exception as e:
        logger.error(f"Purchase stats query failed: {e}")
        return web.json_response({"error": str(e)}, status=500)
    return web.json_response(stats)


async def handle_stop(request: web.Request) -> web.Response:
    bot = request.app["bot"]
    bot.token.cancel("stop requested over HTTP")
    logger.info("Shutdown requested over HTTP")
    return web.json_response({"message": "Shutting down."})


# ── App Factory ──────────────────────────────────────────────────────────────


def create_app(bot) -> web.Application:
    """Build the status app for ``bot``.

    ``bot`` exposes ``session_manager``, ``monitor``, ``events``,
    ``repository`` and ``token``.
    """
    app = web.Application()
    app["bot"] = bot

    app.router.add_get("/status", handle_status)
    app.router.add_get("/events", handle_events)
    app.router.add_get("/purchases/stats", handle_purchase_stats)
    app.router.add_post("/stop", handle_stop)

    return app


class StatusServer:
    """Starts and stops the status app on a TCP port."""

    def __init__(self, bot, host: str, port: int):
        self._app = create_app(bot)
        self._host = host
        self._port = port
        self._runner: AppRunner | None = None

    async def start(self) -> bool:
        runner = AppRunner(self._app)
        await runner.setup()
        site = TCPSite(runner, self._host, self._port)
        try:
            await site.start()
        except OSError as e:
            logger.warning(f"Status server could not bind {self._host}:{self._port}: {e}")
            await runner.cleanup()
            return False
        self._runner = runner
        logger.info(f"Status server listening on http://{self._host}:{self._port}")
        return True

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Status server stopped.")
