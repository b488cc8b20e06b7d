"""HTTP intake for stage-transition triggers.

Runs as an ``aiohttp`` web server in front of the dispatcher.
Exposes:
- ``POST /events``      → process one inbound trigger
- ``GET /healthz``      → liveness probe
- ``GET /api/metrics``  → JSON delivery counters

``POST /events`` answers ``502`` when delivery fails so a sender with
redelivery semantics retries; filtered events answer ``200``.
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog
from aiohttp import web

from stagewatch.monitor.dispatcher import NotificationDispatcher
from stagewatch.pipeline.exceptions import MalformedInboundEventError

logger = structlog.get_logger(__name__)

DISPATCHER_KEY: web.AppKey[NotificationDispatcher] = web.AppKey(
    "dispatcher", NotificationDispatcher
)
TOKEN_KEY: web.AppKey[str] = web.AppKey("token", str)

_OPEN_PATHS = frozenset({"/healthz"})


def _check_token(request: web.Request, token: str) -> bool:
    """Validate a bearer token in constant time."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return False
    return hmac.compare_digest(auth_header[7:], token)


@web.middleware
async def _auth_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """Require the shared token on all routes except health when configured."""
    token = request.app[TOKEN_KEY]
    if token and request.path not in _OPEN_PATHS:
        if not _check_token(request, token):
            return web.json_response({"error": "unauthorized"}, status=401)
    return await handler(request)


async def _handle_event(request: web.Request) -> web.Response:
    dispatcher = request.app[DISPATCHER_KEY]
    try:
        payload = await request.json()
    except ValueError:
        return web.json_response({"error": "invalid JSON body"}, status=400)
    if not isinstance(payload, dict):
        return web.json_response({"error": "body must be a JSON object"}, status=400)

    try:
        result = await dispatcher.handle_trigger(payload)
    except MalformedInboundEventError as exc:
        return web.json_response(
            {"error": "malformed event", "missing": exc.missing}, status=400
        )

    if result is None:
        return web.json_response({"status": "filtered"})
    if result.succeeded:
        return web.json_response(
            {"status": "delivered", "response_body": result.response_body}
        )
    return web.json_response(
        {
            "status": "failed",
            "error": result.error.value if result.error else None,
            "detail": result.error_detail,
        },
        status=502,
    )


async def _handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def _handle_metrics(request: web.Request) -> web.Response:
    metrics = request.app[DISPATCHER_KEY].metrics
    return web.json_response(metrics.summary() if metrics is not None else {})


def create_receiver_app(
    dispatcher: NotificationDispatcher,
    token: str | None = None,
) -> web.Application:
    """Create the aiohttp intake application."""
    app = web.Application(middlewares=[_auth_middleware])
    app[DISPATCHER_KEY] = dispatcher
    app[TOKEN_KEY] = token or ""
    app.router.add_post("/events", _handle_event)
    app.router.add_get("/healthz", _handle_health)
    app.router.add_get("/api/metrics", _handle_metrics)
    return app


async def start_receiver(
    dispatcher: NotificationDispatcher,
    host: str = "0.0.0.0",
    port: int = 8080,
    token: str | None = None,
) -> web.AppRunner:
    """Start the intake server. Returns the runner for cleanup."""
    app = create_receiver_app(dispatcher, token=token)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("receiver_started", host=host, port=port, auth=bool(token))
    return runner
