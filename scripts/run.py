#!/usr/bin/env python3
"""Intake server entrypoint — receives stage triggers and relays them to chat.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Override log level and port
    python scripts/run.py --log-level DEBUG --port 9000
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog

from stagewatch.core.config import load_settings
from stagewatch.core.logging import setup_logging
from stagewatch.monitor.factory import create_notification_stack
from stagewatch.monitor.receiver import start_receiver

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start the receiver and serve until interrupted."""
    settings = load_settings(args.config)
    setup_logging(level=args.log_level)

    if not settings.webhook.url.get_secret_value():
        logger.error("webhook_url_missing")
        print(
            "No webhook URL configured. Set webhook.url in config/settings.yaml "
            "or the STAGEWATCH_WEBHOOK_URL environment variable.",
            file=sys.stderr,
        )
        return 1

    dispatcher = create_notification_stack(settings)
    runner = await start_receiver(
        dispatcher,
        host=args.host or settings.receiver.host,
        port=args.port or settings.receiver.port,
        token=settings.receiver.token.get_secret_value() or None,
    )

    logger.info(
        "stagewatch_running",
        pipeline=settings.pipeline.name,
        sources=settings.filter.sources,
        states=settings.filter.states,
    )

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("stagewatch_shutting_down")
    await runner.cleanup()
    await dispatcher.close()

    if dispatcher.metrics is not None:
        summary = dispatcher.metrics.summary()
        logger.info(
            "stagewatch_stopped",
            received=summary["received"],
            delivered=summary["delivered"],
            failed=summary["failed"],
            filtered=summary["filtered"],
        )

    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Relay pipeline stage transitions to a chat webhook.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    parser.add_argument("--host", default=None, help="Bind address override")
    parser.add_argument("--port", type=int, default=None, help="Port override")
    args = parser.parse_args()

    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()
