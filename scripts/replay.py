#!/usr/bin/env python3
"""Replay CLI — push recorded stage triggers through the notification path.

Usage:
    python -m scripts.replay events.json
    python -m scripts.replay events.jsonl --dry-run

The file holds either a JSON array of triggers or one trigger per line::

    {"source": "aws.codepipeline",
     "time": "2024-03-01T10:00:00Z",
     "detail": {"pipeline": "devops-pro-pipes", "stage": "Source", "state": "STARTED"}}

Triggers are dispatched concurrently; outcomes print in file order.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from stagewatch.core.config import load_settings
from stagewatch.core.logging import setup_logging
from stagewatch.monitor.channels import NotificationChannel
from stagewatch.monitor.factory import create_notification_stack
from stagewatch.monitor.types import DeliveryResult, NotificationMessage


class ConsoleChannel(NotificationChannel):
    """Prints messages instead of posting them."""

    async def send(self, msg: NotificationMessage) -> DeliveryResult:
        print(f"  -> {msg.text}")
        return DeliveryResult(succeeded=True)

    async def close(self) -> None:
        return None


def load_triggers(path: str) -> list[dict[str, Any]]:
    """Load triggers from a JSON array or JSON-lines file."""
    with open(path) as f:
        text = f.read()

    stripped = text.lstrip()
    if stripped.startswith("["):
        data = json.loads(stripped)
        return [item for item in data if isinstance(item, dict)]

    triggers: list[dict[str, Any]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        item = json.loads(line)
        if isinstance(item, dict):
            triggers.append(item)
    return triggers


def describe(outcome: DeliveryResult | None | BaseException) -> str:
    if isinstance(outcome, BaseException):
        return f"ERROR {outcome}"
    if outcome is None:
        return "FILTERED"
    if outcome.succeeded:
        return "DELIVERED"
    kind = outcome.error.value if outcome.error else "unknown"
    return f"FAILED {kind}: {outcome.error_detail}"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay recorded stage triggers through the notification path.",
    )
    parser.add_argument("events", help="Path to JSON or JSON-lines trigger file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print formatted messages instead of posting them",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    return parser.parse_args(argv)


async def run_replay(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    setup_logging(level=args.log_level, fmt="console")

    triggers = load_triggers(args.events)
    print(f"Replaying {len(triggers)} trigger(s) from {args.events}")

    channel = ConsoleChannel() if args.dry_run else None
    dispatcher = create_notification_stack(settings, channel=channel)
    try:
        outcomes = await dispatcher.handle_many(triggers)
    finally:
        await dispatcher.close()

    print()
    print("OUTCOMES")
    print("-" * 72)
    for index, outcome in enumerate(outcomes, start=1):
        print(f"  [{index:>3}] {describe(outcome)}")

    failed = sum(
        1
        for o in outcomes
        if isinstance(o, BaseException) or (o is not None and not o.succeeded)
    )
    return 1 if failed else 0


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(run_replay(args)))


if __name__ == "__main__":
    main()
