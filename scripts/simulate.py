#!/usr/bin/env python3
"""Simulate one pipeline run and relay each stage transition.

Usage:
    python -m scripts.simulate
    python -m scripts.simulate --fail-stage Build
    python -m scripts.simulate --dry-run

Walks the configured stages in order (STARTED then SUCCEEDED), failing
``--fail-stage`` instead of succeeding it; the run halts there.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from stagewatch.core.config import load_settings
from stagewatch.core.logging import setup_logging
from stagewatch.monitor.factory import create_notification_stack
from stagewatch.pipeline.model import PipelineRun
from scripts.replay import ConsoleChannel


async def walk(run: PipelineRun, fail_stage: str | None = None) -> None:
    """Drive *run* through its stages until it completes or halts."""
    while (stage := run.next_stage) is not None:
        await run.start_stage(stage.name)
        if stage.name == fail_stage:
            await run.fail_stage(stage.name)
        else:
            await run.succeed_stage(stage.name)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate a pipeline run and relay its stage transitions.",
    )
    parser.add_argument("--fail-stage", default=None, help="Stage to fail")
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
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    return parser.parse_args(argv)


async def run_simulation(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    setup_logging(level=args.log_level, fmt="console")

    channel = ConsoleChannel() if args.dry_run else None
    dispatcher = create_notification_stack(settings, channel=channel)
    run = PipelineRun(settings.pipeline, source=settings.inbound.default_source)
    run.on_event(dispatcher.on_stage_event)

    print(f"Simulating {run.pipeline_name} ({run.execution_id})")
    try:
        await walk(run, fail_stage=args.fail_stage)
    finally:
        await dispatcher.close()

    for execution in run.stages:
        print(f"  {execution.name:<12} {execution.state or 'NOT_STARTED'}")
    return 1 if run.halted else 0


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(run_simulation(args)))


if __name__ == "__main__":
    main()
