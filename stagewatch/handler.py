"""Function-style entry point: one inbound trigger per invocation.

Suitable for hosts that call ``handler(event, context)`` with the raw
pipeline notification, such as an event-rule target.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog

from stagewatch.core.config import Settings, get_settings
from stagewatch.monitor.channels import NotificationChannel
from stagewatch.monitor.exceptions import DeliveryFailedError
from stagewatch.monitor.factory import create_notification_stack
from stagewatch.monitor.types import DeliveryResult

logger = structlog.get_logger(__name__)


def _response(result: DeliveryResult | None) -> dict[str, Any]:
    if result is None:
        return {"status": "filtered", "response_body": None, "error": None}
    return {
        "status": "delivered" if result.succeeded else "failed",
        "response_body": result.response_body,
        "error": result.error.value if result.error else None,
    }


async def handle_event(
    event: Mapping[str, Any],
    settings: Settings | None = None,
    channel: NotificationChannel | None = None,
) -> dict[str, Any]:
    """Process a single trigger with a dispatcher scoped to this call.

    Raises:
        MalformedInboundEventError: the trigger is missing required fields.
        DeliveryFailedError: delivery failed and ``handler.raise_on_failure`` is set.
    """
    settings = settings or get_settings()
    dispatcher = create_notification_stack(settings, channel=channel)
    try:
        result = await dispatcher.handle_trigger(event)
    finally:
        await dispatcher.close()

    if result is not None and not result.succeeded and settings.handler.raise_on_failure:
        raise DeliveryFailedError(result)
    return _response(result)


def handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous wrapper around ``handle_event``."""
    logger.debug(
        "invocation",
        request_id=getattr(context, "aws_request_id", None),
    )
    return asyncio.run(handle_event(event))
