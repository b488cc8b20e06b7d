"""Convenience factory for wiring the notification stack."""

from __future__ import annotations

from stagewatch.core.config import Settings
from stagewatch.monitor.channels import DiscordWebhookChannel, NotificationChannel
from stagewatch.monitor.dispatcher import NotificationDispatcher
from stagewatch.monitor.metrics import DeliveryMetrics
from stagewatch.pipeline.filters import EventFilter


def create_notification_stack(
    settings: Settings,
    channel: NotificationChannel | None = None,
    metrics: DeliveryMetrics | None = None,
) -> NotificationDispatcher:
    """Build a dispatcher from settings.

    Args:
        settings: Loaded settings; ``webhook``, ``filter`` and ``inbound`` are used.
        channel: Override the webhook channel (tests, dry runs).
        metrics: Shared counters; a fresh collector is created if None.
    """
    return NotificationDispatcher(
        channel=channel or DiscordWebhookChannel(settings.webhook),
        event_filter=EventFilter.from_config(settings.filter),
        metrics=metrics if metrics is not None else DeliveryMetrics(),
        inbound=settings.inbound,
    )
