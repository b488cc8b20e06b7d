"""Notification formatting, delivery and intake subsystem."""

from stagewatch.monitor.channels import DiscordWebhookChannel, NotificationChannel
from stagewatch.monitor.dispatcher import NotificationDispatcher
from stagewatch.monitor.exceptions import DeliveryFailedError, MonitorError
from stagewatch.monitor.factory import create_notification_stack
from stagewatch.monitor.formatters import format_stage_event
from stagewatch.monitor.metrics import DeliveryMetrics
from stagewatch.monitor.receiver import create_receiver_app, start_receiver
from stagewatch.monitor.types import DeliveryResult, ErrorKind, NotificationMessage

__all__ = [
    "DeliveryFailedError",
    "DeliveryMetrics",
    "DeliveryResult",
    "DiscordWebhookChannel",
    "ErrorKind",
    "MonitorError",
    "NotificationChannel",
    "NotificationDispatcher",
    "NotificationMessage",
    "create_notification_stack",
    "create_receiver_app",
    "format_stage_event",
    "start_receiver",
]
